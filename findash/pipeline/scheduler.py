from __future__ import annotations
from datetime import datetime
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from zoneinfo import ZoneInfo
import structlog

from ..config import settings
from .orchestrator import Refresher

_log = structlog.get_logger()

REFRESH_JOB_ID = "refresh_all"
STARTUP_JOB_ID = "refresh_startup"

def build_scheduler(tz_name: str | None = None) -> BackgroundScheduler:
    tz = ZoneInfo(tz_name or settings.local_tz)
    # one refresh at a time; missed runs collapse into one
    return BackgroundScheduler(
        timezone=tz,
        job_defaults={"max_instances": 1, "coalesce": True, "misfire_grace_time": 300},
    )

def schedule_jobs(
    sched: BackgroundScheduler,
    refresher: Refresher,
    cron: str | None = None,
    run_now: bool = True,
):
    tz = sched.timezone
    sched.add_job(
        refresher.run_safely,
        CronTrigger.from_crontab(cron or settings.refresh_cron, timezone=tz),
        kwargs={"trigger": "schedule"},
        id=REFRESH_JOB_ID,
        replace_existing=True,
    )
    if run_now:
        sched.add_job(
            refresher.run_safely,
            kwargs={"trigger": "startup"},
            id=STARTUP_JOB_ID,
            next_run_time=datetime.now(tz),
            replace_existing=True,
        )
    return sched

def start_scheduler(refresher: Refresher, cron: str | None = None, run_now: bool = True) -> BackgroundScheduler:
    sched = schedule_jobs(build_scheduler(), refresher, cron=cron, run_now=run_now)
    sched.start()
    _log.info("refresh_scheduler_started", cron=cron or settings.refresh_cron, run_now=run_now)
    return sched

def stop_scheduler(sched: BackgroundScheduler | None):
    if sched is not None and sched.running:
        sched.shutdown(wait=False)
        _log.info("refresh_scheduler_stopped")
