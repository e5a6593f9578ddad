from __future__ import annotations

import threading
import time
import uuid

import structlog

from ..config import settings
from ..ingest.ingestor import COMMITTED, run_batch
from ..ingest.sources import AddeparSource, SpreadsheetSource, StaticSource
from ..ingest.static_data import ECONOMIC_RELEASES, MARKET_QUOTES, PE_METRICS
from ..metrics.risk import DEFAULT_MODEL, PositionRiskSource
from ..store.observations import ObservationStore
from ..utils import now_utc_iso, today_local_iso

log = structlog.get_logger()

# positions before risk_measures: risk is computed from the positions snapshot
REFRESH_ORDER = ["markets", "economics", "pe_metrics", "positions", "risk_measures"]


def default_sources(store: ObservationStore, cfg=settings) -> dict[str, list]:
    return {
        "markets": [StaticSource("static_markets", MARKET_QUOTES)],
        "economics": [StaticSource("static_economics", ECONOMIC_RELEASES)],
        "pe_metrics": [StaticSource("static_pe_metrics", PE_METRICS)],
        "positions": [
            AddeparSource(
                cfg.addepar_key,
                cfg.addepar_secret,
                cfg.addepar_view_id,
                base_url=cfg.addepar_base_url,
                timeout=cfg.source_timeout_seconds,
                retry_attempts=cfg.http_retry_attempts,
                retry_backoff_seconds=cfg.http_retry_backoff_seconds,
            ),
            SpreadsheetSource(cfg.portfolio_file, cfg.portfolio_sheet),
        ],
        "risk_measures": [
            PositionRiskSource(store, lambda: today_local_iso(cfg.local_tz), DEFAULT_MODEL),
        ],
    }


class Refresher:
    """Runs one ingestion batch per domain, never two cycles at once.

    A trigger that arrives while a cycle is running is skipped rather than
    queued; the running cycle already writes fresher data than the skipped
    one would have.
    """

    def __init__(self, store: ObservationStore, sources: dict[str, list] | None = None, timeout_seconds: float | None = None):
        self.store = store
        self.sources = sources if sources is not None else default_sources(store)
        self.timeout_seconds = settings.source_timeout_seconds if timeout_seconds is None else timeout_seconds
        self._lock = threading.Lock()
        self.last_result: dict | None = None

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def run(self, trigger: str = "manual") -> dict:
        run_id = str(uuid.uuid4())
        if not self._lock.acquire(blocking=False):
            log.warning("refresh_skipped_running", run_id=run_id, trigger=trigger)
            return {
                "run_id": run_id,
                "trigger": trigger,
                "status": "skipped",
                "ok": False,
                "started_at_utc": now_utc_iso(),
                "finished_at_utc": now_utc_iso(),
                "batches": [],
                "lastUpdate": self.store.last_update(),
            }
        try:
            return self._run_locked(run_id, trigger)
        finally:
            self._lock.release()

    def _run_locked(self, run_id: str, trigger: str) -> dict:
        started_at = now_utc_iso()
        started = time.monotonic()
        log.info("refresh_started", run_id=run_id, trigger=trigger)
        batches = []
        for domain in REFRESH_ORDER:
            sources = self.sources.get(domain)
            if not sources:
                continue
            batches.append(run_batch(self.store, domain, sources, timeout_seconds=self.timeout_seconds))

        committed = sum(1 for b in batches if b.status == COMMITTED)
        if batches and committed == len(batches):
            status = "succeeded"
        elif committed:
            status = "partial"
        else:
            status = "failed"
        result = {
            "run_id": run_id,
            "trigger": trigger,
            "status": status,
            "ok": status == "succeeded",
            "started_at_utc": started_at,
            "finished_at_utc": now_utc_iso(),
            "batches": [b.as_dict() for b in batches],
            "lastUpdate": self.store.last_update(),
        }
        self.last_result = result
        log.info(
            "refresh_finished",
            run_id=run_id,
            status=status,
            committed=committed,
            batches=len(batches),
            elapsed_sec=round(time.monotonic() - started, 2),
        )
        return result

    def run_safely(self, trigger: str = "schedule") -> dict | None:
        """Scheduler entry point: a crashing cycle is logged, never raised into the scheduler."""
        try:
            return self.run(trigger=trigger)
        except Exception as e:
            log.error("refresh_crashed", trigger=trigger, err_type=type(e).__name__, err=str(e))
            return None
