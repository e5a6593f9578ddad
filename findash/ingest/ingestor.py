from __future__ import annotations

import threading
import time
from dataclasses import dataclass, asdict

import structlog

from ..errors import SourceUnavailable, StoreError, ValidationError
from ..store.domains import TIMESTAMP_COLUMN, get_domain, normalize_timestamp
from ..store.observations import ObservationStore
from ..utils import now_utc_iso

log = structlog.get_logger()

COMMITTED = "committed"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class BatchResult:
    domain: str
    status: str
    timestamp: str
    source: str | None = None
    inserted: int = 0
    error: str | None = None
    elapsed_sec: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == COMMITTED

    def as_dict(self) -> dict:
        return asdict(self)


def fetch_with_timeout(source, timeout_seconds: float | None) -> list[dict]:
    """Run ``source.fetch()`` and give up after ``timeout_seconds``.

    The fetch runs on a daemon thread: a hung source keeps that thread but
    neither blocks the batch, which treats the expiry as SourceUnavailable,
    nor keeps the interpreter from exiting.
    """
    if not timeout_seconds or timeout_seconds <= 0:
        return source.fetch()
    outcome: dict = {}

    def _target():
        try:
            outcome["records"] = source.fetch()
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=_target, name=f"source-{source.name}", daemon=True)
    worker.start()
    worker.join(timeout_seconds)
    if worker.is_alive():
        raise SourceUnavailable(source.name, f"timed out after {timeout_seconds}s")
    if "error" in outcome:
        raise outcome["error"]
    return outcome.get("records")


class SourceChain:
    """Ordered fallback list: the first source that yields records wins."""

    def __init__(self, sources, timeout_seconds: float | None = None):
        self.sources = list(sources)
        self.timeout_seconds = timeout_seconds

    def fetch(self) -> tuple[str, list[dict]]:
        failures = []
        for source in self.sources:
            try:
                records = list(fetch_with_timeout(source, self.timeout_seconds) or [])
            except SourceUnavailable as e:
                log.warning("source_unavailable", source=source.name, reason=e.reason)
                failures.append(f"{source.name}: {e.reason}")
                continue
            except Exception as e:
                log.error("source_crashed", source=source.name, err_type=type(e).__name__, err=str(e))
                failures.append(f"{source.name}: {type(e).__name__}: {e}")
                continue
            return source.name, records
        raise SourceUnavailable("chain", "; ".join(failures) or "no sources configured")


def run_batch(
    store: ObservationStore,
    domain: str,
    sources,
    *,
    timeout_seconds: float | None = None,
    now: str | None = None,
) -> BatchResult:
    """Acquire one batch of records for ``domain`` and commit it with a single timestamp.

    Source failures skip the batch; validation and store failures fail it.
    Neither propagates: the caller (scheduler, refresh endpoint) decides what
    a non-committed batch means. Since the whole batch is written in one
    transaction, a failed batch leaves nothing behind, and a retry simply
    writes a newer batch.
    """
    get_domain(domain)
    timestamp = normalize_timestamp(now) if now else now_utc_iso()
    started = time.monotonic()
    log.info("batch_started", domain=domain, timestamp=timestamp)

    def _result(status: str, **fields) -> BatchResult:
        return BatchResult(
            domain=domain,
            status=status,
            timestamp=timestamp,
            elapsed_sec=round(time.monotonic() - started, 3),
            **fields,
        )

    chain = sources if isinstance(sources, SourceChain) else SourceChain(sources, timeout_seconds)
    try:
        source_name, records = chain.fetch()
    except SourceUnavailable as e:
        log.warning("batch_source_unavailable", domain=domain, reason=e.reason)
        return _result(SKIPPED, error=str(e))

    stamped = [
        {**record, TIMESTAMP_COLUMN: timestamp} if isinstance(record, dict) else record
        for record in records
    ]
    try:
        rows = store.append_many(domain, stamped)
    except ValidationError as e:
        log.error("batch_validation_failed", domain=domain, source=source_name, reasons=e.reasons)
        return _result(FAILED, source=source_name, error=str(e))
    except StoreError as e:
        log.error("batch_store_failed", domain=domain, source=source_name, err=str(e))
        return _result(FAILED, source=source_name, error=str(e))

    res = _result(COMMITTED, source=source_name, inserted=len(rows))
    log.info("batch_committed", domain=domain, source=source_name, inserted=len(rows), elapsed_sec=res.elapsed_sec)
    return res
