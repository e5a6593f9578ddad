from __future__ import annotations

import copy
from pathlib import Path

import httpx
import pandas as pd
import structlog

from ..errors import SourceUnavailable
from ..utils import retry_call
from .portfolio import normalize_position_rows

log = structlog.get_logger()


class RecordSource:
    """Something that can produce a list of domain records.

    ``fetch`` returns the records or raises SourceUnavailable. Sources are
    tried in order by the ingestor; the first one that succeeds wins.
    """

    name = "source"

    def fetch(self) -> list[dict]:
        raise NotImplementedError


class StaticSource(RecordSource):
    def __init__(self, name: str, records: list[dict]):
        self.name = name
        self.records = records

    def fetch(self) -> list[dict]:
        # callers stamp timestamps onto the records; keep the template clean
        return copy.deepcopy(self.records)


class CallableSource(RecordSource):
    """Wraps a zero-argument callable; any exception becomes SourceUnavailable."""

    def __init__(self, name: str, fn):
        self.name = name
        self.fn = fn

    def fetch(self) -> list[dict]:
        try:
            return list(self.fn())
        except SourceUnavailable:
            raise
        except Exception as e:
            raise SourceUnavailable(self.name, str(e)) from e


class AddeparSource(RecordSource):
    """Portfolio view results from the Addepar API (basic auth)."""

    name = "addepar"

    def __init__(
        self,
        key: str | None,
        secret: str | None,
        view_id: str | None,
        base_url: str = "https://api.addepar.com",
        timeout: float = 30.0,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.key = key
        self.secret = secret
        self.view_id = view_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_backoff_seconds = retry_backoff_seconds
        self.transport = transport

    def _get(self) -> httpx.Response:
        url = f"{self.base_url}/v1/portfolio/views/{self.view_id}/results"
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            r = client.get(
                url,
                params={"format": "json"},
                auth=(self.key, self.secret),
                headers={"Content-Type": "application/json"},
            )
        if r.status_code >= 500:
            # retried below; 4xx is not going to get better
            r.raise_for_status()
        return r

    def fetch(self) -> list[dict]:
        if not (self.key and self.secret and self.view_id):
            raise SourceUnavailable(self.name, "missing credentials")
        try:
            r = retry_call(
                self._get,
                attempts=self.retry_attempts,
                base_delay=self.retry_backoff_seconds,
                retry_on=(httpx.TransportError, httpx.HTTPStatusError),
            )
        except (httpx.HTTPError, TimeoutError) as e:
            raise SourceUnavailable(self.name, f"request failed: {e}") from e
        if r.status_code != 200:
            raise SourceUnavailable(self.name, f"status {r.status_code}")
        try:
            payload = r.json()
        except ValueError as e:
            raise SourceUnavailable(self.name, "response is not json") from e
        rows = payload.get("rows") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            raise SourceUnavailable(self.name, "response has no rows list")
        records = normalize_position_rows(rows)
        log.debug("addepar_rows", rows=len(rows), positions=len(records))
        return records


class SpreadsheetSource(RecordSource):
    """Positions from a local Excel export (or csv) of the portfolio view."""

    name = "spreadsheet"

    def __init__(self, path: str, sheet: str = "Portfolio View"):
        self.path = path
        self.sheet = sheet

    def _read(self) -> pd.DataFrame:
        path = Path(self.path)
        if path.suffix.lower() == ".csv":
            return pd.read_csv(path)
        return pd.read_excel(path, sheet_name=self.sheet)

    def fetch(self) -> list[dict]:
        if not Path(self.path).exists():
            raise SourceUnavailable(self.name, f"file not found: {self.path}")
        try:
            df = self._read()
        except (ValueError, KeyError, OSError, ImportError) as e:
            raise SourceUnavailable(self.name, f"cannot read {self.path}: {e}") from e
        if df is None or df.empty:
            raise SourceUnavailable(self.name, f"no rows in {self.path}")
        df = df.astype(object).where(pd.notna(df), None)
        return normalize_position_rows(df.to_dict(orient="records"))
