from __future__ import annotations

import sqlite3
import threading
import uuid

import structlog

from ..db import get_conn, migrate
from ..errors import StoreError, ValidationError
from .domains import DOMAINS, TIMESTAMP_COLUMN, DomainSpec, get_domain, validate_record
from .snapshot import resolve_snapshot, rows_as_dicts

log = structlog.get_logger()


class ObservationStore:
    """Durable per-domain observation tables on top of one sqlite connection.

    Every component receives the store explicitly; nothing reaches for a
    module-level handle, so each test can work on its own ``:memory:`` store.
    Writes are committed before the call returns.

    The connection is shared between the scheduler thread and request
    handlers, so reads take the same lock as writes and never observe an
    open batch transaction.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._lock = threading.RLock()
        migrate(conn)

    @classmethod
    def open(cls, db_path: str) -> "ObservationStore":
        try:
            return cls(get_conn(db_path))
        except sqlite3.Error as e:
            raise StoreError(f"cannot open {db_path}: {e}") from e

    def close(self):
        self.conn.close()

    # ------------------------------------------------------------------ writes

    def append(self, domain: str, record: dict) -> dict:
        """Validate and write one record; positions are upserted by id."""
        return self.append_many(domain, [record])[0]

    def append_many(self, domain: str, records: list[dict]) -> list[dict]:
        """Validate every record, then write them all in a single transaction.

        A validation failure rejects the whole call before anything is
        written; readers never see part of the call's rows.
        """
        spec = get_domain(domain)
        rows = []
        for idx, record in enumerate(records):
            try:
                rows.append(validate_record(spec, record))
            except ValidationError as e:
                raise ValidationError(domain, [f"record {idx}: {r}" for r in e.reasons]) from e
        if spec.write_mode == "upsert":
            # a repeated id inside one call would overwrite its earlier row
            seen: dict = {}
            dupes = []
            for idx, row in enumerate(rows):
                rid = row[spec.id_column]
                if rid in seen:
                    dupes.append(f"record {idx}: duplicate {spec.id_column} {rid!r} (first at record {seen[rid]})")
                else:
                    seen[rid] = idx
            if dupes:
                raise ValidationError(domain, dupes)
        if not rows:
            return []
        with self._lock:
            try:
                self.conn.execute("BEGIN")
                for row in rows:
                    self._write_row(spec, row)
                self.conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback()
                raise StoreError(f"append to {domain} failed: {e}") from e
            except BaseException:
                self._rollback()
                raise
        return rows

    def _rollback(self):
        try:
            if self.conn.in_transaction:
                self.conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            log.error("store_rollback_failed", err=str(e))

    def _write_row(self, spec: DomainSpec, row: dict):
        if spec.id_mode == "uuid" and not row.get(spec.id_column):
            row[spec.id_column] = str(uuid.uuid4())
        cols = list(row)
        placeholders = ",".join("?" for _ in cols)
        sql = f"INSERT INTO {spec.table} ({', '.join(cols)}) VALUES ({placeholders})"
        if spec.write_mode == "upsert":
            updates = ", ".join(f"{c}=excluded.{c}" for c in cols if c != spec.id_column)
            sql += f" ON CONFLICT({spec.id_column}) DO UPDATE SET {updates}"
        cur = self.conn.execute(sql, [row[c] for c in cols])
        if spec.id_mode == "autoincrement":
            row[spec.id_column] = cur.lastrowid

    # ------------------------------------------------------------------- reads

    def snapshot(self, domain: str, filters: dict | None = None) -> list[dict]:
        """Latest row per key for ``domain``, optionally narrowed by one payload field."""
        with self._lock:
            return resolve_snapshot(self.conn, domain, filters)

    def query(self, domain: str, predicate: dict | None = None) -> list[dict]:
        """Raw rows matching every ``column == value`` pair (None matches NULL), no dedup."""
        spec = get_domain(domain)
        predicate = predicate or {}
        unknown = sorted(set(predicate) - set(spec.columns))
        if unknown:
            raise ValidationError(domain, [f"unknown columns {unknown}"])
        sql = f"SELECT {', '.join(spec.columns)} FROM {spec.table}"
        params = []
        if predicate:
            sql += " WHERE " + " AND ".join(f"{c} IS ?" for c in predicate)
            params = list(predicate.values())
        sql += f" ORDER BY {TIMESTAMP_COLUMN}, {spec.id_column}"
        try:
            with self._lock:
                return rows_as_dicts(self.conn.execute(sql, params))
        except sqlite3.Error as e:
            raise StoreError(f"query {domain} failed: {e}") from e

    def count(self, domain: str) -> int:
        spec = get_domain(domain)
        try:
            with self._lock:
                return self.conn.execute(f"SELECT COUNT(*) FROM {spec.table}").fetchone()[0]
        except sqlite3.Error as e:
            raise StoreError(f"count {domain} failed: {e}") from e

    def last_update(self) -> str | None:
        """Most recent timestamp across every domain, or None for an empty store.

        The newest row of a table is always part of that table's snapshot, so
        the table maximum equals the maximum over its latest rows.
        """
        latest = None
        try:
            for spec in DOMAINS.values():
                with self._lock:
                    row = self.conn.execute(f"SELECT MAX({TIMESTAMP_COLUMN}) FROM {spec.table}").fetchone()
                if row and row[0] and (latest is None or row[0] > latest):
                    latest = row[0]
        except sqlite3.Error as e:
            raise StoreError(f"last_update failed: {e}") from e
        return latest
