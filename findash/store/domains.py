"""Per-domain schema descriptions shared by validation, DDL and the snapshot resolver.

Each domain is one append-only observation table. A row is identified by its
key columns; the snapshot of a domain is the latest row per key.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone

from ..errors import ValidationError

TEXT = "text"
NUM = "num"

TIMESTAMP_COLUMN = "timestamp"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: str
    required: bool = True


@dataclass(frozen=True)
class DomainSpec:
    name: str
    table: str
    key_fields: tuple[FieldSpec, ...]
    payload_fields: tuple[FieldSpec, ...]
    # "append" inserts a new row per record; "upsert" replaces the row with the same id
    write_mode: str = "append"
    id_column: str = "id"
    # "autoincrement": integer rowid assigned by sqlite, never supplied by callers
    # "uuid": text id, generated when the caller omits it
    # "key": the id is a key field supplied by the caller
    id_mode: str = "autoincrement"

    @property
    def key_columns(self) -> list[str]:
        return [f.name for f in self.key_fields]

    @property
    def payload_columns(self) -> list[str]:
        return [f.name for f in self.payload_fields]

    @property
    def fields(self) -> list[FieldSpec]:
        return [*self.key_fields, *self.payload_fields]

    @property
    def columns(self) -> list[str]:
        cols = [f.name for f in self.fields]
        if self.id_column not in cols:
            cols.insert(0, self.id_column)
        return [*cols, TIMESTAMP_COLUMN]


MARKETS = DomainSpec(
    name="markets",
    table="markets",
    key_fields=(FieldSpec("symbol", TEXT),),
    payload_fields=(
        FieldSpec("category", TEXT),
        FieldSpec("name", TEXT),
        FieldSpec("value", NUM),
    ),
)

ECONOMICS = DomainSpec(
    name="economics",
    table="economics",
    key_fields=(FieldSpec("indicator", TEXT), FieldSpec("country", TEXT)),
    payload_fields=(
        FieldSpec("value", NUM),
        FieldSpec("release_date", TEXT),
        FieldSpec("period", TEXT, required=False),
        FieldSpec("surprise", NUM, required=False),
    ),
)

PE_METRICS = DomainSpec(
    name="pe_metrics",
    table="pe_metrics",
    key_fields=(
        FieldSpec("metric", TEXT),
        FieldSpec("strategy", TEXT),
        FieldSpec("region", TEXT, required=False),
    ),
    payload_fields=(
        FieldSpec("value", NUM),
        FieldSpec("period", TEXT, required=False),
    ),
)

POSITIONS = DomainSpec(
    name="positions",
    table="positions",
    key_fields=(FieldSpec("id", TEXT),),
    payload_fields=(
        FieldSpec("name", TEXT),
        FieldSpec("asset_class", TEXT),
        FieldSpec("market_value", NUM),
        FieldSpec("ytd_dollar", NUM, required=False),
        FieldSpec("ytd_percent", NUM, required=False),
        FieldSpec("irr", NUM, required=False),
        FieldSpec("tvpi", NUM, required=False),
        FieldSpec("nav_percent", NUM, required=False),
        FieldSpec("nav_target", NUM, required=False),
        FieldSpec("bucket", TEXT),
    ),
    write_mode="upsert",
    id_mode="key",
)

RISK_MEASURES = DomainSpec(
    name="risk_measures",
    table="risk_measures",
    key_fields=(FieldSpec("as_of_date", TEXT), FieldSpec("bucket", TEXT)),
    payload_fields=(
        FieldSpec("var_99", NUM, required=False),
        FieldSpec("stress_pl", NUM, required=False),
        FieldSpec("scenario", TEXT, required=False),
    ),
    id_mode="uuid",
)

DOMAINS: dict[str, DomainSpec] = {
    d.name: d for d in (MARKETS, ECONOMICS, PE_METRICS, POSITIONS, RISK_MEASURES)
}


def get_domain(name: str) -> DomainSpec:
    spec = DOMAINS.get(name)
    if spec is None:
        raise ValidationError(name, [f"unknown domain (expected one of {', '.join(DOMAINS)})"])
    return spec


def normalize_timestamp(value) -> str:
    """Return ``value`` as a UTC ISO-8601 string with microsecond precision.

    A fixed width keeps lexical ordering of the stored text equal to
    chronological ordering, which the snapshot query relies on.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    else:
        raise TypeError(f"timestamp must be str or datetime, got {type(value).__name__}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _type_ok(kind: str, value) -> bool:
    if kind == TEXT:
        return isinstance(value, str)
    if kind == NUM:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return False


def validate_record(spec: DomainSpec, record: dict) -> dict:
    """Check ``record`` against the domain and return the row to write.

    Optional fields that are absent come back as None. Raises ValidationError
    listing every problem found.
    """
    if not isinstance(record, dict):
        raise ValidationError(spec.name, [f"record must be a mapping, got {type(record).__name__}"])
    reasons = []
    known = {f.name for f in spec.fields} | {TIMESTAMP_COLUMN}
    if spec.id_mode == "uuid":
        known.add(spec.id_column)
    unknown = sorted(set(record) - known)
    if unknown:
        reasons.append(f"unexpected fields {unknown}")

    row = {}
    for f in spec.fields:
        value = record.get(f.name)
        if value is None:
            if f.required:
                reasons.append(f"missing {f.name}")
            row[f.name] = None
            continue
        if not _type_ok(f.kind, value):
            reasons.append(f"{f.name} must be {f.kind}, got {type(value).__name__}")
            continue
        if f.kind == TEXT and f.required and not value.strip():
            reasons.append(f"{f.name} is blank")
            continue
        # sqlite stores NaN as NULL
        if f.kind == NUM and not math.isfinite(value):
            reasons.append(f"{f.name} is not finite: {value!r}")
            continue
        row[f.name] = float(value) if f.kind == NUM else value

    if spec.id_mode == "uuid" and record.get(spec.id_column) is not None:
        if isinstance(record[spec.id_column], str):
            row[spec.id_column] = record[spec.id_column]
        else:
            reasons.append(f"{spec.id_column} must be text")

    ts = record.get(TIMESTAMP_COLUMN)
    if ts is None:
        reasons.append(f"missing {TIMESTAMP_COLUMN}")
    else:
        try:
            row[TIMESTAMP_COLUMN] = normalize_timestamp(ts)
        except (TypeError, ValueError):
            reasons.append(f"{TIMESTAMP_COLUMN} is not ISO-8601: {ts!r}")

    if reasons:
        raise ValidationError(spec.name, reasons)
    return row
