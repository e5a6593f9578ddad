"""Latest-row-per-key resolution.

One query shape serves every domain: the maximum timestamp is computed per
partition of the key columns over the whole table, rows equal to their
partition maximum are kept, and only then is the optional payload filter
applied. ``PARTITION BY`` puts NULLs in one group, so a NULL key attribute
matches another NULL and nothing else.

Rows sharing a key and the exact maximum timestamp are all returned.
"""
from __future__ import annotations

import sqlite3

from ..errors import StoreError, ValidationError
from .domains import TIMESTAMP_COLUMN, DomainSpec, get_domain


def build_snapshot_query(
    table: str,
    columns: list[str],
    key_columns: list[str],
    timestamp_column: str = TIMESTAMP_COLUMN,
    filter_column: str | None = None,
) -> str:
    if not key_columns:
        raise ValueError("key_columns must not be empty")
    select_cols = ", ".join(columns)
    partition = ", ".join(key_columns)
    sql = (
        f"SELECT {select_cols} FROM ("
        f" SELECT {select_cols},"
        f" MAX({timestamp_column}) OVER (PARTITION BY {partition}) AS latest_ts"
        f" FROM {table}"
        f") WHERE {timestamp_column} = latest_ts"
    )
    if filter_column:
        sql += f" AND {filter_column} IS ?"
    order = ", ".join([*key_columns, columns[0]])
    return sql + f" ORDER BY {order}"


def _filter_column(spec: DomainSpec, filters: dict | None) -> tuple[str | None, list]:
    if not filters:
        return None, []
    if len(filters) != 1:
        raise ValidationError(spec.name, ["snapshot filter takes exactly one field"])
    (column, value), = filters.items()
    if column not in spec.payload_columns:
        raise ValidationError(
            spec.name,
            [f"cannot filter on {column!r} (payload fields: {', '.join(spec.payload_columns)})"],
        )
    return column, [value]


def rows_as_dicts(cur: sqlite3.Cursor) -> list[dict]:
    columns = [desc[0] for desc in cur.description]
    return [dict(zip(columns, row)) for row in cur.fetchall()]


def resolve_snapshot(conn: sqlite3.Connection, domain: str, filters: dict | None = None) -> list[dict]:
    spec = get_domain(domain)
    column, params = _filter_column(spec, filters)
    sql = build_snapshot_query(spec.table, spec.columns, spec.key_columns, filter_column=column)
    try:
        cur = conn.execute(sql, params)
        return rows_as_dicts(cur)
    except sqlite3.Error as e:
        raise StoreError(f"snapshot {domain} failed: {e}") from e
