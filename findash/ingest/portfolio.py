from __future__ import annotations

import re
import uuid

from ..utils import coerce_float

# Stable ids for rows that come without one, so a re-ingested holding upserts
# its previous row instead of adding a new one.
POSITION_NAMESPACE = uuid.UUID("6f1d3c1e-8a55-4f8e-9a3b-2c7d0f6b9e41")

# Checked in order; illiquid private-market labels first so "private equity"
# is not caught by the public equity pattern.
_BUCKET_RULES = [
    (r"co-?invest", "Illiquid – Co-Invests"),
    (r"private.*equity|\bbuyout\b|\bventure\b", "Illiquid – Private Equity"),
    (r"real assets|real estate", "Illiquid – Private Real Assets"),
    (r"private.*credit|direct lending", "Illiquid – Private Credit"),
    (r"infrastructure", "Illiquid – Infrastructure"),
    (r"\bbond|fixed|\big\b|\bhy\b|em debt|treasur", "Liquid – Fixed Income"),
    (r"stock|equit|eafe|\bem\b|\bus\b", "Liquid – Equities"),
    (r"commodit|gold|oil", "Liquid – Commodities"),
    (r"crypto|bitcoin|ethereum", "Liquid – Crypto"),
    (r"cash|money market", "Liquid – Cash"),
    (r"\bcredit\b", "Illiquid – Private Credit"),
]

# canonical field -> accepted source column names (Addepar json, spreadsheet export)
_ALIASES = {
    "id": ("id", "Id", "ID", "position_id", "PositionId"),
    "name": ("name", "Name"),
    "type": ("type", "Type", "asset_class", "AssetClass", "Category", "category"),
    "market_value": ("market_value", "MarketValue", "Market Value"),
    "ytd_dollar": ("ytd_dollar", "YtdDollar", "YTD $"),
    "ytd_percent": ("ytd_percent", "YtdPercent", "YTD %"),
    "irr": ("irr", "IRR"),
    "tvpi": ("tvpi", "TVPI"),
    "nav_percent": ("nav_percent", "NavPercent", "NAV %"),
    "nav_target": ("nav_target", "NavTarget", "NAV Target"),
}

_OPTIONAL_NUMERIC = ("ytd_dollar", "ytd_percent", "irr", "tvpi", "nav_percent", "nav_target")


def map_bucket(label: str | None) -> str:
    """Liquidity bucket for an instrument type / category label."""
    text = (label or "").strip().lower()
    if not text:
        return "Other"
    for pattern, bucket in _BUCKET_RULES:
        if re.search(pattern, text):
            return bucket
    return "Other"


def _pick(row: dict, field: str):
    for col in _ALIASES[field]:
        if col in row and row[col] is not None:
            val = row[col]
            if isinstance(val, str) and not val.strip():
                continue
            return val
    return None


def position_id(name: str, asset_class: str, occurrence: int = 1) -> str:
    """Deterministic id for a row without one; ``occurrence`` separates repeated holdings in one export."""
    key = f"{name.strip().lower()}|{asset_class.strip().lower()}"
    if occurrence > 1:
        key += f"|{occurrence}"
    return str(uuid.uuid5(POSITION_NAMESPACE, key))


def normalize_position_row(row: dict) -> dict | None:
    """Map one provider/spreadsheet row onto the positions schema.

    Rows without a name are dropped (returns None). Missing optional metrics
    stay None; an unparseable market value counts as 0.
    """
    name = _pick(row, "name")
    if name is None or not str(name).strip():
        return None
    name = str(name).strip()
    type_label = _pick(row, "type")
    bucket = map_bucket(str(type_label) if type_label is not None else None)
    asset_class = str(type_label).strip() if type_label is not None else bucket
    raw_id = _pick(row, "id")
    out = {
        "id": str(raw_id).strip() if raw_id is not None else position_id(name, asset_class),
        "name": name,
        "asset_class": asset_class,
        "market_value": coerce_float(_pick(row, "market_value")) or 0.0,
        "bucket": bucket,
    }
    for field in _OPTIONAL_NUMERIC:
        out[field] = coerce_float(_pick(row, field))
    return out


def normalize_position_rows(rows: list[dict]) -> list[dict]:
    out = []
    occurrences: dict[str, int] = {}
    for row in rows:
        if not isinstance(row, dict):
            continue
        norm = normalize_position_row(row)
        if norm is None:
            continue
        derived = position_id(norm["name"], norm["asset_class"])
        if norm["id"] == derived:
            n = occurrences.get(derived, 0) + 1
            occurrences[derived] = n
            if n > 1:
                norm["id"] = position_id(norm["name"], norm["asset_class"], occurrence=n)
        out.append(norm)
    return out
