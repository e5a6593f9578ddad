from __future__ import annotations

from .risk import INSUFFICIENT_DATA, OK, bucket_values


def allocation_by_bucket(positions: list[dict]) -> dict:
    """Market value and share of total per liquidity bucket."""
    values = bucket_values(positions)
    total = sum(values.values())
    if not positions or total == 0:
        return {"status": INSUFFICIENT_DATA, "total_market_value": total, "buckets": []}
    buckets = [
        {"bucket": bucket, "market_value": value, "weight_pct": round(value / total * 100, 3)}
        for bucket, value in values.items()
    ]
    return {"status": OK, "total_market_value": total, "buckets": buckets}
