"""Parametric one-day VaR and a flat stress shock per liquidity bucket.

Placeholder model: volatilities are constants chosen by bucket label, not
estimated from returns. Swap in another model object with the same
``evaluate(bucket, value)`` shape to change the numbers.
"""
from __future__ import annotations

import json
from collections import OrderedDict
from dataclasses import dataclass, field

from ..errors import SourceUnavailable
from ..ingest.sources import RecordSource

INSUFFICIENT_DATA = "insufficient_data"
OK = "ok"

Z_99 = 2.3263  # 99% one-sided normal quantile


@dataclass(frozen=True)
class ParametricVaRModel:
    z_score: float = Z_99
    illiquid_sigma: float = 0.15
    liquid_sigma: float = 0.10
    stress_shock: float = -0.05
    scenario: dict = field(default_factory=lambda: {"rates": 100, "equities": -2, "oil": 20})

    def sigma_for(self, bucket: str) -> float:
        return self.illiquid_sigma if "illiquid" in (bucket or "").lower() else self.liquid_sigma

    def evaluate(self, bucket: str, value: float) -> dict:
        return {
            "var_99": value * self.z_score * self.sigma_for(bucket),
            "stress_pl": value * self.stress_shock,
            "scenario": json.dumps(self.scenario),
        }


DEFAULT_MODEL = ParametricVaRModel()


def bucket_values(positions: list[dict]) -> "OrderedDict[str, float]":
    totals: dict[str, float] = {}
    for p in positions:
        bucket = p.get("bucket") or "Other"
        totals[bucket] = totals.get(bucket, 0.0) + float(p.get("market_value") or 0.0)
    return OrderedDict(sorted(totals.items()))


def compute_bucket_risk(positions: list[dict], model: ParametricVaRModel = DEFAULT_MODEL) -> dict:
    if not positions:
        return {"status": INSUFFICIENT_DATA, "measures": []}
    measures = []
    for bucket, value in bucket_values(positions).items():
        measures.append({"bucket": bucket, "market_value": value, **model.evaluate(bucket, value)})
    return {"status": OK, "measures": measures}


def risk_records(result: dict, as_of_date: str) -> list[dict]:
    """Rows for the risk_measures table (timestamps are stamped by the ingestor)."""
    return [
        {
            "as_of_date": as_of_date,
            "bucket": m["bucket"],
            "var_99": m["var_99"],
            "stress_pl": m["stress_pl"],
            "scenario": m["scenario"],
        }
        for m in result.get("measures", [])
    ]


class PositionRiskSource(RecordSource):
    """Risk rows computed from the current positions snapshot."""

    name = "position_risk"

    def __init__(self, store, as_of_date, model: ParametricVaRModel = DEFAULT_MODEL):
        self.store = store
        # str or zero-argument callable, evaluated per fetch
        self.as_of_date = as_of_date
        self.model = model

    def fetch(self) -> list[dict]:
        result = compute_bucket_risk(self.store.snapshot("positions"), self.model)
        if result["status"] != OK:
            raise SourceUnavailable(self.name, "no positions to compute risk from")
        as_of = self.as_of_date() if callable(self.as_of_date) else self.as_of_date
        return risk_records(result, as_of)
