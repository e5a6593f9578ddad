from __future__ import annotations

NO_DATA_SUMMARY = "No market data available to generate commentary."
INSUFFICIENT = "Insufficient data."

RISK_LINE = "Monitor potential volatility from upcoming economic data releases."
OPPORTUNITY_LINE = "Look for dislocations in private markets as fundraising conditions evolve."

MAX_CHANGES = 5


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


def _by_category(quotes: list[dict]) -> dict[str, list[dict]]:
    out: dict[str, list[dict]] = {}
    for q in quotes:
        out.setdefault(q.get("category"), []).append(q)
    return out


def generate_commentary(quotes: list[dict]) -> dict:
    """Short market narrative from the latest market quote snapshot.

    Illustrative only: averages per category plus fixed risk/opportunity
    lines. ``changes`` lists the first quotes ordered by (category, symbol)
    so the output does not depend on the order the store returned rows in.
    """
    if not quotes:
        return {
            "summary": NO_DATA_SUMMARY,
            "risk": INSUFFICIENT,
            "opportunity": INSUFFICIENT,
            "changes": [],
        }
    groups = _by_category(quotes)
    parts = []
    if groups.get("equities"):
        avg = _mean([q["value"] for q in groups["equities"]])
        parts.append(f"Global equities trade around {avg:.2f}, reflecting the latest index levels.")
    if groups.get("rates"):
        avg = _mean([q["value"] for q in groups["rates"]])
        parts.append(f"Government bond yields average {avg:.2f}%, signalling the market's rate expectations.")
    if groups.get("commodities"):
        avg = _mean([q["value"] for q in groups["commodities"]])
        parts.append(f"Major commodities hover near {avg:.2f}, amid supply-demand dynamics.")
    if groups.get("fx"):
        parts.append("G10 FX crosses show muted moves against the USD.")
    if groups.get("crypto"):
        parts.append("Crypto assets remain volatile with bitcoin and ether leading.")

    ordered = sorted(quotes, key=lambda q: (q.get("category") or "", q.get("symbol") or ""))
    changes = [f"{q['name']}: latest value {q['value']}" for q in ordered[:MAX_CHANGES]]
    return {
        "summary": " ".join(parts),
        "risk": RISK_LINE,
        "opportunity": OPPORTUNITY_LINE,
        "changes": changes,
    }
