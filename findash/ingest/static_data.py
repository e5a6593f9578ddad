"""Illustrative reference data used until live providers are wired in.

Values are placeholders and do not reflect actual market conditions.
"""

MARKET_QUOTES = [
    # Equities
    {"category": "equities", "symbol": "SPX", "name": "S&P 500", "value": 4500.25},
    {"category": "equities", "symbol": "NDX", "name": "Nasdaq 100", "value": 15400.85},
    {"category": "equities", "symbol": "SX5E", "name": "EURO STOXX 50", "value": 4200.55},
    {"category": "equities", "symbol": "NKY", "name": "Nikkei 225", "value": 33000.75},
    # Rates (yield in percent)
    {"category": "rates", "symbol": "US2Y", "name": "UST 2yr", "value": 4.50},
    {"category": "rates", "symbol": "US10Y", "name": "UST 10yr", "value": 4.20},
    {"category": "rates", "symbol": "US30Y", "name": "UST 30yr", "value": 4.10},
    {"category": "rates", "symbol": "DE10Y", "name": "German Bund 10yr", "value": 2.55},
    {"category": "rates", "symbol": "IGSpread", "name": "IG Credit Spread", "value": 1.25},
    {"category": "rates", "symbol": "HYSpread", "name": "HY Credit Spread", "value": 4.75},
    # Commodities
    {"category": "commodities", "symbol": "Brent", "name": "Brent Crude", "value": 85.50},
    {"category": "commodities", "symbol": "WTI", "name": "WTI Crude", "value": 81.30},
    {"category": "commodities", "symbol": "Gold", "name": "Gold", "value": 1950.00},
    {"category": "commodities", "symbol": "Copper", "name": "Copper", "value": 4.50},
    # FX
    {"category": "fx", "symbol": "DXY", "name": "US Dollar Index", "value": 102.50},
    {"category": "fx", "symbol": "EURUSD", "name": "EUR/USD", "value": 1.10},
    {"category": "fx", "symbol": "JPYUSD", "name": "USD/JPY", "value": 145.50},
    {"category": "fx", "symbol": "GBPUSD", "name": "GBP/USD", "value": 1.29},
    {"category": "fx", "symbol": "AUDUSD", "name": "AUD/USD", "value": 0.67},
    # Crypto
    {"category": "crypto", "symbol": "BTCUSD", "name": "Bitcoin", "value": 58000.00},
    {"category": "crypto", "symbol": "ETHUSD", "name": "Ethereum", "value": 3800.00},
]

_RELEASES = [
    # (indicator, release_date, period, {country: (value, surprise)})
    ("CPI", "2025-07-31", "Jun 2025", {"US": (3.1, -0.1), "EZ": (2.8, 0.0), "CN": (1.2, 0.1)}),
    ("PPI", "2025-07-31", "Jun 2025", {"US": (2.5, 0.2), "EZ": (1.9, -0.3), "CN": (-2.0, -0.2)}),
    ("Payrolls", "2025-07-05", "Jun 2025", {"US": (230.0, -10.0), "EZ": (150.0, 5.0), "CN": (70.0, -3.0)}),
    ("PMI", "2025-07-25", "Jul 2025", {"US": (50.1, -1.5), "EZ": (49.0, -0.8), "CN": (51.0, 0.5)}),
    ("Retail Sales", "2025-07-15", "Jun 2025", {"US": (0.5, 0.1), "EZ": (0.2, -0.1), "CN": (3.5, 0.3)}),
    # Surprise index proxies and recession probability have no consensus figure
    ("CESI", "2025-08-05", "Aug 2025", {"US": (-20.0, None), "EZ": (-5.0, None), "CN": (15.0, None)}),
    ("RecessionProb", "2025-08-05", "next 12m", {"US": (0.25, None)}),
]

ECONOMIC_RELEASES = [
    {
        "indicator": indicator,
        "country": country,
        "value": value,
        "release_date": release_date,
        "period": period,
        "surprise": surprise,
    }
    for indicator, release_date, period, by_country in _RELEASES
    for country, (value, surprise) in by_country.items()
]

PE_PERIOD = "Q2 2025"

# strategy -> capital raised ($bn), dry powder ($bn), deal count,
# median purchase price multiple (NA, EU), leverage multiple (NA, EU), ILPA score
_PE_STRATEGIES = {
    "Buyout": (25.0, 150.0, 120, (11.0, 10.5), (6.0, 5.5), 85),
    "Growth": (10.0, 60.0, 90, (9.0, 8.5), (4.5, 4.2), 80),
    "Venture": (15.0, 70.0, 300, (12.0, 11.0), (0.0, 0.0), 75),
    "Distressed": (5.0, 40.0, 30, (7.0, 6.5), (3.5, 3.0), 70),
    "Infrastructure": (8.0, 50.0, 40, (10.0, 9.5), (5.0, 4.8), 78),
    "Real Estate": (12.0, 65.0, 70, (8.5, 8.0), (5.5, 5.0), 82),
}

_LEAGUE_TABLE = [
    ("GP Alpha", 15.0),
    ("GP Beta", 12.0),
    ("GP Gamma", 10.0),
    ("GP Delta", 8.0),
    ("GP Epsilon", 7.0),
    ("GP Zeta", 6.5),
    ("GP Eta", 6.0),
    ("GP Theta", 5.5),
    ("GP Iota", 5.0),
    ("GP Kappa", 4.8),
]


def _pe_rows():
    rows = []
    for strategy, (raised, dry_powder, deals, ppm, leverage, ilpa) in _PE_STRATEGIES.items():
        def add(metric, value, region="Global", period=PE_PERIOD):
            rows.append({"metric": metric, "strategy": strategy, "region": region, "value": float(value), "period": period})

        add("Capital Raised", raised)
        add("Dry Powder", dry_powder)
        add("Deal Count", deals)
        add("Median Purchase Price Multiple", ppm[0], region="North America")
        add("Median Purchase Price Multiple", ppm[1], region="Europe")
        add("Leverage Multiple", leverage[0], region="North America")
        add("Leverage Multiple", leverage[1], region="Europe")
        add("ILPA Score", ilpa, period="2025")
    for rank, (gp, commitments) in enumerate(_LEAGUE_TABLE, start=1):
        rows.append({
            "metric": f"League Table Rank {rank}: {gp}",
            "strategy": "All",
            "region": "Global",
            "value": commitments,
            "period": "2025 YTD",
        })
    return rows


PE_METRICS = _pe_rows()
