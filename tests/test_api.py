import unittest

from fastapi.testclient import TestClient

from findash.ingest.portfolio import normalize_position_rows
from findash.ingest.sources import StaticSource
from findash.ingest.static_data import MARKET_QUOTES
from findash.main import create_app
from findash.metrics.risk import PositionRiskSource
from findash.pipeline.orchestrator import Refresher
from findash.store.observations import ObservationStore

AS_OF = "2025-06-30"

POSITIONS = normalize_position_rows([
    {"id": "p1", "name": "Global Equity Fund", "type": "Equities", "market_value": 750.0},
    {"id": "p2", "name": "Buyout Fund IV", "type": "Private Equity", "market_value": 250.0},
])


class ApiTests(unittest.TestCase):
    def setUp(self):
        self.store = ObservationStore.open(":memory:")
        self.refresher = Refresher(
            self.store,
            {
                "markets": [StaticSource("static_markets", MARKET_QUOTES)],
                "positions": [StaticSource("static_positions", POSITIONS)],
                "risk_measures": [PositionRiskSource(self.store, AS_OF)],
            },
            timeout_seconds=5,
        )
        app = create_app(store=self.store, refresher=self.refresher, start_jobs=False, refresh_on_startup=False)
        self.client = TestClient(app)

    def tearDown(self):
        self.store.close()

    def refresh(self):
        r = self.client.post("/api/refresh")
        self.assertEqual(r.status_code, 200)
        return r.json()

    def test_empty_store(self):
        r = self.client.get("/api/markets")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"data": [], "lastUpdate": None})

    def test_health(self):
        body = self.client.get("/health").json()
        self.assertTrue(body["ok"])
        self.assertIsNone(body["last_refresh"])
        self.refresh()
        body = self.client.get("/health").json()
        self.assertEqual(body["last_refresh"]["status"], "succeeded")
        self.assertIsNotNone(body["last_update"])

    def test_refresh_then_snapshots(self):
        result = self.refresh()
        self.assertEqual(result["status"], "succeeded")
        self.assertEqual(len(result["batches"]), 3)
        markets = self.client.get("/api/markets").json()
        self.assertEqual(len(markets["data"]), len(MARKET_QUOTES))
        self.assertEqual(markets["lastUpdate"], result["lastUpdate"])
        equities = self.client.get("/api/markets", params={"category": "equities"}).json()["data"]
        self.assertTrue(equities)
        self.assertTrue(all(r["category"] == "equities" for r in equities))
        self.assertEqual(self.client.get("/api/economics").json()["data"], [])
        self.assertEqual(self.client.get("/api/pe").json()["data"], [])

    def test_portfolio_and_bucket_filter(self):
        self.refresh()
        data = self.client.get("/api/portfolio").json()["data"]
        self.assertEqual([r["id"] for r in data], ["p1", "p2"])
        pe = self.client.get("/api/portfolio", params={"bucket": "Illiquid – Private Equity"}).json()["data"]
        self.assertEqual([r["id"] for r in pe], ["p2"])

    def test_risk_by_date(self):
        self.refresh()
        rows = self.client.get("/api/risk", params={"date": AS_OF}).json()["data"]
        self.assertEqual(len(rows), 2)
        by_bucket = {r["bucket"]: r for r in rows}
        self.assertAlmostEqual(by_bucket["Illiquid – Private Equity"]["var_99"], 250 * 2.3263 * 0.15)
        self.assertEqual(self.client.get("/api/risk", params={"date": "2000-01-01"}).json()["data"], [])

    def test_risk_bad_date(self):
        for value in ("30/06/2025", "20250630", "2025-6-30", "2025-02-30"):
            with self.subTest(date=value):
                r = self.client.get("/api/risk", params={"date": value})
                self.assertEqual(r.status_code, 400)

    def test_commentary(self):
        body = self.client.get("/api/commentary").json()
        self.assertEqual(body["commentary"]["risk"], "Insufficient data.")
        self.refresh()
        body = self.client.get("/api/commentary").json()
        self.assertEqual(len(body["commentary"]["changes"]), 5)
        self.assertTrue(body["commentary"]["changes"][0].startswith("Brent Crude"))

    def test_allocation(self):
        self.assertEqual(self.client.get("/api/allocation").json()["allocation"]["status"], "insufficient_data")
        self.refresh()
        allocation = self.client.get("/api/allocation").json()["allocation"]
        self.assertEqual(allocation["status"], "ok")
        self.assertEqual(allocation["total_market_value"], 1000.0)
        weights = {b["bucket"]: b["weight_pct"] for b in allocation["buckets"]}
        self.assertEqual(weights["Liquid – Equities"], 75.0)

    def test_refresh_skipped_while_running(self):
        self.assertTrue(self.refresher._lock.acquire())
        try:
            body = self.refresh()
        finally:
            self.refresher._lock.release()
        self.assertEqual(body["status"], "skipped")


class AppWithoutStoreTests(unittest.TestCase):
    def test_routes_unavailable_without_store(self):
        client = TestClient(create_app(start_jobs=False, refresh_on_startup=False))
        self.assertEqual(client.get("/api/markets").status_code, 503)


if __name__ == "__main__":
    unittest.main()
