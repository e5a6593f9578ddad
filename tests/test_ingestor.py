import threading
import unittest

from findash.errors import SourceUnavailable
from findash.ingest.ingestor import COMMITTED, FAILED, SKIPPED, SourceChain, fetch_with_timeout, run_batch
from findash.ingest.portfolio import normalize_position_rows
from findash.ingest.sources import CallableSource, RecordSource, StaticSource
from findash.store.observations import ObservationStore

T1 = "2025-01-01T00:00:00+00:00"
T2 = "2025-01-02T00:00:00+00:00"

QUOTES = [
    {"category": "equities", "symbol": "SPX", "name": "S&P 500", "value": 4500.25},
    {"category": "rates", "symbol": "US10Y", "name": "UST 10yr", "value": 4.2},
    {"category": "fx", "symbol": "EURUSD", "name": "EUR/USD", "value": 1.1},
]


def failing(name, reason="down"):
    def _fail():
        raise RuntimeError(reason)
    return CallableSource(name, _fail)


class BlockingSource(RecordSource):
    name = "slow"

    def __init__(self, release: threading.Event):
        self.release = release

    def fetch(self):
        self.release.wait(5)
        return list(QUOTES)


class RunBatchTests(unittest.TestCase):
    def setUp(self):
        self.store = ObservationStore.open(":memory:")

    def tearDown(self):
        self.store.close()

    def test_one_timestamp_per_batch(self):
        res = run_batch(self.store, "markets", [StaticSource("static", QUOTES)], now=T1)
        self.assertEqual(res.status, COMMITTED)
        self.assertTrue(res.ok)
        self.assertEqual(res.inserted, 3)
        self.assertEqual(res.source, "static")
        rows = self.store.query("markets")
        self.assertEqual({r["timestamp"] for r in rows}, {res.timestamp})
        self.assertEqual(res.timestamp, "2025-01-01T00:00:00.000000+00:00")

    def test_generated_timestamp_is_utc(self):
        res = run_batch(self.store, "markets", [StaticSource("static", QUOTES)])
        self.assertTrue(res.timestamp.endswith("+00:00"))
        self.assertEqual(self.store.last_update(), res.timestamp)

    def test_static_template_is_not_mutated(self):
        run_batch(self.store, "markets", [StaticSource("static", QUOTES)], now=T1)
        self.assertNotIn("timestamp", QUOTES[0])

    def test_falls_back_to_next_source(self):
        res = run_batch(self.store, "markets", [failing("primary"), StaticSource("backup", QUOTES)], now=T1)
        self.assertEqual(res.status, COMMITTED)
        self.assertEqual(res.source, "backup")

    def test_all_sources_unavailable_skips_batch(self):
        res = run_batch(self.store, "markets", [failing("a"), failing("b", "also down")], now=T1)
        self.assertEqual(res.status, SKIPPED)
        self.assertIn("a: down", res.error)
        self.assertIn("b: also down", res.error)
        self.assertEqual(self.store.count("markets"), 0)

    def test_no_sources_skips_batch(self):
        res = run_batch(self.store, "markets", [], now=T1)
        self.assertEqual(res.status, SKIPPED)

    def test_validation_failure_writes_nothing(self):
        records = QUOTES + [{"category": "fx", "symbol": "GBPUSD", "name": "GBP/USD"}]
        res = run_batch(self.store, "markets", [StaticSource("static", records)], now=T1)
        self.assertEqual(res.status, FAILED)
        self.assertIn("missing value", res.error)
        self.assertEqual(self.store.count("markets"), 0)

    def test_rerun_supersedes_previous_batch(self):
        run_batch(self.store, "markets", [StaticSource("static", QUOTES)], now=T1)
        res = run_batch(self.store, "markets", [StaticSource("static", QUOTES)], now=T2)
        self.assertEqual(self.store.count("markets"), 6)
        snap = self.store.snapshot("markets")
        self.assertEqual(len(snap), 3)
        self.assertEqual({r["timestamp"] for r in snap}, {res.timestamp})

    def test_slow_source_times_out_and_falls_back(self):
        release = threading.Event()
        self.addCleanup(release.set)
        res = run_batch(
            self.store,
            "markets",
            [BlockingSource(release), StaticSource("backup", QUOTES[:1])],
            timeout_seconds=0.2,
            now=T1,
        )
        self.assertEqual(res.status, COMMITTED)
        self.assertEqual(res.source, "backup")
        self.assertEqual(res.inserted, 1)

    def test_timed_out_fetch_does_not_hold_the_process(self):
        release = threading.Event()
        self.addCleanup(release.set)
        with self.assertRaises(SourceUnavailable):
            fetch_with_timeout(BlockingSource(release), 0.1)
        workers = [t for t in threading.enumerate() if t.name == "source-slow"]
        self.assertTrue(workers)
        self.assertTrue(all(t.daemon for t in workers))

    def test_fetch_errors_propagate_from_worker(self):
        with self.assertRaises(SourceUnavailable) as ctx:
            fetch_with_timeout(failing("flaky"), 1.0)
        self.assertEqual(ctx.exception.source, "flaky")

    def test_repeated_holdings_all_kept(self):
        rows = normalize_position_rows([
            {"Name": "Acme Fund", "Type": "Private Equity", "MarketValue": 100},
            {"Name": "Acme Fund", "Type": "Private Equity", "MarketValue": 50},
        ])
        res = run_batch(self.store, "positions", [StaticSource("sheet", rows)], now=T1)
        self.assertEqual(res.status, COMMITTED)
        snap = self.store.snapshot("positions")
        self.assertEqual(len(snap), res.inserted)
        self.assertEqual(sum(r["market_value"] for r in snap), 150.0)

    def test_duplicate_source_ids_fail_batch(self):
        rows = normalize_position_rows([
            {"id": "a1", "name": "Acme Fund", "type": "Cash", "market_value": 100},
            {"id": "a1", "name": "Acme Fund", "type": "Cash", "market_value": 50},
        ])
        res = run_batch(self.store, "positions", [StaticSource("addepar", rows)], now=T1)
        self.assertEqual(res.status, FAILED)
        self.assertEqual(self.store.count("positions"), 0)

    def test_as_dict(self):
        res = run_batch(self.store, "markets", [StaticSource("static", QUOTES)], now=T1)
        d = res.as_dict()
        self.assertEqual(d["domain"], "markets")
        self.assertEqual(d["status"], "committed")


class SourceChainTests(unittest.TestCase):
    def test_first_success_wins(self):
        chain = SourceChain([StaticSource("one", [{"a": 1}]), StaticSource("two", [{"a": 2}])])
        self.assertEqual(chain.fetch(), ("one", [{"a": 1}]))

    def test_raises_when_exhausted(self):
        with self.assertRaises(SourceUnavailable) as ctx:
            SourceChain([failing("x")]).fetch()
        self.assertEqual(ctx.exception.source, "chain")


if __name__ == "__main__":
    unittest.main()
