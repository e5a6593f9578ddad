import unittest

from findash.store.observations import ObservationStore
from findash.store.snapshot import build_snapshot_query

T1 = "2025-01-01T00:00:00+00:00"
T2 = "2025-01-02T00:00:00+00:00"
T3 = "2025-01-03T00:00:00+00:00"


def ts(value):
    return value.replace("+00:00", ".000000+00:00")


def quote(symbol, value, timestamp, category="equities"):
    return {"symbol": symbol, "category": category, "name": symbol, "value": value, "timestamp": timestamp}


def pe(metric, strategy, region, value, timestamp):
    return {"metric": metric, "strategy": strategy, "region": region, "value": value, "timestamp": timestamp}


class BuildSnapshotQueryTests(unittest.TestCase):
    def test_partitions_by_every_key_column(self):
        sql = build_snapshot_query("pe_metrics", ["id", "metric", "strategy", "region", "timestamp"], ["metric", "strategy", "region"])
        self.assertIn("PARTITION BY metric, strategy, region", sql)
        self.assertIn("WHERE timestamp = latest_ts", sql)
        self.assertNotIn("?", sql)

    def test_filter_goes_to_outer_query(self):
        sql = build_snapshot_query("markets", ["id", "symbol", "category", "timestamp"], ["symbol"], filter_column="category")
        self.assertTrue(sql.index("category IS ?") > sql.index("latest_ts FROM markets"))

    def test_requires_key_columns(self):
        with self.assertRaises(ValueError):
            build_snapshot_query("markets", ["id"], [])


class SnapshotResolutionTests(unittest.TestCase):
    def setUp(self):
        self.store = ObservationStore.open(":memory:")

    def tearDown(self):
        self.store.close()

    def test_latest_row_per_key(self):
        self.store.append_many("markets", [quote("SPX", 4500.0, T1), quote("NDX", 15000.0, T1)])
        self.store.append_many("markets", [quote("SPX", 4600.0, T2)])
        rows = {r["symbol"]: r for r in self.store.snapshot("markets")}
        self.assertEqual(set(rows), {"SPX", "NDX"})
        self.assertEqual(rows["SPX"]["value"], 4600.0)
        self.assertEqual(rows["SPX"]["timestamp"], ts(T2))
        # compared per key, not against the global maximum
        self.assertEqual(rows["NDX"]["value"], 15000.0)
        self.assertEqual(rows["NDX"]["timestamp"], ts(T1))

    def test_empty_domain(self):
        self.assertEqual(self.store.snapshot("economics"), [])

    def test_ties_are_all_returned(self):
        self.store.append_many("markets", [quote("SPX", 1.0, T1), quote("SPX", 2.0, T1)])
        rows = self.store.snapshot("markets")
        self.assertEqual(sorted(r["value"] for r in rows), [1.0, 2.0])

    def test_null_region_is_its_own_key(self):
        self.store.append_many("pe_metrics", [
            pe("IRR", "Buyout", None, 10.0, T1),
            pe("IRR", "Buyout", "US", 12.0, T1),
        ])
        self.store.append_many("pe_metrics", [pe("IRR", "Buyout", "US", 13.0, T2)])
        rows = self.store.snapshot("pe_metrics")
        by_region = {r["region"]: r["value"] for r in rows}
        self.assertEqual(by_region, {None: 10.0, "US": 13.0})

    def test_null_region_latest_wins(self):
        self.store.append_many("pe_metrics", [pe("IRR", "Buyout", None, 10.0, T1)])
        self.store.append_many("pe_metrics", [pe("IRR", "Buyout", None, 11.0, T3)])
        rows = self.store.snapshot("pe_metrics")
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["value"], 11.0)

    def test_filter_applies_after_latest_selection(self):
        self.store.append_many("markets", [quote("XYZ", 1.0, T1, category="equities")])
        self.store.append_many("markets", [quote("XYZ", 2.0, T2, category="rates")])
        self.assertEqual(self.store.snapshot("markets", {"category": "equities"}), [])
        rates = self.store.snapshot("markets", {"category": "rates"})
        self.assertEqual([r["value"] for r in rates], [2.0])

    def test_results_ordered_by_key(self):
        self.store.append_many("markets", [quote("B", 1.0, T1), quote("A", 1.0, T1), quote("C", 1.0, T1)])
        self.assertEqual([r["symbol"] for r in self.store.snapshot("markets")], ["A", "B", "C"])

    def test_mixed_offsets_compare_chronologically(self):
        self.store.append("markets", quote("SPX", 1.0, "2025-01-01T10:00:00+02:00"))
        self.store.append("markets", quote("SPX", 2.0, "2025-01-01T09:00:00+00:00"))
        rows = self.store.snapshot("markets")
        self.assertEqual([r["value"] for r in rows], [2.0])


if __name__ == "__main__":
    unittest.main()
