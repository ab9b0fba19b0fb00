import unittest
from datetime import date

from fulfillment_engine.config import Config
from fulfillment_engine.data_loader import build_snapshots
from fulfillment_engine.records import OrderRecord, Snapshots
from fulfillment_engine.rollup_engine import RollupEngine
from fulfillment_engine.slug_resolver import Scope

TODAY = date(2026, 4, 11)
FOREST_GLEN = "Green RV - Forest Glen"


def _snapshots():
    return build_snapshots(
        orders=[
            {
                "Chassis": "SRC001",
                "Dealer": FOREST_GLEN,
                "Customer": "Green RV Stock",
                "Model": "SRC19",
                "Forecast Production Date": "15/03/2026",
                "Order Received Date": "02/03/2026",
            },
            {
                "Chassis": "XYZ001",
                "Dealer": FOREST_GLEN,
                "Customer": "J Smith",
                "Model": "XYZ22",
                "Forecast Production Date": "20/03/2026",
                "Signed Plans Received": "Yes",
            },
            {
                "Dealer": FOREST_GLEN,
                "Customer": "Green RV Stock",
                "Forecast Production Date": "20/03/2026",
            },
            {
                "Chassis": "SRH100",
                "Dealer": "Frankston",
                "Customer": "A Jones",
                "Model": "SRH",
                "Forecast Production Date": "10/03/2026",
            },
            {
                "Chassis": "SRL200",
                "Dealer": "Frankston",
                "Customer": "B Brown",
                "Model": "SRL",
                "Forecast Production Date": "05/01/2026",
                "Regent Production": "Finished",
            },
        ],
        yard_stock={
            "SRC900": {"dealerSlug": "green-rv-forest-glen-ab12cd", "type": "Stock", "model": "SRC22"},
            "dealer-chassis": {"dealerSlug": "green-rv-forest-glen"},
        },
        pgi_events={
            "SRC777": {"dealer": FOREST_GLEN, "pgidate": "2026-03-01", "model": "SRC19"},
            "SRC778": {"dealer": FOREST_GLEN, "pgidate": "2025-10-01", "model": "SRC19"},
        },
        handovers={
            "SRC555": {"dealerSlug": "green-rv-forest-glen", "handoverAt": "2026-02-03T04:05:06.000Z", "model": "SRC21"},
        },
        dealers={
            "green-rv-forest-glen": {"name": FOREST_GLEN, "isActive": True, "initialTarget2026": 104},
            "frankston": {"name": "Frankston", "isActive": True, "initialTarget2026": 50},
            "geelong": {"name": "Geelong", "isActive": False, "initialTarget2026": 20},
        },
    )


class TestForecastVolume(unittest.TestCase):
    def test_lagged_arrivals_land_in_april(self):
        engine = RollupEngine(Config(forecast_lag_days=30))
        orders = [
            OrderRecord(chassis="A1", dealer="D", customer="C1", forecast_production_date="15/03/2026"),
            OrderRecord(chassis="A2", dealer="D", customer="D Stock", forecast_production_date="20/03/2026"),
        ]
        rows = engine.forecast_volume(orders, [], 2026, TODAY, fixed_horizon=True)

        self.assertEqual(rows[0].label, "Jan 2026")
        april = rows[3]
        self.assertEqual(april.label, "Apr 2026")
        self.assertEqual(april.total, 2)
        self.assertEqual(april.stock, 1)
        self.assertEqual(april.customer, 1)
        self.assertEqual(sum(r.total for r in rows), 2)

    def test_unparseable_and_out_of_year_are_skipped(self):
        engine = RollupEngine(Config(forecast_lag_days=40))
        orders = [
            OrderRecord(dealer="D", forecast_production_date="TBC"),
            OrderRecord(dealer="D", forecast_production_date="15/12/2026"),
        ]
        rows = engine.forecast_volume(orders, [], 2026, TODAY, fixed_horizon=True)
        self.assertEqual(sum(r.total for r in rows), 0)

    def test_empty_slot_counts_by_default(self):
        engine = RollupEngine(Config(forecast_lag_days=40))
        slot = OrderRecord.from_mapping({"Dealer": "Melbourne", "Forecast Production Date": "15/03/2026"})
        rows = engine.forecast_volume([slot], [], 2026, TODAY, fixed_horizon=True)
        self.assertEqual(sum(r.total for r in rows), 1)

    def test_filled_only_option(self):
        engine = RollupEngine(Config(forecast_lag_days=30, forecast_filled_only=True))
        orders = [
            OrderRecord(chassis="A1", dealer="D", customer="C1", forecast_production_date="15/03/2026"),
            OrderRecord(chassis=None, dealer="D", customer="C2", forecast_production_date="15/03/2026"),
        ]
        rows = engine.forecast_volume(orders, [], 2026, TODAY, fixed_horizon=True)
        self.assertEqual(rows[3].total, 1)


class TestRecompute(unittest.TestCase):
    def setUp(self):
        self.engine = RollupEngine(Config(forecast_lag_days=30))
        self.snapshots = _snapshots()

    def test_dealer_scope(self):
        result = self.engine.recompute(
            self.snapshots,
            scope=Scope.dealer("green-rv-forest-glen"),
            year=2026,
            today=TODAY,
            fixed_horizon=True,
        )

        self.assertEqual(result.display_name, FOREST_GLEN)
        self.assertEqual(result.forecast_volume[3].total, 3)

        self.assertEqual([row.range_code for row in result.range_rows], ["SRC"])
        src = result.range_rows[0]
        self.assertEqual(src.current_stock, 1)
        self.assertEqual(src.recent_pgi, 1)
        self.assertEqual(src.recent_handover, 1)
        self.assertEqual(src.incoming[3], 1)
        self.assertEqual(src.total_incoming, 1)
        self.assertEqual(result.range_drilldown, {"SRC": {"SRC19": 1}})

        self.assertEqual(result.slots.forecast_year_count, 3)
        self.assertEqual(result.slots.forecast_year_with_chassis, 2)
        self.assertEqual(result.slots.unsigned_count, 1)
        self.assertEqual(result.slots.red_slot_count, 1)
        self.assertEqual(result.slots.yard_stock_level, 1)

        self.assertEqual(result.pacing.annual_target, 104)
        self.assertEqual(result.pacing.year_to_date.actual, 1)
        self.assertAlmostEqual(result.pacing.year_to_date.target, 104 * 101 / 365)
        self.assertEqual(sum(r.total for r in result.weekly_trend), 1)

        self.assertEqual([m.model for m in result.top_models_received], ["SRC19"])

    def test_group_scope(self):
        result = self.engine.recompute(self.snapshots, scope=Scope.group("Green RV"), year=2026, today=TODAY)
        self.assertEqual(result.dealer_slugs, ("green-rv-forest-glen",))
        self.assertEqual(result.pacing.annual_target, 104)

    def test_all_scope_sums_active_targets(self):
        result = self.engine.recompute(self.snapshots, year=2026, today=TODAY)
        self.assertEqual(result.display_name, "Overall")
        self.assertEqual(result.pacing.annual_target, 154)
        self.assertEqual(result.slots.forecast_year_count, 5)

    def test_recompute_is_repeatable(self):
        first = self.engine.recompute(self.snapshots, year=2026, today=TODAY, fixed_horizon=True)
        second = self.engine.recompute(self.snapshots, year=2026, today=TODAY, fixed_horizon=True)
        self.assertEqual(first.forecast_volume, second.forecast_volume)
        self.assertEqual(first.range_rows, second.range_rows)

    def test_replacing_a_stream_changes_only_that_input(self):
        trimmed = self.snapshots.with_stream("yard_stock", [])
        result = self.engine.recompute(trimmed, scope=Scope.dealer("green-rv-forest-glen"), year=2026, today=TODAY)
        self.assertEqual(result.slots.yard_stock_level, 0)
        self.assertEqual(len(self.snapshots.yard_stock), 1)

    def test_to_frames(self):
        result = self.engine.recompute(self.snapshots, year=2026, today=TODAY, fixed_horizon=True)
        frames = result.to_frames()
        self.assertIn("Forecast Volume", frames)
        self.assertIn("Model Ranges", frames)
        volume = frames["Forecast Volume"]
        self.assertEqual(len(volume), 8)
        self.assertEqual(list(volume.columns), ["Period", "Start", "Stock", "Customer", "Total", "Stock %"])
        self.assertEqual(volume["Stock %"].iloc[0], 0.0)


class TestEmptySnapshots(unittest.TestCase):
    def test_all_zero_output(self):
        result = RollupEngine(Config()).recompute(Snapshots(), year=2026, today=TODAY)

        for series in (result.forecast_volume, result.weekly_trend, result.monthly_trend):
            self.assertTrue(series)
            self.assertTrue(all(row.total == 0 for row in series))
        self.assertEqual(len(result.forecast_volume), 8)
        self.assertEqual(result.range_rows, [])
        self.assertEqual(result.model_rows, [])
        self.assertEqual(result.top_models_received, [])
        self.assertEqual(result.top_models_forecast, [])

        pacing = result.pacing
        for figure in (pacing.forecast_year, pacing.year_to_date, pacing.weekly_pace):
            self.assertTrue(figure.delta.no_target)
        self.assertEqual(result.slots.yard_stock_level, 0)

        frames = result.to_frames()
        self.assertEqual(len(frames), 10)
        self.assertTrue(frames["Model Ranges"].empty)
        self.assertEqual(int(frames["Forecast Volume"]["Total"].sum()), 0)


class TestTopModels(unittest.TestCase):
    def test_ties_keep_first_seen_order(self):
        engine = RollupEngine(Config(top_n=2))
        orders = [
            OrderRecord(dealer="D", model=model, forecast_production_date="01/06/2026")
            for model in ("Beta", "Alpha", "Alpha", "Beta", "Gamma")
        ]
        ranked = engine.top_models(orders, [], 2026, TODAY, basis="forecast")
        self.assertEqual([r.model for r in ranked], ["Beta", "Alpha"])
        self.assertEqual(ranked[0].total, 2)

    def test_unknown_basis(self):
        with self.assertRaises(ValueError):
            RollupEngine(Config()).top_models([], [], 2026, TODAY, basis="shipped")


class TestDealerRangeCounts(unittest.TestCase):
    def test_counts_skip_finished_orders(self):
        counts = RollupEngine(Config()).dealer_range_counts(_snapshots(), year=2026)
        self.assertEqual(counts[FOREST_GLEN], {"SRC": 1, "XYZ": 1, "OTHER": 1})
        self.assertEqual(counts["Frankston"], {"SRH": 1})

    def test_allowed_only(self):
        counts = RollupEngine(Config()).dealer_range_counts(_snapshots(), year=2026, allowed_only=True)
        self.assertEqual(counts[FOREST_GLEN], {"SRC": 1})


if __name__ == "__main__":
    unittest.main()
