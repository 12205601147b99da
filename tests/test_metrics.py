import pandas as pd
import pytest

from config import SimulationConfig
from economy.commodities import Drug
from metrics import MetricsCollector, aggregate_metrics, analyze_revenue_trend


@pytest.fixture
def collector(tmp_path) -> MetricsCollector:
    cfg = SimulationConfig(metrics_export_path=str(tmp_path / "metrics"))
    return MetricsCollector(cfg)


def _record(collector, step, inventory, customers, revenue=0.0, grams=None):
    return collector.calculate_global_metrics(
        step,
        now=360.0 + step * 5,
        inventory=inventory,
        customers=customers,
        revenue=revenue,
        grams_sold=grams or {},
    )


def test_global_metrics_cover_stock_customers_and_sales(
    collector, inventory, make_customer, make_unit
) -> None:
    inventory.add_unit(make_unit(grams=12.5))
    inventory.add_warehouse_lot(Drug.KOKS, 40, 80.0)
    customers = [
        make_customer(loyalty=20.0, satisfaction=40.0, addiction={Drug.WEED: 10.0}),
        make_customer(loyalty=90.0, satisfaction=80.0, addiction={Drug.WEED: 30.0}),
        make_customer(converted=False),
    ]

    metrics = _record(collector, 1, inventory, customers, revenue=150, grams={Drug.WEED: 3.0})

    assert metrics["cash"] == pytest.approx(1_000.0)
    assert metrics["grams_weed"] == pytest.approx(12.5)
    assert metrics["warehouse_grams_koks"] == 40
    assert metrics["customers_total"] == 3
    assert metrics["customers_prospect"] == 1
    assert metrics["customers_vip"] == 1
    assert metrics["mean_loyalty"] == pytest.approx(55.0)
    assert metrics["max_addiction"] == pytest.approx(30.0)
    assert metrics["revenue_tick"] == pytest.approx(150.0)
    assert metrics["grams_sold_tick"] == pytest.approx(3.0)
    assert metrics["grams_sold_meth"] == 0.0
    assert collector.get_latest_snapshot()["time_step"] == 1


def test_customer_metrics_skip_prospects(collector, make_customer) -> None:
    converted = make_customer()
    prospect = make_customer(converted=False)

    collector.collect_customer_metrics([converted, prospect], 3)

    assert set(collector.customer_metrics) == {converted.unique_id}
    assert collector.customer_metrics[converted.unique_id][3]["status"] == "active"


def test_aggregation_and_trend(collector, inventory) -> None:
    for step, revenue in enumerate([0, 10, 20, 30, 40, 50], start=1):
        _record(collector, step, inventory, [], revenue=revenue)

    assert aggregate_metrics(collector, "revenue_tick") == pytest.approx(25.0)
    assert aggregate_metrics(collector, "revenue_tick", window=2, method="sum") == pytest.approx(90.0)
    assert aggregate_metrics(collector, "missing") == 0.0
    trend = analyze_revenue_trend(collector)
    assert trend is not None
    assert trend["is_growing"]
    assert trend["latest_revenue"] == 50.0


def test_trend_needs_enough_points(collector, inventory) -> None:
    _record(collector, 1, inventory, [])
    assert analyze_revenue_trend(collector) is None


def test_export_writes_csv_files(collector, inventory, make_customer) -> None:
    customer = make_customer()
    _record(collector, 1, inventory, [customer], revenue=10)
    _record(collector, 2, inventory, [customer], revenue=20)
    collector.collect_customer_metrics([customer], 1)

    paths = collector.export_metrics()

    names = sorted(p.name.split("_metrics_")[0] for p in paths)
    assert names == ["customer", "global"]
    global_df = pd.read_csv(next(p for p in paths if p.name.startswith("global")))
    assert list(global_df["time_step"]) == [1, 2]
    assert list(global_df["revenue_tick"]) == [10.0, 20.0]


def test_export_without_data_writes_nothing(collector) -> None:
    assert collector.export_metrics() == []
