import pytest

from economy.commodities import Drug
from economy.inventory import Inventory


def test_commit_sale_moves_grams_and_cash_together(inventory: Inventory, make_unit) -> None:
    unit = make_unit(grams=20.0)
    inventory.add_unit(unit)

    sold = inventory.commit_sale(unit.id, 5.0, 120)

    assert sold is not None
    assert sold.grams == pytest.approx(5.0)
    assert sold.id != unit.id
    assert unit.grams == pytest.approx(15.0)
    assert inventory.cash == pytest.approx(1_120.0)
    assert inventory.total_revenue == 120


def test_commit_sale_is_all_or_nothing(inventory: Inventory, make_unit) -> None:
    unit = make_unit(grams=3.0)
    inventory.add_unit(unit)

    assert inventory.commit_sale(unit.id, 4.0, 500) is None
    assert inventory.commit_sale("unit-missing", 1.0, 500) is None
    assert inventory.commit_sale(unit.id, 1.0, -5) is None

    assert unit.grams == pytest.approx(3.0)
    assert inventory.cash == pytest.approx(1_000.0)
    assert inventory.total_revenue == 0


def test_selling_everything_removes_the_unit(inventory: Inventory, make_unit) -> None:
    unit = make_unit(grams=2.0)
    inventory.add_unit(unit)

    inventory.commit_sale(unit.id, 2.0, 10)

    assert inventory.find_unit(unit.id) is None
    assert inventory.total_grams(Drug.WEED) == 0.0


def test_best_unit_prefers_quality_plus_purity(inventory: Inventory, make_unit) -> None:
    low = make_unit(Drug.KOKS, stage="powder", quality=70, purity=40)
    high = make_unit(Drug.KOKS, stage="powder", quality=60, purity=90)
    small = make_unit(Drug.KOKS, stage="powder", grams=1.0, quality=100, purity=100)
    for unit in (low, high, small):
        inventory.add_unit(unit)

    assert inventory.best_unit(Drug.KOKS, min_grams=5.0) is high
    assert inventory.best_unit(Drug.KOKS) is small
    assert inventory.best_unit(Drug.KOKS, stages=("base",)) is None


def test_warehouse_is_consumed_oldest_first(inventory: Inventory) -> None:
    first = inventory.add_warehouse_lot(Drug.WEED, 10, 40.0)
    inventory.add_warehouse_lot(Drug.KOKS, 50, 90.0)
    second = inventory.add_warehouse_lot(Drug.WEED, 10, 80.0)

    sale = inventory.take_warehouse_stock(Drug.WEED, 15)

    assert sale.grams_sold == 15
    assert sale.average_quality == pytest.approx((10 * 40 + 5 * 80) / 15)
    assert first not in inventory.warehouse_lots()
    assert second.grams == 5
    assert inventory.warehouse_grams(Drug.KOKS) == 50


def test_warehouse_shortfall_returns_what_exists(inventory: Inventory) -> None:
    inventory.add_warehouse_lot(Drug.METH, 4, 70.0)

    sale = inventory.take_warehouse_stock(Drug.METH, 10)

    assert sale.grams_sold == 4
    assert inventory.warehouse_grams(Drug.METH) == 0
    assert inventory.take_warehouse_stock(Drug.METH, 10).grams_sold == 0


def test_debit_refuses_overdraft(inventory: Inventory) -> None:
    assert not inventory.debit(1_500)
    assert inventory.cash == pytest.approx(1_000.0)
    assert inventory.debit(400)
    assert inventory.total_spent == pytest.approx(400.0)
    with pytest.raises(ValueError):
        inventory.credit(-1)


def test_precursors_cannot_go_negative(inventory: Inventory) -> None:
    assert not inventory.use_precursors(11)
    assert inventory.use_precursors(10)
    assert inventory.precursors == 0


def test_sale_sweeps_leftover_dust(inventory: Inventory, make_unit) -> None:
    unit = make_unit(Drug.KOKS, stage="powder", grams=2.06, purity=80.0)
    inventory.add_unit(unit)

    assert inventory.commit_sale(unit.id, 2.0, 40) is not None

    assert inventory.find_unit(unit.id) is None
    assert inventory.best_unit(Drug.KOKS) is None
