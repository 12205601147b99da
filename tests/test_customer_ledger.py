import random

import pytest

from agents.customer import roll_sample_conversion, sample_conversion_chance
from agents.customer_agent import CustomerStatus, Personality, PurchaseRequest
from agents.customer_ledger import CustomerLedger
from config import CustomerConfig, PricingConfig
from economy.commodities import Drug
from economy.pricing import PricingEngine, Urgency
from economy.results import FailureReason


@pytest.fixture
def ledger(inventory, rng) -> CustomerLedger:
    return CustomerLedger(inventory, PricingEngine(PricingConfig()), rng, CustomerConfig())


def test_sample_conversion_rate_matches_quality() -> None:
    assert sample_conversion_chance(90.0) == pytest.approx(0.75)
    rng = random.Random(99)
    converted = sum(roll_sample_conversion(90.0, rng) for _ in range(10_000))
    assert converted / 10_000 == pytest.approx(0.75, abs=0.02)


def test_add_prospect_respects_capacity(inventory, rng) -> None:
    ledger = CustomerLedger(
        inventory, PricingEngine(PricingConfig()), rng, CustomerConfig(max_customers=2)
    )

    assert ledger.add_prospect(0.0) is not None
    assert ledger.add_prospect(0.0) is not None
    assert ledger.add_prospect(0.0) is None
    assert len(ledger) == 2
    assert ledger.prospect_count() == 2
    names = [c.name for c in ledger]
    assert len(set(names)) == 2


def test_give_sample_converts_or_leaves_prospect(ledger, inventory, make_unit) -> None:
    unit = make_unit(quality=100.0, grams=5.0)
    inventory.add_unit(unit)
    prospect = ledger.add_prospect(0.0)

    result = ledger.give_sample(prospect.unique_id, unit.id, 10.0)

    assert result.success
    assert unit.grams == pytest.approx(4.5)
    assert inventory.cash == pytest.approx(1_000.0)
    if result.converted:
        assert prospect.status is CustomerStatus.ACTIVE
        assert prospect.next_request_at is not None
    else:
        assert prospect.status is CustomerStatus.PROSPECT


def test_give_sample_to_converted_customer_fails(ledger, inventory, make_customer, make_unit) -> None:
    customer = make_customer()
    ledger.add_customer(customer)
    unit = make_unit()
    inventory.add_unit(unit)

    result = ledger.give_sample(customer.unique_id, unit.id, 0.0)

    assert result.reason is FailureReason.INELIGIBLE
    assert unit.grams == pytest.approx(20.0)


def test_sell_moves_stock_cash_and_loyalty(ledger, inventory, make_customer, make_unit) -> None:
    customer = make_customer(loyalty=20.0, satisfaction=60.0)
    ledger.add_customer(customer)
    unit = make_unit(quality=90.0, grams=10.0)
    inventory.add_unit(unit)

    result = ledger.sell(customer.unique_id, unit.id, 4.0, 100.0)

    assert result.success
    assert result.revenue > 0
    assert unit.grams == pytest.approx(6.0)
    assert inventory.cash == pytest.approx(1_000.0 + result.revenue)
    assert customer.loyalty == pytest.approx(22.0)
    assert customer.satisfaction == pytest.approx(65.0)
    assert customer.total_spent == result.revenue
    assert customer.last_purchase_at == 100.0
    assert ledger.grams_sold[Drug.WEED] == pytest.approx(4.0)


def test_sell_rejects_without_side_effects(ledger, inventory, make_customer, make_unit) -> None:
    customer = make_customer()
    ledger.add_customer(customer)
    wet = make_unit(stage="wet")
    dried = make_unit(grams=2.0)
    koks = make_unit(Drug.KOKS, stage="powder", purity=80.0)
    for unit in (wet, dried, koks):
        inventory.add_unit(unit)

    assert ledger.sell(customer.unique_id, wet.id, 1.0, 0.0).reason is FailureReason.INELIGIBLE
    assert ledger.sell(customer.unique_id, koks.id, 1.0, 0.0).reason is FailureReason.INELIGIBLE
    assert ledger.sell(customer.unique_id, dried.id, 3.0, 0.0).reason is FailureReason.INSUFFICIENT_RESOURCE
    assert ledger.sell("customer-missing", dried.id, 1.0, 0.0).reason is FailureReason.NOT_FOUND

    assert inventory.cash == pytest.approx(1_000.0)
    assert dried.grams == pytest.approx(2.0)
    assert customer.total_purchases == 0


def test_prospect_cannot_buy(ledger, inventory, make_customer, make_unit) -> None:
    prospect = make_customer(converted=False)
    ledger.add_customer(prospect)
    unit = make_unit()
    inventory.add_unit(unit)

    assert ledger.sell(prospect.unique_id, unit.id, 1.0, 0.0).reason is FailureReason.INELIGIBLE


def _open(customer, *, grams: float = 5.0, spontaneous: bool = False, expires_at: float | None = 500.0):
    customer.pending_request = PurchaseRequest(
        id="request-test",
        customer_id=customer.unique_id,
        drug=Drug.WEED,
        grams_requested=grams,
        max_price=200,
        urgency=Urgency.LOW,
        created_at=0.0,
        expires_at=None if spontaneous else expires_at,
        spontaneous=spontaneous,
    )
    return customer.pending_request


def test_fulfill_request_uses_agreed_price(ledger, inventory, make_customer, make_unit) -> None:
    customer = make_customer()
    ledger.add_customer(customer)
    weak = make_unit(quality=40.0, grams=10.0)
    strong = make_unit(quality=95.0, grams=10.0)
    inventory.add_unit(weak)
    inventory.add_unit(strong)
    _open(customer)

    result = ledger.fulfill_request(customer.unique_id, 60.0)

    assert result.success
    assert result.revenue == 200
    assert strong.grams == pytest.approx(5.0)
    assert weak.grams == pytest.approx(10.0)
    assert customer.pending_request is None
    assert customer.next_request_at is not None


def test_fulfill_request_without_stock_keeps_request(ledger, inventory, make_customer, make_unit) -> None:
    customer = make_customer()
    ledger.add_customer(customer)
    inventory.add_unit(make_unit(grams=2.0))
    request = _open(customer)

    result = ledger.fulfill_request(customer.unique_id, 60.0)

    assert result.reason is FailureReason.INSUFFICIENT_RESOURCE
    assert customer.pending_request is request
    assert inventory.cash == pytest.approx(1_000.0)


def test_ignore_only_closes_spontaneous_requests(ledger, make_customer) -> None:
    scheduled = make_customer()
    casual = make_customer()
    ledger.add_customer(scheduled)
    ledger.add_customer(casual)
    _open(scheduled)
    _open(casual, spontaneous=True)

    assert ledger.ignore_request(scheduled.unique_id, 1.0).reason is FailureReason.INELIGIBLE
    assert scheduled.pending_request is not None
    assert ledger.ignore_request(casual.unique_id, 1.0).success
    assert casual.pending_request is None
    assert casual.loyalty == 20.0


def test_paranoid_customer_is_removed_next_tick(ledger, make_customer) -> None:
    customer = make_customer(personality=Personality.PARANOID)
    ledger.add_customer(customer)

    result = ledger.offer_drug(customer.unique_id, "koks", 2.0, 10.0)

    assert result.reason is FailureReason.INELIGIBLE
    assert customer.blocked
    assert ledger.get(customer.unique_id) is customer
    assert ledger.fulfill_request(customer.unique_id, 11.0).reason is FailureReason.NOT_FOUND

    report = ledger.tick(20.0)

    assert report.blocked_removed == 1
    assert ledger.get(customer.unique_id) is None


def test_hardcore_offer_sells_best_stock(ledger, inventory, make_customer, make_unit) -> None:
    customer = make_customer(personality=Personality.HARDCORE)
    ledger.add_customer(customer)
    powder = make_unit(Drug.KOKS, stage="powder", grams=10.0, quality=80.0, purity=70.0)
    inventory.add_unit(powder)

    result = ledger.offer_drug(customer.unique_id, "koks", 3.0, 10.0)

    assert result.success
    assert powder.grams == pytest.approx(7.0)
    assert customer.accepts("koks")
    assert customer.addiction_for("koks") > 15.0


def test_expired_request_is_penalised_on_tick(ledger, make_customer) -> None:
    customer = make_customer(loyalty=30.0, satisfaction=80.0)
    ledger.add_customer(customer)
    customer.next_request_at = 10_000.0
    _open(customer, expires_at=50.0)

    report = ledger.tick(60.0)

    assert report.expired_requests == 1
    assert customer.loyalty == pytest.approx(27.0)
    assert customer.next_request_at is not None


def test_scheduled_request_opens_when_due(ledger, make_customer) -> None:
    customer = make_customer()
    ledger.add_customer(customer)
    customer.next_request_at = 100.0

    ledger.tick(50.0)
    assert customer.pending_request is None or customer.pending_request.spontaneous

    customer.pending_request = None
    report = ledger.tick(100.0)

    assert report.scheduled_requests == 1
    request = customer.pending_request
    assert request is not None
    assert not request.spontaneous
    assert request.expires_at == pytest.approx(100.0 + 180.0)
    assert customer.messages[-1].actions == ("accept",)


def test_unhappy_customers_churn(ledger, make_customer) -> None:
    unhappy = make_customer(satisfaction=20.0)
    content = make_customer(satisfaction=50.0)
    ledger.add_customer(unhappy)
    ledger.add_customer(content)
    unhappy.next_request_at = content.next_request_at = 10_000.0

    report = ledger.tick(1.0)

    assert report.churned == 1
    assert ledger.get(unhappy.unique_id) is None
    assert ledger.get(content.unique_id) is content


def test_prospects_arrive_on_schedule(ledger) -> None:
    ledger.tick(0.0)
    assert ledger.next_prospect_at is not None
    assert 30.0 <= ledger.next_prospect_at <= 60.0

    report = ledger.tick(61.0)

    assert report.new_prospects == 1
    assert ledger.prospect_count() == 1


def test_sell_whole_fractional_unit(ledger, inventory, make_customer, make_unit) -> None:
    customer = make_customer()
    ledger.add_customer(customer)
    unit = make_unit(grams=2.06)
    inventory.add_unit(unit)

    result = ledger.sell(customer.unique_id, unit.id, 2.06, 10.0)

    assert result.success
    assert inventory.find_unit(unit.id) is None
    assert ledger.grams_sold[Drug.WEED] == pytest.approx(2.06)
