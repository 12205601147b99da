import random
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from agents.customer_agent import Customer, Personality
from economy.commodities import CommodityUnit, Drug, GeneticEntity, Rarity
from economy.ids import next_id, reset_id_counters
from economy.inventory import Inventory


@pytest.fixture(autouse=True)
def _fresh_ids() -> None:
    reset_id_counters()


@pytest.fixture(autouse=True)
def _quiet_progress(monkeypatch) -> None:
    monkeypatch.setenv("SIM_PROGRESS", "0")
    monkeypatch.delenv("SIM_SEED", raising=False)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def inventory() -> Inventory:
    return Inventory(cash=1_000, precursors=10)


@pytest.fixture
def make_unit():
    def _make(
        drug: Drug = Drug.WEED,
        *,
        stage: str = "dried",
        grams: float = 20.0,
        quality: float = 80.0,
        purity: float | None = None,
    ) -> CommodityUnit:
        return CommodityUnit(
            id=next_id("unit"),
            drug=drug,
            strain_name="Test Kush",
            stage=stage,
            grams=grams,
            quality=quality,
            purity=purity,
        )

    return _make


@pytest.fixture
def make_seed():
    def _make(
        drug: Drug = Drug.WEED,
        *,
        name: str = "Green Dream",
        rarity: Rarity = Rarity.COMMON,
        traits: frozenset[str] = frozenset(),
        base_yield: float = 10.0,
        generation: int = 0,
    ) -> GeneticEntity:
        return GeneticEntity(
            id=next_id("seed"),
            name=name,
            drug=drug,
            rarity=rarity,
            traits=traits,
            base_yield=base_yield,
            generation=generation,
        )

    return _make


@pytest.fixture
def make_customer():
    def _make(
        *,
        personality: Personality = Personality.CASUAL,
        converted: bool = True,
        loyalty: float = 20.0,
        satisfaction: float = 60.0,
        spending_power: float = 50.0,
        addiction: dict[Drug, float] | None = None,
        preferences: dict[Drug, bool] | None = None,
    ) -> Customer:
        return Customer(
            unique_id=next_id("customer"),
            name="Marcus",
            personality=personality,
            spending_power=spending_power,
            satisfaction=satisfaction,
            loyalty=loyalty,
            converted=converted,
            addiction=dict(addiction or {}),
            drug_preferences=dict(preferences or {}),
        )

    return _make
