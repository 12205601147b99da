"""Free-floating inventory, seed bank, cash and warehouse stock.

The inventory is the single owner of everything that is not sitting in a grow
slot or processing station. Other aggregates never touch its lists directly:
they go through the query/mutation methods below, and every sale is applied
through `commit_sale` so that stock and cash change together or not at all.
"""

from __future__ import annotations

from dataclasses import dataclass

from logger import log

from .commodities import CommodityUnit, Drug, GeneticEntity
from .ids import next_id

_GRAMS_EPSILON = 1e-9
# Leftovers below this are swept out of stock after a sale
DUST_GRAMS = 0.1


@dataclass(slots=True)
class WarehouseLot:
    id: str
    drug: Drug
    grams: int
    quality: float


@dataclass(frozen=True, slots=True)
class WarehouseSale:
    grams_sold: int
    average_quality: float


class Inventory:
    def __init__(self, *, cash: float = 0.0, precursors: int = 0) -> None:
        if cash < 0 or precursors < 0:
            raise ValueError("starting cash and precursors must be >= 0")
        self._cash: float = float(cash)
        self._precursors: int = int(precursors)
        self._units: list[CommodityUnit] = []
        self._seeds: list[GeneticEntity] = []
        self._warehouse: list[WarehouseLot] = []
        self.total_revenue: int = 0
        self.total_spent: float = 0.0

    # --- Queries ---
    @property
    def cash(self) -> float:
        return self._cash

    @property
    def precursors(self) -> int:
        return self._precursors

    def units(self, drug: Drug | None = None, stage: str | None = None) -> tuple[CommodityUnit, ...]:
        return tuple(
            u
            for u in self._units
            if (drug is None or u.drug == drug) and (stage is None or u.stage == stage)
        )

    def find_unit(self, unit_id: str) -> CommodityUnit | None:
        return next((u for u in self._units if u.id == unit_id), None)

    def best_unit(
        self,
        drug: Drug,
        *,
        min_grams: float = 0.0,
        stages: tuple[str, ...] | None = None,
    ) -> CommodityUnit | None:
        """Highest combined quality/purity unit of `drug` with enough grams."""
        best: CommodityUnit | None = None
        for unit in self._units:
            if unit.drug != drug or unit.grams <= _GRAMS_EPSILON:
                continue
            if unit.grams + _GRAMS_EPSILON < min_grams:
                continue
            if stages is not None and unit.stage not in stages:
                continue
            if best is None or unit.ranking_score > best.ranking_score:
                best = unit
        return best

    def total_grams(self, drug: Drug | None = None) -> float:
        return float(sum(u.grams for u in self._units if drug is None or u.drug == drug))

    def seeds(self, drug: Drug | None = None) -> tuple[GeneticEntity, ...]:
        return tuple(s for s in self._seeds if drug is None or s.drug == drug)

    def find_seed(self, seed_id: str) -> GeneticEntity | None:
        return next((s for s in self._seeds if s.id == seed_id), None)

    def warehouse_lots(self, drug: Drug | None = None) -> tuple[WarehouseLot, ...]:
        return tuple(lot for lot in self._warehouse if drug is None or lot.drug == drug)

    def warehouse_grams(self, drug: Drug) -> int:
        return sum(lot.grams for lot in self._warehouse if lot.drug == drug)

    def can_afford(self, amount: float) -> bool:
        return amount <= self._cash + _GRAMS_EPSILON

    def can_supply(self, unit_id: str, grams: float) -> bool:
        unit = self.find_unit(unit_id)
        return unit is not None and grams > 0 and grams <= unit.grams + _GRAMS_EPSILON

    # --- Stock mutations ---
    def add_unit(self, unit: CommodityUnit) -> None:
        if unit.grams <= _GRAMS_EPSILON:
            return
        self._units.append(unit)

    def take_unit(self, unit_id: str) -> CommodityUnit | None:
        """Remove a whole unit (processing input)."""
        unit = self.find_unit(unit_id)
        if unit is not None:
            self._units.remove(unit)
        return unit

    def add_seed(self, seed: GeneticEntity) -> None:
        self._seeds.append(seed)

    def take_seed(self, seed_id: str) -> GeneticEntity | None:
        seed = self.find_seed(seed_id)
        if seed is not None:
            self._seeds.remove(seed)
        return seed

    def _remove_grams(self, unit: CommodityUnit, grams: float) -> CommodityUnit:
        sold = unit.split(min(grams, unit.grams))
        unit.grams = max(0.0, unit.grams - grams)
        if unit.grams < DUST_GRAMS:
            self._units.remove(unit)
        return sold

    def commit_sale(self, unit_id: str, grams: float, revenue: int) -> CommodityUnit | None:
        """Atomically remove `grams` of a unit and credit `revenue`.

        Nothing is written unless every check passes. Returns the detached sold
        portion, or None when the sale was rejected.
        """
        unit = self.find_unit(unit_id)
        if unit is None or grams <= 0 or revenue < 0:
            return None
        if grams > unit.grams + _GRAMS_EPSILON:
            return None

        sold = self._remove_grams(unit, grams)
        self._cash += revenue
        self.total_revenue += int(revenue)
        log(
            f"Inventory: sold {grams:.1f}g {unit.drug} ({unit.strain_name}) for {revenue}",
            level="DEBUG",
        )
        return sold

    def consume_grams(self, unit_id: str, grams: float) -> CommodityUnit | None:
        """Remove grams without payment (free samples)."""
        return self.commit_sale(unit_id, grams, 0)

    # --- Warehouse ---
    def add_warehouse_lot(self, drug: Drug, grams: int, quality: float) -> WarehouseLot:
        if grams <= 0:
            raise ValueError("warehouse lots need positive grams")
        lot = WarehouseLot(
            id=next_id("lot"), drug=drug, grams=int(grams), quality=max(0.0, min(100.0, quality))
        )
        self._warehouse.append(lot)
        return lot

    def take_warehouse_stock(self, drug: Drug, grams: float) -> WarehouseSale:
        """Remove up to `grams` of `drug` from the warehouse, oldest lots first."""
        remaining = max(0, int(grams))
        if remaining <= 0:
            return WarehouseSale(0, 0.0)

        taken_total = 0
        quality_total = 0.0
        kept: list[WarehouseLot] = []
        for lot in self._warehouse:
            if lot.drug != drug or remaining <= 0:
                kept.append(lot)
                continue
            take = min(lot.grams, remaining)
            remaining -= take
            taken_total += take
            quality_total += take * lot.quality
            if lot.grams > take:
                lot.grams -= take
                kept.append(lot)

        self._warehouse = kept
        if taken_total <= 0:
            return WarehouseSale(0, 0.0)
        return WarehouseSale(taken_total, quality_total / taken_total)

    # --- Currency and precursors ---
    def credit(self, amount: float) -> None:
        if amount < 0:
            raise ValueError("credit amount must be >= 0")
        self._cash += amount
        self.total_revenue += int(amount)

    def debit(self, amount: float) -> bool:
        if amount < 0:
            raise ValueError("debit amount must be >= 0")
        if not self.can_afford(amount):
            return False
        self._cash = max(0.0, self._cash - amount)
        self.total_spent += amount
        return True

    def add_precursors(self, count: int) -> None:
        if count < 0:
            raise ValueError("count must be >= 0")
        self._precursors += int(count)

    def use_precursors(self, count: int) -> bool:
        if count < 0 or count > self._precursors:
            return False
        self._precursors -= int(count)
        return True
