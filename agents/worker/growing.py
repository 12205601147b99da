"""Grow-room automation: planting, tapping and harvesting.

A grower handles at most `slots_managed + level - 1` slots per ability each
tick. Empty slots are filled first (seeds FIFO), then growing plants are
tapped, then finished plants are harvested.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .flavor import log_work

if TYPE_CHECKING:
    from agents.worker_agent import WorkerAgent
    from economy.pipeline import ProductionPipeline

    from .context import WorkContext


@dataclass(slots=True)
class GrowReport:
    planted: int = 0
    tapped: int = 0
    harvested: int = 0
    grams: float = 0.0

    @property
    def did_work(self) -> bool:
        return bool(self.planted or self.tapped or self.harvested)


def auto_plant(worker: WorkerAgent, pipeline: ProductionPipeline, ctx: WorkContext, budget: int) -> int:
    planted = 0
    for slot in pipeline.empty_slots()[:budget]:
        seeds = ctx.inventory.seeds(pipeline.drug)
        if not seeds:
            break
        seed = seeds[0]
        if pipeline.plant(slot.id, seed.id).success:
            planted += 1
            log_work(worker, ctx, f"{worker.name} planted {seed.name} in {slot.id}", slot_id=slot.id)
    return planted


def auto_tap(worker: WorkerAgent, pipeline: ProductionPipeline, budget: int) -> int:
    tapped = 0
    strength = worker.tap_strength()
    for slot in pipeline.growing_slots()[:budget]:
        if pipeline.boost(slot.id, strength=strength).success:
            tapped += 1
    return tapped


def auto_harvest(
    worker: WorkerAgent, pipeline: ProductionPipeline, ctx: WorkContext, budget: int
) -> tuple[int, float]:
    harvested = 0
    grams = 0.0
    for slot in pipeline.ready_slots()[:budget]:
        result = pipeline.harvest(slot.id)
        if not result.success or result.unit is None:
            continue
        harvested += 1
        grams += result.unit.grams
        message = f"{worker.name} harvested {result.unit.grams:g}g {result.unit.strain_name}"
        if result.seed_drop is not None:
            message += " and kept a seed"
        log_work(worker, ctx, message, amount=result.unit.grams, slot_id=slot.id)
    return harvested, grams


def auto_grow(worker: WorkerAgent, ctx: WorkContext) -> GrowReport:
    report = GrowReport()
    budget = worker.slots_per_tick()
    for pipeline in ctx.pipelines_for(worker.domain):
        if pipeline.grow_config is None:
            continue
        if worker.can("plant"):
            report.planted += auto_plant(worker, pipeline, ctx, budget)
        if worker.can("tap"):
            report.tapped += auto_tap(worker, pipeline, budget)
        if worker.can("harvest"):
            count, grams = auto_harvest(worker, pipeline, ctx, budget)
            report.harvested += count
            report.grams += grams
    return report
