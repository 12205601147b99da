"""Station automation: feed idle stations, collect batches at the overflow ceiling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .flavor import log_work

if TYPE_CHECKING:
    from agents.worker_agent import WorkerAgent
    from config import MethRecipeConfig
    from economy.pipeline import ProcessingStation, ProductionPipeline

    from .context import WorkContext


@dataclass(slots=True)
class ProcessReport:
    started: int = 0
    collected: int = 0

    @property
    def did_work(self) -> bool:
        return bool(self.started or self.collected)


def _affordable_recipe(pipeline: ProductionPipeline, precursors: int) -> MethRecipeConfig | None:
    cook = pipeline.cook_config
    if cook is None:
        return None
    return next((r for r in cook.recipes if r.precursor_cost <= precursors), None)


def _start(worker: WorkerAgent, pipeline: ProductionPipeline, station: ProcessingStation, ctx: WorkContext) -> bool:
    if station.cook:
        recipe = _affordable_recipe(pipeline, ctx.inventory.precursors)
        if recipe is None:
            return False
        result = pipeline.start_cook(station.id, recipe.id)
    else:
        inputs = ctx.inventory.units(pipeline.drug, station.input_stage)
        if not inputs:
            return False
        result = pipeline.start_processing(station.id, inputs[0].id)
    if result.success:
        log_work(worker, ctx, f"{worker.name}: {result.message}", station_id=station.id)
    return result.success


def auto_process(worker: WorkerAgent, ctx: WorkContext) -> ProcessReport:
    """Collect overflowing batches, then start every idle station that has input."""
    report = ProcessReport()
    for pipeline in ctx.pipelines_for(worker.domain):
        if not pipeline.stations:
            continue
        pipeline.set_auto_collect(True)
        ceiling = pipeline.station_ceiling
        for station in pipeline.stations:
            if station.unlocked and station.current_batch is not None and station.progress >= ceiling:
                result = pipeline.collect(station.id)
                if result.success and result.unit is not None:
                    report.collected += 1
                    log_work(
                        worker,
                        ctx,
                        f"{worker.name} collected {result.unit.grams:g}g {result.unit.stage}",
                        amount=result.unit.grams,
                        station_id=station.id,
                    )
        for station in pipeline.idle_stations():
            if _start(worker, pipeline, station, ctx):
                report.started += 1
    return report
