"""Activity-log lines for workers: routine chatter and idle notices."""

from __future__ import annotations

from typing import TYPE_CHECKING

from economy.rng import chance, pick

if TYPE_CHECKING:
    from agents.worker_agent import WorkerAgent

    from .context import WorkContext

ROUTINE_LINES: dict[str, dict[str, tuple[str, ...]]] = {
    "grower": {
        "morning": ("checks the soil before sunrise", "opens the vents for fresh air"),
        "day": ("trims the lower leaves", "adjusts the lamp height"),
        "evening": ("waters the last row", "logs growth notes"),
        "night": ("keeps an eye on the timers", "dims the lights"),
    },
    "processor": {
        "morning": ("cleans the equipment", "lays out fresh filters"),
        "day": ("watches the temperature", "weighs the batches"),
        "evening": ("seals the containers", "labels the finished jars"),
        "night": ("runs the slow cycle", "double-checks the scales"),
    },
    "dealer": {
        "morning": ("answers the early messages", "plans the route"),
        "day": ("makes the rounds", "meets a regular at the corner"),
        "evening": ("works the evening crowd", "checks in with the usual buyers"),
        "night": ("takes the late calls", "counts the cash"),
    },
}

IDLE_LINES: dict[str, tuple[str, ...]] = {
    "grower": ("waits for seeds", "has nothing to plant", "sweeps the grow room"),
    "processor": ("has nothing to process", "waits for the next delivery", "tidies the lab"),
    "dealer": ("has nothing to sell", "waits for stock", "scrolls through old messages"),
}


def routine_line(worker: WorkerAgent, ctx: WorkContext) -> str:
    lines = ROUTINE_LINES.get(worker.role, ROUTINE_LINES["dealer"])
    return pick(lines[ctx.shift], ctx.rng)


def log_work(worker: WorkerAgent, ctx: WorkContext, message: str, **fields) -> None:
    ctx.activity_log.append(
        timestamp=ctx.now,
        actor_id=worker.unique_id,
        actor_name=worker.name,
        message=message,
        **fields,
    )


def maybe_log_idle(worker: WorkerAgent, ctx: WorkContext) -> bool:
    """Idle notice, rate limited by chance and a per-worker cooldown."""
    cfg = ctx.config
    last = worker.last_idle_log_at
    if last is not None and ctx.now - last < cfg.idle_log_cooldown_minutes:
        return False
    if not chance(cfg.idle_log_chance, ctx.rng):
        return False
    worker.last_idle_log_at = ctx.now
    line = pick(IDLE_LINES.get(worker.role, IDLE_LINES["dealer"]), ctx.rng)
    log_work(worker, ctx, f"{worker.name} {line}", idle=True)
    return True
