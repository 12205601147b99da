# main.py
import argparse
import json
import os
from pathlib import Path
from typing import Any

from config import CONFIG_MODEL, SimulationConfig, load_simulation_config_from_yaml
from logger import log, setup_logger
from simulation.engine import SimulationEngine


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the idle economy simulation.")
    parser.add_argument("--config", help="Path to a YAML config file (overrides SIM_CONFIG).")
    parser.add_argument("--steps", type=int, help="Override the configured number of ticks.")
    args, _unknown = parser.parse_known_args(argv)
    return args


def _resolve_config_from_args_or_env(argv: list[str] | None = None) -> SimulationConfig:
    """Pick the config: --config, then $SIM_CONFIG, then ./config.yaml, then defaults."""
    args = _parse_args(argv)
    candidates = [args.config, os.getenv("SIM_CONFIG")]
    for candidate in candidates:
        if candidate:
            log(f"Loading config from {candidate}", level="INFO")
            return load_simulation_config_from_yaml(candidate)

    default_path = Path("config.yaml")
    if default_path.exists():
        log(f"Loading config from {default_path}", level="INFO")
        return load_simulation_config_from_yaml(default_path)
    return CONFIG_MODEL


def summarize_simulation(engine: SimulationEngine) -> dict[str, Any]:
    """Generate and save simulation summary to a JSON file."""
    config = engine.config
    customers = list(engine.ledger)
    summary = {
        "Clock": {
            "ticks": engine.clock.tick_index,
            "game_minutes": engine.clock.minutes,
            "day": engine.clock.day_index,
        },
        "Inventory": {
            "cash": engine.inventory.cash,
            "total_revenue": engine.inventory.total_revenue,
            "total_spent": engine.inventory.total_spent,
            "precursors": engine.inventory.precursors,
            "grams": {str(d): engine.inventory.total_grams(d) for d in engine.pipelines},
            "seeds": len(engine.inventory.seeds()),
        },
        "Customers": {
            customer.unique_id: {
                "name": customer.name,
                "status": str(customer.status),
                "loyalty": customer.loyalty,
                "satisfaction": customer.satisfaction,
                "total_spent": customer.total_spent,
            }
            for customer in customers
        },
        "Workers": {
            worker.unique_id: {"level": worker.level, "paused": worker.paused}
            for worker in engine.workers.owned()
        },
    }

    Path(config.summary_file).parent.mkdir(parents=True, exist_ok=True)
    with open(config.summary_file, "w") as f:
        json.dump(summary, f, indent=config.json_indent)

    log(f"Simulation summary stored in {config.summary_file}", level="INFO")
    return summary


def main() -> None:
    """Main simulation execution function."""
    config = _resolve_config_from_args_or_env()
    args = _parse_args()
    if args.steps:
        config = config.model_copy(update={"simulation_steps": args.steps})

    setup_logger(level=config.logging_level, log_file=config.log_file, log_format=config.log_format)
    log("Starting economy simulation...", level="INFO")

    engine = SimulationEngine(config)
    engine.run()

    log("Simulation complete.", level="INFO")
    summarize_simulation(engine)


if __name__ == "__main__":
    main()
