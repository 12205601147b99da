import pytest
from pydantic import ValidationError

import config


def test_simulation_config_structure_defaults() -> None:
    """Defaults carry the shipped balance values."""
    cfg = config.SimulationConfig()

    assert cfg.simulation_steps == 600
    assert cfg.clock.minutes_per_real_second == 5.0
    assert cfg.clock.start_minute == 360.0
    assert cfg.starting_cash == 500
    assert cfg.customers.max_customers == 100
    assert cfg.customers.prospect_limit == 50
    assert cfg.pricing.drugs["meth"].price_ceiling == 100
    assert cfg.workers.max_level == 10
    assert len(cfg.workers.roster) == 12


def test_domain_lookup() -> None:
    cfg = config.SimulationConfig()

    assert cfg.domain("weed").grow is not None
    assert cfg.domain("meth").cook is not None
    assert cfg.domain("meth").grow is None
    with pytest.raises(KeyError):
        cfg.domain("tea")


def test_default_stations_match_domains() -> None:
    cfg = config.SimulationConfig()

    racks = cfg.weed.processing.stations
    assert len(racks) == 8
    assert [r.unlocked for r in racks].count(True) == 2
    koks_chain = [(s.input_stage, s.output_stage) for s in cfg.koks.processing.stations]
    assert koks_chain == [("leaves", "paste"), ("paste", "base"), ("base", "powder")]


def test_simulation_config_enforces_reasonable_bounds() -> None:
    with pytest.raises(ValidationError):
        config.SimulationConfig(simulation_steps=-10)

    with pytest.raises(ValidationError):
        config.SimulationConfig(customers={"sample_conversion_base": 1.5})

    with pytest.raises(ValidationError):
        config.NumberRange(low=5, high=1)


def test_stage_tables_must_span_zero_to_hundred() -> None:
    with pytest.raises(ValidationError):
        config.GrowConfig(stages=[{"at": 10, "name": "seed"}, {"at": 100, "name": "harvest"}])

    with pytest.raises(ValidationError):
        config.GrowConfig(
            stages=[
                {"at": 0, "name": "seed"},
                {"at": 60, "name": "veg"},
                {"at": 40, "name": "flower"},
                {"at": 100, "name": "harvest"},
            ]
        )


def test_worker_roster_ids_must_be_unique() -> None:
    template = {
        "id": "dup",
        "name": "Dup",
        "domain": "weed",
        "role": "dealer",
        "abilities": ["sell"],
        "cost": 10,
    }
    with pytest.raises(ValidationError):
        config.WorkerConfig(roster=[template, template])


def test_pricing_requires_every_drug() -> None:
    with pytest.raises(ValidationError):
        config.PricingConfig(drugs={"weed": {"base_price": 15}})


def test_load_simulation_config_casts_types() -> None:
    payload = {
        "simulation_steps": "250",
        "territory": {"sales_multiplier": "1.25"},
        "customers": {"initial_prospects": "5"},
    }

    cfg = config.load_simulation_config(payload)

    assert cfg.simulation_steps == 250
    assert cfg.territory.sales_multiplier == pytest.approx(1.25)
    assert cfg.customers.initial_prospects == 5


def test_load_simulation_config_rejects_non_string_keys() -> None:
    with pytest.raises(TypeError):
        config.load_simulation_config({1: "x"})  # type: ignore[dict-item]


def test_load_from_yaml_handles_empty_and_invalid_files(tmp_path) -> None:
    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    assert config.load_simulation_config_from_yaml(empty).simulation_steps == 600

    listing = tmp_path / "list.yaml"
    listing.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(TypeError):
        config.load_simulation_config_from_yaml(listing)
