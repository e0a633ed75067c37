"""Tests for configuration loading and precedence."""

import dataclasses

import pytest

from cashsdp.config import Config
from cashsdp.problem import CashProblem, _package_defaults, _read_yaml


def test_defaults_yml_loads():
    """Package defaults.yml describes the 8-period Poisson(15) problem."""
    defaults = _package_defaults()

    assert defaults["mean_demand"] == [15] * 8
    assert defaults["ini_cash"] == 15
    assert defaults["fix_order_cost"] == 10
    assert defaults["criterion"] == "xrelate"
    assert defaults["logging"]["default_level"] == "INFO"


def test_init_uses_defaults():
    problem = CashProblem.init()

    assert problem.n_periods == 8
    assert problem.config.mean_demand == (15.0,) * 8
    assert problem.config.price == 8
    assert problem.config.max_cash_state == 2000


def test_kwargs_override_defaults():
    problem = CashProblem.init(mean_demand=[4, 5], ini_cash=30, criterion="MAX")

    assert problem.config.mean_demand == (4.0, 5.0)
    assert problem.config.ini_cash == 30
    assert problem.config.criterion == "max"
    # Defaults still apply for unspecified values
    assert problem.config.fix_order_cost == 10


def test_user_yaml_overrides_defaults(tmp_path):
    path = tmp_path / "problem.yml"
    path.write_text("mean_demand: [6, 6, 6]\nholding_cost: 1.5\n")

    problem = CashProblem.init(config=path)

    assert problem.n_periods == 3
    assert problem.config.holding_cost == 1.5
    assert problem.config.price == 8


def test_kwargs_override_yaml(tmp_path):
    path = tmp_path / "problem.yml"
    path.write_text("mean_demand: [6, 6, 6]\nholding_cost: 1.5\n")

    problem = CashProblem.init(config=str(path), holding_cost=3)

    assert problem.config.holding_cost == 3
    assert problem.n_periods == 3


def test_mapping_config():
    problem = CashProblem.init(config={"mean_demand": [2], "salvage_value": 0.0})
    assert problem.config.mean_demand == (2.0,)
    assert problem.config.salvage_value == 0.0


def test_read_yaml_none_is_empty():
    assert _read_yaml(None) == {}


def test_read_yaml_empty_file(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("")
    assert _read_yaml(path) == {}


def test_read_yaml_rejects_non_mapping_root(tmp_path):
    path = tmp_path / "list.yml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(TypeError, match="config root must be mapping"):
        _read_yaml(path)


def test_unknown_parameter_rejected():
    with pytest.raises(TypeError):
        CashProblem.init(mean_demand=[4], not_a_parameter=1)


def test_config_is_frozen():
    cfg = CashProblem.init(mean_demand=[4]).config
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.price = 9.0  # type: ignore[misc]


def test_config_n_periods():
    cfg = Config(
        mean_demand=(1.0, 2.0, 3.0),
        ini_inventory=0.0,
        ini_cash=0.0,
        fix_order_cost=0.0,
        vari_order_cost=0.0,
        price=1.0,
        holding_cost=0.0,
        salvage_value=0.0,
    )
    assert cfg.n_periods == 3
    assert cfg.criterion == "xrelate"
    assert cfg.opt_direction == "max"


def test_initial_state_snapped():
    problem = CashProblem.init(mean_demand=[4], ini_cash=20.4, ini_inventory=2.6)
    state = problem.initial_state
    assert (state.period, state.inventory, state.cash) == (1, 3.0, 20.0)


def test_components_wired_from_config():
    problem = CashProblem.init(
        mean_demand=[4, 4], demand_distribution="normal", opt_direction="min"
    )
    assert problem.demand.kind == "normal"
    assert problem.solver.direction.value == "min"
    assert problem.solver.n_periods == 2
    assert problem.extractor.n_periods == 2
    assert problem.space.max_cash == 2000
