"""
Reusable builders for configs, problems and solvers in unit / property tests.

* Defaults describe a small two-period Poisson(4) problem with a narrow
  cash lattice, so a full solve takes milliseconds.
* You can override any field via keyword arguments.

Example
-------
>>> cfg = make_config(mean_demand=(3.0, 3.0, 3.0), ini_cash=30.0)
>>> rec = make_recursion(cfg)
>>> problem = make_problem(mean_demand=[4, 4], criterion="max")
"""

from __future__ import annotations

from typing import Any, Sequence

from cashsdp.config import Config
from cashsdp.demand import DemandModel, PeriodPmf
from cashsdp.model import CashFlowModel
from cashsdp.problem import CashProblem
from cashsdp.solver import OptDirection, Recursion
from cashsdp.state import StateSpace

# ───────────────────────── default dictionaries ────────────────────────── #


def _config_defaults() -> dict[str, Any]:
    return dict(
        mean_demand=(4.0, 4.0),
        ini_inventory=0.0,
        ini_cash=20.0,
        fix_order_cost=10.0,
        vari_order_cost=1.0,
        price=8.0,
        holding_cost=2.0,
        salvage_value=0.5,
        max_inventory_state=100.0,
        min_cash_state=-100.0,
        max_cash_state=200.0,
    )


# ───────────────────────────── builders ──────────────────────────────── #


def make_config(**overrides: Any) -> Config:
    """Config with small defaults; ``mean_demand`` may be any sequence."""
    cfg = {**_config_defaults(), **overrides}
    cfg["mean_demand"] = tuple(float(d) for d in cfg["mean_demand"])
    return Config(**cfg)


def make_problem(**overrides: Any) -> CashProblem:
    """CashProblem through the full init path (defaults.yml + validation)."""
    params = {**_config_defaults(), **overrides}
    params["mean_demand"] = list(params["mean_demand"])
    return CashProblem.init(**params)


def make_recursion(
    cfg: Config | None = None,
    *,
    pmf: Sequence[PeriodPmf] | None = None,
    direction: OptDirection = OptDirection.MAX,
) -> Recursion:
    """
    Solver over the cash-flow model of ``cfg``.

    ``pmf`` replaces the demand pmfs of the config, e.g. with a
    deterministic demand to get hand-checkable optima.
    """
    cfg = cfg or make_config()
    space = StateSpace.from_config(cfg)
    model = CashFlowModel(cfg, space)
    if pmf is None:
        pmf = DemandModel(cfg.mean_demand, cfg.demand_distribution).pmfs()
    return Recursion(
        pmf,
        model.feasible_actions,
        model.state_transition,
        model.immediate_value,
        space,
        discount_factor=cfg.discount_factor,
        direction=direction,
    )
