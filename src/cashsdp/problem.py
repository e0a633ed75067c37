# src/cashsdp/problem.py
from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from cashsdp.config import Config, ConfigValidator
from cashsdp.demand import DemandModel
from cashsdp.extractor import CashThresholdCriterion, ExtractionResult, PolicyExtractor
from cashsdp.logging import configure, getLogger
from cashsdp.model import CashFlowModel
from cashsdp.results import OptimalTable
from cashsdp.solver import OptDirection, Recursion
from cashsdp.state import DecisionState, StateSpace
from cashsdp.verifier import check_policy

__all__ = ["CashProblem", "PolicyReport"]

log = getLogger(__name__)


# helpers
# ---------------------------------------------------------------------------
def _read_yaml(obj: str | Path | Mapping[str, Any] | None) -> Dict[str, Any]:
    """Return a plain dict – {} if *obj* is None."""
    if obj is None:
        return {}
    if isinstance(obj, Mapping):
        return dict(obj)
    p = Path(obj)
    with p.open("rt", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, Mapping):
        raise TypeError(f"config root must be mapping, got {type(data)!r}")
    return dict(data)


def _package_defaults() -> Dict[str, Any]:
    """Load cashsdp/defaults.yml"""
    txt = resources.files("cashsdp").joinpath("defaults.yml").read_text()
    return yaml.safe_load(txt) or {}


@dataclass(slots=True)
class PolicyReport:
    """Outcome of one solve → extract → verify run."""

    value: float
    action: float
    final_cash: float
    table: OptimalTable
    extraction: ExtractionResult
    mismatches: int


# CashProblem
# ---------------------------------------------------------------------
@dataclass(slots=True)
class CashProblem:
    """
    Facade wiring demand, lattice, cash-flow model, solver and extractor.

    One call to `run` → solve, extract the (s, C, S) policy, verify it.
    """

    config: Config
    demand: DemandModel
    space: StateSpace
    model: CashFlowModel
    solver: Recursion
    extractor: PolicyExtractor

    @property
    def n_periods(self) -> int:
        return self.config.n_periods

    @property
    def initial_state(self) -> DecisionState:
        return self.space.snap(
            DecisionState(1, self.config.ini_inventory, self.config.ini_cash)
        )

    # Constructor
    # ---------------------------------------------------------------------
    @classmethod
    def init(
        cls,
        config: str | Path | Mapping[str, Any] | None = None,
        **overrides: Any,  # anything here wins last
    ) -> "CashProblem":
        """
        Build a CashProblem.

        Order of precedence (later overrides earlier):

            1. package defaults  (cashsdp/defaults.yml)
            2. *config*  (Path / str / Mapping / None)
            3. explicit keyword arguments (**overrides)
        """
        cfg_dict: Dict[str, Any] = _package_defaults()
        cfg_dict.update(_read_yaml(config))
        cfg_dict.update(overrides)

        ConfigValidator.validate_config(cfg_dict)

        log_config = cfg_dict.pop("logging", None)
        if log_config is not None:
            configure(log_config)

        cfg_dict["mean_demand"] = tuple(float(d) for d in cfg_dict["mean_demand"])
        cfg_dict["demand_distribution"] = cfg_dict["demand_distribution"].lower()
        cfg_dict["opt_direction"] = cfg_dict["opt_direction"].lower()
        cfg_dict["criterion"] = cfg_dict["criterion"].lower()
        cfg = Config(**cfg_dict)
        return cls.from_config(cfg)

    @classmethod
    def from_config(cls, cfg: Config) -> "CashProblem":
        """Build every collaborator from an already validated Config."""
        demand = DemandModel(
            cfg.mean_demand,
            cfg.demand_distribution,
            cv=cfg.demand_cv,
            truncation_quantile=cfg.truncation_quantile,
            step_size=cfg.step_size,
        )
        space = StateSpace.from_config(cfg)
        model = CashFlowModel(cfg, space)
        solver = Recursion(
            demand.pmfs(),
            model.feasible_actions,
            model.state_transition,
            model.immediate_value,
            space,
            discount_factor=cfg.discount_factor,
            direction=OptDirection(cfg.opt_direction),
        )
        extractor = PolicyExtractor.from_config(cfg, demand)
        log.debug(f"  Built problem: T={cfg.n_periods}, {demand!r}, {space!r}")
        return cls(
            config=cfg,
            demand=demand,
            space=space,
            model=model,
            solver=solver,
            extractor=extractor,
        )

    # Pipeline
    # ---------------------------------------------------------------------
    def solve(self) -> tuple[float, float]:
        """Optimal expected value and first-period order of the initial state."""
        return self.solver.solve(self.initial_state)

    def final_cash(self) -> float:
        """Initial cash plus the optimal expected cash increment."""
        value, _ = self.solve()
        return self.initial_state.cash + value

    def opt_table(self) -> OptimalTable:
        return self.solver.opt_table()

    def extract(
        self, criterion: CashThresholdCriterion | str | None = None
    ) -> ExtractionResult:
        """Solve if needed, then extract the (s, C, S) policy."""
        self.solve()
        return self.extractor.extract(
            self.opt_table(),
            self.config.min_cash_required,
            criterion if criterion is not None else self.config.criterion,
            initial_state=self.initial_state,
        )

    def verify(self, extraction: ExtractionResult) -> int:
        """Mismatch count of ``extraction`` against the optimal table."""
        return check_policy(
            extraction.policy,
            self.opt_table(),
            extraction.cache,
            min_cash_required=self.config.min_cash_required,
            max_order_quantity=self.config.max_order_quantity,
            fix_order_cost=self.config.fix_order_cost,
            vari_order_cost=self.config.vari_order_cost,
        )

    def run(self, criterion: CashThresholdCriterion | str | None = None) -> PolicyReport:
        """Solve, extract and verify in one go."""
        value, action = self.solve()
        final_cash = self.initial_state.cash + value
        log.info(f"  Final optimal cash is: {final_cash:.4f}")
        log.info(f"  Optimal order quantity in the first period is: {action:g}")
        extraction = self.extract(criterion)
        mismatches = self.verify(extraction)
        return PolicyReport(
            value=value,
            action=action,
            final_cash=final_cash,
            table=self.opt_table(),
            extraction=extraction,
            mismatches=mismatches,
        )
