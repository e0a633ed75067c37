"""
cashsdp - Cash-Constrained Stochastic Lot Sizing
================================================

cashsdp solves the finite-horizon, single-item lot-sizing problem of a
retailer who must pay for every order from the cash on hand. It computes
the exact optimum by stochastic dynamic programming over a quantized
(inventory, cash) lattice, extracts an (s, C, S) threshold policy from
the optimal actions, and counts the states where that policy disagrees
with the optimum.

Quick Start
-----------
Solve the default 8-period problem and check the extracted policy:

>>> import cashsdp as cs
>>> problem = cs.CashProblem.init()
>>> report = problem.run()
>>> report.extraction.policy.to_array()     # (s, C, S) per period
>>> report.mismatches

Custom configuration via kwargs or a YAML file:

>>> problem = cs.CashProblem.init(mean_demand=[8, 8, 8], ini_cash=30)
>>> problem = cs.CashProblem.init(config="my_problem.yml", criterion="max")

Key Concepts
------------
**(s, C, S) policy**
  Order up to ``S`` when inventory is below ``s`` and cash exceeds ``C``,
  limited by what the cash on hand can pay for.

**Two-sweep recursion**
  A forward sweep collects reachable states per period, a backward sweep
  evaluates them vectorised over actions and demands.

Public API
----------
CashProblem
    Facade: config loading, solve, extract, verify.
Config, ConfigValidator
    Problem parameters and their validation.
DemandModel, StateSpace, CashFlowModel
    Demand pmfs, state lattice, cash-flow model.
Recursion
    Memoised backward-induction solver.
PolicyExtractor, check_policy
    (s, C, S) extraction and verification.
check_k_convexity
    K-convexity diagnostics of a value curve.
"""

from __future__ import annotations

__version__: str = "0.1.0"

from . import logging
from .config import Config, ConfigValidator
from .convexity import KConvexityViolation, check_k_convexity, expected_value_curve
from .demand import DemandModel, PeriodPmf
from .extractor import CashThresholdCriterion, ExtractionResult, PolicyExtractor
from .model import CashFlowModel
from .policy import CashThresholdCache, ThresholdPolicy, ThresholdPolicyRow
from .problem import CashProblem, PolicyReport
from .results import OptimalActionRecord, OptimalTable
from .solver import OptDirection, Recursion
from .state import DecisionState, StateSpace
from .verifier import check_policy, mismatches_by_period

__all__ = [
    "CashProblem",
    "PolicyReport",
    "__version__",
    # Configuration
    "Config",
    "ConfigValidator",
    # Model
    "DemandModel",
    "PeriodPmf",
    "DecisionState",
    "StateSpace",
    "CashFlowModel",
    # Solver
    "OptDirection",
    "Recursion",
    "OptimalActionRecord",
    "OptimalTable",
    # Policy
    "CashThresholdCriterion",
    "ExtractionResult",
    "PolicyExtractor",
    "CashThresholdCache",
    "ThresholdPolicy",
    "ThresholdPolicyRow",
    "check_policy",
    "mismatches_by_period",
    # Diagnostics
    "KConvexityViolation",
    "check_k_convexity",
    "expected_value_curve",
    # Utilities
    "logging",
]
