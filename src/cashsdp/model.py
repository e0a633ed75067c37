"""
Pluggable model functions of the recursion, and the cash-constrained
lot-sizing model that implements them.

The recursion is written against three callables:

``FeasibleActions``
    state -> 1-D array of admissible order quantities (always holding 0).
``ImmediateValue``
    (state, actions, demands) -> cash contribution of the period.
``StateTransition``
    (state, actions, demands) -> next (inventory, cash), saturated and
    rounded onto the lattice.

``actions`` and ``demands`` may be scalars or arrays that broadcast
against each other; the solver passes a column of actions and a row of
demand values and gets back one matrix per call.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np

from cashsdp.config import Config
from cashsdp.state import DecisionState, StateSpace
from cashsdp.typing import Float1D, FloatOrArray

__all__ = [
    "FeasibleActions",
    "ImmediateValue",
    "StateTransition",
    "CashFlowModel",
]


class FeasibleActions(Protocol):
    def __call__(self, state: DecisionState) -> Float1D: ...


class ImmediateValue(Protocol):
    def __call__(
        self, state: DecisionState, action: FloatOrArray, demand: FloatOrArray
    ) -> FloatOrArray: ...


class StateTransition(Protocol):
    def __call__(
        self, state: DecisionState, action: FloatOrArray, demand: FloatOrArray
    ) -> tuple[FloatOrArray, FloatOrArray]: ...


class CashFlowModel:
    """
    Single-item lot sizing under a strong cash-balance constraint.

    Each period the retailer orders ``a`` units (paid at once: fixed cost
    ``K`` if ``a > 0`` plus ``c * a``), sells ``min(x + a, d)`` at price
    ``p``, pays ``h`` per unit left over, and in the last period recovers
    ``v`` per unit left over. Unmet demand is lost.

    Parameters
    ----------
    cfg : Config
        Costs, prices, limits and horizon.
    space : StateSpace
        Lattice used to saturate and round next states.

    Examples
    --------
    >>> from cashsdp.config import Config
    >>> cfg = Config(mean_demand=(5.0, 5.0), ini_inventory=0.0, ini_cash=20.0,
    ...              fix_order_cost=10.0, vari_order_cost=1.0, price=8.0,
    ...              holding_cost=2.0, salvage_value=0.5)
    >>> model = CashFlowModel(cfg, StateSpace.from_config(cfg))
    >>> model.feasible_actions(DecisionState(1, 0.0, 20.0))
    array([ 0.,  1.,  2.,  3.,  4.,  5.,  6.,  7.,  8.,  9., 10.])
    """

    def __init__(self, cfg: Config, space: StateSpace) -> None:
        self.n_periods = cfg.n_periods
        self.fix_order_cost = cfg.fix_order_cost
        self.vari_order_cost = cfg.vari_order_cost
        self.price = cfg.price
        self.holding_cost = cfg.holding_cost
        self.salvage_value = cfg.salvage_value
        self.min_cash_required = cfg.min_cash_required
        self.max_order_quantity = cfg.max_order_quantity
        self.step_size = cfg.step_size
        self.space = space

    def affordable_quantity(self, cash: FloatOrArray) -> FloatOrArray:
        """Largest order that leaves at least ``min_cash_required`` in cash."""
        budget = np.asarray(cash) - self.min_cash_required - self.fix_order_cost
        if self.vari_order_cost > 0:
            return budget / self.vari_order_cost
        return np.where(budget >= 0, np.inf, -np.inf)

    def feasible_actions(self, state: DecisionState) -> Float1D:
        """
        Order quantities ``0, step, 2*step, ...`` up to the lesser of the
        global cap and what the cash on hand can pay for.
        """
        max_q = min(
            self.max_order_quantity,
            max(0.0, float(self.affordable_quantity(state.cash))),
        )
        n = int(np.floor(max_q / self.step_size + 1e-9))
        return self.step_size * np.arange(n + 1, dtype=np.float64)

    def immediate_value(
        self, state: DecisionState, action: FloatOrArray, demand: FloatOrArray
    ) -> FloatOrArray:
        """Cash increment of the period."""
        action = np.asarray(action, dtype=np.float64)
        on_hand = state.inventory + action
        revenue = self.price * np.minimum(on_hand, demand)
        fixed = np.where(action > 0, self.fix_order_cost, 0.0)
        leftover = np.maximum(on_hand - demand, 0.0)
        increment = revenue - fixed - self.vari_order_cost * action
        increment = increment - self.holding_cost * leftover
        if state.period == self.n_periods:
            increment = increment + self.salvage_value * leftover
        return increment

    def state_transition(
        self, state: DecisionState, action: FloatOrArray, demand: FloatOrArray
    ) -> tuple[FloatOrArray, FloatOrArray]:
        """Next inventory and cash, saturated at the lattice bounds."""
        inventory = np.maximum(0.0, state.inventory + np.asarray(action) - demand)
        cash = state.cash + self.immediate_value(state, action, demand)
        return self.space.clip_inventory(inventory), self.space.clip_cash(cash)

    def next_state(
        self, state: DecisionState, action: float, demand: float
    ) -> DecisionState:
        """Scalar form of :meth:`state_transition`."""
        inventory, cash = self.state_transition(state, action, demand)
        return DecisionState(state.period + 1, float(inventory), float(cash))
