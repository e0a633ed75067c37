"""
Finite-horizon stochastic dynamic programming by backward induction.

:class:`Recursion` computes, for every state reachable from an initial
state, the expected discounted value of acting optimally from that state
to the end of the horizon, and the order quantity achieving it:

    V_T(x, R)  = opt_a  E_d[ r(x, R, a, d) ]
    V_t(x, R)  = opt_a  E_d[ r(x, R, a, d) + gamma * V_{t+1}(f(x, R, a, d)) ]

where ``opt`` is max or min, ``r`` the immediate value, ``f`` the state
transition and the expectation is the finite sum over the period's
discretized demand pmf.

The computation runs in two sweeps instead of language-level recursion:

1. **forward reachability**: starting from the initial state, collect
   per period the lattice points any feasible action and demand can lead
   to; states already memoised are pruned together with their subtrees.
2. **backward evaluation**: from period T down to the initial period,
   evaluate every collected state, vectorised over (actions x demands).

Every evaluated state is memoised exactly once; a second evaluation of
the same state is a bug and trips an assertion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from cashsdp.demand import PeriodPmf
from cashsdp.logging import DEEP_DEBUG, getLogger
from cashsdp.model import FeasibleActions, ImmediateValue, StateTransition
from cashsdp.results import OptimalTable
from cashsdp.state import DecisionState, StateSpace
from cashsdp.typing import Bool1D, Float1D, Int1D

__all__ = ["OptDirection", "Recursion"]

log = getLogger(__name__)


class OptDirection(Enum):
    """Whether the recursion maximises value or minimises cost."""

    MAX = "max"
    MIN = "min"


@dataclass(slots=True)
class _PeriodMemo:
    """Memoised states of one period, sorted by encoded key."""

    keys: Int1D
    values: Float1D
    actions: Float1D

    @classmethod
    def empty(cls) -> "_PeriodMemo":
        return cls(
            keys=np.empty(0, dtype=np.int64),
            values=np.empty(0, dtype=np.float64),
            actions=np.empty(0, dtype=np.float64),
        )

    def __len__(self) -> int:
        return int(self.keys.size)

    def positions(self, keys: Int1D) -> tuple[Int1D, Bool1D]:
        """Insertion positions of ``keys`` and whether each is memoised."""
        pos = np.searchsorted(self.keys, keys)
        if self.keys.size == 0:
            return pos, np.zeros(np.shape(keys), dtype=np.bool_)
        found = self.keys[np.minimum(pos, self.keys.size - 1)] == keys
        return pos, found

    def contains(self, keys: Int1D) -> Bool1D:
        return self.positions(keys)[1]

    def lookup(self, keys: Int1D) -> Float1D:
        pos, found = self.positions(keys)
        assert found.all(), "successor state missing from memo"
        return self.values[pos]

    def insert(self, keys: Int1D, values: Float1D, actions: Float1D) -> None:
        assert not self.contains(keys).any(), "memoised state computed twice"
        keys = np.concatenate((self.keys, keys))
        order = np.argsort(keys, kind="stable")
        self.keys = keys[order]
        self.values = np.concatenate((self.values, values))[order]
        self.actions = np.concatenate((self.actions, actions))[order]


class Recursion:
    """
    Memoised backward-induction solver.

    Parameters
    ----------
    pmf : sequence of PeriodPmf
        Demand pmf of periods 1..T; its length is the horizon.
    feasible_actions : FeasibleActions
        Admissible order quantities of a state (always including 0).
    state_transition : StateTransition
        Next (inventory, cash) for broadcast actions and demands.
    immediate_value : ImmediateValue
        Cash contribution of a period for broadcast actions and demands.
    space : StateSpace
        Lattice on which states are quantized and encoded.
    discount_factor : float, default 1.0
        Weight of the continuation value.
    direction : OptDirection, default OptDirection.MAX
        Maximise value or minimise cost.

    Examples
    --------
    >>> import cashsdp as cs
    >>> problem = cs.CashProblem.init(mean_demand=[4, 4], ini_cash=20,
    ...                               max_cash_state=200)
    >>> value, action = problem.solver.solve(problem.initial_state)
    >>> table = problem.solver.opt_table()
    """

    def __init__(
        self,
        pmf: Sequence[PeriodPmf],
        feasible_actions: FeasibleActions,
        state_transition: StateTransition,
        immediate_value: ImmediateValue,
        space: StateSpace,
        *,
        discount_factor: float = 1.0,
        direction: OptDirection = OptDirection.MAX,
    ) -> None:
        self.pmf = list(pmf)
        self.n_periods = len(self.pmf)
        self.feasible_actions = feasible_actions
        self.state_transition = state_transition
        self.immediate_value = immediate_value
        self.space = space
        self.discount_factor = float(discount_factor)
        self.direction = OptDirection(direction)
        self._memo: dict[int, _PeriodMemo] = {
            t: _PeriodMemo.empty() for t in range(1, self.n_periods + 1)
        }

    # public API
    # ------------------------------------------------------------------
    def solve(self, state: DecisionState) -> tuple[float, float]:
        """
        Optimal expected value and optimal action of ``state``.

        The state is snapped to the lattice first. States memoised by an
        earlier call are reused without recomputation.
        """
        state = self.space.snap(state)
        if state not in self:
            log.info(f"--- Solving from {state} ---")
            frontier = self._reachable(state)
            n_new = sum(int(k.size) for k in frontier.values())
            log.info(f"  Reachable new states: {n_new:,}")
            self._backward(frontier)
            log.info(f"--- Solve complete: {self.n_states:,} states memoised ---")
        return self.value(state), self.action(state)

    def value(self, state: DecisionState) -> float:
        memo, i = self._locate(state)
        return float(memo.values[i])

    def action(self, state: DecisionState) -> float:
        memo, i = self._locate(state)
        return float(memo.actions[i])

    @property
    def n_states(self) -> int:
        """Number of memoised states over all periods."""
        return sum(len(m) for m in self._memo.values())

    def opt_table(self) -> OptimalTable:
        """Every memoised state with its optimal action, in state order."""
        periods, inventory, cash, quantity = [], [], [], []
        for t in range(1, self.n_periods + 1):
            memo = self._memo[t]
            inv, csh = self.space.decode(memo.keys)
            periods.append(np.full(len(memo), t, dtype=np.int64))
            inventory.append(inv)
            cash.append(csh)
            quantity.append(memo.actions)
        return OptimalTable(
            np.concatenate(periods),
            np.concatenate(inventory),
            np.concatenate(cash),
            np.concatenate(quantity),
        )

    def __contains__(self, state: object) -> bool:
        if not isinstance(state, DecisionState):
            return False
        if state.period not in self._memo:
            return False
        key = np.asarray([self.space.encode_state(state)])
        return bool(self._memo[state.period].contains(key)[0])

    # sweeps
    # ------------------------------------------------------------------
    def _reachable(self, state: DecisionState) -> dict[int, Int1D]:
        """Keys of not-yet-memoised states reachable from ``state``, per period."""
        frontier: dict[int, Int1D] = {}
        keys = np.asarray([self.space.encode_state(state)], dtype=np.int64)

        for t in range(state.period, self.n_periods + 1):
            # memoised states already carry their whole subtree
            keys = keys[~self._memo[t].contains(keys)]
            frontier[t] = keys
            if t == self.n_periods or keys.size == 0:
                break

            demand = self.pmf[t - 1].values[np.newaxis, :]
            reached = np.zeros(self.space.size, dtype=np.bool_)
            inventory, cash = self.space.decode(keys)
            for x, r in zip(inventory, cash):
                s = DecisionState(t, float(x), float(r))
                actions = np.asarray(self.feasible_actions(s), dtype=np.float64)
                nxt_inv, nxt_cash = self.state_transition(s, actions[:, np.newaxis], demand)
                reached[self.space.encode(nxt_inv, nxt_cash).ravel()] = True
            keys = np.flatnonzero(reached).astype(np.int64)

            if log.isEnabledFor(logging.DEBUG):
                log.debug(
                    f"  Period {t}: {frontier[t].size:,} states -> "
                    f"{keys.size:,} successors in period {t + 1}"
                )
        return frontier

    def _backward(self, frontier: dict[int, Int1D]) -> None:
        maximise = self.direction is OptDirection.MAX
        for t in sorted(frontier, reverse=True):
            keys = frontier[t]
            if keys.size == 0:
                continue
            terminal = t == self.n_periods
            pmf = self.pmf[t - 1]
            demand = pmf.values[np.newaxis, :]
            successors = None if terminal else self._memo[t + 1]

            values = np.empty(keys.size, dtype=np.float64)
            actions = np.empty(keys.size, dtype=np.float64)
            inventory, cash = self.space.decode(keys)
            for i, (x, r) in enumerate(zip(inventory, cash)):
                s = DecisionState(t, float(x), float(r))
                a = np.asarray(self.feasible_actions(s), dtype=np.float64)
                total = self.immediate_value(s, a[:, np.newaxis], demand)
                if successors is not None:
                    nxt_inv, nxt_cash = self.state_transition(s, a[:, np.newaxis], demand)
                    continuation = successors.lookup(self.space.encode(nxt_inv, nxt_cash))
                    total = total + self.discount_factor * continuation
                expected = np.broadcast_to(total, (a.size, demand.size)) @ pmf.probabilities
                best = int(np.argmax(expected) if maximise else np.argmin(expected))
                values[i] = expected[best]
                actions[i] = a[best]
                if log.isEnabledFor(DEEP_DEBUG):
                    log.deep(f"    {s}: q*={a[best]:g}, V={expected[best]:.4f}")

            self._memo[t].insert(keys, values, actions)
            log.debug(f"  Period {t}: evaluated {keys.size:,} states")

    def _locate(self, state: DecisionState) -> tuple[_PeriodMemo, int]:
        memo = self._memo.get(state.period)
        if memo is None:
            raise KeyError(f"Period {state.period} outside horizon 1..{self.n_periods}")
        pos, found = memo.positions(np.asarray([self.space.encode_state(state)]))
        if not found[0]:
            raise KeyError(f"State {state} has not been solved")
        return memo, int(pos[0])

    def __repr__(self) -> str:
        return (
            f"Recursion(T={self.n_periods}, direction={self.direction.value}, "
            f"states={self.n_states:,})"
        )
