"""
Extraction of an (s, C, S) policy from the optimal-action table.

For every period after the first the extractor reads the recursion's
optimal actions and infers

- ``s``: the reorder point, one step above the highest inventory at which
  the optimum still orders,
- ``S``: the order-up-to level, the largest ``inventory + quantity``
  among ordering states,
- ``C``: the cash threshold, by one of the strategies of
  :class:`CashThresholdCriterion`.

The last period is handled analytically: ``S`` is the newsvendor critical
fractile (with salvage value), ``s`` the largest level whose expected
profit ``L(y)`` falls more than the fixed cost below ``L(S)``, and ``C``
the K-convexity cash requirement. The period-1 row is read from the
optimal action at the initial state so that the policy reproduces it:
an ordering start gives ``s = S + 1`` with ``C`` below the starting cash.

Expected profit
---------------
``L(y, t)`` is the expected profit of stocking up to ``y``::

    I(y)    = sum_{i < y} (y - i) * (F(i + 1/2) - F(i - 1/2))
    L(y, T) = (p - c) * y - (p + h - v) * I(y)
    L(y, t) = (p - c) * y - (p + h) * I(y)        t < T

where ``F`` is the demand cdf of period T, or, for ``t < T``, of the
total demand of periods t and t+1 (a one-period lookahead standing in
for the discounted continuation value).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from cashsdp.config import Config
from cashsdp.demand import DemandModel
from cashsdp.logging import getLogger
from cashsdp.policy import CashThresholdCache, ThresholdPolicy, ThresholdPolicyRow
from cashsdp.results import OptimalTable
from cashsdp.state import DecisionState
from cashsdp.typing import Float1D

__all__ = ["CashThresholdCriterion", "ExtractionResult", "PolicyExtractor"]

log = getLogger(__name__)


class CashThresholdCriterion(Enum):
    """
    How the cash threshold C of a non-terminal period is chosen.

    MAX, MIN, AVG
        Maximum, minimum or average cash of the non-ordering states
        that lie below the highest ordering state (states where cash,
        not inventory, suppressed the order).
    XRELATE
        Analytic, per starting inventory, from the K-convexity of L(y).
    """

    MAX = "max"
    MIN = "min"
    AVG = "avg"
    XRELATE = "xrelate"


@dataclass(slots=True)
class ExtractionResult:
    """Extracted policy and its per-inventory cash thresholds."""

    policy: ThresholdPolicy
    cache: CashThresholdCache


class PolicyExtractor:
    """
    Mine an (s, C, S) policy from an :class:`OptimalTable`.

    Parameters
    ----------
    demand : DemandModel
        Demand of periods 1..T; fixes the horizon.
    fix_order_cost, vari_order_cost, price, holding_cost, salvage_value : float
        Cost structure of the problem (K, c, p, h, v).
    min_inventory : float, default 0
        Default reorder point and order-up-to level of periods that
        never order.
    """

    def __init__(
        self,
        demand: DemandModel,
        *,
        fix_order_cost: float,
        vari_order_cost: float,
        price: float,
        holding_cost: float,
        salvage_value: float,
        min_inventory: float = 0.0,
    ) -> None:
        self.demand = demand
        self.n_periods = demand.n_periods
        self.fix_order_cost = float(fix_order_cost)
        self.vari_order_cost = float(vari_order_cost)
        self.price = float(price)
        self.holding_cost = float(holding_cost)
        self.salvage_value = float(salvage_value)
        self.min_inventory = float(min_inventory)

    @classmethod
    def from_config(cls, cfg: Config, demand: DemandModel) -> "PolicyExtractor":
        return cls(
            demand,
            fix_order_cost=cfg.fix_order_cost,
            vari_order_cost=cfg.vari_order_cost,
            price=cfg.price,
            holding_cost=cfg.holding_cost,
            salvage_value=cfg.salvage_value,
            min_inventory=cfg.min_inventory_state,
        )

    # expected profit L(y)
    # ------------------------------------------------------------------
    def _profit_distribution(self, period: int):
        if period == self.n_periods:
            return self.demand.distribution(period)
        return self.demand.aggregate([period, period + 1])

    def _profit_coefficient(self, period: int) -> float:
        if period == self.n_periods:
            return self.price + self.holding_cost - self.salvage_value
        return self.price + self.holding_cost

    def expected_profit(self, y: float, period: int) -> float:
        """L(y, t) for any real order-up-to level ``y``."""
        dist = self._profit_distribution(period)
        i = np.arange(max(0, math.ceil(y)), dtype=np.float64)
        mass = dist.cdf(i + 0.5) - dist.cdf(i - 0.5)
        mean_leftover = float(np.sum((y - i) * mass))
        margin = self.price - self.vari_order_cost
        return margin * y - self._profit_coefficient(period) * mean_leftover

    def profit_curve(self, period: int, upper: int) -> Float1D:
        """L(y, t) for the integer levels ``y = 0, 1, ..., upper``."""
        dist = self._profit_distribution(period)
        i = np.arange(upper, dtype=np.float64)
        mass = dist.cdf(i + 0.5) - dist.cdf(i - 0.5)
        cum_mass = np.concatenate(([0.0], np.cumsum(mass)))
        cum_first = np.concatenate(([0.0], np.cumsum(i * mass)))
        y = np.arange(upper + 1, dtype=np.float64)
        mean_leftover = y * cum_mass - cum_first
        margin = self.price - self.vari_order_cost
        return margin * y - self._profit_coefficient(period) * mean_leftover

    def critical_fractile(self, period: int) -> float:
        """Newsvendor order-up-to level of ``period``."""
        p, c, h = self.price, self.vari_order_cost, self.holding_cost
        if period == self.n_periods:
            ratio = (p - c) / (h + p - self.salvage_value)
        else:
            ratio = (p - c) / (h + p)
        return float(self.demand.distribution(period).ppf(ratio))

    def cash_thresholds(self, period: int, upper: int) -> dict[int, float]:
        """
        K-convexity cash requirement per starting inventory ``j <= upper``.

        For each ``j`` the smallest ``jj`` in ``(j, upper]`` with
        ``L(jj) > L(j) + K`` makes ordering worthwhile; the cash needed is
        ``K + c * (jj - 1 - j)``. Levels with no such ``jj`` are absent.
        """
        curve = self.profit_curve(period, upper)
        out: dict[int, float] = {}
        for j in range(upper + 1):
            gains = curve[j + 1 :] > curve[j] + self.fix_order_cost
            if gains.any():
                jj = j + 1 + int(np.argmax(gains))
                out[j] = self.fix_order_cost + self.vari_order_cost * (jj - 1 - j)
        return out

    # extraction
    # ------------------------------------------------------------------
    def extract(
        self,
        table: OptimalTable,
        min_cash_required: float,
        criterion: CashThresholdCriterion | str = CashThresholdCriterion.XRELATE,
        *,
        initial_state: DecisionState | None = None,
    ) -> ExtractionResult:
        """
        Build the (s, C, S) policy and the per-inventory cash thresholds.

        Parameters
        ----------
        table : OptimalTable
            Optimal actions of every solved state.
        min_cash_required : float
            Cash floor; default cash threshold of every period.
        criterion : CashThresholdCriterion or str
            Cash-threshold strategy for non-terminal periods.
        initial_state : DecisionState, optional
            State whose optimal action fixes the period-1 row. May be
            omitted when the table holds a single period-1 state.
        """
        criterion = CashThresholdCriterion(
            criterion.lower() if isinstance(criterion, str) else criterion
        )
        log.info(f"--- Extracting (s, C, S) policy ({criterion.name}) ---")
        cache = CashThresholdCache()
        rows = [
            self._first_period_row(table, initial_state, min_cash_required, cache)
        ]

        for t in range(2, self.n_periods + 1):
            if t == self.n_periods:
                row = self._terminal_row(min_cash_required, cache)
            else:
                row = self._period_row(
                    t, table.for_period(t), min_cash_required, criterion, cache
                )
            rows.append(row)
            log.debug(f"  Period {t}: s={row.s:g}, C={row.C:g}, S={row.S:g}")

        policy = ThresholdPolicy(rows)
        log.info(f"  (s, C, S) are: {policy.to_array().tolist()}")
        log.info(f"--- Extraction complete: {len(cache)} cached cash thresholds ---")
        return ExtractionResult(policy=policy, cache=cache)

    def _first_period_row(
        self,
        table: OptimalTable,
        initial_state: DecisionState | None,
        min_cash_required: float,
        cache: CashThresholdCache,
    ) -> ThresholdPolicyRow:
        """
        Row of period 1, built from the optimal action at the initial state.

        An ordering start gives ``(S + 1, C, x0 + q)`` with ``C`` below the
        starting cash; a waiting start gives ``(x0, C, x0)``. Either way the
        row reproduces the recorded action at ``(x0, R0)``.
        """
        rows = table.for_period(1)
        if initial_state is None:
            if len(rows) > 1:
                raise ValueError(
                    f"{len(rows)} period-1 states are solved; pass initial_state"
                )
            record = rows[0] if len(rows) else None
        else:
            hit = np.flatnonzero(
                (rows.inventory == initial_state.inventory)
                & (rows.cash == initial_state.cash)
            )
            record = rows[int(hit[0])] if hit.size else None

        if record is None:
            log.debug("  Period 1: initial state not solved, keeping defaults")
            return ThresholdPolicyRow(
                1, self.min_inventory, min_cash_required, self.min_inventory
            )

        x0, cash0, q0 = record.inventory, record.cash, record.quantity
        if q0 > 0:
            # an affordable order leaves the starting cash above the floor
            C = min(min_cash_required, cash0 - 1.0)
            S = x0 + q0
            row = ThresholdPolicyRow(1, S + 1.0, C, S)
        else:
            row = ThresholdPolicyRow(1, x0, min_cash_required, x0)
        cache.put(1, x0, row.C)
        return row

    def _period_row(
        self,
        t: int,
        rows: OptimalTable,
        min_cash_required: float,
        criterion: CashThresholdCriterion,
        cache: CashThresholdCache,
    ) -> ThresholdPolicyRow:
        s, S, C = self.min_inventory, self.min_inventory, min_cash_required

        ordering = rows.ordering
        if not ordering.any():
            log.debug(f"  Period {t}: no ordering state, keeping defaults")
            return ThresholdPolicyRow(t, s, C, S)

        # backward scan: the highest ordering row marks the reorder point
        last = int(np.flatnonzero(ordering)[-1])
        if last + 1 < len(rows):
            s = float(rows.inventory[last + 1])
        else:
            s = float(rows.inventory[last]) + 1.0
        S = max(S, float(np.max(rows.inventory[ordering] + rows.quantity[ordering])))

        # not ordering below the highest ordering row: cash was binding
        below = slice(0, last)
        candidates = rows.cash[below][~ordering[below]]

        if criterion is CashThresholdCriterion.MAX:
            C = float(candidates.max()) if candidates.size else min_cash_required
        elif criterion is CashThresholdCriterion.MIN:
            C = float(candidates.min()) if candidates.size else min_cash_required
        elif criterion is CashThresholdCriterion.AVG:
            C = float(candidates.mean()) if candidates.size else min_cash_required
        else:
            upper = int(self.critical_fractile(t))
            C = self._cache_thresholds(t, upper, min_cash_required, cache)

        if log.isEnabledFor(logging.DEBUG):
            log.debug(
                f"  Period {t}: {int(ordering.sum())} ordering rows, "
                f"{candidates.size} cash-bound candidates"
            )
        return ThresholdPolicyRow(t, s, C, S)

    def _terminal_row(
        self, min_cash_required: float, cache: CashThresholdCache
    ) -> ThresholdPolicyRow:
        T = self.n_periods
        S = self.critical_fractile(T)
        upper = int(S)
        curve = self.profit_curve(T, upper)
        target = self.expected_profit(S, T) - self.fix_order_cost

        s = self.min_inventory
        for j in range(upper, -1, -1):
            if curve[j] < target:
                s = float(j + 1)
                break

        C = self._cache_thresholds(T, upper, min_cash_required, cache)
        return ThresholdPolicyRow(T, s, C, S)

    def _cache_thresholds(
        self,
        t: int,
        upper: int,
        min_cash_required: float,
        cache: CashThresholdCache,
    ) -> float:
        """Cache thresholds of period ``t``; return the lowest inventory's one."""
        thresholds = self.cash_thresholds(t, upper)
        for j, c in thresholds.items():
            cache.put(t, float(j), c)
        if not thresholds:
            return min_cash_required
        return thresholds[min(thresholds)]
