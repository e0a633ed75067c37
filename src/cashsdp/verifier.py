"""
Consistency check of an (s, C, S) policy against the exact optimum.

Every state of every period after the first is replayed through the
threshold policy. A state counts as a mismatch once per violated rule:

1. the optimum orders although inventory is at or above ``s``;
2. the optimum orders although cash is at or below ``C``;
3. the policy orders (inventory below ``s``, cash above ``C``) but the
   optimal quantity differs from
   ``min(S - x, (R - min_cash - K) / c, max_order_quantity)``.

Below ``s`` the cash threshold is the cached per-inventory value, falling
back to the period's scalar ``C`` when the cache has no entry; at or
above ``s`` it is the period's scalar ``C``. Period 1 is skipped since
its row is built from the initial state's own optimal action. The last
period is checked like any other.
"""

from __future__ import annotations

import numpy as np

from cashsdp.logging import getLogger
from cashsdp.policy import CashThresholdCache, ThresholdPolicy
from cashsdp.results import OptimalTable

__all__ = ["check_policy", "mismatches_by_period"]

log = getLogger(__name__)


def mismatches_by_period(
    policy: ThresholdPolicy,
    table: OptimalTable,
    cache: CashThresholdCache,
    *,
    min_cash_required: float,
    max_order_quantity: float,
    fix_order_cost: float,
    vari_order_cost: float,
) -> dict[int, int]:
    """Mismatch count of each period ``2..T`` (see module docstring)."""
    counts: dict[int, int] = {}
    for t in range(2, len(policy) + 1):
        row = policy[t]
        rows = table.for_period(t)
        if len(rows) == 0:
            counts[t] = 0
            continue

        x, cash, q = rows.inventory, rows.cash, rows.quantity
        below_s = x < row.s
        threshold = np.array(
            [
                cache.get(t, xi, default=row.C) if b else row.C
                for xi, b in zip(x, below_s)
            ],
            dtype=np.float64,
        )
        ordered = q != 0

        with np.errstate(divide="ignore", invalid="ignore"):
            affordable = (cash - min_cash_required - fix_order_cost) / vari_order_cost
        policy_q = np.minimum(np.minimum(row.S - x, affordable), max_order_quantity)
        orders_by_policy = below_s & (cash > threshold)

        n = int(np.sum(~below_s & ordered))
        n += int(np.sum((cash <= threshold) & ordered))
        n += int(np.sum(orders_by_policy & (q != policy_q)))
        counts[t] = n
    return counts


def check_policy(
    policy: ThresholdPolicy,
    table: OptimalTable,
    cache: CashThresholdCache,
    *,
    min_cash_required: float,
    max_order_quantity: float,
    fix_order_cost: float,
    vari_order_cost: float,
) -> int:
    """
    Count states where the (s, C, S) policy disagrees with the optimum.

    Parameters
    ----------
    policy : ThresholdPolicy
        Extracted (s, C, S) rows.
    table : OptimalTable
        Exact optimal actions.
    cache : CashThresholdCache
        Per-(period, inventory) cash thresholds.
    min_cash_required, max_order_quantity, fix_order_cost, vari_order_cost : float
        Cash floor, order cap, fixed and unit ordering cost.

    Returns
    -------
    int
        Total number of mismatches; 0 means the policy reproduces the
        optimum on every sampled state.
    """
    log.info("--- Checking (s, C, S) policy against optimal table ---")
    counts = mismatches_by_period(
        policy,
        table,
        cache,
        min_cash_required=min_cash_required,
        max_order_quantity=max_order_quantity,
        fix_order_cost=fix_order_cost,
        vari_order_cost=vari_order_cost,
    )
    for t, n in counts.items():
        log.debug(f"  Period {t}: {n} mismatches over {len(table.for_period(t))} states")
    total = sum(counts.values())
    log.info(f"  There are {total} states that do not satisfy the (s, C, S) policy")
    return total
