# tests/helpers/invariants.py
"""
Structural invariants of solver output and extracted policies.
They stay coarse-grained so they hold for any problem parameters.
"""
from __future__ import annotations

import numpy as np

from cashsdp.config import Config
from cashsdp.policy import ThresholdPolicy
from cashsdp.results import OptimalTable


def assert_table_invariants(table: OptimalTable, cfg: Config) -> None:
    """
    Raise ``AssertionError`` if the optimal table is unsorted, has duplicate
    states, leaves the lattice, or holds an unaffordable action.
    """
    arr = table.to_array()

    # Ordering & uniqueness
    # ---------------------
    keys = np.lexsort((arr[:, 2], arr[:, 1], arr[:, 0]))
    np.testing.assert_array_equal(keys, np.arange(len(table)))
    assert len(np.unique(arr[:, :3], axis=0)) == len(table), "duplicate state"

    # Lattice bounds
    # --------------
    assert (table.period >= 1).all() and (table.period <= cfg.n_periods).all()
    assert (table.inventory >= cfg.min_inventory_state).all()
    assert (table.inventory <= cfg.max_inventory_state).all()
    assert (table.cash >= cfg.min_cash_state).all()
    assert (table.cash <= cfg.max_cash_state).all()

    # Feasible actions
    # ----------------
    q = table.quantity
    assert (q >= 0).all()
    assert (q <= cfg.max_order_quantity).all()
    ordered = q > 0
    cash_left = table.cash[ordered] - cfg.fix_order_cost - cfg.vari_order_cost * q[ordered]
    assert (cash_left >= cfg.min_cash_required - 1e-9).all(), "order not affordable"


def assert_policy_invariants(
    policy: ThresholdPolicy, n_periods: int, table: OptimalTable | None = None
) -> None:
    """
    One finite (s, C, S) row per period, periods numbered 1..T.

    With ``table``, every period after the first that has an ordering
    state must also satisfy ``S >= s``.
    """
    assert len(policy) == n_periods
    assert [row.period for row in policy] == list(range(1, n_periods + 1))
    arr = policy.to_array()
    assert arr.shape == (n_periods, 3)
    assert np.isfinite(arr).all()
    assert (arr[:, 2] >= 0).all(), "order-up-to level must be non-negative"

    if table is None:
        return
    for row in policy.rows[1:]:
        if table.for_period(row.period).ordering.any():
            assert row.S >= row.s, f"period {row.period}: S < s"
