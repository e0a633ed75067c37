"""
K-convexity diagnostics of the optimal cost-to-go.

A function G is K-convex when, for every x and every a >= 0, b > 0,

    K + G(x + a) - G(x) - a * (G(x) - G(x - b)) / b >= 0.

K-convexity of the cost-to-go is what makes an (s, S) policy optimal in
fixed-cost lot sizing; with a cash constraint it can fail, which is where
the cash threshold C of an (s, C, S) policy comes in. The functions here
sample G(y) from a solved :class:`~cashsdp.solver.Recursion` and list the
triples that violate the inequality.
"""

from __future__ import annotations

from typing import Iterable, NamedTuple

import numpy as np

from cashsdp.logging import getLogger
from cashsdp.solver import Recursion
from cashsdp.state import DecisionState
from cashsdp.typing import Float1D, Float2D

__all__ = ["KConvexityViolation", "check_k_convexity", "expected_value_curve"]

log = getLogger(__name__)


class KConvexityViolation(NamedTuple):
    """Grid points ``x - b < x < x + a`` and the (negative) slack."""

    lower: float
    middle: float
    upper: float
    slack: float


def expected_value_curve(
    solver: Recursion,
    inventories: Iterable[float],
    cash: float,
    period: int = 1,
) -> Float2D:
    """
    Optimal expected value as a function of starting inventory.

    Solves from ``(period, y, cash)`` for each ``y``; states shared by
    the different starting points are computed once.

    Returns
    -------
    ndarray
        ``(n, 2)`` array of (y, V(y)).
    """
    rows = []
    for y in inventories:
        value, _ = solver.solve(DecisionState(period, float(y), float(cash)))
        rows.append((float(y), value))
    return np.asarray(rows, dtype=np.float64).reshape(-1, 2)


def check_k_convexity(
    y: Float1D,
    g: Float1D,
    fixed_cost: float,
    *,
    tol: float = 1e-9,
) -> list[KConvexityViolation]:
    """
    Triples of sample points where ``g`` is not ``fixed_cost``-convex.

    Parameters
    ----------
    y : Float1D
        Strictly increasing sample points.
    g : Float1D
        Cost values at ``y`` (negate a value curve before checking it).
    fixed_cost : float
        The constant K.
    tol : float
        Slack tolerated before a triple is reported.
    """
    y = np.asarray(y, dtype=np.float64)
    g = np.asarray(g, dtype=np.float64)
    if y.shape != g.shape or y.ndim != 1:
        raise ValueError("y and g must be 1-D arrays of equal length")
    if np.any(np.diff(y) <= 0):
        raise ValueError("y must be strictly increasing")

    violations: list[KConvexityViolation] = []
    n = y.size
    for lo in range(n - 2):
        for mid in range(lo + 1, n - 1):
            b = y[mid] - y[lo]
            slope = (g[mid] - g[lo]) / b
            a = y[mid + 1 :] - y[mid]
            slack = fixed_cost + g[mid + 1 :] - g[mid] - a * slope
            for k in np.flatnonzero(slack < -tol):
                violations.append(
                    KConvexityViolation(
                        float(y[lo]), float(y[mid]), float(y[mid + 1 + k]), float(slack[k])
                    )
                )

    if violations:
        log.info(f"  G(y) is not {fixed_cost:g}-convex: {len(violations)} violating triples")
    else:
        log.info(f"  G(y) is {fixed_cost:g}-convex on {n} points")
    return violations
