"""
(s, C, S) threshold policies.

A :class:`ThresholdPolicy` holds one :class:`ThresholdPolicyRow` per
period: order up to ``S`` whenever inventory is below ``s`` and cash
exceeds ``C``, ordering no more than the cash on hand can pay for.

Because the exact optimum can require a different cash threshold for
each starting inventory, the extractor also fills a
:class:`CashThresholdCache` keyed by (period, inventory). A missing key
falls back to the period's scalar ``C``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, NamedTuple, Sequence

import numpy as np

__all__ = ["ThresholdPolicyRow", "ThresholdPolicy", "CashThresholdCache"]


class ThresholdPolicyRow(NamedTuple):
    """(s, C, S) thresholds of one period."""

    period: int
    s: float
    C: float
    S: float


class CashThresholdCache:
    """
    Write-once mapping (period, inventory) -> cash threshold.

    Examples
    --------
    >>> cache = CashThresholdCache()
    >>> cache.put(2, 0.0, 12.0)
    >>> cache.get(2, 0.0, default=0.0)
    12.0
    >>> cache.get(2, 5.0, default=7.5)
    7.5
    """

    __slots__ = ("_values",)

    def __init__(self) -> None:
        self._values: dict[tuple[int, float], float] = {}

    def put(self, period: int, inventory: float, threshold: float) -> None:
        key = (int(period), float(inventory))
        if key in self._values:
            raise KeyError(
                f"Cash threshold for period {key[0]}, inventory {key[1]:g} "
                "is already set"
            )
        self._values[key] = float(threshold)

    def get(self, period: int, inventory: float, default: float) -> float:
        """Threshold of (period, inventory), or ``default`` when absent."""
        return self._values.get((int(period), float(inventory)), default)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        return (int(key[0]), float(key[1])) in self._values

    def __getitem__(self, key: tuple[int, float]) -> float:
        return self._values[(int(key[0]), float(key[1]))]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[tuple[int, float]]:
        return iter(sorted(self._values))

    def for_period(self, period: int) -> dict[float, float]:
        """Inventory -> threshold entries of one period, ascending."""
        return {x: c for (t, x), c in sorted(self._values.items()) if t == period}

    def to_array(self) -> np.ndarray:
        """``(n, 3)`` array of (period, inventory, threshold), key-ordered."""
        rows = [(t, x, self._values[(t, x)]) for t, x in self]
        return np.asarray(rows, dtype=np.float64).reshape(-1, 3)

    def __repr__(self) -> str:
        return f"CashThresholdCache(entries={len(self)})"


@dataclass(slots=True)
class ThresholdPolicy:
    """Per-period (s, C, S) rows, indexed by 1-based period."""

    rows: list[ThresholdPolicyRow]

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]]) -> "ThresholdPolicy":
        """Build from ``[s, C, S]`` triples of periods 1..T."""
        return cls(
            [
                ThresholdPolicyRow(t, float(s), float(c), float(S))
                for t, (s, c, S) in enumerate(rows, start=1)
            ]
        )

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[ThresholdPolicyRow]:
        return iter(self.rows)

    def __getitem__(self, period: int) -> ThresholdPolicyRow:
        if not 1 <= period <= len(self.rows):
            raise KeyError(f"Period {period} outside 1..{len(self.rows)}")
        return self.rows[period - 1]

    def to_array(self) -> np.ndarray:
        """``(T, 3)`` array of (s, C, S)."""
        return np.asarray([[r.s, r.C, r.S] for r in self.rows], dtype=np.float64)

    def order_quantity(
        self,
        period: int,
        inventory: float,
        cash: float,
        *,
        affordable: float,
        max_order_quantity: float,
        cache: CashThresholdCache | None = None,
    ) -> float:
        """
        Quantity the policy orders in a state.

        ``affordable`` is what the cash on hand can pay for after the
        fixed cost and the cash floor.
        """
        row = self[period]
        threshold = row.C
        if cache is not None and inventory < row.s:
            threshold = cache.get(period, inventory, default=row.C)
        if inventory >= row.s or cash <= threshold:
            return 0.0
        return max(0.0, min(row.S - inventory, affordable, max_order_quantity))

    def __repr__(self) -> str:
        body = ", ".join(f"({r.s:g}, {r.C:g}, {r.S:g})" for r in self.rows)
        return f"ThresholdPolicy([{body}])"
