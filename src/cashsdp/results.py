"""
Optimal-action table produced by the recursion.

This module provides the OptimalTable class, the row-ordered
(period, inventory, cash, order quantity) table that the extractor and
the verifier consume, and the OptimalActionRecord row type.

Note: pandas is an optional dependency. It is only required for
:meth:`OptimalTable.to_dataframe`. Install with: pip install cashsdp[pandas]
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator, NamedTuple

import numpy as np

from cashsdp.typing import Float1D, Int1D

if TYPE_CHECKING:  # pragma: no cover
    from pandas import DataFrame

__all__ = ["OptimalActionRecord", "OptimalTable"]

COLUMNS = ("period", "inventory", "cash", "quantity")


def _import_pandas() -> Any:
    """
    Lazily import pandas with helpful error message if not installed.

    Raises
    ------
    ImportError
        If pandas is not installed.
    """
    try:
        import pandas as pd

        return pd
    except ImportError:  # pragma: no cover
        raise ImportError(
            "pandas is required for DataFrame export. "
            "Install it with: pip install pandas"
        ) from None


class OptimalActionRecord(NamedTuple):
    """One visited state and its optimal order quantity."""

    period: int
    inventory: float
    cash: float
    quantity: float


class OptimalTable:
    """
    Row-ordered table of optimal actions, sorted by (period, inventory, cash).

    Parameters
    ----------
    period : Int1D
        Period of each row (1-based).
    inventory, cash, quantity : Float1D
        Starting inventory, starting cash and optimal order quantity.

    Examples
    --------
    >>> table = OptimalTable.from_records([(1, 0.0, 15.0, 5.0)])
    >>> table[0]
    OptimalActionRecord(period=1, inventory=0.0, cash=15.0, quantity=5.0)
    >>> table.to_array().shape
    (1, 4)
    """

    __slots__ = ("period", "inventory", "cash", "quantity")

    def __init__(
        self,
        period: Int1D,
        inventory: Float1D,
        cash: Float1D,
        quantity: Float1D,
    ) -> None:
        self.period = np.asarray(period, dtype=np.int64)
        self.inventory = np.asarray(inventory, dtype=np.float64)
        self.cash = np.asarray(cash, dtype=np.float64)
        self.quantity = np.asarray(quantity, dtype=np.float64)
        n = self.period.size
        if not (self.inventory.size == self.cash.size == self.quantity.size == n):
            raise ValueError("OptimalTable columns must have equal length")

    @classmethod
    def from_records(cls, records: Any) -> "OptimalTable":
        """Build a table from an iterable of 4-tuples; rows are sorted."""
        rows = [tuple(r) for r in records]
        if not rows:
            empty = np.empty(0)
            return cls(empty, empty, empty, empty)
        arr = np.asarray(rows, dtype=np.float64)
        order = np.lexsort((arr[:, 2], arr[:, 1], arr[:, 0]))
        arr = arr[order]
        return cls(arr[:, 0].astype(np.int64), arr[:, 1], arr[:, 2], arr[:, 3])

    @classmethod
    def from_array(cls, arr: Any) -> "OptimalTable":
        """Inverse of :meth:`to_array`."""
        return cls.from_records(np.asarray(arr, dtype=np.float64).reshape(-1, 4))

    # sequence protocol
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return int(self.period.size)

    def __getitem__(self, i: int) -> OptimalActionRecord:
        return OptimalActionRecord(
            int(self.period[i]),
            float(self.inventory[i]),
            float(self.cash[i]),
            float(self.quantity[i]),
        )

    def __iter__(self) -> Iterator[OptimalActionRecord]:
        for i in range(len(self)):
            yield self[i]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OptimalTable):
            return NotImplemented
        return bool(np.array_equal(self.to_array(), other.to_array()))

    __hash__ = None  # type: ignore[assignment]

    # slicing
    # ------------------------------------------------------------------
    @property
    def periods(self) -> list[int]:
        """Distinct periods present in the table, ascending."""
        return [int(t) for t in np.unique(self.period)]

    @property
    def ordering(self) -> np.ndarray:
        """Boolean mask of rows with a positive order."""
        return self.quantity != 0

    def for_period(self, period: int) -> "OptimalTable":
        """Rows of one period, preserving (inventory, cash) order."""
        mask = self.period == period
        return OptimalTable(
            self.period[mask],
            self.inventory[mask],
            self.cash[mask],
            self.quantity[mask],
        )

    # export
    # ------------------------------------------------------------------
    def to_array(self) -> np.ndarray:
        """Flat ``(n, 4)`` float array: period, inventory, cash, quantity."""
        return np.column_stack(
            (self.period.astype(np.float64), self.inventory, self.cash, self.quantity)
        )

    def to_dataframe(self) -> "DataFrame":
        """Return the table as a pandas DataFrame (requires pandas)."""
        pd = _import_pandas()
        return pd.DataFrame(
            {
                "period": self.period,
                "inventory": self.inventory,
                "cash": self.cash,
                "quantity": self.quantity,
            },
            columns=list(COLUMNS),
        )

    def __repr__(self) -> str:
        return f"OptimalTable(rows={len(self)}, periods={self.periods})"
