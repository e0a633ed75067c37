"""
Decision states and the bounded, quantized state lattice.

A :class:`DecisionState` is the key of the recursion. The
:class:`StateSpace` owns the quantization rules: inventory lives on a
``step_size`` grid inside ``[min_inventory, max_inventory]``, cash on a
``cash_granularity`` grid inside ``[min_cash, max_cash]``. Values
outside the bounds saturate at the bound.

Within one period a lattice point is encoded as a single integer key,
``inventory_index * n_cash + cash_index``, so that sorting keys sorts
states lexicographically by (inventory, cash).
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from cashsdp.config import Config
from cashsdp.typing import Float1D, FloatOrArray, Int1D

__all__ = ["DecisionState", "StateSpace"]


@dataclass(slots=True, frozen=True, order=True)
class DecisionState:
    """
    One (period, inventory, cash) state.

    Equality, hashing and ordering are lexicographic in
    (period, inventory, cash).
    """

    period: int
    inventory: float
    cash: float

    def __str__(self) -> str:
        return f"(t={self.period}, x={self.inventory:g}, R={self.cash:g})"


class StateSpace:
    """
    Bounded, quantized (inventory, cash) lattice shared by every period.

    Parameters
    ----------
    min_inventory, max_inventory : float
        Inventory saturation bounds.
    min_cash, max_cash : float
        Cash saturation bounds. The cash grid is anchored at ``min_cash``:
        levels are ``min_cash + k * cash_granularity``, so they are
        multiples of ``cash_granularity`` only when ``min_cash`` is one
        (``min_cash=-99.5`` with granularity 1 gives half-integer cash).
        The top of the grid is the largest such level not above
        ``max_cash``.
    inventory_step : float, default 1
        Inventory quantization step.
    cash_granularity : float, default 1
        Cash rounding granularity.
    """

    def __init__(
        self,
        min_inventory: float,
        max_inventory: float,
        min_cash: float,
        max_cash: float,
        *,
        inventory_step: float = 1.0,
        cash_granularity: float = 1.0,
    ) -> None:
        self.min_inventory = float(min_inventory)
        self.inventory_step = float(inventory_step)
        self.n_inventory = int(np.floor((max_inventory - min_inventory) / inventory_step + 1e-9)) + 1
        self.max_inventory = self.min_inventory + (self.n_inventory - 1) * self.inventory_step

        self.min_cash = float(min_cash)
        self.cash_granularity = float(cash_granularity)
        self.n_cash = int(np.floor((max_cash - min_cash) / cash_granularity + 1e-9)) + 1
        self.max_cash = self.min_cash + (self.n_cash - 1) * self.cash_granularity

    @classmethod
    def from_config(cls, cfg: Config) -> "StateSpace":
        return cls(
            cfg.min_inventory_state,
            cfg.max_inventory_state,
            cfg.min_cash_state,
            cfg.max_cash_state,
            inventory_step=cfg.step_size,
            cash_granularity=cfg.cash_granularity,
        )

    @property
    def size(self) -> int:
        """Number of (inventory, cash) lattice points per period."""
        return self.n_inventory * self.n_cash

    # saturation / rounding
    # ------------------------------------------------------------------
    def clip_inventory(self, inventory: FloatOrArray) -> FloatOrArray:
        return np.clip(inventory, self.min_inventory, self.max_inventory)

    def clip_cash(self, cash: FloatOrArray) -> FloatOrArray:
        """Saturate cash at the bounds, then round half-up to the grid."""
        cash = np.clip(cash, self.min_cash, self.max_cash)
        steps = np.floor((cash - self.min_cash) / self.cash_granularity + 0.5)
        return self.min_cash + steps * self.cash_granularity

    def snap(self, state: DecisionState) -> DecisionState:
        """Return the lattice point closest to ``state``."""
        inv_idx = self._inventory_index(state.inventory)
        cash = float(self.clip_cash(state.cash))
        return DecisionState(
            state.period,
            self.min_inventory + int(inv_idx) * self.inventory_step,
            cash,
        )

    # key encoding
    # ------------------------------------------------------------------
    def encode(self, inventory: FloatOrArray, cash: FloatOrArray) -> Int1D:
        """Integer keys of lattice points (values are snapped first)."""
        inv_idx = self._inventory_index(inventory)
        cash_idx = np.floor(
            (self.clip_cash(cash) - self.min_cash) / self.cash_granularity + 0.5
        ).astype(np.int64)
        return inv_idx * self.n_cash + cash_idx

    def encode_state(self, state: DecisionState) -> int:
        return int(self.encode(state.inventory, state.cash))

    def decode(self, keys: Int1D) -> tuple[Float1D, Float1D]:
        """Inverse of :meth:`encode`: inventory and cash arrays."""
        keys = np.asarray(keys, dtype=np.int64)
        inv_idx, cash_idx = np.divmod(keys, self.n_cash)
        inventory = self.min_inventory + inv_idx * self.inventory_step
        cash = self.min_cash + cash_idx * self.cash_granularity
        return inventory.astype(np.float64), cash.astype(np.float64)

    def decode_state(self, period: int, key: int) -> DecisionState:
        inventory, cash = self.decode(np.asarray([key]))
        return DecisionState(period, float(inventory[0]), float(cash[0]))

    def _inventory_index(self, inventory: FloatOrArray) -> Int1D:
        idx = np.floor(
            (self.clip_inventory(inventory) - self.min_inventory) / self.inventory_step
            + 0.5
        )
        return idx.astype(np.int64)

    def __repr__(self) -> str:
        return (
            f"StateSpace(inventory=[{self.min_inventory:g}, {self.max_inventory:g}] "
            f"step {self.inventory_step:g}, cash=[{self.min_cash:g}, "
            f"{self.max_cash:g}] step {self.cash_granularity:g})"
        )
