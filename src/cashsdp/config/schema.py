"""
Configuration dataclass for the cash-constrained lot-sizing problem.

This module defines the Config dataclass, which groups every cost, bound
and option of one solve in one immutable object. Config instances are
created by CashProblem.init() after merging defaults, user config, and
kwargs, and are then handed explicitly to the demand model, the cash-flow
model, the solver and the extractor.

Design Notes
------------
- Immutable (frozen=True) to prevent accidental modification
- Memory-efficient (slots=True)
- Simple dataclass, no validation - validation happens in ConfigValidator

See Also
--------
ConfigValidator : Centralized validation for configuration parameters
cashsdp.problem.CashProblem.init : Creates Config from merged parameters
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class Config:
    """
    Immutable configuration for one cash-constrained inventory problem.

    Parameters
    ----------
    mean_demand : tuple[float, ...]
        Mean demand per period; its length is the planning horizon T.
    ini_inventory : float
        Inventory on hand at the start of period 1.
    ini_cash : float
        Cash on hand at the start of period 1.
    fix_order_cost : float
        Fixed cost K charged whenever a positive quantity is ordered.
    vari_order_cost : float
        Variable cost c per unit ordered.
    price : float
        Selling price p per unit of satisfied demand.
    holding_cost : float
        Holding cost h per unit left over at the end of a period.
    salvage_value : float
        Value v per unit left over at the end of the horizon.
    min_cash_required : float, optional
        Cash floor the retailer must keep after paying for an order.
    max_order_quantity : float, optional
        Global cap on a single order.
    demand_distribution : str, optional
        "poisson" or "normal". Default: "poisson".
    demand_cv : float, optional
        Coefficient of variation of normal demand. Ignored for Poisson.
    truncation_quantile : float, optional
        Demand support is cut at this quantile on both tails.
    step_size : float, optional
        Discretization step of demand, actions and inventory.
    min_inventory_state, max_inventory_state : float, optional
        Inventory saturation bounds of the state lattice.
    min_cash_state, max_cash_state : float, optional
        Cash saturation bounds of the state lattice. ``min_cash_state``
        should lie below ``-fix_order_cost``; a larger value degrades the
        policy quality without raising.
    cash_granularity : float, optional
        Cash is rounded half-up to multiples of this value on transition.
    discount_factor : float, optional
        Discount applied to the continuation value.
    opt_direction : str, optional
        "max" (expected cash) or "min" (expected cost). Default: "max".
    criterion : str, optional
        Cash-threshold strategy of the extractor: "max", "min", "avg" or
        "xrelate". Default: "xrelate".

    Examples
    --------
    >>> from cashsdp.config import Config
    >>> cfg = Config(
    ...     mean_demand=(15.0, 15.0),
    ...     ini_inventory=0.0,
    ...     ini_cash=15.0,
    ...     fix_order_cost=10.0,
    ...     vari_order_cost=1.0,
    ...     price=8.0,
    ...     holding_cost=2.0,
    ...     salvage_value=0.5,
    ... )
    >>> cfg.n_periods
    2
    """

    # Demand
    mean_demand: tuple[float, ...]

    # Initial state
    ini_inventory: float
    ini_cash: float

    # Cost structure
    fix_order_cost: float
    vari_order_cost: float
    price: float
    holding_cost: float
    salvage_value: float

    # Ordering limits
    min_cash_required: float = 0.0
    max_order_quantity: float = 150.0

    # Demand discretization
    demand_distribution: str = "poisson"  # "poisson" or "normal"
    demand_cv: float = 0.25
    truncation_quantile: float = 0.9999
    step_size: float = 1.0

    # State lattice bounds
    min_inventory_state: float = 0.0
    max_inventory_state: float = 500.0
    min_cash_state: float = -100.0
    max_cash_state: float = 2000.0
    cash_granularity: float = 1.0

    # Recursion
    discount_factor: float = 1.0
    opt_direction: str = "max"  # "max" or "min"

    # Policy extraction
    criterion: str = "xrelate"  # "max", "min", "avg" or "xrelate"

    @property
    def n_periods(self) -> int:
        """Planning horizon T."""
        return len(self.mean_demand)
