"""Centralized configuration validation for cashsdp."""

from __future__ import annotations

import warnings
from typing import Any


class ConfigValidator:
    """
    Centralized validation for problem configuration.

    All validation happens once at CashProblem.init() to ensure:
    - Type correctness
    - Valid parameter ranges
    - Relationship constraints between parameters
    - Clear error messages with actionable feedback
    """

    # Valid log levels for logging configuration
    VALID_LOG_LEVELS = {"DEEP_DEBUG", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

    VALID_DISTRIBUTIONS = {"poisson", "normal"}
    VALID_DIRECTIONS = {"max", "min"}
    VALID_CRITERIA = {"max", "min", "avg", "xrelate"}

    @staticmethod
    def validate_config(cfg: dict[str, Any]) -> None:
        """
        Validate all configuration parameters.

        Parameters
        ----------
        cfg : dict
            Configuration dictionary to validate.

        Raises
        ------
        ValueError
            If any validation check fails.
        """
        # Type checking
        ConfigValidator._validate_types(cfg)

        # Range validation
        ConfigValidator._validate_ranges(cfg)

        # Relationship constraints
        ConfigValidator._validate_relationships(cfg)

        # Logging configuration
        if "logging" in cfg:
            ConfigValidator._validate_logging(cfg["logging"])

    @staticmethod
    def _validate_types(cfg: dict[str, Any]) -> None:
        """
        Ensure correct types for configuration parameters.

        Raises
        ------
        ValueError
            If any parameter has incorrect type.
        """
        float_params = [
            "ini_inventory",
            "ini_cash",
            "fix_order_cost",
            "vari_order_cost",
            "price",
            "holding_cost",
            "salvage_value",
            "min_cash_required",
            "max_order_quantity",
            "demand_cv",
            "truncation_quantile",
            "step_size",
            "min_inventory_state",
            "max_inventory_state",
            "min_cash_state",
            "max_cash_state",
            "cash_granularity",
            "discount_factor",
        ]

        # Check floats (accept int or float, reject bool)
        for key in float_params:
            if key not in cfg:
                continue
            val = cfg[key]
            if isinstance(val, bool) or not isinstance(val, (int, float)):
                raise ValueError(
                    f"Config parameter '{key}' must be float, got {type(val).__name__}"
                )

        if "mean_demand" in cfg:
            demand = cfg["mean_demand"]
            if isinstance(demand, (str, bytes)) or not hasattr(demand, "__iter__"):
                raise ValueError(
                    f"Config parameter 'mean_demand' must be a sequence of floats, "
                    f"got {type(demand).__name__}"
                )
            for i, d in enumerate(demand):
                if isinstance(d, bool) or not isinstance(d, (int, float)):
                    raise ValueError(
                        f"mean_demand[{i}] must be float, got {type(d).__name__}"
                    )

        for key, allowed in (
            ("demand_distribution", ConfigValidator.VALID_DISTRIBUTIONS),
            ("opt_direction", ConfigValidator.VALID_DIRECTIONS),
            ("criterion", ConfigValidator.VALID_CRITERIA),
        ):
            if key not in cfg:
                continue
            val = cfg[key]
            if not isinstance(val, str):
                raise ValueError(
                    f"Config parameter '{key}' must be str, got {type(val).__name__}"
                )
            if val.lower() not in allowed:
                raise ValueError(
                    f"Invalid {key} '{val}'. Must be one of {sorted(allowed)}"
                )

    @staticmethod
    def _validate_ranges(cfg: dict[str, Any]) -> None:
        """
        Ensure parameters are in valid ranges.

        Raises
        ------
        ValueError
            If any parameter is out of valid range.
        """
        # Define constraints as (min_val, max_val) tuples
        # None means unbounded
        constraints = {
            # Costs and prices (non-negative)
            "fix_order_cost": (0.0, None),
            "vari_order_cost": (0.0, None),
            "price": (0.0, None),
            "holding_cost": (0.0, None),
            "salvage_value": (0.0, None),
            "max_order_quantity": (0.0, None),
            "ini_inventory": (0.0, None),
            # Demand discretization
            "demand_cv": (0.0, None),
            # Lattice steps (positive)
            "step_size": (1e-9, None),
            "cash_granularity": (1e-9, None),
            # Discounting
            "discount_factor": (0.0, 1.0),
        }

        for key, (min_val, max_val) in constraints.items():
            if key not in cfg:
                continue

            val = cfg[key]

            # Check minimum
            if min_val is not None and val < min_val:
                raise ValueError(
                    f"Config parameter '{key}' must be >= {min_val}, got {val}"
                )

            # Check maximum
            if max_val is not None and val > max_val:
                raise ValueError(
                    f"Config parameter '{key}' must be <= {max_val}, got {val}"
                )

        # Quantile must cut a finite support on both tails
        if "truncation_quantile" in cfg:
            q = cfg["truncation_quantile"]
            if not 0.5 < q < 1.0:
                raise ValueError(
                    f"Config parameter 'truncation_quantile' must be in (0.5, 1), got {q}"
                )

        if "mean_demand" in cfg:
            demand = list(cfg["mean_demand"])
            if len(demand) == 0:
                raise ValueError("Config parameter 'mean_demand' must not be empty")
            if any(d <= 0 for d in demand):
                raise ValueError(
                    f"Config parameter 'mean_demand' must be positive, got {demand}"
                )

    @staticmethod
    def _validate_relationships(cfg: dict[str, Any]) -> None:
        """
        Validate cross-parameter constraints.

        Bounds that are inverted are errors. Bounds that the recursion
        tolerates but that degrade the extracted policy only warn.
        """
        for low, high in (
            ("min_inventory_state", "max_inventory_state"),
            ("min_cash_state", "max_cash_state"),
        ):
            if low in cfg and high in cfg and cfg[low] >= cfg[high]:
                raise ValueError(
                    f"{low} ({cfg[low]}) must be < {high} ({cfg[high]})"
                )

        ini_inventory = cfg.get("ini_inventory")
        if ini_inventory is not None and "max_inventory_state" in cfg:
            if ini_inventory > cfg["max_inventory_state"]:
                raise ValueError(
                    f"ini_inventory ({ini_inventory}) exceeds "
                    f"max_inventory_state ({cfg['max_inventory_state']})"
                )

        # Cash floor above -K: ordering states saturate at the floor
        min_cash_state = cfg.get("min_cash_state")
        fix_order_cost = cfg.get("fix_order_cost")
        if min_cash_state is not None and fix_order_cost is not None:
            if min_cash_state > -fix_order_cost:
                warnings.warn(
                    f"min_cash_state ({min_cash_state}) > -fix_order_cost "
                    f"({-fix_order_cost}). Losses are clipped at the cash floor, "
                    "which can distort the extracted (s, C, S) policy.",
                    UserWarning,
                    stacklevel=3,
                )

        # Cash grid is anchored at the floor, not at zero
        granularity = cfg.get("cash_granularity")
        if min_cash_state is not None and granularity:
            offset = min_cash_state / granularity
            if abs(offset - round(offset)) > 1e-9:
                warnings.warn(
                    f"min_cash_state ({min_cash_state}) is not a multiple of "
                    f"cash_granularity ({granularity}). Cash levels are rounded "
                    "onto a grid anchored at min_cash_state.",
                    UserWarning,
                    stacklevel=3,
                )

        # Selling below cost: it is never optimal to order
        price = cfg.get("price")
        vari_order_cost = cfg.get("vari_order_cost")
        if price is not None and vari_order_cost is not None:
            if price <= vari_order_cost:
                warnings.warn(
                    f"price ({price}) <= vari_order_cost ({vari_order_cost}). "
                    "Ordering is never profitable; every period will have an "
                    "empty ordering region.",
                    UserWarning,
                    stacklevel=3,
                )

    @staticmethod
    def _validate_logging(log_config: dict[str, Any]) -> None:
        """
        Validate logging configuration.

        Parameters
        ----------
        log_config : dict
            Logging configuration dictionary with keys:
            - default_level: str (e.g., 'INFO', 'DEBUG')
            - modules: dict[str, str] (per-module overrides)

        Raises
        ------
        ValueError
            If logging configuration is invalid.
        """
        if not isinstance(log_config, dict):
            raise ValueError(
                f"Logging config must be dict, got {type(log_config).__name__}"
            )

        # Check default_level
        if "default_level" in log_config:
            level = log_config["default_level"]
            if not isinstance(level, str):
                raise ValueError(
                    f"Logging default_level must be str, got {type(level).__name__}"
                )

            if level.upper() not in ConfigValidator.VALID_LOG_LEVELS:
                raise ValueError(
                    f"Invalid log level '{level}'. "
                    f"Must be one of {ConfigValidator.VALID_LOG_LEVELS}"
                )

        # Check modules dictionary
        if "modules" in log_config:
            modules = log_config["modules"]
            if not isinstance(modules, dict):
                raise ValueError(
                    f"Logging modules must be dict, got {type(modules).__name__}"
                )

            for module_name, level in modules.items():
                if not isinstance(module_name, str):
                    raise ValueError(
                        f"Module name must be str, got {type(module_name).__name__}"
                    )

                if not isinstance(level, str):
                    raise ValueError(
                        f"Log level for module '{module_name}' must be str, "
                        f"got {type(level).__name__}"
                    )

                if level.upper() not in ConfigValidator.VALID_LOG_LEVELS:
                    raise ValueError(
                        f"Invalid log level '{level}' for module '{module_name}'. "
                        f"Must be one of {ConfigValidator.VALID_LOG_LEVELS}"
                    )
