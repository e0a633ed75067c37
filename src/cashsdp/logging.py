"""
Custom logging configuration for cashsdp.

Extends Python's standard logging with a custom DEEP_DEBUG level (5)
for per-state tracing inside the backward induction and the policy
extraction scans.

Log Levels
----------
- CRITICAL (50): Critical errors
- ERROR (40): Errors
- WARNING (30): Warnings
- INFO (20): Informational messages (default)
- DEBUG (10): Debug messages
- DEEP_DEBUG (5): Very verbose debug messages (one line per state)

Examples
--------
Use logger in a module:

>>> from cashsdp import logging
>>> logger = logging.getLogger("cashsdp.solver")
>>> logger.info("Solving")
>>> logger.deep("state (2, 5.0, 17.0) -> q=12")

Configure per-module log levels:

>>> import cashsdp as cs
>>> log_config = {
...     "default_level": "INFO",
...     "modules": {"solver": "DEBUG", "extractor": "WARNING"},
... }
>>> problem = cs.CashProblem.init(logging=log_config)

See Also
--------
cashsdp.config.ConfigValidator : Validates the logging mapping
"""

import logging
from typing import Any

(CRITICAL, ERROR, WARNING, INFO, DEBUG) = (
    logging.CRITICAL,
    logging.ERROR,
    logging.WARNING,
    logging.INFO,
    logging.DEBUG,
)
DEEP_DEBUG = 5
logging.addLevelName(DEEP_DEBUG, "DEEP")


class SdpLogger(logging.Logger):
    """
    Custom logger with DEEP_DEBUG level support.

    Extends Python's Logger to add the `deep()` method for very verbose
    debugging output (level 5).

    Examples
    --------
    >>> logger = SdpLogger("test")
    >>> logger.setLevel(5)  # DEEP_DEBUG
    >>> logger.deep("Very verbose message")
    """

    def deep(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """
        Log message at DEEP_DEBUG level (5).

        Parameters
        ----------
        msg : str
            Message format string.
        *args : Any
            Arguments for message formatting.
        **kwargs : Any
            Additional logging kwargs.
        """
        if self.isEnabledFor(DEEP_DEBUG):
            self._log(DEEP_DEBUG, msg, args, **kwargs)


# Make the logging module hand out our subclass from now on
logging.setLoggerClass(SdpLogger)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)


def getLogger(name: str | None = None) -> SdpLogger:
    """
    Get a SdpLogger instance.

    Convenience wrapper around logging.getLogger() that returns
    a SdpLogger instance with DEEP_DEBUG support.

    Parameters
    ----------
    name : str, optional
        Logger name. If None, returns root logger.

    Returns
    -------
    SdpLogger
        Logger instance with deep() method.
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def configure(log_config: dict[str, Any]) -> None:
    """
    Apply a logging mapping to the ``cashsdp`` logger hierarchy.

    Parameters
    ----------
    log_config : dict
        Logging configuration with keys:
        - default_level: str (e.g., 'INFO', 'DEBUG', 'DEEP_DEBUG')
        - modules: dict[str, str] (per-module overrides, e.g. {"solver": "DEBUG"})
    """
    default_level = log_config.get("default_level", "INFO")
    logging.getLogger("cashsdp").setLevel(_level(default_level))

    for module_name, level in log_config.get("modules", {}).items():
        logging.getLogger(f"cashsdp.{module_name}").setLevel(_level(level))


def _level(name: str) -> int:
    name = name.upper()
    if name == "DEEP_DEBUG":
        return DEEP_DEBUG
    return getattr(logging, name)
