#!/usr/bin/env python3
"""
Logging configuration for the dsge_regimes package.

All modules log under the ``dsge_regimes`` namespace through
:func:`get_logger`. Nothing is printed unless the application calls
:func:`configure_logging`. Regime fallbacks go through :func:`warn_and_log`
so they reach both the log and the ``warnings`` machinery.
"""

import logging
import sys
import warnings
from typing import Any, Dict, Optional, Type, Union

# Default logging format
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Silent unless the application opts in.
_pkg_logger = logging.getLogger("dsge_regimes")
_pkg_logger.addHandler(logging.NullHandler())
_pkg_logger.setLevel(logging.WARNING)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    format_str: Optional[str] = None,
    handlers: Optional[Dict[str, Any]] = None
) -> None:
    """
    Configure the logging system for the dsge_regimes package.

    Args:
        level: The logging level, as a number or a name such as "DEBUG" (default: INFO)
        format_str: The log format string (default: timestamp, logger name, level, message)
        handlers: Dictionary of handlers to configure
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown logging level {level!r}")
    format_str = format_str or DEFAULT_FORMAT
    formatter = logging.Formatter(format_str)

    pkg_logger = logging.getLogger('dsge_regimes')
    for handler in pkg_logger.handlers[:]:
        pkg_logger.removeHandler(handler)

    pkg_logger.setLevel(level)

    if not handlers:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        pkg_logger.addHandler(console_handler)
    else:
        for handler in handlers.values():
            handler.setFormatter(formatter)
            pkg_logger.addHandler(handler)

    pkg_logger.propagate = False

    pkg_logger.debug("Logging configured for dsge_regimes package")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module within the package.

    Args:
        name: The name of the module or component

    Returns:
        A logger under the ``dsge_regimes`` namespace
    """
    return logging.getLogger(f"dsge_regimes.{name}")


def warn_and_log(logger: logging.Logger,
                 msg: str,
                 category: Type[Warning] = UserWarning,
                 stacklevel: int = 2) -> None:
    """
    Record ``msg`` at WARNING on ``logger`` and raise it as a ``category`` warning.

    Regime fallbacks are reported both ways: the log record ends up in the
    estimation log, the warning can be filtered or escalated by callers.
    ``stacklevel`` counts from the caller of this function.
    """
    logger.warning(msg)
    warnings.warn(msg, category, stacklevel=stacklevel + 1)


__all__ = ["configure_logging", "get_logger", "warn_and_log", "DEFAULT_FORMAT"]
