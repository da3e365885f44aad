"""
logging_utils.py – logger factory for the package
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Union

from ruleflow.configuration import LOG_FORMAT, LOG_LEVEL, PACKAGE_LOGGER_NAME


def get_logger(name: str) -> logging.Logger:
    """Return a logger living under the package namespace."""
    if name != PACKAGE_LOGGER_NAME and not name.startswith(PACKAGE_LOGGER_NAME + "."):
        name = f"{PACKAGE_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Attach a stdout handler to the package logger (only once) and set its level.

    Parameters
    ----------
    level : int | str | None
        Logging level. ``None`` uses ``RULEFLOW_LOG_LEVEL`` (default ``WARNING``).
        Use ``"DEBUG"`` to see every rule evaluation trace.
    """
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    if not any(getattr(h, "_ruleflow_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._ruleflow_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    logger.setLevel(level if level is not None else LOG_LEVEL)
    return logger
