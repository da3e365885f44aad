"""
Float helpers for indicator values.

Prices and indicator outputs are plain ``float``.  ``NaN`` (or ``None``) is the
"undefined" sentinel: arithmetic on it propagates NaN and every comparison
against it is ``False``, so rules that read an undefined value simply report
"not satisfied".
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np

NaN = float("nan")


def is_nan(value: Any) -> bool:
    """``True`` for ``None``, float NaN and numpy NaN scalars."""
    if value is None:
        return True
    try:
        return bool(np.isnan(value))
    except TypeError:
        return False


def any_nan(*values: Any) -> bool:
    return any(is_nan(v) for v in values)


def to_num(value: Any) -> float:
    """Coerce a numeric argument (int, Decimal, numpy scalar, ...) to ``float``."""
    if value is None:
        return NaN
    return float(value)


def is_positive(value: Any) -> bool:
    """``True`` when *value* is a finite number strictly greater than zero."""
    if is_nan(value):
        return False
    number = float(value)
    return math.isfinite(number) and number > 0
