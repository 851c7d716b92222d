# File: utils/math_utils.py
"""Math and calculation utilities for PillarStreak.

Pure Python math functions shared by the engines.

Functions:
    - coerce_stat_value: Turn any user stat value into a finite float
    - clamp: Bound a value to a range
    - calculate_percentage: Progress percentage calculations
    - round_value: Consistent rounding to configured precision
"""

from __future__ import annotations

import logging
import math
from typing import Any

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

DATA_FLOAT_PRECISION = 2

# Stats beyond this magnitude (including +/-inf) are clamped to it
STAT_ABSOLUTE_LIMIT = 1_000_000.0


def round_value(value: float, precision: int = DATA_FLOAT_PRECISION) -> float:
    """Round a value to the configured precision.

    Examples:
        round_value(10.456) → 10.46
        round_value(10.0) → 10.0
    """
    return round(value, precision)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(150, 0, 100) → 100
        clamp(-10, 0, 100) → 0
    """
    return max(min_val, min(value, max_val))


def calculate_percentage(
    current: float,
    target: float,
    precision: int = DATA_FLOAT_PRECISION,
) -> float:
    """Calculate progress percentage, capped at 100.

    Returns:
        Percentage (0-100) with proper rounding, or 0.0 if target is 0

    Examples:
        calculate_percentage(1, 3) → 33.33
        calculate_percentage(10, 8) → 100.0
        calculate_percentage(5, 0) → 0.0
    """
    if target <= 0:
        return 0.0
    return round_value(clamp((current / target) * 100, 0.0, 100.0), precision)


def coerce_stat_value(value: Any, default: float = 0.0) -> float:
    """Normalize a per-pillar stat into a finite float.

    User stats come from an external profile provider and are only nominally
    in the 0-100 range. Out-of-range numbers are kept as-is; anything that
    cannot take part in arithmetic is replaced.

    - None, bool, non-numeric, NaN → default
    - +/-inf and huge magnitudes → clamped to +/-STAT_ABSOLUTE_LIMIT
    - numeric strings ("42") → parsed

    Examples:
        coerce_stat_value(42) → 42.0
        coerce_stat_value(-15) → -15.0
        coerce_stat_value(float("nan")) → 0.0
        coerce_stat_value(float("inf")) → 1000000.0
        coerce_stat_value("abc") → 0.0
    """
    if value is None or isinstance(value, bool):
        return default

    try:
        number = float(value)
    except (TypeError, ValueError):
        _LOGGER.warning("Ignoring non-numeric stat value: %r", value)
        return default

    if math.isnan(number):
        _LOGGER.warning("Ignoring NaN stat value")
        return default

    return clamp(number, -STAT_ABSOLUTE_LIMIT, STAT_ABSOLUTE_LIMIT)
