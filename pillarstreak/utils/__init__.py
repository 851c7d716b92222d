"""Pure Python utilities for PillarStreak.

Submodules:
    - dt_utils: Calendar-day comparison, day differences, parsing, "now"
    - math_utils: Stat coercion, clamping, percentage calculations

Usage:
    from . import dt_utils
    from .math_utils import coerce_stat_value
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
