"""PillarStreak - daily habit pillar rotation and streak tracking.

One of three wellness pillars (nutrition, sleep, movement) is assigned per
local calendar day. Completing it extends a consecutive-day streak and awards
experience.

Pure logic lives in `engines`, state and events in `managers.PillarManager`,
and boundary validation in `data_builders`.
"""

from .data_builders import EntityValidationError, build_config
from .engines import (
    CompletionEngine,
    HistoryEngine,
    RotationEngine,
    RotationStrategyRegistry,
    StreakEngine,
)
from .managers import PillarManager

__all__ = [
    "CompletionEngine",
    "EntityValidationError",
    "HistoryEngine",
    "PillarManager",
    "RotationEngine",
    "RotationStrategyRegistry",
    "StreakEngine",
    "build_config",
]
