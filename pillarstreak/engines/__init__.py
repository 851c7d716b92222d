"""Engine modules for PillarStreak.

Contains the pure computation engines:
- completion_engine: Pillar validation, completion validation, progress
- streak_engine: Streak calculation, activity freshness, completion updates
- rotation_strategies: Interchangeable pillar selection strategies + registry
- rotation_engine: Daily rotation state machine (manual vs automatic)
- history_engine: History summary, calendar window, retention pruning
"""

from .completion_engine import CompletionEngine
from .history_engine import HistoryEngine
from .rotation_engine import RotationEngine
from .rotation_strategies import (
    DEFAULT_REGISTRY,
    RotationStrategyRegistry,
    get_rotation_strategy,
    round_robin_strategy,
    stats_based_strategy,
    weighted_random_strategy,
)
from .streak_engine import StreakEngine

__all__ = [
    "DEFAULT_REGISTRY",
    "CompletionEngine",
    "HistoryEngine",
    "RotationEngine",
    "RotationStrategyRegistry",
    "StreakEngine",
    "get_rotation_strategy",
    "round_robin_strategy",
    "stats_based_strategy",
    "weighted_random_strategy",
]
