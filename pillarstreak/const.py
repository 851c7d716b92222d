# File: const.py
"""Constants for the PillarStreak engine.

This file centralizes pillar identifiers, data keys, rotation strategy names,
configuration keys, defaults, and event signal suffixes so every engine and
manager agrees on the same vocabulary.
"""

import logging
from typing import Final

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
DOMAIN = "pillarstreak"

# Logger
LOGGER = logging.getLogger(__package__)

# Storage schema version written by PillarManager.to_storage()
SCHEMA_VERSION: Final = 1

# ------------------------------------------------------------------------------------------------
# Pillars
# ------------------------------------------------------------------------------------------------
PILLAR_NUTRITION: Final = "nutrition"
PILLAR_SLEEP: Final = "sleep"
PILLAR_MOVEMENT: Final = "movement"

# Fixed enumeration order. Used for round-robin sequencing and tie-breaking.
PILLARS: Final[tuple[str, ...]] = (PILLAR_NUTRITION, PILLAR_SLEEP, PILLAR_MOVEMENT)

DEFAULT_PILLAR: Final = PILLAR_NUTRITION

# ------------------------------------------------------------------------------------------------
# Targets (per-pillar daily goal)
# ------------------------------------------------------------------------------------------------
TARGET_TYPE_MEALS: Final = "meals"
TARGET_TYPE_HOURS: Final = "hours"
TARGET_TYPE_MINUTES: Final = "minutes"

PILLAR_TARGETS: Final[dict[str, dict[str, str | int]]] = {
    PILLAR_NUTRITION: {
        "type": TARGET_TYPE_MEALS,
        "value": 3,
        "unit": "comidas saludables",
    },
    PILLAR_SLEEP: {
        "type": TARGET_TYPE_HOURS,
        "value": 8,
        "unit": "horas",
    },
    PILLAR_MOVEMENT: {
        "type": TARGET_TYPE_MINUTES,
        "value": 30,
        "unit": "minutos",
    },
}

# ------------------------------------------------------------------------------------------------
# Data keys
# ------------------------------------------------------------------------------------------------

# Target
DATA_TARGET_TYPE = "type"
DATA_TARGET_VALUE = "value"
DATA_TARGET_UNIT = "unit"

# Daily assignment
DATA_ASSIGNMENT_DATE = "date"
DATA_ASSIGNMENT_PILLAR = "pillar"
DATA_ASSIGNMENT_IS_MANUALLY_SET = "is_manually_set"
DATA_ASSIGNMENT_TARGET = "target"
DATA_ASSIGNMENT_PROGRESS = "progress"
DATA_ASSIGNMENT_COMPLETED = "completed"

# History entry
DATA_HISTORY_DATE = "date"
DATA_HISTORY_PILLAR = "pillar"
DATA_HISTORY_COMPLETED = "completed"
DATA_HISTORY_METRICS = "metrics"
DATA_METRICS_PROGRESS = "progress"
DATA_METRICS_TARGET = "target"

# Streak state
DATA_STREAK_CURRENT_COUNT = "current_count"
DATA_STREAK_LAST_COMPLETED_DATE = "last_completed_date"
DATA_STREAK_PILLAR_HISTORY = "pillar_history"
DATA_STREAK_LONGEST = "longest_streak"

# Transition results
DATA_RESULT_ASSIGNMENT = "assignment"
DATA_RESULT_CHECKPOINT = "checkpoint"
DATA_RESULT_ROTATED = "rotated"
DATA_RESULT_STREAK = "streak"
DATA_RESULT_XP_AWARDED = "xp_awarded"

# Manager storage snapshot
DATA_SCHEMA_VERSION = "schema_version"
DATA_ASSIGNMENT = "assignment"
DATA_STREAK = "streak"
DATA_LAST_ROTATION_CHECK = "last_rotation_check"
DATA_USER_STATS = "user_stats"

# History summary / calendar
DATA_SUMMARY_TOTAL_ENTRIES = "total_entries"
DATA_SUMMARY_COMPLETED_ENTRIES = "completed_entries"
DATA_SUMMARY_COMPLETION_RATE = "completion_rate"
DATA_SUMMARY_PILLAR_COUNTS = "pillar_counts"
DATA_CALENDAR_DATE = "date"
DATA_CALENDAR_IS_TODAY = "is_today"
DATA_CALENDAR_ENTRIES = "entries"
DATA_CALENDAR_ALL_COMPLETED = "all_completed"
DATA_CALENDAR_SOME_COMPLETED = "some_completed"

# ------------------------------------------------------------------------------------------------
# Rotation strategies
# ------------------------------------------------------------------------------------------------
STRATEGY_ROUND_ROBIN: Final = "round-robin"
STRATEGY_STATS_BASED: Final = "stats-based"
STRATEGY_WEIGHTED_RANDOM: Final = "weighted-random"

ROTATION_STRATEGIES: Final[tuple[str, ...]] = (
    STRATEGY_ROUND_ROBIN,
    STRATEGY_STATS_BASED,
    STRATEGY_WEIGHTED_RANDOM,
)

# Weighted-random: weight = max(WEIGHT_MIN, STAT_MAX - stat + 1)
STAT_MAX: Final = 100
WEIGHT_MIN: Final = 1


# ------------------------------------------------------------------------------------------------
# Rewards
# ------------------------------------------------------------------------------------------------
EXPERIENCE_PILLAR_COMPLETED: Final = 50

# ------------------------------------------------------------------------------------------------
# Time
# ------------------------------------------------------------------------------------------------
STREAK_ACTIVE_WINDOW_HOURS: Final = 24
MAX_STREAK_GAP_DAYS: Final = 1

# ------------------------------------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------------------------------------
CONF_ROTATION_STRATEGY = "rotation_strategy"
CONF_TIMEZONE = "timezone"
CONF_RETENTION_DAYS = "retention_days"
CONF_EXPERIENCE_PER_COMPLETION = "experience_per_completion"
CONF_AT_RISK_HOURS = "at_risk_hours"

DEFAULT_ROTATION_STRATEGY: Final = STRATEGY_ROUND_ROBIN
DEFAULT_TIMEZONE: Final = "UTC"
DEFAULT_RETENTION_DAYS: Final = 90
MIN_RETENTION_DAYS: Final = 90
DEFAULT_EXPERIENCE_PER_COMPLETION: Final = EXPERIENCE_PILLAR_COMPLETED
DEFAULT_AT_RISK_HOURS: Final = 6
DEFAULT_CALENDAR_DAYS: Final = 30

# Float precision for percentage rounding
DATA_FLOAT_PRECISION = 2

# ------------------------------------------------------------------------------------------------
# Event signals (PillarManager.emit / listen)
# ------------------------------------------------------------------------------------------------
SIGNAL_SUFFIX_PILLAR_ROTATED = "pillar_rotated"
SIGNAL_SUFFIX_PILLAR_COMPLETED = "pillar_completed"
SIGNAL_SUFFIX_EXPERIENCE_AWARDED = "experience_awarded"
SIGNAL_SUFFIX_PROGRESS_UPDATED = "progress_updated"
