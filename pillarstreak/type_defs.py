"""Type definitions for PillarStreak data structures.

Records travel between the caller and the engines as plain dicts (they are
persisted as JSON by the caller), so the shapes below are TypedDicts keyed by
the const.DATA_* values. They are STATIC ANALYSIS ONLY: the engines still
treat every incoming record as untrusted and check it at runtime.

IMPORTANT: This file must NOT import from engines or managers to avoid
circular dependencies. Only typing machinery lives here.
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

Pillar = str  # One of const.PILLARS
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"
ISODate = str  # ISO 8601 date string (no time) "2026-01-18"

# Per-pillar progress, nominally 0-100. Values outside that range are tolerated.
PillarStatsMap = Mapping[str, Any]

# Caller-owned, append-only list of history entries (may contain malformed items)
PillarHistory = Sequence[Any]

# Rotation strategy: (user_stats, history) -> pillar
StrategyFn = Callable[[PillarStatsMap | None, PillarHistory | None], Pillar]


# =============================================================================
# Core records
# =============================================================================


class PillarTarget(TypedDict):
    """Fixed daily goal for a pillar."""

    type: str  # meals | hours | minutes
    value: int | float
    unit: str


class DailyAssignmentData(TypedDict):
    """The single pillar assigned for a calendar day.

    Replaced (never mutated in place) on every rotation.
    """

    date: ISODatetime
    pillar: Pillar
    is_manually_set: bool
    target: PillarTarget
    progress: int | float
    completed: bool


class HistoryMetrics(TypedDict):
    """Progress snapshot stored with a history entry."""

    progress: int | float
    target: PillarTarget


class HistoryEntryData(TypedDict):
    """Immutable record of a past (or today's completed) day."""

    date: ISODatetime
    pillar: Pillar
    completed: bool
    metrics: HistoryMetrics


class StreakStateData(TypedDict):
    """Streak state owned by the caller.

    current_count is derived: it always equals
    StreakEngine.calculate_current_streak(pillar_history).
    """

    current_count: int
    last_completed_date: ISODatetime | None
    pillar_history: list[HistoryEntryData]
    longest_streak: int


# =============================================================================
# Transition results
# =============================================================================


class RotationResult(TypedDict):
    """Result of RotationEngine.rotate()."""

    assignment: DailyAssignmentData
    checkpoint: ISODate | None
    rotated: bool


class CompletionResult(TypedDict):
    """Result of StreakEngine.apply_completion()."""

    assignment: DailyAssignmentData | None
    streak: StreakStateData | None
    xp_awarded: int


# =============================================================================
# Reporting
# =============================================================================


class HistorySummary(TypedDict):
    """Aggregate view of a pillar history."""

    total_entries: int
    completed_entries: int
    completion_rate: int  # 0-100
    pillar_counts: dict[Pillar, int]


class CalendarDay(TypedDict):
    """One day cell of the history calendar."""

    date: ISODate
    is_today: bool
    entries: list[HistoryEntryData]
    all_completed: bool
    some_completed: bool


# =============================================================================
# Configuration
# =============================================================================


class PillarConfigData(TypedDict):
    """Validated engine configuration (see data_builders.CONFIG_SCHEMA)."""

    rotation_strategy: str
    timezone: str
    retention_days: int
    experience_per_completion: int
    at_risk_hours: int


class StorageData(TypedDict):
    """Snapshot written by PillarManager.to_storage()."""

    schema_version: int
    assignment: DailyAssignmentData | None
    streak: StreakStateData
    last_rotation_check: ISODate | None
    user_stats: dict[str, Any]
