"""Record builders for PillarStreak tests.

    from tests.helpers import NOW, make_assignment, make_entry, make_streak

All builders produce plain dicts shaped like the persisted records, dated
relative to NOW (2026-01-18 12:00 UTC) unless a reference is given.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from pillarstreak import const

NOW = datetime(2026, 1, 18, 12, 0, 0, tzinfo=UTC)


def iso_days_ago(days_ago: int, *, hour: int = 12, reference: datetime = NOW) -> str:
    """ISO timestamp `days_ago` days before reference, at `hour`."""
    moment = (reference - timedelta(days=days_ago)).replace(hour=hour, minute=0)
    return moment.isoformat()


def make_entry(
    days_ago: int = 0,
    pillar: str = const.PILLAR_NUTRITION,
    completed: bool = True,
    *,
    hour: int = 12,
    reference: datetime = NOW,
) -> dict[str, Any]:
    """History entry dated `days_ago` days before reference."""
    return {
        const.DATA_HISTORY_DATE: iso_days_ago(days_ago, hour=hour, reference=reference),
        const.DATA_HISTORY_PILLAR: pillar,
        const.DATA_HISTORY_COMPLETED: completed,
        const.DATA_HISTORY_METRICS: {
            const.DATA_METRICS_PROGRESS: 0,
            const.DATA_METRICS_TARGET: dict(const.PILLAR_TARGETS[pillar]),
        },
    }


def make_history(*days_ago: int, completed: bool = True) -> list[dict[str, Any]]:
    """Completed entries for each offset, oldest first, cycling the pillars."""
    offsets = sorted(days_ago, reverse=True)
    return [
        make_entry(offset, const.PILLARS[index % len(const.PILLARS)], completed)
        for index, offset in enumerate(offsets)
    ]


def make_assignment(
    pillar: str = const.PILLAR_NUTRITION,
    *,
    days_ago: int = 0,
    manual: bool = False,
    progress: float = 0,
    completed: bool = False,
    hour: int = 8,
    reference: datetime = NOW,
) -> dict[str, Any]:
    """Daily assignment dated `days_ago` days before reference."""
    return {
        const.DATA_ASSIGNMENT_DATE: iso_days_ago(
            days_ago, hour=hour, reference=reference
        ),
        const.DATA_ASSIGNMENT_PILLAR: pillar,
        const.DATA_ASSIGNMENT_IS_MANUALLY_SET: manual,
        const.DATA_ASSIGNMENT_TARGET: dict(const.PILLAR_TARGETS[pillar]),
        const.DATA_ASSIGNMENT_PROGRESS: progress,
        const.DATA_ASSIGNMENT_COMPLETED: completed,
    }


def make_streak(
    history: list[Any] | None = None,
    *,
    current_count: int = 0,
    last_completed_date: str | None = None,
    longest: int = 0,
) -> dict[str, Any]:
    """Streak state around a history (current_count taken as given)."""
    return {
        const.DATA_STREAK_CURRENT_COUNT: current_count,
        const.DATA_STREAK_LAST_COMPLETED_DATE: last_completed_date,
        const.DATA_STREAK_PILLAR_HISTORY: list(history or []),
        const.DATA_STREAK_LONGEST: longest,
    }


__all__ = [
    "NOW",
    "iso_days_ago",
    "make_assignment",
    "make_entry",
    "make_history",
    "make_streak",
]
