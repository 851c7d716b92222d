"""Streak Engine - Pure logic for calendar-day streaks.

This engine provides stateless functions for:
- Deriving the current consecutive-day streak from a pillar history
- Activity freshness (was the last completion within 24 hours)
- Applying a completion to the streak state (history append + recompute)
- The end-of-day "streak at risk" warning

Streak rules:
- Only completed, structurally valid entries count
- Several completions on the same local calendar day count once
- Walking back from today, a calendar gap of more than one day ends the run,
  so a run ending yesterday is still alive until today is over
- Completions dated after today are ignored (clock skew, bad imports)

The streak counter is DERIVED: StreakStateData.current_count must always be
what calculate_current_streak() returns for its pillar_history. Nothing in
this module sets it any other way.

ARCHITECTURE: All functions are static methods that operate on passed-in data.
They never mutate their inputs and never raise for malformed data; faults are
logged and the safe default (0 / False) is returned.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, timedelta
import math
from typing import TYPE_CHECKING, Any, cast

from .. import const
from ..utils import dt_utils
from .completion_engine import CompletionEngine

if TYPE_CHECKING:
    from zoneinfo import ZoneInfo

    from ..type_defs import (
        CompletionResult,
        DailyAssignmentData,
        HistoryEntryData,
        PillarHistory,
        StreakStateData,
    )


class StreakEngine:
    """Pure logic engine for streak calculation and updates.

    All methods are static - no instance state. Every method that depends on
    the clock accepts an explicit `now` so callers can pin time.

    Example:
        count = StreakEngine.calculate_current_streak(streak["pillar_history"])

        result = StreakEngine.apply_completion(True, assignment, streak)
        # result["streak"]["current_count"] == count + 1 (first completion today)
        # result["xp_awarded"] == 50
    """

    # ────────────────────────────────────────────────────────────────
    # Streak Calculation
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def completed_days(
        history: PillarHistory | None, tz: ZoneInfo | None = None
    ) -> set[date]:
        """Return the distinct local calendar days with a completed entry.

        Invalid entries and entries whose date does not parse are skipped.
        """
        days: set[date] = set()
        if not history:
            return days

        for entry in history:
            if not CompletionEngine.is_valid_history_entry(entry):
                continue
            if not entry[const.DATA_HISTORY_COMPLETED]:
                continue
            day = dt_utils.dt_local_date(entry[const.DATA_HISTORY_DATE], tz)
            if day is None:
                const.LOGGER.warning(
                    "Skipping history entry with invalid date: %r",
                    entry[const.DATA_HISTORY_DATE],
                )
                continue
            days.add(day)
        return days

    @classmethod
    def calculate_current_streak(
        cls,
        history: PillarHistory | None,
        now: datetime | None = None,
        *,
        tz: ZoneInfo | None = None,
    ) -> int:
        """Derive the current consecutive-day streak from a pillar history.

        Args:
            history: Pillar history (may be None or contain malformed items)
            now: Reference instant. Defaults to the current time.
            tz: Timezone that decides calendar days (default zone if None)

        Returns:
            Streak length in days, 0 on empty input or any internal fault.

        Example:
            completions today, yesterday, and the day before → 3
            completions today and four days ago → 1
            completions yesterday only → 1
        """
        try:
            if not history:
                return 0

            today = dt_utils.dt_local_date(now or dt_utils.dt_now_utc(), tz)
            if today is None:
                return 0

            days = sorted(
                (day for day in cls.completed_days(history, tz) if day <= today),
                reverse=True,
            )

            streak = 0
            anchor = today
            for day in days:
                if (anchor - day).days > const.MAX_STREAK_GAP_DAYS:
                    break
                streak += 1
                anchor = day

            return streak

        except Exception:
            const.LOGGER.exception("Error calculating streak, falling back to 0")
            return 0

    @staticmethod
    def is_streak_active(
        last_completed_date: Any,
        now: datetime | None = None,
        *,
        tz: ZoneInfo | None = None,
    ) -> bool:
        """Return True if the last completion happened at most 24 hours ago.

        The comparison is instant based (not calendar based) and inclusive at
        exactly 24 hours. A completion date in the future counts as active.

        Args:
            last_completed_date: ISO string or datetime of the last completion
            now: Reference instant. Defaults to the current time.
        """
        try:
            if not last_completed_date:
                return False

            last_completed = dt_utils.dt_to_utc(last_completed_date, tz)
            if last_completed is None:
                const.LOGGER.warning(
                    "Invalid last_completed_date: %r", last_completed_date
                )
                return False

            reference = dt_utils.as_utc(now or dt_utils.dt_now_utc(), tz)
            window = timedelta(hours=const.STREAK_ACTIVE_WINDOW_HOURS)
            return reference - last_completed <= window

        except Exception:
            const.LOGGER.exception("Error checking streak activity")
            return False

    # ────────────────────────────────────────────────────────────────
    # Streak Update
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def _previous_longest(streak: Mapping[str, Any]) -> int:
        value = streak.get(const.DATA_STREAK_LONGEST, 0)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0
        if not math.isfinite(value) or value < 0:
            return 0
        return int(value)

    @staticmethod
    def build_history_entry(assignment: DailyAssignmentData) -> HistoryEntryData:
        """Snapshot an assignment into a completed history entry."""
        target = assignment.get(const.DATA_ASSIGNMENT_TARGET) or {}
        return cast(
            "HistoryEntryData",
            {
                const.DATA_HISTORY_DATE: assignment[const.DATA_ASSIGNMENT_DATE],
                const.DATA_HISTORY_PILLAR: assignment[const.DATA_ASSIGNMENT_PILLAR],
                const.DATA_HISTORY_COMPLETED: True,
                const.DATA_HISTORY_METRICS: {
                    const.DATA_METRICS_PROGRESS: assignment.get(
                        const.DATA_ASSIGNMENT_PROGRESS, 0
                    ),
                    const.DATA_METRICS_TARGET: dict(target),
                },
            },
        )

    @staticmethod
    def _unchanged(assignment: Any, streak: Any) -> CompletionResult:
        return cast(
            "CompletionResult",
            {
                const.DATA_RESULT_ASSIGNMENT: assignment,
                const.DATA_RESULT_STREAK: streak,
                const.DATA_RESULT_XP_AWARDED: 0,
            },
        )

    @staticmethod
    def _history_list(streak: Mapping[str, Any]) -> list[Any]:
        raw = streak.get(const.DATA_STREAK_PILLAR_HISTORY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            const.LOGGER.warning(
                "Pillar history is %s, not a list; treating it as empty",
                type(raw).__name__,
            )
            return []
        return list(raw)

    @classmethod
    def apply_completion(
        cls,
        completed: bool,
        assignment: DailyAssignmentData | None,
        streak: StreakStateData | None,
        now: datetime | None = None,
        experience: int = const.EXPERIENCE_PILLAR_COMPLETED,
        *,
        tz: ZoneInfo | None = None,
    ) -> CompletionResult:
        """Apply a completion (or non-completion) to the streak state.

        completed=True:
        - Appends one history entry built from the assignment
        - Returns a NEW assignment with completed=True
        - Recomputes current_count from the new history
        - Sets last_completed_date to now and raises longest_streak if needed
        - Awards `experience`

        completed=False:
        - History is left untouched and current_count is recomputed from it
          (the streak is never forcibly reset)
        - No experience is awarded

        A missing or malformed assignment, a missing streak state, or any
        internal fault is a no-op: the inputs come back unchanged with no
        experience. A pillar_history that is not a list is read as empty.

        Args:
            completed: Whether the assigned pillar was completed
            assignment: Active daily assignment
            streak: Current streak state
            now: Reference instant. Defaults to the current time.
            experience: Reward for a completion
            tz: Timezone that decides calendar days (default zone if None)

        Returns:
            CompletionResult with the new assignment, new streak state, and
            xp_awarded.
        """
        if not isinstance(streak, Mapping) or not (
            CompletionEngine.is_valid_assignment(assignment)
        ):
            const.LOGGER.warning(
                "apply_completion skipped: assignment or streak state missing "
                "or malformed"
            )
            return cls._unchanged(assignment, streak)

        try:
            reference = now or dt_utils.dt_now_utc()
            history = cls._history_list(streak)
            previous_longest = cls._previous_longest(streak)
            current = cast("DailyAssignmentData", assignment)

            new_assignment: dict[str, Any] = dict(current)
            last_completed = streak.get(const.DATA_STREAK_LAST_COMPLETED_DATE)
            if completed:
                history.append(cls.build_history_entry(current))
                new_assignment[const.DATA_ASSIGNMENT_COMPLETED] = True
                last_completed = dt_utils.as_local(reference, tz).isoformat()

            current_count = cls.calculate_current_streak(history, reference, tz=tz)

            new_streak = dict(streak)
            new_streak[const.DATA_STREAK_PILLAR_HISTORY] = history
            new_streak[const.DATA_STREAK_CURRENT_COUNT] = current_count
            new_streak[const.DATA_STREAK_LAST_COMPLETED_DATE] = last_completed
            new_streak[const.DATA_STREAK_LONGEST] = max(previous_longest, current_count)

        except Exception:
            const.LOGGER.exception("Error applying completion, state left unchanged")
            return cls._unchanged(assignment, streak)

        if not completed:
            const.LOGGER.debug(
                "Non-completion recorded, streak stays at %s", current_count
            )
            return cast(
                "CompletionResult",
                {
                    const.DATA_RESULT_ASSIGNMENT: assignment,
                    const.DATA_RESULT_STREAK: cast("StreakStateData", new_streak),
                    const.DATA_RESULT_XP_AWARDED: 0,
                },
            )

        const.LOGGER.debug(
            "Pillar %s completed: streak=%s longest=%s",
            current[const.DATA_ASSIGNMENT_PILLAR],
            current_count,
            new_streak[const.DATA_STREAK_LONGEST],
        )
        return cast(
            "CompletionResult",
            {
                const.DATA_RESULT_ASSIGNMENT: cast(
                    "DailyAssignmentData", new_assignment
                ),
                const.DATA_RESULT_STREAK: cast("StreakStateData", new_streak),
                const.DATA_RESULT_XP_AWARDED: experience,
            },
        )

    # ────────────────────────────────────────────────────────────────
    # At-Risk Warning
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def hours_until_midnight(
        now: datetime | None = None, *, tz: ZoneInfo | None = None
    ) -> int:
        """Return the whole hours left before local midnight (floored)."""
        return math.floor(dt_utils.hours_until_local_midnight(now, tz))

    @classmethod
    def is_streak_at_risk(
        cls,
        assignment: Any,
        now: datetime | None = None,
        threshold_hours: int = const.DEFAULT_AT_RISK_HOURS,
        *,
        tz: ZoneInfo | None = None,
    ) -> bool:
        """Return True when today's pillar is still open close to midnight.

        A streak is at risk when there is an assignment that is not completed
        and fewer than `threshold_hours` remain in the local day.
        """
        if not isinstance(assignment, Mapping):
            return False
        if assignment.get(const.DATA_ASSIGNMENT_COMPLETED):
            return False
        return dt_utils.hours_until_local_midnight(now, tz) < threshold_hours
