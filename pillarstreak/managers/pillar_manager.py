"""Pillar Manager - Stateful controller for the daily pillar and its streak.

The engines are pure; this manager owns the state they operate on:
- The active DailyAssignment (or None before the first rotation)
- The StreakState (counter, last completion, pillar history, longest run)
- The RotationCheckpoint (ISO date of the last evaluated rotation trigger)
- The user's per-pillar stats used by the stats-based strategies

Calendar days are decided in the configured timezone, held per manager and
passed to every engine call; managers in different zones do not interact.

Every public operation runs under one lock, so the read-compute-write cycle of
a rotation or completion never interleaves with another. Events are emitted
after the lock is released; a listener may call back into the manager.

Events (see BaseManager.listen):
- SIGNAL_SUFFIX_PILLAR_ROTATED: a new assignment was produced
- SIGNAL_SUFFIX_PROGRESS_UPDATED: assignment progress changed
- SIGNAL_SUFFIX_PILLAR_COMPLETED: a completion was accepted
- SIGNAL_SUFFIX_EXPERIENCE_AWARDED: experience to credit to the user profile

Persistence is the caller's job: to_storage() returns a plain dict snapshot and
from_storage() rebuilds a manager from one, validating every record through
data_builders.
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
import random
import threading
from typing import TYPE_CHECKING, Any, cast
from zoneinfo import ZoneInfo

from .. import const, data_builders
from ..engines.completion_engine import CompletionEngine
from ..engines.history_engine import HistoryEngine
from ..engines.rotation_engine import RotationEngine
from ..engines.rotation_strategies import RotationStrategyRegistry
from ..engines.streak_engine import StreakEngine
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import datetime

    from ..type_defs import (
        CalendarDay,
        DailyAssignmentData,
        HistorySummary,
        PillarConfigData,
        RotationResult,
        StorageData,
        StreakStateData,
    )

# (suffix, payload) pairs collected under the lock, emitted after release
_PendingEvents = list[tuple[str, dict[str, Any]]]


class PillarManager(BaseManager):
    """Owns pillar state and routes every change through the engines.

    Example:
        manager = PillarManager({"rotation_strategy": "stats-based"})
        manager.set_user_stats({"nutrition": 80, "sleep": 30, "movement": 70})
        manager.check_rotation()           # assigns "sleep" on a new day
        manager.update_progress(8)
        manager.complete_pillar("sleep")   # True, emits 50 experience
    """

    def __init__(
        self,
        config: Mapping[str, Any] | None = None,
        *,
        instance_id: str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize manager with empty state.

        Args:
            config: Options validated by data_builders.CONFIG_SCHEMA
            instance_id: Event namespace for this manager
            rng: Random source for the weighted-random strategy

        Raises:
            EntityValidationError: if config is invalid
        """
        super().__init__(instance_id)
        self.config: PillarConfigData = data_builders.build_config(config)
        self._tz = ZoneInfo(self.config[const.CONF_TIMEZONE])

        self._registry = RotationStrategyRegistry(rng=rng)
        self._lock = threading.Lock()

        self._assignment: DailyAssignmentData | None = None
        self._streak: StreakStateData = data_builders.build_streak_state()
        self._last_rotation_check: str | None = None
        self._user_stats: dict[str, float] = {}

    # =========================================================================
    # STATE ACCESS
    # =========================================================================

    @property
    def timezone(self) -> ZoneInfo:
        """Timezone that decides this manager's calendar days."""
        return self._tz

    @property
    def assignment(self) -> DailyAssignmentData | None:
        """Copy of the active assignment."""
        return copy.deepcopy(self._assignment)

    @property
    def streak(self) -> StreakStateData:
        """Copy of the streak state."""
        return copy.deepcopy(self._streak)

    @property
    def last_rotation_check(self) -> str | None:
        """ISO date of the last evaluated rotation trigger."""
        return self._last_rotation_check

    @property
    def user_stats(self) -> dict[str, float]:
        """Copy of the per-pillar stats."""
        return dict(self._user_stats)

    def set_user_stats(self, stats: Any) -> None:
        """Replace the per-pillar stats (unknown keys dropped, values coerced)."""
        with self._lock:
            self._user_stats = data_builders.build_user_stats(stats)

    def _emit_all(self, events: _PendingEvents) -> None:
        for suffix, payload in events:
            self.emit(suffix, **payload)

    def _rotated_event(self, result: RotationResult) -> tuple[str, dict[str, Any]]:
        assignment = result[const.DATA_RESULT_ASSIGNMENT]
        return (
            const.SIGNAL_SUFFIX_PILLAR_ROTATED,
            {
                "pillar": assignment[const.DATA_ASSIGNMENT_PILLAR],
                "manual": assignment[const.DATA_ASSIGNMENT_IS_MANUALLY_SET],
                "date": assignment[const.DATA_ASSIGNMENT_DATE],
            },
        )

    # =========================================================================
    # ROTATION
    # =========================================================================

    def check_rotation(self, now: datetime | None = None) -> DailyAssignmentData:
        """Evaluate an automatic rotation trigger (mount, timer, background).

        Returns:
            The active assignment after the trigger.
        """
        return self._rotate(manual=False, selected_pillar=None, now=now)

    def select_pillar(
        self, pillar: Any, now: datetime | None = None
    ) -> DailyAssignmentData:
        """Manually choose today's pillar. Always replaces the assignment.

        An invalid pillar falls back to the configured strategy.
        """
        return self._rotate(manual=True, selected_pillar=pillar, now=now)

    def _rotate(
        self, manual: bool, selected_pillar: Any, now: datetime | None
    ) -> DailyAssignmentData:
        events: _PendingEvents = []
        with self._lock:
            result = RotationEngine.rotate(
                manual=manual,
                selected_pillar=selected_pillar,
                strategy_name=self.config[const.CONF_ROTATION_STRATEGY],
                user_stats=self._user_stats,
                history=self._streak[const.DATA_STREAK_PILLAR_HISTORY],
                current_assignment=self._assignment,
                checkpoint=self._last_rotation_check,
                now=now,
                registry=self._registry,
                tz=self._tz,
            )
            self._assignment = result[const.DATA_RESULT_ASSIGNMENT]
            self._last_rotation_check = result[const.DATA_RESULT_CHECKPOINT]
            if result[const.DATA_RESULT_ROTATED]:
                events.append(self._rotated_event(result))
            assignment = copy.deepcopy(self._assignment)

        self._emit_all(events)
        return cast("DailyAssignmentData", assignment)

    # =========================================================================
    # PROGRESS & COMPLETION
    # =========================================================================

    def update_progress(self, progress: Any) -> DailyAssignmentData | None:
        """Record progress toward today's target.

        Returns:
            The updated assignment, or None when nothing is assigned.
        """
        events: _PendingEvents = []
        with self._lock:
            if self._assignment is None:
                const.LOGGER.warning("Progress update ignored: no pillar assigned")
                return None
            self._assignment = CompletionEngine.update_progress(
                self._assignment, progress
            )
            assignment = copy.deepcopy(self._assignment)
            events.append(
                (
                    const.SIGNAL_SUFFIX_PROGRESS_UPDATED,
                    {
                        "pillar": assignment[const.DATA_ASSIGNMENT_PILLAR],
                        "progress": assignment[const.DATA_ASSIGNMENT_PROGRESS],
                        "target_met": CompletionEngine.is_target_met(assignment),
                    },
                )
            )

        self._emit_all(events)
        return assignment

    def complete_pillar(self, pillar: Any, now: datetime | None = None) -> bool:
        """Complete today's pillar.

        Accepted only when `pillar` matches the active assignment and the
        assignment is not completed yet.

        Returns:
            True if the completion was applied.
        """
        events: _PendingEvents = []
        with self._lock:
            if not CompletionEngine.validate_completion(pillar, self._assignment):
                const.LOGGER.info(
                    "Completion rejected for %r: does not match assigned pillar",
                    pillar,
                )
                return False

            assignment = cast("DailyAssignmentData", self._assignment)
            if assignment.get(const.DATA_ASSIGNMENT_COMPLETED):
                const.LOGGER.info("Pillar %s already completed today", pillar)
                return False

            result = StreakEngine.apply_completion(
                True,
                assignment,
                self._streak,
                now,
                self.config[const.CONF_EXPERIENCE_PER_COMPLETION],
                tz=self._tz,
            )
            self._assignment = result[const.DATA_RESULT_ASSIGNMENT]
            self._streak = result[const.DATA_RESULT_STREAK]
            xp_awarded = result[const.DATA_RESULT_XP_AWARDED]

            events.append(
                (
                    const.SIGNAL_SUFFIX_PILLAR_COMPLETED,
                    {
                        "pillar": pillar,
                        "current_count": self._streak[const.DATA_STREAK_CURRENT_COUNT],
                        "longest_streak": self._streak[const.DATA_STREAK_LONGEST],
                    },
                )
            )
            if xp_awarded > 0:
                events.append(
                    (
                        const.SIGNAL_SUFFIX_EXPERIENCE_AWARDED,
                        {"amount": xp_awarded, "source": "pillar_completion"},
                    )
                )

        self._emit_all(events)
        return True

    def record_missed_day(self, now: datetime | None = None) -> int:
        """Record that the assigned pillar was not completed.

        History is left untouched; the streak count is re-derived from it.

        Returns:
            The current streak count.
        """
        with self._lock:
            result = StreakEngine.apply_completion(
                False, self._assignment, self._streak, now, tz=self._tz
            )
            if self._assignment is not None:
                self._streak = result[const.DATA_RESULT_STREAK]
            return self._streak[const.DATA_STREAK_CURRENT_COUNT]

    # =========================================================================
    # QUERIES
    # =========================================================================

    def is_streak_active(self, now: datetime | None = None) -> bool:
        """Return True if the last completion was within the last 24 hours."""
        with self._lock:
            last_completed = self._streak[const.DATA_STREAK_LAST_COMPLETED_DATE]
        return StreakEngine.is_streak_active(last_completed, now, tz=self._tz)

    def is_streak_at_risk(self, now: datetime | None = None) -> bool:
        """Return True if today's pillar is still open close to midnight."""
        with self._lock:
            assignment = self._assignment
        return StreakEngine.is_streak_at_risk(
            assignment, now, self.config[const.CONF_AT_RISK_HOURS], tz=self._tz
        )

    def summary(self) -> HistorySummary:
        """Completion statistics over the stored history."""
        with self._lock:
            return HistoryEngine.summarize(
                self._streak[const.DATA_STREAK_PILLAR_HISTORY]
            )

    def calendar(
        self,
        days: int = const.DEFAULT_CALENDAR_DAYS,
        now: datetime | None = None,
    ) -> list[CalendarDay]:
        """Calendar cells for the last `days` days, oldest first."""
        with self._lock:
            return HistoryEngine.calendar_days(
                self._streak[const.DATA_STREAK_PILLAR_HISTORY], days, now, tz=self._tz
            )

    # =========================================================================
    # RETENTION
    # =========================================================================

    def prune_history(self, now: datetime | None = None) -> int:
        """Drop history entries older than the configured retention window.

        The window is widened to cover the current streak run, so pruning
        never changes current_count.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            history = self._streak[const.DATA_STREAK_PILLAR_HISTORY]
            current_count = self._streak[const.DATA_STREAK_CURRENT_COUNT]
            retention_days = max(
                self.config[const.CONF_RETENTION_DAYS], current_count + 1
            )
            kept = HistoryEngine.prune_history(
                history, retention_days, now, tz=self._tz
            )
            removed = len(history) - len(kept)
            if removed:
                new_streak = dict(self._streak)
                new_streak[const.DATA_STREAK_PILLAR_HISTORY] = kept
                new_streak[const.DATA_STREAK_CURRENT_COUNT] = (
                    StreakEngine.calculate_current_streak(kept, now, tz=self._tz)
                )
                self._streak = cast("StreakStateData", new_streak)
                const.LOGGER.info(
                    "Pruned %s pillar history entries (retention %s days)",
                    removed,
                    retention_days,
                )
            return removed

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def to_storage(self) -> StorageData:
        """Return a JSON-serializable snapshot of the manager state."""
        with self._lock:
            return cast(
                "StorageData",
                {
                    const.DATA_SCHEMA_VERSION: const.SCHEMA_VERSION,
                    const.DATA_ASSIGNMENT: copy.deepcopy(self._assignment),
                    const.DATA_STREAK: copy.deepcopy(self._streak),
                    const.DATA_LAST_ROTATION_CHECK: self._last_rotation_check,
                    const.DATA_USER_STATS: dict(self._user_stats),
                },
            )

    @classmethod
    def from_storage(
        cls,
        data: Any,
        config: Mapping[str, Any] | None = None,
        *,
        now: datetime | None = None,
        instance_id: str | None = None,
        rng: random.Random | None = None,
    ) -> PillarManager:
        """Rebuild a manager from a to_storage() snapshot.

        Malformed records are discarded with a warning instead of failing the
        load: an unusable assignment becomes None, an unusable streak record
        becomes an empty streak, and bad history entries are dropped.
        The streak counter is always re-derived from the loaded history.

        Raises:
            EntityValidationError: if config is invalid
        """
        manager = cls(config, instance_id=instance_id, rng=rng)
        if not data:
            return manager
        if not isinstance(data, Mapping):
            const.LOGGER.warning(
                "Ignoring stored state of unexpected type %s", type(data).__name__
            )
            return manager

        version = data.get(const.DATA_SCHEMA_VERSION, const.SCHEMA_VERSION)
        if version != const.SCHEMA_VERSION:
            const.LOGGER.warning(
                "Stored schema version %r differs from %s, loading best effort",
                version,
                const.SCHEMA_VERSION,
            )

        raw_assignment = data.get(const.DATA_ASSIGNMENT)
        if raw_assignment is not None:
            try:
                manager._assignment = data_builders.build_daily_assignment(
                    raw_assignment
                )
            except data_builders.EntityValidationError as err:
                const.LOGGER.warning("Discarding stored assignment: %s", err)

        try:
            manager._streak = data_builders.build_streak_state(
                data.get(const.DATA_STREAK), now, manager._tz
            )
        except data_builders.EntityValidationError as err:
            const.LOGGER.warning("Discarding stored streak state: %s", err)

        manager._last_rotation_check = data_builders.build_checkpoint(
            data.get(const.DATA_LAST_ROTATION_CHECK), manager._tz
        )
        manager._user_stats = data_builders.build_user_stats(
            data.get(const.DATA_USER_STATS)
        )

        const.LOGGER.debug(
            "Loaded pillar state: assignment=%s streak=%s history=%s",
            manager._assignment and manager._assignment[const.DATA_ASSIGNMENT_PILLAR],
            manager._streak[const.DATA_STREAK_CURRENT_COUNT],
            len(manager._streak[const.DATA_STREAK_PILLAR_HISTORY]),
        )
        return manager
