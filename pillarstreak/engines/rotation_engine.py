"""Rotation Engine - Daily pillar assignment state machine.

Decides whether a trigger produces a new DailyAssignment. Two triggers exist:

- MANUAL (user picked a pillar): always wins, on any day, over any previous
  assignment, manual or automatic.
- AUTOMATIC (mount, periodic timer, background tick): rotates at most once
  per local calendar day and never replaces a same-day manual choice.

The RotationCheckpoint (an ISO date string owned by the caller) is the
idempotency marker: it is advanced to today on every evaluated trigger, even
when no rotation happens, so repeated automatic calls short-circuit.

Transition rules, in priority order:
    1. manual                              → new manual assignment, checkpoint=today
    2. auto, checkpoint == today           → unchanged assignment and checkpoint
    3. auto, manual assignment dated today → unchanged assignment, checkpoint=today
    4. auto, assignment dated today        → unchanged assignment, checkpoint=today
    5. auto, otherwise                     → new automatic assignment, checkpoint=today

Rule 2 only applies while an assignment exists; with no assignment at all the
trigger falls through to rule 5 so the caller is never left without one.

ARCHITECTURE: Static methods over caller-supplied state. Any internal fault
yields a default automatic Nutrition assignment for today instead of raising.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, cast

from .. import const
from ..utils import dt_utils
from .completion_engine import CompletionEngine
from .rotation_strategies import DEFAULT_REGISTRY, RotationStrategyRegistry

if TYPE_CHECKING:
    from zoneinfo import ZoneInfo

    from ..type_defs import (
        DailyAssignmentData,
        PillarHistory,
        PillarStatsMap,
        PillarTarget,
        RotationResult,
    )


class RotationEngine:
    """Pure logic engine for daily pillar rotation.

    All methods are static - no instance state. The strategy registry is
    injected per call (defaults to the module registry).

    Example:
        result = RotationEngine.rotate(
            manual=False,
            strategy_name="stats-based",
            user_stats={"nutrition": 80, "sleep": 30, "movement": 70},
            history=streak["pillar_history"],
            current_assignment=assignment,
            checkpoint=last_rotation_check,
        )
        assignment = result["assignment"]
        last_rotation_check = result["checkpoint"]
    """

    # =========================================================================
    # ASSIGNMENT CONSTRUCTION
    # =========================================================================

    @staticmethod
    def get_target_for_pillar(pillar: str) -> PillarTarget:
        """Return a fresh copy of the fixed target for a pillar."""
        target = const.PILLAR_TARGETS.get(
            pillar, const.PILLAR_TARGETS[const.DEFAULT_PILLAR]
        )
        return cast("PillarTarget", dict(target))

    @classmethod
    def build_assignment(
        cls,
        pillar: str,
        manual: bool,
        now: datetime,
        tz: ZoneInfo | None = None,
    ) -> DailyAssignmentData:
        """Create a new, uncompleted assignment for the calendar day of `now`."""
        return cast(
            "DailyAssignmentData",
            {
                const.DATA_ASSIGNMENT_DATE: dt_utils.as_local(now, tz).isoformat(),
                const.DATA_ASSIGNMENT_PILLAR: pillar,
                const.DATA_ASSIGNMENT_IS_MANUALLY_SET: manual,
                const.DATA_ASSIGNMENT_TARGET: cls.get_target_for_pillar(pillar),
                const.DATA_ASSIGNMENT_PROGRESS: 0,
                const.DATA_ASSIGNMENT_COMPLETED: False,
            },
        )

    # =========================================================================
    # STRATEGY SELECTION
    # =========================================================================

    @staticmethod
    def select_pillar(
        strategy_name: Any,
        user_stats: PillarStatsMap | None,
        history: PillarHistory | None,
        registry: RotationStrategyRegistry | None = None,
    ) -> str:
        """Run the configured strategy and guarantee a valid pillar back."""
        strategy = (registry or DEFAULT_REGISTRY).get(strategy_name)
        pillar = strategy(user_stats, history)
        if not CompletionEngine.is_valid_pillar(pillar):
            const.LOGGER.warning(
                "Strategy %r returned invalid pillar %r, using %s",
                strategy_name,
                pillar,
                const.DEFAULT_PILLAR,
            )
            return const.DEFAULT_PILLAR
        return pillar

    # =========================================================================
    # DAY CHECKS
    # =========================================================================

    @staticmethod
    def is_checkpoint_today(
        checkpoint: Any, today: date, tz: ZoneInfo | None = None
    ) -> bool:
        """Return True if the rotation checkpoint already names today."""
        if not checkpoint:
            return False
        return dt_utils.dt_local_date(checkpoint, tz) == today

    @staticmethod
    def is_assignment_today(
        assignment: Any, today: date, tz: ZoneInfo | None = None
    ) -> bool:
        """Return True if the assignment was created for today."""
        if not isinstance(assignment, Mapping):
            return False
        assigned_on = dt_utils.dt_local_date(
            assignment.get(const.DATA_ASSIGNMENT_DATE), tz
        )
        return assigned_on == today

    # =========================================================================
    # ROTATION
    # =========================================================================

    @classmethod
    def rotate(
        cls,
        manual: bool = False,
        selected_pillar: Any = None,
        strategy_name: Any = const.DEFAULT_ROTATION_STRATEGY,
        user_stats: PillarStatsMap | None = None,
        history: PillarHistory | None = None,
        current_assignment: DailyAssignmentData | None = None,
        checkpoint: str | None = None,
        *,
        now: datetime | None = None,
        registry: RotationStrategyRegistry | None = None,
        tz: ZoneInfo | None = None,
    ) -> RotationResult:
        """Evaluate a manual or automatic rotation trigger.

        Args:
            manual: True for an explicit user selection
            selected_pillar: Pillar chosen by the user (manual only); an
                invalid value falls back to the strategy
            strategy_name: Registered strategy name for automatic selection
            user_stats: Per-pillar stats for stats-based/weighted strategies
            history: Pillar history (drives round-robin sequencing)
            current_assignment: The active assignment, or None
            checkpoint: Last rotation check date (ISO date), or None
            now: Reference instant. Defaults to the current time.
            registry: Strategy registry to resolve strategy_name against
            tz: Timezone that decides calendar days (default zone if None)

        Returns:
            RotationResult with the (possibly unchanged) assignment, the new
            checkpoint, and whether a new assignment was produced.
        """
        reference = now or dt_utils.dt_now_utc()
        today = cast("date", dt_utils.dt_local_date(reference, tz))
        today_iso = today.isoformat()

        try:
            # Rule 1: manual selection bypasses every other check
            if manual:
                if CompletionEngine.is_valid_pillar(selected_pillar):
                    pillar = selected_pillar
                else:
                    const.LOGGER.warning(
                        "Invalid manual pillar %r, falling back to strategy %r",
                        selected_pillar,
                        strategy_name,
                    )
                    pillar = cls.select_pillar(
                        strategy_name, user_stats, history, registry
                    )
                const.LOGGER.debug("Manual rotation to %s", pillar)
                return cls._result(
                    cls.build_assignment(pillar, True, reference, tz), today_iso, True
                )

            # Rule 2: already checked today
            if current_assignment is not None and cls.is_checkpoint_today(
                checkpoint, today, tz
            ):
                return cls._result(current_assignment, checkpoint, False)

            if cls.is_assignment_today(current_assignment, today, tz):
                current = cast("Mapping[str, Any]", current_assignment)
                if current.get(const.DATA_ASSIGNMENT_IS_MANUALLY_SET):
                    # Rule 3: protect today's manual choice
                    const.LOGGER.debug(
                        "Skipping automatic rotation: %s was set manually today",
                        current.get(const.DATA_ASSIGNMENT_PILLAR),
                    )
                # Rule 4: today's automatic assignment stays
                return cls._result(current_assignment, today_iso, False)

            # Rule 5: new day (or nothing assigned yet)
            pillar = cls.select_pillar(strategy_name, user_stats, history, registry)
            const.LOGGER.debug(
                "Automatic rotation to %s using %r", pillar, strategy_name
            )
            return cls._result(
                cls.build_assignment(pillar, False, reference, tz), today_iso, True
            )

        except Exception:
            const.LOGGER.exception(
                "Error rotating pillar, assigning default %s", const.DEFAULT_PILLAR
            )
            return cls._result(
                cls.build_assignment(const.DEFAULT_PILLAR, False, reference, tz),
                today_iso,
                True,
            )

    @staticmethod
    def _result(
        assignment: Any, checkpoint: str | None, rotated: bool
    ) -> RotationResult:
        return cast(
            "RotationResult",
            {
                const.DATA_RESULT_ASSIGNMENT: assignment,
                const.DATA_RESULT_CHECKPOINT: checkpoint,
                const.DATA_RESULT_ROTATED: rotated,
            },
        )
