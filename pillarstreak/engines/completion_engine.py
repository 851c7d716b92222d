"""Completion Engine - Pure logic for pillar identity and progress checks.

This engine provides stateless functions for:
- Pillar identifier validation (exact, case-sensitive match)
- Structural checks for history entries and daily assignments
- Completion validation (attempted pillar vs. active assignment)
- Assignment progress updates and target evaluation

Validation here is about pillar IDENTITY only. Whether an already-completed
assignment may be completed again is a caller policy (PillarManager refuses
it); validate_completion never looks at the completed flag.

ARCHITECTURE: All functions are static methods that operate on passed-in data.
Records are never mutated; update_progress returns a new assignment dict.
"""

from __future__ import annotations

from collections.abc import Mapping
import math
from typing import TYPE_CHECKING, Any, cast

from .. import const
from ..utils.math_utils import calculate_percentage

if TYPE_CHECKING:
    from ..type_defs import DailyAssignmentData


class CompletionEngine:
    """Pure logic engine for completion validation.

    All methods are static - no instance state.
    """

    # =========================================================================
    # STRUCTURAL CHECKS
    # =========================================================================

    @staticmethod
    def is_valid_pillar(pillar: Any) -> bool:
        """Return True only for one of the three pillar identifiers.

        No case folding and no whitespace trimming: "Sleep" and " sleep" are
        both invalid.
        """
        return isinstance(pillar, str) and pillar in const.PILLARS

    @classmethod
    def is_valid_history_entry(cls, entry: Any) -> bool:
        """Check the minimal structure the streak calculator relies on.

        An entry needs a truthy date, a valid pillar and a boolean completed
        flag. Whether the date actually parses is decided later by callers.
        """
        return (
            isinstance(entry, Mapping)
            and bool(entry.get(const.DATA_HISTORY_DATE))
            and cls.is_valid_pillar(entry.get(const.DATA_HISTORY_PILLAR))
            and isinstance(entry.get(const.DATA_HISTORY_COMPLETED), bool)
        )

    @classmethod
    def is_valid_assignment(cls, assignment: Any) -> bool:
        """Check that a daily assignment has every field the engines read."""
        if not isinstance(assignment, Mapping):
            return False
        progress = assignment.get(const.DATA_ASSIGNMENT_PROGRESS)
        return (
            bool(assignment.get(const.DATA_ASSIGNMENT_DATE))
            and cls.is_valid_pillar(assignment.get(const.DATA_ASSIGNMENT_PILLAR))
            and isinstance(assignment.get(const.DATA_ASSIGNMENT_TARGET), Mapping)
            and isinstance(progress, (int, float))
            and not isinstance(progress, bool)
            and isinstance(assignment.get(const.DATA_ASSIGNMENT_COMPLETED), bool)
        )

    # =========================================================================
    # COMPLETION VALIDATION
    # =========================================================================

    @classmethod
    def validate_completion(cls, pillar: Any, assignment: Any) -> bool:
        """Return True iff `pillar` is valid and matches the active assignment.

        Args:
            pillar: Pillar the user is trying to complete
            assignment: Active DailyAssignmentData, or None

        Returns:
            False when there is no assignment, the assignment has no pillar,
            or `pillar` is not an exact pillar identifier. Otherwise whether
            it equals the assigned pillar.
        """
        if not isinstance(assignment, Mapping):
            return False
        if const.DATA_ASSIGNMENT_PILLAR not in assignment:
            return False
        if not cls.is_valid_pillar(pillar):
            const.LOGGER.warning("Rejected completion for invalid pillar: %r", pillar)
            return False
        return bool(pillar == assignment[const.DATA_ASSIGNMENT_PILLAR])

    # =========================================================================
    # PROGRESS
    # =========================================================================

    @staticmethod
    def _target_value(assignment: Mapping[str, Any]) -> float:
        target = assignment.get(const.DATA_ASSIGNMENT_TARGET)
        if not isinstance(target, Mapping):
            return 0.0
        value = target.get(const.DATA_TARGET_VALUE)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0.0
        return float(value)

    @classmethod
    def is_target_met(cls, assignment: Any) -> bool:
        """Return True when progress has reached the assignment's target value."""
        if not cls.is_valid_assignment(assignment):
            return False
        target_value = cls._target_value(assignment)
        if target_value <= 0:
            return False
        return bool(assignment[const.DATA_ASSIGNMENT_PROGRESS] >= target_value)

    @classmethod
    def progress_percentage(cls, assignment: Any) -> float:
        """Return progress toward the target as 0-100 (2 decimal places)."""
        if not cls.is_valid_assignment(assignment):
            return 0.0
        return calculate_percentage(
            float(assignment[const.DATA_ASSIGNMENT_PROGRESS]),
            cls._target_value(assignment),
        )

    @staticmethod
    def update_progress(
        assignment: DailyAssignmentData, progress: Any
    ) -> DailyAssignmentData:
        """Return a copy of `assignment` with its progress replaced.

        Negative, NaN, infinite or non-numeric progress is stored as 0.
        """
        if (
            isinstance(progress, bool)
            or not isinstance(progress, (int, float))
            or not math.isfinite(progress)
            or progress < 0
        ):
            const.LOGGER.warning("Invalid progress value %r, storing 0", progress)
            progress = 0
        updated = dict(assignment)
        updated[const.DATA_ASSIGNMENT_PROGRESS] = progress
        return cast("DailyAssignmentData", updated)
