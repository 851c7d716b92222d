"""Tests for CompletionEngine - pure logic, no fixtures needed."""

from __future__ import annotations

import pytest

from pillarstreak import const
from pillarstreak.engines.completion_engine import CompletionEngine
from tests.helpers import make_assignment, make_entry

# =============================================================================
# TEST: PILLAR IDENTIFIERS
# =============================================================================


class TestIsValidPillar:
    """Test exact pillar identifier matching."""

    @pytest.mark.parametrize("pillar", const.PILLARS)
    def test_known_pillars(self, pillar: str) -> None:
        """The three identifiers are valid."""
        assert CompletionEngine.is_valid_pillar(pillar)

    @pytest.mark.parametrize(
        "pillar", ["NUTRITION", "Sleep", " movement", "movement ", "", None, 1]
    )
    def test_no_case_folding_or_trimming(self, pillar: object) -> None:
        """Anything that is not an exact identifier is invalid."""
        assert not CompletionEngine.is_valid_pillar(pillar)


# =============================================================================
# TEST: COMPLETION VALIDATION
# =============================================================================


class TestValidateCompletion:
    """Test completion validation against the active assignment."""

    def test_matching_pillar(self) -> None:
        """Completing the assigned pillar is accepted."""
        assignment = make_assignment(const.PILLAR_NUTRITION)
        assert CompletionEngine.validate_completion("nutrition", assignment)

    def test_other_pillar_rejected(self) -> None:
        """Completing a different pillar is rejected."""
        assignment = make_assignment(const.PILLAR_NUTRITION)
        assert not CompletionEngine.validate_completion("sleep", assignment)

    def test_wrong_case_rejected(self) -> None:
        """'NUTRITION' is not 'nutrition'."""
        assignment = make_assignment(const.PILLAR_NUTRITION)
        assert not CompletionEngine.validate_completion("NUTRITION", assignment)

    def test_invalid_pillar_logs_warning(self, pillar_caplog) -> None:
        """An unknown identifier is logged."""
        assignment = make_assignment(const.PILLAR_NUTRITION)
        CompletionEngine.validate_completion("yoga", assignment)
        assert "invalid pillar" in pillar_caplog.text

    def test_no_assignment(self) -> None:
        """Without an assignment nothing can be completed."""
        assert not CompletionEngine.validate_completion("nutrition", None)

    def test_assignment_without_pillar(self) -> None:
        """An assignment missing its pillar field is rejected."""
        assignment = make_assignment()
        del assignment[const.DATA_ASSIGNMENT_PILLAR]
        assert not CompletionEngine.validate_completion("nutrition", assignment)

    def test_completed_flag_is_not_checked(self) -> None:
        """Identity only: an already-completed assignment still validates."""
        assignment = make_assignment(const.PILLAR_SLEEP, completed=True)
        assert CompletionEngine.validate_completion("sleep", assignment)


# =============================================================================
# TEST: STRUCTURAL CHECKS
# =============================================================================


class TestStructuralChecks:
    """Test history entry and assignment shape checks."""

    def test_valid_history_entry(self) -> None:
        """A builder-made entry is valid."""
        assert CompletionEngine.is_valid_history_entry(make_entry())

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            (const.DATA_HISTORY_DATE, ""),
            (const.DATA_HISTORY_PILLAR, "yoga"),
            (const.DATA_HISTORY_COMPLETED, "yes"),
        ],
    )
    def test_invalid_history_entry(self, key: str, value: object) -> None:
        """Empty date, unknown pillar, or non-bool flag make an entry invalid."""
        entry = make_entry()
        entry[key] = value
        assert not CompletionEngine.is_valid_history_entry(entry)

    def test_non_mapping_entry(self) -> None:
        """Strings and None are not entries."""
        assert not CompletionEngine.is_valid_history_entry("nutrition")
        assert not CompletionEngine.is_valid_history_entry(None)

    def test_valid_assignment(self) -> None:
        """A builder-made assignment is valid."""
        assert CompletionEngine.is_valid_assignment(make_assignment())

    def test_assignment_with_bool_progress(self) -> None:
        """A bool is not a progress value."""
        assert not CompletionEngine.is_valid_assignment(make_assignment(progress=True))


# =============================================================================
# TEST: PROGRESS
# =============================================================================


class TestProgress:
    """Test progress updates and target evaluation."""

    def test_update_progress_returns_copy(self) -> None:
        """The input assignment is left untouched."""
        assignment = make_assignment(const.PILLAR_SLEEP)
        updated = CompletionEngine.update_progress(assignment, 6)

        assert updated[const.DATA_ASSIGNMENT_PROGRESS] == 6
        assert assignment[const.DATA_ASSIGNMENT_PROGRESS] == 0

    @pytest.mark.parametrize("bad", [-1, float("nan"), float("inf"), "7", True])
    def test_invalid_progress_stored_as_zero(self, bad: object) -> None:
        """Negative, non-finite, or non-numeric progress becomes 0."""
        updated = CompletionEngine.update_progress(make_assignment(progress=2), bad)
        assert updated[const.DATA_ASSIGNMENT_PROGRESS] == 0

    def test_target_met(self) -> None:
        """Eight hours of sleep meets the sleep target."""
        assert CompletionEngine.is_target_met(
            make_assignment(const.PILLAR_SLEEP, progress=8)
        )
        assert not CompletionEngine.is_target_met(
            make_assignment(const.PILLAR_SLEEP, progress=7.5)
        )

    def test_progress_percentage(self) -> None:
        """One of three meals is 33.33%, more than the target caps at 100."""
        assert CompletionEngine.progress_percentage(
            make_assignment(const.PILLAR_NUTRITION, progress=1)
        ) == pytest.approx(33.33)
        assert CompletionEngine.progress_percentage(
            make_assignment(const.PILLAR_MOVEMENT, progress=45)
        ) == pytest.approx(100.0)

    def test_percentage_of_invalid_assignment(self) -> None:
        """No assignment means no progress."""
        assert CompletionEngine.progress_percentage(None) == 0.0
