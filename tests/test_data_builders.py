"""Tests for data_builders - boundary validation and record construction."""

from __future__ import annotations

import pytest

from pillarstreak import const, data_builders
from pillarstreak.data_builders import EntityValidationError
from tests.helpers import NOW, make_assignment, make_entry, make_history

# =============================================================================
# TEST: HISTORY
# =============================================================================


class TestBuildHistory:
    """Tests for build_history_entry / build_history."""

    def test_valid_entry_normalized(self) -> None:
        """A naive timestamp gains the local offset; metrics default in."""
        entry = data_builders.build_history_entry(
            {"date": "2026-01-18T09:00:00", "pillar": "sleep", "completed": True}
        )

        assert entry[const.DATA_HISTORY_DATE] == "2026-01-18T09:00:00+00:00"
        assert entry[const.DATA_HISTORY_METRICS] == {
            const.DATA_METRICS_PROGRESS: 0,
            const.DATA_METRICS_TARGET: {},
        }

    def test_extra_keys_removed(self) -> None:
        """Unknown keys are not carried into the record."""
        raw = {**make_entry(0), "legacy_field": 1}
        assert "legacy_field" not in data_builders.build_history_entry(raw)

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            (const.DATA_HISTORY_PILLAR, "NUTRITION"),
            (const.DATA_HISTORY_DATE, "not a date"),
            (const.DATA_HISTORY_COMPLETED, "true"),
        ],
    )
    def test_invalid_entry_names_field(self, field: str, value: object) -> None:
        """The error carries the failing field."""
        raw = make_entry(0)
        raw[field] = value
        with pytest.raises(EntityValidationError) as err:
            data_builders.build_history_entry(raw)
        assert err.value.field == field

    def test_bulk_drops_invalid(self, pillar_caplog) -> None:
        """Invalid entries are dropped in bulk, order of the rest preserved."""
        good = make_history(0, 1, 2)
        raw = [good[0], None, {"pillar": "yoga"}, good[1], good[2]]
        history = data_builders.build_history(raw)

        assert [e[const.DATA_HISTORY_DATE] for e in history] == [
            e[const.DATA_HISTORY_DATE] for e in good
        ]
        assert "Dropped 2 malformed" in pillar_caplog.text

    def test_bulk_non_list(self) -> None:
        """A non-list history loads as empty."""
        assert data_builders.build_history({"date": "2026-01-18"}) == []
        assert data_builders.build_history(None) == []


# =============================================================================
# TEST: ASSIGNMENT
# =============================================================================


class TestBuildDailyAssignment:
    """Tests for build_daily_assignment."""

    def test_round_trip(self) -> None:
        """A complete assignment comes back unchanged."""
        raw = make_assignment(const.PILLAR_SLEEP, progress=4)
        assert data_builders.build_daily_assignment(raw) == raw

    def test_defaults_and_target_filled(self) -> None:
        """Only date and pillar are required."""
        assignment = data_builders.build_daily_assignment(
            {"date": NOW.isoformat(), "pillar": "movement"}
        )

        assert assignment[const.DATA_ASSIGNMENT_IS_MANUALLY_SET] is False
        assert assignment[const.DATA_ASSIGNMENT_PROGRESS] == 0
        assert assignment[const.DATA_ASSIGNMENT_COMPLETED] is False
        assert assignment[const.DATA_ASSIGNMENT_TARGET] == const.PILLAR_TARGETS[
            const.PILLAR_MOVEMENT
        ]

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            (const.DATA_ASSIGNMENT_PILLAR, "yoga"),
            (const.DATA_ASSIGNMENT_PROGRESS, -3),
            (const.DATA_ASSIGNMENT_PROGRESS, float("nan")),
            (const.DATA_ASSIGNMENT_COMPLETED, 1),
        ],
    )
    def test_invalid_fields(self, field: str, value: object) -> None:
        """Bad field values raise with the field name."""
        raw = make_assignment()
        raw[field] = value
        with pytest.raises(EntityValidationError) as err:
            data_builders.build_daily_assignment(raw)
        assert err.value.field == field

    def test_not_a_mapping(self) -> None:
        """Non-mappings are rejected without a field."""
        with pytest.raises(EntityValidationError) as err:
            data_builders.build_daily_assignment("nutrition")
        assert err.value.field is None


# =============================================================================
# TEST: STREAK STATE
# =============================================================================


class TestBuildStreakState:
    """Tests for build_streak_state."""

    def test_empty(self) -> None:
        """No data builds the initial streak state."""
        streak = data_builders.build_streak_state(None, NOW)
        assert streak == {
            const.DATA_STREAK_CURRENT_COUNT: 0,
            const.DATA_STREAK_LAST_COMPLETED_DATE: None,
            const.DATA_STREAK_PILLAR_HISTORY: [],
            const.DATA_STREAK_LONGEST: 0,
        }

    def test_counter_recomputed(self) -> None:
        """A stored counter that disagrees with history is replaced."""
        streak = data_builders.build_streak_state(
            {
                const.DATA_STREAK_CURRENT_COUNT: 99,
                const.DATA_STREAK_PILLAR_HISTORY: make_history(0, 1),
                const.DATA_STREAK_LONGEST: 1,
            },
            NOW,
        )

        assert streak[const.DATA_STREAK_CURRENT_COUNT] == 2
        assert streak[const.DATA_STREAK_LONGEST] == 2

    def test_longest_kept_when_higher(self) -> None:
        """A stored longest streak above the current one is kept."""
        streak = data_builders.build_streak_state(
            {const.DATA_STREAK_LONGEST: 12}, NOW
        )
        assert streak[const.DATA_STREAK_LONGEST] == 12

    def test_invalid_last_completed(self) -> None:
        """An unparseable last completion date is a field error."""
        with pytest.raises(EntityValidationError) as err:
            data_builders.build_streak_state(
                {const.DATA_STREAK_LAST_COMPLETED_DATE: "soon"}, NOW
            )
        assert err.value.field == const.DATA_STREAK_LAST_COMPLETED_DATE


# =============================================================================
# TEST: STATS / CHECKPOINT
# =============================================================================


class TestBuildUserStatsAndCheckpoint:
    """Tests for build_user_stats / build_checkpoint."""

    def test_stats_filtered_and_coerced(self) -> None:
        """Unknown keys dropped, values coerced to finite floats."""
        stats = data_builders.build_user_stats(
            {
                "nutrition": 80,
                "sleep": float("nan"),
                "movement": float("inf"),
                "mood": 10,
            }
        )
        assert stats == {"nutrition": 80.0, "sleep": 0.0, "movement": 1_000_000.0}

    def test_stats_non_mapping(self) -> None:
        """Anything but a mapping loads as no stats."""
        assert data_builders.build_user_stats([1, 2, 3]) == {}

    def test_checkpoint_normalized_to_date(self) -> None:
        """A full timestamp is reduced to its local date."""
        assert (
            data_builders.build_checkpoint("2026-01-18T21:00:00+00:00") == "2026-01-18"
        )

    def test_checkpoint_invalid(self) -> None:
        """Unreadable checkpoints are discarded."""
        assert data_builders.build_checkpoint("tomorrow") is None
        assert data_builders.build_checkpoint(None) is None


# =============================================================================
# TEST: CONFIG
# =============================================================================


class TestBuildConfig:
    """Tests for build_config / CONFIG_SCHEMA."""

    def test_defaults(self) -> None:
        """Empty options get every default."""
        assert data_builders.build_config() == {
            const.CONF_ROTATION_STRATEGY: "round-robin",
            const.CONF_TIMEZONE: "UTC",
            const.CONF_RETENTION_DAYS: 90,
            const.CONF_EXPERIENCE_PER_COMPLETION: 50,
            const.CONF_AT_RISK_HOURS: 6,
        }

    def test_custom_values(self) -> None:
        """Valid options are kept."""
        config = data_builders.build_config(
            {
                const.CONF_ROTATION_STRATEGY: "weighted-random",
                const.CONF_TIMEZONE: "America/Mexico_City",
                const.CONF_RETENTION_DAYS: 365,
            }
        )
        assert config[const.CONF_ROTATION_STRATEGY] == "weighted-random"
        assert config[const.CONF_TIMEZONE] == "America/Mexico_City"
        assert config[const.CONF_RETENTION_DAYS] == 365

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            (const.CONF_ROTATION_STRATEGY, "Round-Robin"),
            (const.CONF_TIMEZONE, "Mars/Olympus_Mons"),
            (const.CONF_RETENTION_DAYS, 30),
            (const.CONF_EXPERIENCE_PER_COMPLETION, -1),
            (const.CONF_AT_RISK_HOURS, 25),
        ],
    )
    def test_invalid_options(self, field: str, value: object) -> None:
        """Out-of-range or unknown options raise with the option name."""
        with pytest.raises(EntityValidationError) as err:
            data_builders.build_config({field: value})
        assert err.value.field == field
