"""Record construction and validation at the persistence boundary.

This module is the SINGLE SOURCE OF TRUTH for:
- Schemas of the records that enter the engine from outside (persisted state,
  API responses, user profile stats, configuration)
- Field defaults for those records
- Building complete, normalized records from loosely-typed dicts

Engines stay tolerant of malformed input anyway; the point of validating here
is that bad records are dropped or rejected once, where external data comes
in, instead of deep inside a calculation.

### Build Functions
Each record type has a `build_<record>()` function that:
- Validates the input against its voluptuous schema
- Applies field defaults and normalizes timestamps to ISO strings
- Returns a complete record dict
- Raises EntityValidationError when the record cannot be built

Bulk loaders (`build_history`, `build_user_stats`) never raise: they drop what
they cannot use and log how much was dropped.

See Also:
- type_defs.py: TypedDict definitions for type safety
- managers/pillar_manager.py: to_storage()/from_storage() consumers
"""

from __future__ import annotations

from collections.abc import Mapping
import math
from typing import TYPE_CHECKING, Any, cast
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import voluptuous as vol

from . import const
from .engines.rotation_engine import RotationEngine
from .engines.streak_engine import StreakEngine
from .utils import dt_utils
from .utils.math_utils import coerce_stat_value

if TYPE_CHECKING:
    from datetime import datetime

    from .type_defs import (
        DailyAssignmentData,
        HistoryEntryData,
        PillarConfigData,
        StreakStateData,
    )

# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(Exception):
    """Validation error with field-specific information.

    Raised when a single record or the configuration cannot be built.

    Attributes:
        field: Data key (const.DATA_* / const.CONF_*) that failed, if known
        message: Human readable reason
    """

    def __init__(self, field: str | None, message: str) -> None:
        """Initialize EntityValidationError.

        Args:
            field: The data key that failed validation
            message: Human readable reason
        """
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}" if field else message)

    @classmethod
    def from_invalid(cls, err: vol.Invalid) -> EntityValidationError:
        """Wrap a voluptuous error, keeping the first failing path element."""
        field = str(err.path[0]) if err.path else None
        return cls(field, err.msg)


# ==============================================================================
# FIELD VALIDATORS
# ==============================================================================


def _timestamp(value: Any) -> str:
    """Accept any parseable timestamp and normalize it to an ISO string."""
    parsed = dt_utils.dt_parse(value)
    if parsed is None:
        raise vol.Invalid(f"invalid timestamp: {value!r}")
    return parsed.isoformat()


def _number(value: Any) -> float | int:
    """Accept finite ints/floats only (bools rejected)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise vol.Invalid(f"expected a number, got {value!r}")
    if not math.isfinite(value):
        raise vol.Invalid(f"expected a finite number, got {value!r}")
    return value


def _non_negative_number(value: Any) -> float | int:
    number = _number(value)
    if number < 0:
        raise vol.Invalid(f"expected a non-negative number, got {value!r}")
    return number


def _timezone(value: Any) -> str:
    """Accept an IANA timezone name."""
    if not isinstance(value, str) or not value:
        raise vol.Invalid("timezone must be a non-empty string")
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as err:
        raise vol.Invalid(f"unknown timezone: {value}") from err
    return value


PILLAR_VALIDATOR = vol.All(str, vol.In(const.PILLARS))

# ==============================================================================
# SCHEMAS
# ==============================================================================

TARGET_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_TARGET_TYPE): str,
        vol.Required(const.DATA_TARGET_VALUE): _non_negative_number,
        vol.Required(const.DATA_TARGET_UNIT): str,
    },
    extra=vol.REMOVE_EXTRA,
)

METRICS_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_METRICS_PROGRESS, default=0): _non_negative_number,
        vol.Optional(const.DATA_METRICS_TARGET, default=dict): dict,
    },
    extra=vol.REMOVE_EXTRA,
)

HISTORY_ENTRY_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_HISTORY_DATE): _timestamp,
        vol.Required(const.DATA_HISTORY_PILLAR): PILLAR_VALIDATOR,
        vol.Required(const.DATA_HISTORY_COMPLETED): bool,
        vol.Optional(const.DATA_HISTORY_METRICS, default=dict): METRICS_SCHEMA,
    },
    extra=vol.REMOVE_EXTRA,
)

ASSIGNMENT_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_ASSIGNMENT_DATE): _timestamp,
        vol.Required(const.DATA_ASSIGNMENT_PILLAR): PILLAR_VALIDATOR,
        vol.Optional(const.DATA_ASSIGNMENT_IS_MANUALLY_SET, default=False): bool,
        vol.Optional(const.DATA_ASSIGNMENT_TARGET): TARGET_SCHEMA,
        vol.Optional(const.DATA_ASSIGNMENT_PROGRESS, default=0): _non_negative_number,
        vol.Optional(const.DATA_ASSIGNMENT_COMPLETED, default=False): bool,
    },
    extra=vol.REMOVE_EXTRA,
)

STREAK_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_STREAK_LAST_COMPLETED_DATE, default=None): vol.Any(
            None, _timestamp
        ),
        vol.Optional(const.DATA_STREAK_PILLAR_HISTORY, default=list): list,
        vol.Optional(const.DATA_STREAK_LONGEST, default=0): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
    },
    # current_count is derived and recomputed, never trusted
    extra=vol.REMOVE_EXTRA,
)

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(
            const.CONF_ROTATION_STRATEGY, default=const.DEFAULT_ROTATION_STRATEGY
        ): vol.In(const.ROTATION_STRATEGIES),
        vol.Optional(const.CONF_TIMEZONE, default=const.DEFAULT_TIMEZONE): _timezone,
        vol.Optional(
            const.CONF_RETENTION_DAYS, default=const.DEFAULT_RETENTION_DAYS
        ): vol.All(vol.Coerce(int), vol.Range(min=const.MIN_RETENTION_DAYS)),
        vol.Optional(
            const.CONF_EXPERIENCE_PER_COMPLETION,
            default=const.DEFAULT_EXPERIENCE_PER_COMPLETION,
        ): vol.All(vol.Coerce(int), vol.Range(min=0)),
        vol.Optional(
            const.CONF_AT_RISK_HOURS, default=const.DEFAULT_AT_RISK_HOURS
        ): vol.All(vol.Coerce(int), vol.Range(min=1, max=24)),
    }
)


# ==============================================================================
# BUILD FUNCTIONS
# ==============================================================================


def build_history_entry(data: Any) -> HistoryEntryData:
    """Validate and normalize one history entry.

    Raises:
        EntityValidationError: if the entry is not a usable history record
    """
    if not isinstance(data, Mapping):
        raise EntityValidationError(None, "history entry must be a mapping")
    try:
        return cast("HistoryEntryData", HISTORY_ENTRY_SCHEMA(dict(data)))
    except vol.Invalid as err:
        raise EntityValidationError.from_invalid(err) from err


def build_history(entries: Any) -> list[HistoryEntryData]:
    """Validate a whole history, dropping entries that fail validation.

    Order is preserved. Never raises.
    """
    if not entries:
        return []
    if not isinstance(entries, (list, tuple)):
        const.LOGGER.warning(
            "Ignoring pillar history of unexpected type %s", type(entries).__name__
        )
        return []

    history: list[HistoryEntryData] = []
    dropped = 0
    for entry in entries:
        try:
            history.append(build_history_entry(entry))
        except EntityValidationError as err:
            dropped += 1
            const.LOGGER.debug("Dropping history entry %r: %s", entry, err)

    if dropped:
        const.LOGGER.warning(
            "Dropped %s malformed pillar history entries (kept %s)",
            dropped,
            len(history),
        )
    return history


def build_daily_assignment(data: Any) -> DailyAssignmentData:
    """Validate and normalize a daily assignment.

    A missing target is filled in with the fixed target of the pillar.

    Raises:
        EntityValidationError: if the assignment is not usable
    """
    if not isinstance(data, Mapping):
        raise EntityValidationError(None, "assignment must be a mapping")
    try:
        validated = ASSIGNMENT_SCHEMA(dict(data))
    except vol.Invalid as err:
        raise EntityValidationError.from_invalid(err) from err

    if const.DATA_ASSIGNMENT_TARGET not in validated:
        validated[const.DATA_ASSIGNMENT_TARGET] = RotationEngine.get_target_for_pillar(
            validated[const.DATA_ASSIGNMENT_PILLAR]
        )
    return cast("DailyAssignmentData", validated)


def build_streak_state(
    data: Any = None,
    now: datetime | None = None,
    tz: ZoneInfo | None = None,
) -> StreakStateData:
    """Build a complete streak state from persisted data.

    - Malformed history entries are dropped
    - current_count is recomputed from the history (stored value ignored)
    - longest_streak is raised to current_count if it was lower

    Raises:
        EntityValidationError: if the top-level streak record is malformed
    """
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise EntityValidationError(None, "streak state must be a mapping")
    try:
        validated = STREAK_SCHEMA(dict(data))
    except vol.Invalid as err:
        raise EntityValidationError.from_invalid(err) from err

    history = build_history(validated[const.DATA_STREAK_PILLAR_HISTORY])
    current_count = StreakEngine.calculate_current_streak(history, now, tz=tz)

    return cast(
        "StreakStateData",
        {
            const.DATA_STREAK_CURRENT_COUNT: current_count,
            const.DATA_STREAK_LAST_COMPLETED_DATE: validated[
                const.DATA_STREAK_LAST_COMPLETED_DATE
            ],
            const.DATA_STREAK_PILLAR_HISTORY: history,
            const.DATA_STREAK_LONGEST: max(
                validated[const.DATA_STREAK_LONGEST], current_count
            ),
        },
    )


def build_checkpoint(value: Any, tz: ZoneInfo | None = None) -> str | None:
    """Normalize a rotation checkpoint to a local ISO date, or None if unusable."""
    if not value:
        return None
    day = dt_utils.dt_local_date(value, tz)
    if day is None:
        const.LOGGER.warning("Discarding invalid rotation checkpoint: %r", value)
        return None
    return day.isoformat()


def build_user_stats(data: Any) -> dict[str, float]:
    """Keep only per-pillar stats, coerced to finite floats.

    Out-of-range values (negative, above 100) are tolerated as-is.
    Never raises.
    """
    if not data:
        return {}
    if not isinstance(data, Mapping):
        const.LOGGER.warning(
            "Ignoring user stats of unexpected type %s", type(data).__name__
        )
        return {}
    return {
        pillar: coerce_stat_value(data[pillar])
        for pillar in const.PILLARS
        if pillar in data
    }


def build_config(options: Mapping[str, Any] | None = None) -> PillarConfigData:
    """Validate options and fill in defaults.

    Raises:
        EntityValidationError: if any option is invalid
    """
    try:
        return cast("PillarConfigData", CONFIG_SCHEMA(dict(options or {})))
    except vol.Invalid as err:
        raise EntityValidationError.from_invalid(err) from err
