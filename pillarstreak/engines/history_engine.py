"""History Engine - Read-side views and retention for pillar history.

This engine centralizes everything that looks at a pillar history as a whole:
- Summary statistics (completion rate, completions per pillar)
- A day-by-day calendar window for display
- Retention pruning

Design Principles:
    - Stateless: operates on the history list passed in
    - Non-destructive: prune_history() returns a NEW list and is only run when
      a caller asks for it; nothing here trims history implicitly
    - Tolerant: malformed entries are skipped by the views, and entries whose
      date cannot be read are never pruned
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, cast

from .. import const
from ..utils import dt_utils
from .completion_engine import CompletionEngine

if TYPE_CHECKING:
    from zoneinfo import ZoneInfo

    from ..type_defs import CalendarDay, HistoryEntryData, HistorySummary, PillarHistory


class HistoryEngine:
    """Stateless views over a pillar history.

    Example:
        summary = HistoryEngine.summarize(history)
        # {"total_entries": 10, "completed_entries": 8, "completion_rate": 80,
        #  "pillar_counts": {"nutrition": 3, "sleep": 3, "movement": 2}}

        days = HistoryEngine.calendar_days(history, days_to_show=7)

        kept = HistoryEngine.prune_history(history, retention_days=90)
    """

    @staticmethod
    def valid_entries(history: PillarHistory | None) -> list[HistoryEntryData]:
        """Return only structurally valid entries, preserving order."""
        if not history:
            return []
        return [
            cast("HistoryEntryData", entry)
            for entry in history
            if CompletionEngine.is_valid_history_entry(entry)
        ]

    # ────────────────────────────────────────────────────────────────
    # Summary
    # ────────────────────────────────────────────────────────────────

    @classmethod
    def summarize(cls, history: PillarHistory | None) -> HistorySummary:
        """Aggregate completion statistics for a history.

        completion_rate is completed / total entries as a rounded 0-100 int.
        pillar_counts always contains all three pillars.
        """
        entries = cls.valid_entries(history)
        pillar_counts = dict.fromkeys(const.PILLARS, 0)
        completed = 0
        for entry in entries:
            if entry[const.DATA_HISTORY_COMPLETED]:
                completed += 1
                pillar_counts[entry[const.DATA_HISTORY_PILLAR]] += 1

        total = len(entries)
        rate = round(completed / total * 100) if total else 0

        return cast(
            "HistorySummary",
            {
                const.DATA_SUMMARY_TOTAL_ENTRIES: total,
                const.DATA_SUMMARY_COMPLETED_ENTRIES: completed,
                const.DATA_SUMMARY_COMPLETION_RATE: rate,
                const.DATA_SUMMARY_PILLAR_COUNTS: pillar_counts,
            },
        )

    # ────────────────────────────────────────────────────────────────
    # Calendar
    # ────────────────────────────────────────────────────────────────

    @classmethod
    def entries_by_day(
        cls, history: PillarHistory | None, tz: ZoneInfo | None = None
    ) -> dict[date, list[HistoryEntryData]]:
        """Group valid entries by local calendar day."""
        grouped: dict[date, list[HistoryEntryData]] = defaultdict(list)
        for entry in cls.valid_entries(history):
            day = dt_utils.dt_local_date(entry[const.DATA_HISTORY_DATE], tz)
            if day is not None:
                grouped[day].append(entry)
        return grouped

    @classmethod
    def calendar_days(
        cls,
        history: PillarHistory | None,
        days_to_show: int = const.DEFAULT_CALENDAR_DAYS,
        now: datetime | None = None,
        *,
        tz: ZoneInfo | None = None,
    ) -> list[CalendarDay]:
        """Build `days_to_show` calendar cells ending today, oldest first.

        Every entry of a day is listed, not just the first one.
        """
        today = cast(
            "date", dt_utils.dt_local_date(now or dt_utils.dt_now_utc(), tz)
        )
        grouped = cls.entries_by_day(history, tz)

        result: list[CalendarDay] = []
        for offset in range(max(days_to_show, 0) - 1, -1, -1):
            day = cast("date", dt_utils.dt_add_days(today, -offset))
            entries = grouped.get(day, [])
            result.append(
                cast(
                    "CalendarDay",
                    {
                        const.DATA_CALENDAR_DATE: day.isoformat(),
                        const.DATA_CALENDAR_IS_TODAY: day == today,
                        const.DATA_CALENDAR_ENTRIES: list(entries),
                        const.DATA_CALENDAR_ALL_COMPLETED: bool(entries)
                        and all(e[const.DATA_HISTORY_COMPLETED] for e in entries),
                        const.DATA_CALENDAR_SOME_COMPLETED: any(
                            e[const.DATA_HISTORY_COMPLETED] for e in entries
                        ),
                    },
                )
            )
        return result

    # ────────────────────────────────────────────────────────────────
    # Retention
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def prune_history(
        history: PillarHistory | None,
        retention_days: int = const.DEFAULT_RETENTION_DAYS,
        now: datetime | None = None,
        *,
        tz: ZoneInfo | None = None,
    ) -> list[Any]:
        """Return a new history without entries older than the retention window.

        An entry is kept when its local calendar day is on or after
        today - retention_days. Entries without a readable date are kept.

        Args:
            history: Pillar history
            retention_days: Days of history to keep (never below 90)
            now: Reference instant. Defaults to the current time.
            tz: Timezone that decides calendar days (default zone if None)

        Returns:
            New list; the input is not modified.
        """
        if not history:
            return []

        days = max(int(retention_days), const.MIN_RETENTION_DAYS)
        today = cast(
            "date", dt_utils.dt_local_date(now or dt_utils.dt_now_utc(), tz)
        )
        cutoff = cast("date", dt_utils.dt_add_days(today, -days))

        kept: list[Any] = []
        for entry in history:
            raw_date = None
            if isinstance(entry, Mapping):
                raw_date = entry.get(const.DATA_HISTORY_DATE)
            day = dt_utils.dt_local_date(raw_date, tz)
            if day is not None and day < cutoff:
                continue
            kept.append(entry)

        pruned = len(history) - len(kept)
        if pruned:
            const.LOGGER.debug(
                "Pruned %s history entries older than %s", pruned, cutoff.isoformat()
            )
        return kept
