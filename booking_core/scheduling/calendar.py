"""
Schedule Calendar

Resolves the effective working interval of a provider on a calendar date by
merging the weekly schedule with date-specific exceptions.
"""

from datetime import date, datetime
from typing import Optional

import structlog

from .base import DayOfWeek, Interval
from .interfaces import ProviderRepository

logger = structlog.get_logger(__name__)


class ScheduleCalendar:
    """
    Read-then-merge view over a provider's schedule.

    Nothing is cached: every call fetches the current weekly entry and
    exception, so edits are visible immediately.
    """

    def __init__(self, providers: ProviderRepository):
        self._providers = providers

    async def resolve_interval(
        self,
        provider_id: str,
        on_date: date,
    ) -> Optional[Interval]:
        """
        Get the open interval for a provider on a date.

        Returns:
            The [start, end) interval, or None if the provider does not work
            that day.
        """
        exception = await self._providers.get_exception(provider_id, on_date)

        if exception is not None:
            if exception.is_day_off:
                return None
            return self._to_interval(
                provider_id,
                on_date,
                exception.start_time,
                exception.end_time,
                source="exception",
            )

        entry = await self._providers.get_work_schedule(
            provider_id, DayOfWeek.from_date(on_date)
        )
        if entry is None or not entry.is_active:
            return None

        return self._to_interval(
            provider_id,
            on_date,
            entry.start_time,
            entry.end_time,
            source="weekly",
        )

    @staticmethod
    def _to_interval(provider_id, on_date, start, end, source: str) -> Optional[Interval]:
        # Stored data should already be valid; treat anything else as closed.
        if start is None or end is None or start >= end:
            logger.warning(
                "schedule_interval_malformed",
                provider_id=provider_id,
                date=on_date.isoformat(),
                source=source,
                start=start.isoformat() if start else None,
                end=end.isoformat() if end else None,
            )
            return None

        return Interval(
            start=datetime.combine(on_date, start),
            end=datetime.combine(on_date, end),
        )
