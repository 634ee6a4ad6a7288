"""
Slot Generator

Turns a resolved working interval into fixed-grid candidate windows.
"""

from datetime import datetime, timedelta
from typing import Iterator, Optional

from .base import Interval, TimeSlot, TimeSlotConfig, ValidationError


class SlotGenerator:
    """Generates candidate time slots on the configured grid."""

    def generate(
        self,
        interval: Interval,
        config: TimeSlotConfig,
        requested_duration_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Iterator[TimeSlot]:
        """
        Generate candidate slots for an interval.

        The grid step is always ``config.slot_duration_minutes``; each
        candidate spans ``requested_duration_minutes`` (defaulting to the
        grid step). Candidates starting before ``now + booking_lead_days``
        are dropped. Every call returns a fresh iterator.

        Raises:
            ValidationError: if the grid step or requested duration is not
                positive.
        """
        if config.slot_duration_minutes <= 0:
            raise ValidationError(
                "Slot duration must be a positive number of minutes",
                field="slot_duration_minutes",
            )

        duration = requested_duration_minutes
        if duration is None:
            duration = config.slot_duration_minutes
        if duration <= 0:
            raise ValidationError(
                "Requested duration must be a positive number of minutes",
                field="requested_duration_minutes",
            )

        now = now or datetime.utcnow()
        earliest_start = now + timedelta(days=config.booking_lead_days)

        return self._iter_slots(
            interval,
            timedelta(minutes=config.slot_duration_minutes),
            duration,
            earliest_start,
        )

    @staticmethod
    def _iter_slots(
        interval: Interval,
        step: timedelta,
        duration_minutes: int,
        earliest_start: datetime,
    ) -> Iterator[TimeSlot]:
        length = timedelta(minutes=duration_minutes)
        current = interval.start

        while current + length <= interval.end:
            if current >= earliest_start:
                yield TimeSlot(
                    start_time=current,
                    end_time=current + length,
                    duration_minutes=duration_minutes,
                    available=True,
                )
            current += step
