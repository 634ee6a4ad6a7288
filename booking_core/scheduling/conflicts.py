"""
Conflict Resolver

Marks candidate slots unavailable when they collide with existing
appointments padded by the provider's buffer time.
"""

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from .base import Appointment, TimeSlot


class ConflictResolver:
    """Detects overlaps between candidate windows and booked appointments."""

    def filter(
        self,
        candidates: Iterable[TimeSlot],
        existing: Iterable[Appointment],
        buffer_minutes: int,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[TimeSlot]:
        """
        Flag each candidate's availability.

        Returns one slot per candidate, in input order. Input slots are left
        untouched; flagged slots are copies with ``available=False``.
        """
        blocks = self._blocking_ranges(existing, buffer_minutes, exclude_appointment_id)

        result = []
        for slot in candidates:
            if slot.available and self._overlaps_any(slot.start_time, slot.end_time, blocks):
                slot = replace(slot, available=False)
            result.append(slot)
        return result

    def find_conflicts(
        self,
        start: datetime,
        end: datetime,
        existing: Iterable[Appointment],
        buffer_minutes: int,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[Appointment]:
        """Get the appointments that block the window [start, end)."""
        buffer = timedelta(minutes=buffer_minutes)
        return [
            appt
            for appt in self._active(existing, exclude_appointment_id)
            if start < appt.end_time + buffer and appt.start_time < end + buffer
        ]

    @staticmethod
    def _active(
        existing: Iterable[Appointment],
        exclude_appointment_id: Optional[str],
    ) -> Iterable[Appointment]:
        for appt in existing:
            if appt.is_cancelled:
                continue
            if exclude_appointment_id is not None and appt.id == exclude_appointment_id:
                continue
            yield appt

    def _blocking_ranges(
        self,
        existing: Iterable[Appointment],
        buffer_minutes: int,
        exclude_appointment_id: Optional[str],
    ) -> List[Tuple[datetime, datetime]]:
        # Only the booked appointment is padded, never the candidate.
        buffer = timedelta(minutes=buffer_minutes)
        return sorted(
            (appt.start_time - buffer, appt.end_time + buffer)
            for appt in self._active(existing, exclude_appointment_id)
        )

    @staticmethod
    def _overlaps_any(
        start: datetime,
        end: datetime,
        blocks: List[Tuple[datetime, datetime]],
    ) -> bool:
        for block_start, block_end in blocks:
            if block_start >= end:
                break
            if start < block_end:
                return True
        return False
