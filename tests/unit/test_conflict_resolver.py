"""
Unit Tests for ConflictResolver

Tests for buffer-padded overlap detection between candidate slots and
booked appointments.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from booking_core.scheduling import (
    Appointment,
    AppointmentStatus,
    ConflictResolver,
    Interval,
    ServiceSnapshot,
    SlotGenerator,
    TimeSlotConfig,
)

from tests.conftest import MONDAY, NOW, PROVIDER_ID, at


def _appointment(appointment_id, hour, minute=0, minutes=30, status=AppointmentStatus.PENDING):
    return Appointment(
        id=appointment_id,
        client_id="client_1",
        provider_id=PROVIDER_ID,
        start_time=at(MONDAY, hour, minute),
        services=[ServiceSnapshot("svc_1", "Consultation", minutes, Decimal("10.00"))],
        status=status,
    )


def _morning_slots():
    interval = Interval(start=at(MONDAY, 9), end=at(MONDAY, 12))
    return list(SlotGenerator().generate(interval, TimeSlotConfig(), now=NOW))


def _availability(slots):
    return {s.start_time.strftime("%H:%M"): s.available for s in slots}


@pytest.fixture
def resolver() -> ConflictResolver:
    return ConflictResolver()


class TestFilter:
    """Availability flags on candidate slots."""

    def test_overlapping_slots_become_unavailable(self, resolver):
        existing = [_appointment("appt_1", 10, minutes=50)]

        result = _availability(resolver.filter(_morning_slots(), existing, 0))

        assert result == {
            "09:00": True,
            "09:30": True,
            "10:00": False,
            "10:30": False,
            "11:00": True,
            "11:30": True,
        }

    def test_adjacent_slots_stay_available_without_buffer(self, resolver):
        existing = [_appointment("appt_1", 9, 30)]

        result = _availability(resolver.filter(_morning_slots(), existing, 0))

        assert result["09:00"] is True
        assert result["09:30"] is False
        assert result["10:00"] is True

    def test_buffer_pads_the_booked_appointment(self, resolver):
        existing = [_appointment("appt_1", 9, 30)]

        result = _availability(resolver.filter(_morning_slots(), existing, 15))

        assert result["09:00"] is False
        assert result["09:30"] is False
        assert result["10:00"] is False
        assert result["10:30"] is True

    def test_cancelled_appointments_never_block(self, resolver):
        existing = [_appointment("appt_1", 10, status=AppointmentStatus.CANCELLED)]

        result = resolver.filter(_morning_slots(), existing, 30)

        assert all(s.available for s in result)

    def test_excluded_appointment_does_not_block(self, resolver):
        existing = [_appointment("appt_1", 10), _appointment("appt_2", 11)]

        result = _availability(
            resolver.filter(_morning_slots(), existing, 0, exclude_appointment_id="appt_1")
        )

        assert result["10:00"] is True
        assert result["11:00"] is False

    def test_preserves_order_and_does_not_mutate_input(self, resolver):
        slots = _morning_slots()
        existing = [_appointment("appt_1", 10)]

        result = resolver.filter(slots, existing, 0)

        assert len(result) == len(slots)
        assert [s.start_time for s in result] == [s.start_time for s in slots]
        assert all(s.available for s in slots)

    def test_no_available_slot_overlaps_a_padded_appointment(self, resolver):
        existing = [
            _appointment("appt_1", 9, 15, minutes=20),
            _appointment("appt_2", 10, 40, minutes=35),
        ]
        buffer = 10

        result = resolver.filter(_morning_slots(), existing, buffer)

        for slot in (s for s in result if s.available):
            for appt in existing:
                padded_start = appt.start_time - timedelta(minutes=buffer)
                padded_end = appt.end_time + timedelta(minutes=buffer)
                assert not (slot.start_time < padded_end and padded_start < slot.end_time)


class TestFindConflicts:
    """Blocking appointments for a single window."""

    def test_returns_blocking_appointments(self, resolver):
        blocking = _appointment("appt_1", 10)
        other = _appointment("appt_2", 11, 30)

        conflicts = resolver.find_conflicts(
            at(MONDAY, 10, 15), at(MONDAY, 10, 45), [blocking, other], 0
        )

        assert conflicts == [blocking]

    def test_buffer_extends_conflicts(self, resolver):
        appt = _appointment("appt_1", 10)

        assert resolver.find_conflicts(at(MONDAY, 10, 30), at(MONDAY, 11), [appt], 0) == []
        assert resolver.find_conflicts(at(MONDAY, 10, 30), at(MONDAY, 11), [appt], 5) == [appt]
