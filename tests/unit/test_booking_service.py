"""
Unit Tests for BookingService

Tests for availability queries and the create/update/cancel protocol.
"""

import asyncio
from datetime import time
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from booking_core.scheduling import (
    Actor,
    Appointment,
    AppointmentStatus,
    AppointmentUpdate,
    ConflictError,
    DayOfWeek,
    InMemoryAppointmentRepository,
    InMemoryProviderRepository,
    InMemoryServiceRepository,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    RoleBasedAuthZ,
    ScheduleExceptionType,
    SchedulingService,
    SchedulingWindowError,
    TimeSlotConfig,
    ValidationError,
    WorkSchedule,
)

from tests.conftest import MONDAY, NEXT_MONDAY, NOW, PROVIDER_ID, TUESDAY, at


@pytest_asyncio.fixture
async def booked(booking, service_a, service_b) -> Appointment:
    """A+B booked Monday 10:00-10:50."""
    return await booking.create(
        client_id="client_1",
        provider_id=PROVIDER_ID,
        start_time=at(MONDAY, 10),
        service_ids=[service_a.id, service_b.id],
        notes="first visit",
    )


# =============================================================================
# Create
# =============================================================================


class TestCreate:
    """Booking new appointments."""

    @pytest.mark.asyncio
    async def test_totals_are_derived_from_services(self, booked, service_a, service_b):
        assert booked.status == AppointmentStatus.PENDING
        assert booked.end_time == at(MONDAY, 10, 50)
        assert booked.duration_minutes == 50
        assert booked.total_price == Decimal("15.00")
        assert booked.service_ids == [service_a.id, service_b.id]
        assert booked.created_at == NOW
        assert booked.id.startswith("appt_")

    @pytest.mark.asyncio
    async def test_appointment_is_persisted(self, booking, booked):
        stored = await booking.get_appointment(booked.id)

        assert stored.to_dict() == booked.to_dict()

    @pytest.mark.asyncio
    async def test_overlapping_create_conflicts(self, booking, booked, service_a):
        with pytest.raises(ConflictError) as exc_info:
            await booking.create("client_2", PROVIDER_ID, at(MONDAY, 10, 30), [service_a.id])

        assert exc_info.value.details["conflicting_appointment_ids"] == [booked.id]

    @pytest.mark.asyncio
    async def test_adjacent_create_succeeds(self, booking, booked, service_a):
        appointment = await booking.create(
            "client_2", PROVIDER_ID, at(MONDAY, 10, 50), [service_a.id]
        )

        assert appointment.start_time == booked.end_time

    @pytest.mark.asyncio
    async def test_buffer_is_enforced(self, scheduling, booking, service_a):
        await scheduling.schedules.update_time_slot_config(
            PROVIDER_ID, TimeSlotConfig(buffer_time_minutes=15)
        )
        await booking.create("client_1", PROVIDER_ID, at(MONDAY, 10), [service_a.id])

        with pytest.raises(ConflictError):
            await booking.create("client_2", PROVIDER_ID, at(MONDAY, 10, 30), [service_a.id])

        later = await booking.create("client_2", PROVIDER_ID, at(MONDAY, 10, 45), [service_a.id])
        assert later.start_time == at(MONDAY, 10, 45)

    @pytest.mark.asyncio
    async def test_service_snapshots_survive_service_edits(self, scheduling, booked, service_a):
        await scheduling.schedules.update_service(service_a.id, price=Decimal("99.00"))

        stored = await scheduling.booking.get_appointment(booked.id)

        assert stored.total_price == Decimal("15.00")


class TestCreateValidation:
    """Input errors on create."""

    @pytest.mark.asyncio
    async def test_empty_services(self, booking, provider):
        with pytest.raises(ValidationError) as exc_info:
            await booking.create("client_1", PROVIDER_ID, at(MONDAY, 10), [])

        assert exc_info.value.field == "service_ids"

    @pytest.mark.asyncio
    async def test_duplicate_services(self, booking, service_a):
        with pytest.raises(ValidationError) as exc_info:
            await booking.create(
                "client_1", PROVIDER_ID, at(MONDAY, 10), [service_a.id, service_a.id]
            )

        assert exc_info.value.details["duplicates"] == [service_a.id]

    @pytest.mark.asyncio
    async def test_unknown_service(self, booking, provider):
        with pytest.raises(NotFoundError):
            await booking.create("client_1", PROVIDER_ID, at(MONDAY, 10), ["svc_missing"])

    @pytest.mark.asyncio
    async def test_inactive_service(self, scheduling, booking, service_a):
        await scheduling.schedules.set_service_active(service_a.id, False)

        with pytest.raises(ValidationError):
            await booking.create("client_1", PROVIDER_ID, at(MONDAY, 10), [service_a.id])

    @pytest.mark.asyncio
    async def test_service_of_another_provider(self, scheduling, booking, provider):
        other = await scheduling.schedules.register_provider("Dr. Other")
        foreign = await scheduling.schedules.create_service(
            other.id, "Massage", duration_minutes=60, price=Decimal("50")
        )

        with pytest.raises(ValidationError):
            await booking.create("client_1", PROVIDER_ID, at(MONDAY, 10), [foreign.id])

    @pytest.mark.asyncio
    async def test_unknown_provider(self, booking, service_a):
        with pytest.raises(NotFoundError) as exc_info:
            await booking.create("client_1", "prov_missing", at(MONDAY, 10), [service_a.id])

        assert exc_info.value.resource_type == "Provider"

    @pytest.mark.asyncio
    async def test_missing_client(self, booking, service_a):
        with pytest.raises(ValidationError):
            await booking.create("", PROVIDER_ID, at(MONDAY, 10), [service_a.id])


class TestSchedulingWindow:
    """Working hours and booking horizon."""

    @pytest.mark.asyncio
    async def test_non_working_day(self, booking, service_a):
        with pytest.raises(SchedulingWindowError) as exc_info:
            await booking.create("client_1", PROVIDER_ID, at(TUESDAY, 10), [service_a.id])

        assert exc_info.value.bound == "working_hours"

    @pytest.mark.asyncio
    async def test_window_past_closing_time(self, booking, service_a):
        with pytest.raises(SchedulingWindowError) as exc_info:
            await booking.create("client_1", PROVIDER_ID, at(MONDAY, 16, 45), [service_a.id])

        assert exc_info.value.bound == "working_hours"

    @pytest.mark.asyncio
    async def test_before_opening_time(self, booking, service_a):
        with pytest.raises(SchedulingWindowError):
            await booking.create("client_1", PROVIDER_ID, at(MONDAY, 8, 30), [service_a.id])

    @pytest.mark.asyncio
    async def test_day_off(self, scheduling, booking, service_a):
        await scheduling.schedules.add_exception(
            PROVIDER_ID, MONDAY, ScheduleExceptionType.DAY_OFF, reason="Holiday"
        )

        with pytest.raises(SchedulingWindowError):
            await booking.create("client_1", PROVIDER_ID, at(MONDAY, 10), [service_a.id])

    @pytest.mark.asyncio
    async def test_beyond_booking_horizon(self, booking, service_a):
        far_monday = MONDAY.replace(month=2, day=19)

        with pytest.raises(SchedulingWindowError) as exc_info:
            await booking.create("client_1", PROVIDER_ID, at(far_monday, 10), [service_a.id])

        assert exc_info.value.bound == "booking_ahead_days"
        assert exc_info.value.details["limit"] == "2024-02-09"

    @pytest.mark.asyncio
    async def test_inside_lead_time(self, scheduling, booking, service_a):
        await scheduling.schedules.update_time_slot_config(
            PROVIDER_ID, TimeSlotConfig(booking_lead_days=7)
        )

        with pytest.raises(SchedulingWindowError) as exc_info:
            await booking.create("client_1", PROVIDER_ID, at(MONDAY, 10), [service_a.id])

        assert exc_info.value.bound == "booking_lead_days"

    @pytest.mark.asyncio
    async def test_in_the_past(self, booking, service_a):
        past_monday = MONDAY.replace(day=8)

        with pytest.raises(SchedulingWindowError) as exc_info:
            await booking.create("client_1", PROVIDER_ID, at(past_monday, 10), [service_a.id])

        assert exc_info.value.bound == "booking_lead_days"


# =============================================================================
# Concurrency
# =============================================================================


class YieldingAppointmentRepository(InMemoryAppointmentRepository):
    """Yields to the event loop on every read so concurrent writers interleave."""

    async def find_overlapping(self, provider_id, on_date):
        await asyncio.sleep(0)
        return await super().find_overlapping(provider_id, on_date)


class TestConcurrentBooking:
    """Two writers racing for the same window."""

    @pytest.mark.asyncio
    async def test_simultaneous_creates_one_wins(self, booking, service_a):
        results = await asyncio.gather(
            booking.create("client_1", PROVIDER_ID, at(MONDAY, 10), [service_a.id]),
            booking.create("client_2", PROVIDER_ID, at(MONDAY, 10), [service_a.id]),
            return_exceptions=True,
        )

        assert sum(isinstance(r, Appointment) for r in results) == 1
        assert sum(isinstance(r, ConflictError) for r in results) == 1

    @pytest.mark.asyncio
    async def test_interleaved_creates_are_rechecked_under_lock(self, fixed_clock):
        appointments = YieldingAppointmentRepository()
        scheduling = SchedulingService(
            InMemoryProviderRepository(),
            InMemoryServiceRepository(),
            appointments,
            clock=fixed_clock,
        )
        provider = await scheduling.schedules.register_provider("Dr. Race")
        await scheduling.schedules.set_work_schedule(
            provider.id,
            [WorkSchedule("", provider.id, DayOfWeek.MONDAY, time(9), time(17))],
        )
        service = await scheduling.schedules.create_service(
            provider.id, "Consultation", duration_minutes=30, price=Decimal("10")
        )

        results = await asyncio.gather(
            *(
                scheduling.booking.create(
                    f"client_{i}", provider.id, at(MONDAY, 10, 15), [service.id]
                )
                for i in range(5)
            ),
            return_exceptions=True,
        )

        assert sum(isinstance(r, Appointment) for r in results) == 1
        assert sum(isinstance(r, ConflictError) for r in results) == 4
        assert len(await appointments.list_by_provider(provider.id)) == 1
        assert len(scheduling.booking.locks) == 0


# =============================================================================
# Update
# =============================================================================


class TestUpdate:
    """Rescheduling, service changes and notes edits."""

    @pytest.mark.asyncio
    async def test_notes_only_skips_availability_check(self, scheduling, booking, booked):
        scheduling.appointments.find_overlapping = AsyncMock(
            side_effect=AssertionError("availability must not be re-checked")
        )

        updated = await booking.update(booked.id, AppointmentUpdate(notes="bring x-rays"))

        assert updated.notes == "bring x-rays"
        assert updated.start_time == booked.start_time
        scheduling.appointments.find_overlapping.assert_not_called()

    @pytest.mark.asyncio
    async def test_reschedule_may_overlap_its_own_old_window(self, booking, booked):
        updated = await booking.update(booked.id, AppointmentUpdate(start_time=at(MONDAY, 10, 20)))

        assert updated.start_time == at(MONDAY, 10, 20)
        assert updated.end_time == at(MONDAY, 11, 10)
        assert (await booking.get_appointment(booked.id)).start_time == at(MONDAY, 10, 20)

    @pytest.mark.asyncio
    async def test_reschedule_into_taken_window_leaves_state_untouched(
        self, booking, booked, service_a
    ):
        other = await booking.create("client_2", PROVIDER_ID, at(MONDAY, 14), [service_a.id])

        with pytest.raises(ConflictError):
            await booking.update(
                booked.id,
                AppointmentUpdate(start_time=at(MONDAY, 13, 30), notes="moved"),
            )

        stored = await booking.get_appointment(booked.id)
        assert stored.start_time == at(MONDAY, 10)
        assert stored.notes == "first visit"
        assert (await booking.get_appointment(other.id)).start_time == at(MONDAY, 14)

    @pytest.mark.asyncio
    async def test_reschedule_to_another_date_frees_the_old_one(self, booking, booked, service_a):
        await booking.update(booked.id, AppointmentUpdate(start_time=at(NEXT_MONDAY, 9)))

        slots = await booking.get_availability(PROVIDER_ID, MONDAY)

        assert all(s.available for s in slots)
        assert [a.id for a in await booking.list_appointments_between(NEXT_MONDAY, NEXT_MONDAY)] == [
            booked.id
        ]

    @pytest.mark.asyncio
    async def test_reschedule_outside_working_hours(self, booking, booked):
        with pytest.raises(SchedulingWindowError):
            await booking.update(booked.id, AppointmentUpdate(start_time=at(MONDAY, 16, 30)))

    @pytest.mark.asyncio
    async def test_changing_services_recomputes_totals(self, booking, booked, service_a):
        updated = await booking.update(booked.id, AppointmentUpdate(service_ids=[service_a.id]))

        assert updated.duration_minutes == 30
        assert updated.end_time == at(MONDAY, 10, 30)
        assert updated.total_price == Decimal("10.00")

    @pytest.mark.asyncio
    async def test_terminal_appointment_cannot_be_rescheduled(self, booking, booked):
        await booking.cancel(booked.id)

        with pytest.raises(InvalidTransitionError):
            await booking.update(booked.id, AppointmentUpdate(start_time=at(MONDAY, 12)))

    @pytest.mark.asyncio
    async def test_unknown_appointment(self, booking, provider):
        with pytest.raises(NotFoundError):
            await booking.update("appt_missing", AppointmentUpdate(notes="x"))

    @pytest.mark.asyncio
    async def test_empty_update_is_a_no_op(self, booking, booked):
        unchanged = await booking.update(booked.id, AppointmentUpdate())

        assert unchanged.to_dict() == booked.to_dict()


# =============================================================================
# Status Changes
# =============================================================================


class TestStatusChanges:
    """Lifecycle transitions through the booking service."""

    @pytest.mark.asyncio
    async def test_confirm_then_complete(self, booking, booked):
        confirmed = await booking.update(
            booked.id, AppointmentUpdate(status=AppointmentStatus.CONFIRMED)
        )
        completed = await booking.update(
            booked.id, AppointmentUpdate(status=AppointmentStatus.COMPLETED)
        )

        assert confirmed.confirmed_at == NOW
        assert completed.status == AppointmentStatus.COMPLETED

        with pytest.raises(InvalidTransitionError):
            await booking.update(booked.id, AppointmentUpdate(status=AppointmentStatus.CONFIRMED))

    @pytest.mark.asyncio
    async def test_cancel_twice_fails(self, booking, booked):
        cancelled = await booking.cancel(booked.id)

        assert cancelled.status == AppointmentStatus.CANCELLED
        assert cancelled.cancelled_at == NOW

        with pytest.raises(InvalidTransitionError) as exc_info:
            await booking.cancel(booked.id)

        assert exc_info.value.details == {"current": "CANCELLED", "target": "CANCELLED"}

    @pytest.mark.asyncio
    async def test_cancelled_appointment_stops_blocking(self, booking, booked, service_a):
        await booking.cancel(booked.id)

        slots = await booking.get_availability(PROVIDER_ID, MONDAY)
        rebooked = await booking.create("client_2", PROVIDER_ID, at(MONDAY, 10), [service_a.id])

        assert all(s.available for s in slots)
        assert rebooked.start_time == at(MONDAY, 10)

    @pytest.mark.asyncio
    async def test_cancelled_appointment_is_kept(self, booking, booked):
        await booking.cancel(booked.id)

        history = await booking.list_client_appointments("client_1")

        assert [a.status for a in history] == [AppointmentStatus.CANCELLED]


class TestStatusAuthorization:
    """Status changes go through AuthZ."""

    @pytest_asyncio.fixture
    async def guarded(self, fixed_clock):
        appointments = InMemoryAppointmentRepository()
        scheduling = SchedulingService(
            InMemoryProviderRepository(),
            InMemoryServiceRepository(),
            appointments,
            authz=RoleBasedAuthZ(appointments),
            clock=fixed_clock,
        )
        admin = Actor(id="admin_1", roles=frozenset({"ADMIN"}))
        provider = await scheduling.schedules.register_provider(
            "Dr. Guarded", actor=admin, provider_id=PROVIDER_ID
        )
        await scheduling.schedules.set_work_schedule(
            provider.id,
            [WorkSchedule("", provider.id, DayOfWeek.MONDAY, time(9), time(17))],
            actor=admin,
        )
        service = await scheduling.schedules.create_service(
            provider.id, "Consultation", 30, Decimal("10"), actor=admin
        )
        appointment = await scheduling.booking.create(
            "client_1", provider.id, at(MONDAY, 10), [service.id]
        )
        return scheduling.booking, appointment

    @pytest.mark.asyncio
    async def test_client_may_cancel_own_appointment(self, guarded):
        booking, appointment = guarded

        cancelled = await booking.cancel(appointment.id, actor=Actor(id="client_1"))

        assert cancelled.is_cancelled

    @pytest.mark.asyncio
    async def test_owning_provider_may_confirm(self, guarded):
        booking, appointment = guarded
        actor = Actor(id=PROVIDER_ID, roles=frozenset({"PROVIDER"}))

        confirmed = await booking.update(
            appointment.id, AppointmentUpdate(status=AppointmentStatus.CONFIRMED), actor=actor
        )

        assert confirmed.status == AppointmentStatus.CONFIRMED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("actor", [None, Actor(id="client_2")])
    async def test_others_are_denied(self, guarded, actor):
        booking, appointment = guarded

        with pytest.raises(PermissionDeniedError):
            await booking.cancel(appointment.id, actor=actor)

        assert (await booking.get_appointment(appointment.id)).status == AppointmentStatus.PENDING

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "target",
        [AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW],
    )
    async def test_client_may_only_cancel(self, guarded, target):
        booking, appointment = guarded
        client = Actor(id="client_1", roles=frozenset({"CLIENT"}))

        with pytest.raises(PermissionDeniedError) as exc_info:
            await booking.update(appointment.id, AppointmentUpdate(status=target), actor=client)

        assert exc_info.value.details["target"] == target.value
        assert (await booking.get_appointment(appointment.id)).status == AppointmentStatus.PENDING

    @pytest.mark.asyncio
    async def test_client_cannot_complete_after_provider_confirms(self, guarded):
        booking, appointment = guarded
        provider = Actor(id=PROVIDER_ID, roles=frozenset({"PROVIDER"}))
        client = Actor(id="client_1")
        await booking.update(
            appointment.id, AppointmentUpdate(status=AppointmentStatus.CONFIRMED), actor=provider
        )

        with pytest.raises(PermissionDeniedError):
            await booking.update(
                appointment.id, AppointmentUpdate(status=AppointmentStatus.COMPLETED), actor=client
            )

        assert (await booking.get_appointment(appointment.id)).status == AppointmentStatus.CONFIRMED


# =============================================================================
# Availability
# =============================================================================


class TestAvailability:
    """The browse query."""

    @pytest.mark.asyncio
    async def test_booked_window_is_flagged(self, booking, booked):
        slots = await booking.get_availability(PROVIDER_ID, MONDAY)
        flags = {s.start_time.strftime("%H:%M"): s.available for s in slots}

        assert len(slots) == 16
        assert flags["09:30"] is True
        assert flags["10:00"] is False
        assert flags["10:30"] is False
        assert flags["11:00"] is True

    @pytest.mark.asyncio
    async def test_requested_duration(self, booking, booked):
        slots = await booking.get_availability(PROVIDER_ID, MONDAY, requested_duration_minutes=90)
        flags = {s.start_time.strftime("%H:%M"): s.available for s in slots}

        assert flags["09:00"] is False
        assert flags["11:00"] is True
        assert slots[-1].start_time == at(MONDAY, 15, 30)

    @pytest.mark.asyncio
    async def test_day_off_is_empty(self, scheduling, booking, provider):
        await scheduling.schedules.add_exception(PROVIDER_ID, MONDAY, ScheduleExceptionType.DAY_OFF)

        assert await booking.get_availability(PROVIDER_ID, MONDAY) == []

    @pytest.mark.asyncio
    async def test_beyond_horizon_is_empty(self, booking, provider):
        assert await booking.get_availability(PROVIDER_ID, MONDAY.replace(month=3, day=4)) == []

    @pytest.mark.asyncio
    async def test_unknown_provider(self, booking):
        with pytest.raises(NotFoundError):
            await booking.get_availability("prov_missing", MONDAY)

    @pytest.mark.asyncio
    async def test_non_positive_duration(self, booking, provider):
        with pytest.raises(ValidationError):
            await booking.get_availability(PROVIDER_ID, MONDAY, requested_duration_minutes=0)


class TestQueries:
    """Appointment listings."""

    @pytest.mark.asyncio
    async def test_listings(self, booking, booked, service_a):
        second = await booking.create("client_2", PROVIDER_ID, at(NEXT_MONDAY, 9), [service_a.id])

        assert [a.id for a in await booking.list_provider_appointments(PROVIDER_ID)] == [
            booked.id,
            second.id,
        ]
        assert [a.id for a in await booking.list_client_appointments("client_2")] == [second.id]
        assert [a.id for a in await booking.list_appointments_between(MONDAY, MONDAY)] == [
            booked.id
        ]

    @pytest.mark.asyncio
    async def test_inverted_date_range(self, booking):
        with pytest.raises(ValidationError):
            await booking.list_appointments_between(NEXT_MONDAY, MONDAY)
