"""
Appointment API Routes

This module provides REST API endpoints for availability queries and
appointment booking.
"""

import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query
from pydantic import BaseModel, Field

from ...scheduling.base import Actor, AppointmentStatus, AppointmentUpdate
from ...scheduling.service import BookingService
from ..base import APIResponse, success_response, to_naive_utc
from ..dependencies import get_actor, get_booking_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


# =============================================================================
# Request/Response Models
# =============================================================================


class AppointmentCreateRequest(BaseModel):
    """Request to book an appointment."""

    client_id: str = Field(..., min_length=1, description="Client ID")
    provider_id: str = Field(..., min_length=1, description="Provider ID")
    start_time: datetime = Field(..., description="Requested start time")
    service_ids: List[str] = Field(..., description="Services in booking order")
    notes: Optional[str] = Field(default=None, max_length=2000)


class AppointmentUpdateRequest(BaseModel):
    """Partial update of an appointment. Omitted fields stay unchanged."""

    start_time: Optional[datetime] = Field(default=None, description="New start time")
    service_ids: Optional[List[str]] = Field(default=None, description="New service selection")
    notes: Optional[str] = Field(default=None, max_length=2000)
    status: Optional[AppointmentStatus] = Field(default=None, description="Target status")


class ServiceSnapshotResponse(BaseModel):
    """Service as captured at booking time."""

    service_id: str
    name: str
    duration_minutes: int
    price: str


class AppointmentResponse(BaseModel):
    """Appointment response."""

    id: str
    client_id: str
    provider_id: str
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    status: AppointmentStatus
    services: List[ServiceSnapshotResponse]
    total_price: str
    notes: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class TimeSlotResponse(BaseModel):
    """Candidate slot with its availability."""

    start_time: datetime
    end_time: datetime
    duration_minutes: int
    available: bool


# =============================================================================
# Availability
# =============================================================================


@router.get(
    "/available-slots/{provider_id}",
    response_model=APIResponse[List[TimeSlotResponse]],
    summary="Get Available Slots",
    description="List the slot grid of a provider for one date, flagged by availability.",
)
async def get_available_slots(
    provider_id: str = Path(..., description="Provider ID"),
    on_date: date = Query(..., alias="date", description="Calendar date"),
    duration_minutes: Optional[int] = Query(None, description="Requested duration"),
    available_only: bool = Query(False, description="Drop unavailable slots"),
    booking: BookingService = Depends(get_booking_service),
):
    slots = await booking.get_availability(provider_id, on_date, duration_minutes)
    if available_only:
        slots = [s for s in slots if s.available]

    return success_response(
        [s.to_dict() for s in slots],
        meta={"provider_id": provider_id, "date": on_date.isoformat(), "count": len(slots)},
    )


# =============================================================================
# Commands
# =============================================================================


@router.post(
    "",
    response_model=APIResponse[AppointmentResponse],
    status_code=201,
    summary="Create Appointment",
)
async def create_appointment(
    request: AppointmentCreateRequest,
    booking: BookingService = Depends(get_booking_service),
):
    """Book a new appointment in PENDING status."""
    appointment = await booking.create(
        client_id=request.client_id,
        provider_id=request.provider_id,
        start_time=to_naive_utc(request.start_time),
        service_ids=request.service_ids,
        notes=request.notes,
    )
    logger.info(f"Appointment {appointment.id} booked for provider {appointment.provider_id}")
    return success_response(appointment.to_dict())


@router.put(
    "/{appointment_id}",
    response_model=APIResponse[AppointmentResponse],
    summary="Update Appointment",
    description="Reschedule, change services, edit notes or change status.",
)
async def update_appointment(
    appointment_id: str = Path(..., description="Appointment ID"),
    request: AppointmentUpdateRequest = Body(...),
    actor: Optional[Actor] = Depends(get_actor),
    booking: BookingService = Depends(get_booking_service),
):
    changes = AppointmentUpdate(
        start_time=to_naive_utc(request.start_time),
        service_ids=request.service_ids,
        notes=request.notes,
        status=request.status,
    )
    appointment = await booking.update(appointment_id, changes, actor=actor)
    return success_response(appointment.to_dict())


@router.delete(
    "/{appointment_id}",
    response_model=APIResponse[AppointmentResponse],
    summary="Cancel Appointment",
)
async def cancel_appointment(
    appointment_id: str = Path(..., description="Appointment ID"),
    actor: Optional[Actor] = Depends(get_actor),
    booking: BookingService = Depends(get_booking_service),
):
    """Cancel an appointment. The record is kept with status CANCELLED."""
    appointment = await booking.cancel(appointment_id, actor=actor)
    return success_response(appointment.to_dict())


# =============================================================================
# Queries
# =============================================================================


@router.get(
    "/date-range",
    response_model=APIResponse[List[AppointmentResponse]],
    summary="List Appointments In Date Range",
)
async def list_appointments_between(
    start_date: date = Query(..., description="First date (inclusive)"),
    end_date: date = Query(..., description="Last date (inclusive)"),
    booking: BookingService = Depends(get_booking_service),
):
    appointments = await booking.list_appointments_between(start_date, end_date)
    return success_response([a.to_dict() for a in appointments])


@router.get(
    "/client/{client_id}",
    response_model=APIResponse[List[AppointmentResponse]],
    summary="List Client Appointments",
)
async def list_client_appointments(
    client_id: str = Path(..., description="Client ID"),
    booking: BookingService = Depends(get_booking_service),
):
    appointments = await booking.list_client_appointments(client_id)
    return success_response([a.to_dict() for a in appointments])


@router.get(
    "/provider/{provider_id}",
    response_model=APIResponse[List[AppointmentResponse]],
    summary="List Provider Appointments",
)
async def list_provider_appointments(
    provider_id: str = Path(..., description="Provider ID"),
    booking: BookingService = Depends(get_booking_service),
):
    appointments = await booking.list_provider_appointments(provider_id)
    return success_response([a.to_dict() for a in appointments])


@router.get(
    "/{appointment_id}",
    response_model=APIResponse[AppointmentResponse],
    summary="Get Appointment",
)
async def get_appointment(
    appointment_id: str = Path(..., description="Appointment ID"),
    booking: BookingService = Depends(get_booking_service),
):
    appointment = await booking.get_appointment(appointment_id)
    return success_response(appointment.to_dict())
