"""
Time Slot Configuration API Routes
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Path
from pydantic import BaseModel, Field

from ...scheduling.base import Actor, TimeSlotConfig
from ...scheduling.service import ScheduleManager
from ..base import APIResponse, success_response
from ..dependencies import get_actor, get_schedule_manager


router = APIRouter(prefix="/time-slots", tags=["Time Slots"])


class TimeSlotConfigRequest(BaseModel):
    """Slot grid and booking horizon of a provider."""

    slot_duration_minutes: int = Field(..., description="Grid step, > 0")
    buffer_time_minutes: int = Field(default=0, description="Gap around bookings, >= 0")
    booking_lead_days: int = Field(default=0, description="Minimum notice in days, >= 0")
    booking_ahead_days: int = Field(default=30, description="Booking horizon in days, >= 0")


class TimeSlotConfigResponse(TimeSlotConfigRequest):
    provider_id: Optional[str] = None


@router.get(
    "/config/{provider_id}",
    response_model=APIResponse[TimeSlotConfigResponse],
    summary="Get Time Slot Config",
)
async def get_time_slot_config(
    provider_id: str = Path(..., description="Provider ID"),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    config = await schedules.get_time_slot_config(provider_id)
    return success_response(config.to_dict())


@router.put(
    "/config/{provider_id}",
    response_model=APIResponse[TimeSlotConfigResponse],
    summary="Update Time Slot Config",
)
async def update_time_slot_config(
    provider_id: str = Path(..., description="Provider ID"),
    request: TimeSlotConfigRequest = Body(...),
    actor: Optional[Actor] = Depends(get_actor),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    config = await schedules.update_time_slot_config(
        provider_id,
        TimeSlotConfig(**request.model_dump()),
        actor=actor,
    )
    return success_response(config.to_dict())


@router.post(
    "/config/{provider_id}/default",
    response_model=APIResponse[TimeSlotConfigResponse],
    summary="Reset Time Slot Config",
    description="Replace the provider's config with the global default.",
)
async def reset_time_slot_config(
    provider_id: str = Path(..., description="Provider ID"),
    actor: Optional[Actor] = Depends(get_actor),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    config = await schedules.reset_time_slot_config(provider_id, actor=actor)
    return success_response(config.to_dict())
