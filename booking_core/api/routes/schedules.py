"""
Work Schedule API Routes

This module provides REST API endpoints for weekly working hours and
date-specific schedule exceptions.
"""

import logging
from datetime import date, time
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query
from pydantic import BaseModel, Field

from ...scheduling.base import Actor, DayOfWeek, ScheduleExceptionType, WorkSchedule
from ...scheduling.service import ScheduleManager
from ..base import APIResponse, success_response
from ..dependencies import get_actor, get_schedule_manager


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/work-schedules", tags=["Work Schedules"])


# =============================================================================
# Request/Response Models
# =============================================================================


class WorkScheduleEntry(BaseModel):
    """Working hours for one day of the week."""

    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    is_active: bool = True


class WorkScheduleRequest(BaseModel):
    """Upsert of a provider's weekly schedule."""

    provider_id: str = Field(..., min_length=1)
    entries: List[WorkScheduleEntry] = Field(..., min_length=1)


class WorkScheduleResponse(WorkScheduleEntry):
    id: str
    provider_id: str


class ScheduleExceptionBody(BaseModel):
    """Day off or special hours for one date."""

    exception_date: date
    type: ScheduleExceptionType
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = Field(default=None, max_length=500)


class ScheduleExceptionCreateRequest(ScheduleExceptionBody):
    provider_id: str = Field(..., min_length=1)


class ScheduleExceptionResponse(ScheduleExceptionBody):
    id: str
    provider_id: str


class WeeklyScheduleResponse(BaseModel):
    provider_id: str
    provider_name: str
    regular_schedule: List[WorkScheduleResponse]
    exceptions: List[ScheduleExceptionResponse]


# =============================================================================
# Weekly Schedule
# =============================================================================


@router.put(
    "",
    response_model=APIResponse[WeeklyScheduleResponse],
    summary="Set Work Schedule",
    description="Upsert working hours; one entry per day of the week.",
)
async def set_work_schedule(
    request: WorkScheduleRequest,
    actor: Optional[Actor] = Depends(get_actor),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    entries = [
        WorkSchedule(
            id="",
            provider_id=request.provider_id,
            day_of_week=entry.day_of_week,
            start_time=entry.start_time,
            end_time=entry.end_time,
            is_active=entry.is_active,
        )
        for entry in request.entries
    ]
    weekly = await schedules.set_work_schedule(request.provider_id, entries, actor=actor)
    return success_response(weekly.to_dict())


# =============================================================================
# Exceptions
# =============================================================================


@router.get(
    "/exceptions/date-range",
    response_model=APIResponse[List[ScheduleExceptionResponse]],
    summary="List Schedule Exceptions",
)
async def list_exceptions(
    provider_id: str = Query(..., description="Provider ID"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    exceptions = await schedules.list_exceptions(provider_id, start_date, end_date)
    return success_response([e.to_dict() for e in exceptions])


@router.post(
    "/exceptions",
    response_model=APIResponse[ScheduleExceptionResponse],
    status_code=201,
    summary="Add Schedule Exception",
)
async def add_exception(
    request: ScheduleExceptionCreateRequest,
    actor: Optional[Actor] = Depends(get_actor),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    exception = await schedules.add_exception(
        provider_id=request.provider_id,
        exception_date=request.exception_date,
        exception_type=request.type,
        start_time=request.start_time,
        end_time=request.end_time,
        reason=request.reason,
        actor=actor,
    )
    logger.info(
        f"Schedule exception {exception.id} added for provider {exception.provider_id}"
    )
    return success_response(exception.to_dict())


@router.put(
    "/exceptions/{exception_id}",
    response_model=APIResponse[ScheduleExceptionResponse],
    summary="Update Schedule Exception",
)
async def update_exception(
    exception_id: str = Path(..., description="Exception ID"),
    request: ScheduleExceptionBody = Body(...),
    actor: Optional[Actor] = Depends(get_actor),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    exception = await schedules.update_exception(
        exception_id,
        exception_date=request.exception_date,
        exception_type=request.type,
        start_time=request.start_time,
        end_time=request.end_time,
        reason=request.reason,
        actor=actor,
    )
    return success_response(exception.to_dict())


@router.delete(
    "/exceptions/{exception_id}",
    response_model=APIResponse[dict],
    summary="Delete Schedule Exception",
)
async def delete_exception(
    exception_id: str = Path(..., description="Exception ID"),
    actor: Optional[Actor] = Depends(get_actor),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    await schedules.delete_exception(exception_id, actor=actor)
    return success_response({"id": exception_id, "deleted": True})


@router.get(
    "/{provider_id}",
    response_model=APIResponse[WeeklyScheduleResponse],
    summary="Get Weekly Schedule",
)
async def get_weekly_schedule(
    provider_id: str = Path(..., description="Provider ID"),
    start_date: Optional[date] = Query(None, description="Include exceptions from"),
    end_date: Optional[date] = Query(None, description="Include exceptions until"),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    weekly = await schedules.get_weekly_schedule(provider_id, start_date, end_date)
    return success_response(weekly.to_dict())
