"""
Provider and Service API Routes

This module provides REST API endpoints for registering providers and
maintaining their service catalogue.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query
from pydantic import BaseModel, Field

from ...scheduling.base import Actor
from ...scheduling.service import ScheduleManager
from ..base import APIResponse, success_response
from ..dependencies import get_actor, get_schedule_manager


logger = logging.getLogger(__name__)

providers_router = APIRouter(prefix="/providers", tags=["Providers"])
services_router = APIRouter(prefix="/services", tags=["Services"])


# =============================================================================
# Request/Response Models
# =============================================================================


class ProviderCreateRequest(BaseModel):
    """Request to register a provider."""

    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    id: Optional[str] = Field(
        default=None,
        max_length=36,
        description="Use an existing identity ID instead of generating one",
    )


class ProviderResponse(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    created_at: datetime


class ServiceCreateRequest(BaseModel):
    """Request to add a service to a provider's catalogue."""

    provider_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=2000)
    duration_minutes: int = Field(..., description="Positive duration in minutes")
    price: Decimal = Field(..., description="Non-negative price")


class ServiceUpdateRequest(BaseModel):
    """Partial service edit. Existing appointments keep their snapshots."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    duration_minutes: Optional[int] = None
    price: Optional[Decimal] = None


class ServiceStatusRequest(BaseModel):
    active: bool


class ServiceResponse(BaseModel):
    id: str
    provider_id: str
    name: str
    description: str
    duration_minutes: int
    price: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Providers
# =============================================================================


@providers_router.post(
    "",
    response_model=APIResponse[ProviderResponse],
    status_code=201,
    summary="Register Provider",
)
async def register_provider(
    request: ProviderCreateRequest,
    actor: Optional[Actor] = Depends(get_actor),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    provider = await schedules.register_provider(
        name=request.name,
        email=request.email,
        actor=actor,
        provider_id=request.id or "",
    )
    logger.info(f"Provider {provider.id} registered")
    return success_response(provider.to_dict())


@providers_router.get(
    "/{provider_id}",
    response_model=APIResponse[ProviderResponse],
    summary="Get Provider",
)
async def get_provider(
    provider_id: str = Path(..., description="Provider ID"),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    provider = await schedules.get_provider(provider_id)
    return success_response(provider.to_dict())


# =============================================================================
# Services
# =============================================================================


@services_router.get(
    "",
    response_model=APIResponse[List[ServiceResponse]],
    summary="List Services",
)
async def list_services(
    provider_id: Optional[str] = Query(None, description="Filter by provider"),
    active_only: bool = Query(False, description="Only bookable services"),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    services = await schedules.list_services(provider_id, active_only)
    return success_response([s.to_dict() for s in services])


@services_router.post(
    "",
    response_model=APIResponse[ServiceResponse],
    status_code=201,
    summary="Create Service",
)
async def create_service(
    request: ServiceCreateRequest,
    actor: Optional[Actor] = Depends(get_actor),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    service = await schedules.create_service(
        provider_id=request.provider_id,
        name=request.name,
        duration_minutes=request.duration_minutes,
        price=request.price,
        description=request.description,
        actor=actor,
    )
    return success_response(service.to_dict())


@services_router.get(
    "/{service_id}",
    response_model=APIResponse[ServiceResponse],
    summary="Get Service",
)
async def get_service(
    service_id: str = Path(..., description="Service ID"),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    service = await schedules.get_service(service_id)
    return success_response(service.to_dict())


@services_router.put(
    "/{service_id}",
    response_model=APIResponse[ServiceResponse],
    summary="Update Service",
)
async def update_service(
    service_id: str = Path(..., description="Service ID"),
    request: ServiceUpdateRequest = Body(...),
    actor: Optional[Actor] = Depends(get_actor),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    service = await schedules.update_service(
        service_id,
        name=request.name,
        duration_minutes=request.duration_minutes,
        price=request.price,
        description=request.description,
        actor=actor,
    )
    return success_response(service.to_dict())


@services_router.patch(
    "/{service_id}/status",
    response_model=APIResponse[ServiceResponse],
    summary="Activate Or Deactivate Service",
)
async def set_service_status(
    service_id: str = Path(..., description="Service ID"),
    request: ServiceStatusRequest = Body(...),
    actor: Optional[Actor] = Depends(get_actor),
    schedules: ScheduleManager = Depends(get_schedule_manager),
):
    service = await schedules.set_service_active(service_id, request.active, actor=actor)
    return success_response(service.to_dict())
