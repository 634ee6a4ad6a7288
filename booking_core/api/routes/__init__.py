"""
API Routes Module

This module provides all REST API endpoints of the booking engine.
"""

from .appointments import router as appointments_router
from .schedules import router as work_schedules_router
from .time_slots import router as time_slots_router
from .catalogue import providers_router, services_router


__all__ = [
    "appointments_router",
    "work_schedules_router",
    "time_slots_router",
    "providers_router",
    "services_router",
]
