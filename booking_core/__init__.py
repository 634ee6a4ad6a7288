"""
Booking Core
============

Availability and booking engine for appointment scheduling.

This package provides:
- Provider schedules, exceptions and slot configuration
- Availability queries and conflict-safe booking
- In-memory and SQL repositories
- A REST API
"""

__version__ = "1.0.0"
