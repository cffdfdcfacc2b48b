# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_current_user, require_admin, require_roles, require_trainer
from .database import get_db
from .services import (
    get_availability_service,
    get_booking_service,
    get_event_publisher,
    get_notification_service,
    get_rating_service,
)

__all__ = [
    # Auth
    "get_current_user",
    "require_roles",
    "require_admin",
    "require_trainer",
    # Database
    "get_db",
    # Services
    "get_availability_service",
    "get_booking_service",
    "get_event_publisher",
    "get_notification_service",
    "get_rating_service",
]
