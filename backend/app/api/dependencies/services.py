# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...events import EventPublisher
from ...events.handlers import register_notification_handlers
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.notification_service import NotificationService
from ...services.rating_service import RatingService
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_notification_service() -> NotificationService:
    """Get singleton notification service instance."""
    return NotificationService()


@lru_cache(maxsize=1)
def get_event_publisher_singleton() -> EventPublisher:
    """Process-wide publisher with the notification handlers subscribed."""
    publisher = EventPublisher(max_workers=settings.notification_workers)
    if settings.notifications_enabled:
        register_notification_handlers(publisher, get_notification_service())
    else:
        logger.info("Notifications disabled; booking events will not be delivered")
    return publisher


def get_event_publisher() -> EventPublisher:
    """Get event publisher for dependency injection."""
    return get_event_publisher_singleton()


def get_rating_service(db: Session = Depends(get_db)) -> RatingService:
    return RatingService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> BookingService:
    """
    Get booking service instance.

    Args:
        db: Database session
        event_publisher: Publisher for post-commit booking events

    Returns:
        BookingService instance
    """
    return BookingService(db, event_publisher=event_publisher)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)
