"""Event handlers - route booking events to the notification service."""
import logging
from typing import Any, Callable, Dict, Type

from ..services.notification_service import NotificationService
from .booking_events import (
    BookingApproved,
    BookingCancelled,
    BookingCompleted,
    BookingCreated,
    BookingRated,
    BookingRejected,
    BookingRescheduled,
)
from .publisher import EventPublisher

logger = logging.getLogger(__name__)


def build_notification_handlers(
    notification_service: NotificationService,
) -> Dict[Type[Any], Callable[[Any], None]]:
    """Registry of event type -> handler sending the matching notification."""

    def handle_booking_created(event: BookingCreated) -> None:
        notification_service.send_booking_requested(event)

    def handle_booking_approved(event: BookingApproved) -> None:
        notification_service.send_booking_approved(event)

    def handle_booking_rejected(event: BookingRejected) -> None:
        notification_service.send_booking_rejected(event)

    def handle_booking_cancelled(event: BookingCancelled) -> None:
        notification_service.send_booking_cancelled(event)

    def handle_booking_completed(event: BookingCompleted) -> None:
        notification_service.send_booking_completed(event)

    def handle_booking_rescheduled(event: BookingRescheduled) -> None:
        notification_service.send_booking_rescheduled(event)

    def handle_booking_rated(event: BookingRated) -> None:
        notification_service.send_booking_rated(event)

    return {
        BookingCreated: handle_booking_created,
        BookingApproved: handle_booking_approved,
        BookingRejected: handle_booking_rejected,
        BookingCancelled: handle_booking_cancelled,
        BookingCompleted: handle_booking_completed,
        BookingRescheduled: handle_booking_rescheduled,
        BookingRated: handle_booking_rated,
    }


def register_notification_handlers(
    publisher: EventPublisher, notification_service: NotificationService
) -> None:
    for event_type, handler in build_notification_handlers(notification_service).items():
        publisher.subscribe(event_type, handler)
    logger.info("Booking notification handlers registered")
