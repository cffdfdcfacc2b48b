"""Booking domain events and their in-process publisher."""

from app.events.booking_events import (
    BookingApproved,
    BookingCancelled,
    BookingCompleted,
    BookingCreated,
    BookingEvent,
    BookingRated,
    BookingRejected,
    BookingRescheduled,
)
from app.events.publisher import EventPublisher

__all__ = [
    "BookingApproved",
    "BookingCancelled",
    "BookingCompleted",
    "BookingCreated",
    "BookingEvent",
    "BookingRated",
    "BookingRejected",
    "BookingRescheduled",
    "EventPublisher",
]
