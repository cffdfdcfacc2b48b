"""Booking domain events."""
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BookingEvent:
    """
    Fields shared by every booking event.

    Events carry the contact details their notifications need so that
    handlers never have to reopen a database session.
    """

    booking_id: str
    client_id: str
    trainer_id: str
    client_email: str
    client_name: str
    trainer_email: str
    trainer_name: str
    session_date: str
    start_time: str
    end_time: str
    occurred_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCreated(BookingEvent):
    """Fired after a client requests a booking."""

    payment_amount: float = 0.0
    currency: str = "CAD"


@dataclass
class BookingApproved(BookingEvent):
    """Fired after the trainer approves a pending booking."""

    trainer_notes: Optional[str] = None


@dataclass
class BookingRejected(BookingEvent):
    """Fired after the trainer rejects a pending booking."""

    reason: Optional[str] = None


@dataclass
class BookingCancelled(BookingEvent):
    """Fired after a booking is cancelled."""

    cancelled_by_id: str = ""
    reason: Optional[str] = None


@dataclass
class BookingCompleted(BookingEvent):
    """Fired after the trainer marks a session complete."""

    client_attended: bool = True


@dataclass
class BookingRescheduled(BookingEvent):
    """Fired after a booking moves to a new session window."""

    rescheduled_by_id: str = ""
    previous_session_date: str = ""
    previous_start_time: str = ""


@dataclass
class BookingRated(BookingEvent):
    """Fired after the client rates a completed session."""

    rating: int = 0
    trainer_rating_average: float = 0.0
    trainer_rating_count: int = 0
