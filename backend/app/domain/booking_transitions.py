"""
Booking state machine.

Every lifecycle change is expressed as a command applied to the current
booking by ``apply_transition``. The function performs no I/O: it checks
the command payload, the actor's permission and the current status against
``ALLOWED_TRANSITIONS`` and returns the column changes to persist. The
caller writes them with a compare-and-swap on the status it was computed
from, so a concurrent change makes the write fail instead of being lost.

    pending  --approve-->  approved  --complete-->  completed  --rate-->  completed
    pending  --reject--->  rejected
    pending  --cancel--->  cancelled
    approved --cancel--->  cancelled
    pending/approved --reschedule--> (unchanged)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any, Callable, Dict, Optional, Tuple, Type, Union

from ..core.constants import MAX_NOTES_LENGTH, MAX_RATING, MAX_REASON_LENGTH, MIN_RATING
from ..core.exceptions import ForbiddenException, InvalidStateException, ValidationException
from ..models.booking import Booking, BookingStatus, BookingType, PaymentStatus, ResponseAction

PENDING = BookingStatus.PENDING.value
APPROVED = BookingStatus.APPROVED.value
REJECTED = BookingStatus.REJECTED.value
CANCELLED = BookingStatus.CANCELLED.value
COMPLETED = BookingStatus.COMPLETED.value


@dataclass(frozen=True)
class Approve:
    actor_id: str
    trainer_notes: Optional[str] = None


@dataclass(frozen=True)
class Reject:
    actor_id: str
    reason: Optional[str] = None


@dataclass(frozen=True)
class Cancel:
    actor_id: str
    reason: Optional[str] = None
    actor_is_admin: bool = False


@dataclass(frozen=True)
class Complete:
    actor_id: str
    session_notes: Optional[str] = None
    client_attended: bool = True
    trainer_rating: Optional[int] = None


@dataclass(frozen=True)
class Rate:
    actor_id: str
    rating: int
    review: Optional[str] = None


@dataclass(frozen=True)
class Reschedule:
    actor_id: str
    session_date: date
    start_time: time
    end_time: time
    duration: int
    reason: Optional[str] = None
    actor_is_admin: bool = False


Command = Union[Approve, Reject, Cancel, Complete, Rate, Reschedule]

# command -> (statuses it may be applied from, resulting status or None to keep)
ALLOWED_TRANSITIONS: Dict[Type[Any], Tuple[Tuple[str, ...], Optional[str]]] = {
    Approve: ((PENDING,), APPROVED),
    Reject: ((PENDING,), REJECTED),
    Cancel: ((PENDING, APPROVED), CANCELLED),
    Complete: ((APPROVED,), COMPLETED),
    Rate: ((COMPLETED,), None),
    Reschedule: ((PENDING, APPROVED), None),
}


@dataclass(frozen=True)
class ResponseEntry:
    """Row to append to the booking's response log."""

    responded_by_id: str
    action: str
    reason: Optional[str] = None


@dataclass(frozen=True)
class TransitionResult:
    from_status: str
    to_status: str
    changes: Dict[str, Any] = field(default_factory=dict)
    response: Optional[ResponseEntry] = None
    previous_rating: Optional[int] = None
    # Column values that must still hold when the change is written
    guards: Dict[str, Any] = field(default_factory=dict)

    @property
    def status_changed(self) -> bool:
        return self.from_status != self.to_status


def _check_length(value: Optional[str], field_name: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) > max_length:
        raise ValidationException(
            f"{field_name} cannot exceed {max_length} characters",
            code="FIELD_TOO_LONG",
            details={"field": field_name, "max_length": max_length},
        )
    return value or None


def validate_rating(rating: Any, field_name: str = "rating") -> int:
    """Ratings are integers on the 1-5 scale; bools and floats are rejected."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationException(
            "Rating must be a whole number between 1 and 5",
            code="INVALID_RATING",
            details={"field": field_name, "value": rating},
        )
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationException(
            "Rating must be between 1 and 5",
            code="INVALID_RATING",
            details={"field": field_name, "value": rating},
        )
    return rating


def _require_trainer(booking: Booking, actor_id: str, action: str) -> None:
    if booking.trainer_id != actor_id:
        raise ForbiddenException(
            f"Only the booking's trainer can {action} it",
            code="NOT_BOOKING_TRAINER",
        )


def _require_party(booking: Booking, actor_id: str, actor_is_admin: bool, action: str) -> None:
    if actor_is_admin or booking.involves(actor_id):
        return
    raise ForbiddenException(
        f"Not authorized to {action} this booking",
        code="NOT_BOOKING_PARTICIPANT",
    )


def _approve(booking: Booking, cmd: Approve, now: datetime) -> Dict[str, Any]:
    _require_trainer(booking, cmd.actor_id, "approve")
    notes = _check_length(cmd.trainer_notes, "trainerNotes", MAX_NOTES_LENGTH)
    changes: Dict[str, Any] = {}
    if notes is not None:
        changes["trainer_notes"] = notes
    return changes


def _reject(booking: Booking, cmd: Reject, now: datetime) -> Dict[str, Any]:
    _require_trainer(booking, cmd.actor_id, "reject")
    _check_length(cmd.reason, "reason", MAX_REASON_LENGTH)
    return {}


def _cancel(booking: Booking, cmd: Cancel, now: datetime) -> Dict[str, Any]:
    _require_party(booking, cmd.actor_id, cmd.actor_is_admin, "cancel")
    reason = _check_length(cmd.reason, "reason", MAX_REASON_LENGTH)
    return {
        "cancelled_by_id": cmd.actor_id,
        "cancellation_reason": reason,
        "cancelled_at": now,
    }


def _complete(booking: Booking, cmd: Complete, now: datetime) -> Dict[str, Any]:
    _require_trainer(booking, cmd.actor_id, "complete")
    changes: Dict[str, Any] = {
        "completed_at": now,
        "client_attended": bool(cmd.client_attended),
        "session_notes": _check_length(cmd.session_notes, "sessionNotes", MAX_NOTES_LENGTH),
        # Payment capture is simulated: completing the session marks it paid
        "payment_status": PaymentStatus.PAID.value,
        "paid_at": now,
    }
    if cmd.trainer_rating is not None:
        changes["trainer_rating"] = validate_rating(cmd.trainer_rating, "trainerRating")
    if booking.booking_type == BookingType.RECURRING.value:
        changes["recurring_completed_sessions"] = (booking.recurring_completed_sessions or 0) + 1
    return changes


def _rate(booking: Booking, cmd: Rate, now: datetime) -> Dict[str, Any]:
    validate_rating(cmd.rating)
    if booking.client_id != cmd.actor_id:
        raise ForbiddenException("Only the booking's client can rate it", code="NOT_BOOKING_CLIENT")
    changes: Dict[str, Any] = {"client_rating": cmd.rating, "rated_at": now}
    review = _check_length(cmd.review, "review", MAX_NOTES_LENGTH)
    if review is not None:
        changes["session_notes"] = review
    return changes


def _reschedule(booking: Booking, cmd: Reschedule, now: datetime) -> Dict[str, Any]:
    _require_party(booking, cmd.actor_id, cmd.actor_is_admin, "reschedule")
    _check_length(cmd.reason, "reason", MAX_REASON_LENGTH)
    return {
        "session_date": cmd.session_date,
        "start_time": cmd.start_time,
        "end_time": cmd.end_time,
        "duration": cmd.duration,
    }


_HANDLERS: Dict[Type[Any], Callable[[Booking, Any, datetime], Dict[str, Any]]] = {
    Approve: _approve,
    Reject: _reject,
    Cancel: _cancel,
    Complete: _complete,
    Rate: _rate,
    Reschedule: _reschedule,
}

_RESPONSE_ACTIONS: Dict[Type[Any], str] = {
    Approve: ResponseAction.APPROVED.value,
    Reject: ResponseAction.REJECTED.value,
    Cancel: ResponseAction.CANCELLED.value,
    Reschedule: ResponseAction.RESCHEDULED.value,
}

_VERBS: Dict[Type[Any], str] = {
    Approve: "approved",
    Reject: "rejected",
    Cancel: "cancelled",
    Complete: "completed",
    Rate: "rated",
    Reschedule: "rescheduled",
}


def apply_transition(
    booking: Booking, command: Command, now: Optional[datetime] = None
) -> TransitionResult:
    """
    Compute the effect of ``command`` on ``booking`` without mutating it.

    Checks run in a fixed order: payload, actor permission, current status.

    Raises:
        ValidationException: malformed command payload (e.g. rating outside 1-5)
        ForbiddenException: actor may not perform this command on the booking
        InvalidStateException: command is not legal from the current status
    """
    command_type = type(command)
    if command_type not in _HANDLERS:
        raise ValidationException(
            f"Unsupported booking command: {command_type.__name__}",
            code="INVALID_ACTION",
        )

    now = now or datetime.now(timezone.utc)
    changes = _HANDLERS[command_type](booking, command, now)

    sources, target = ALLOWED_TRANSITIONS[command_type]
    current = booking.status
    if current not in sources:
        raise InvalidStateException(
            f"Booking cannot be {_VERBS[command_type]} from status '{current}'",
            current_status=current,
            allowed_statuses=sources,
        )

    to_status = target or current
    if to_status != current:
        changes["status"] = to_status

    response = None
    action = _RESPONSE_ACTIONS.get(command_type)
    if action is not None:
        response = ResponseEntry(
            responded_by_id=command.actor_id,
            action=action,
            reason=_check_length(getattr(command, "reason", None), "reason", MAX_REASON_LENGTH),
        )

    return TransitionResult(
        from_status=current,
        to_status=to_status,
        changes=changes,
        response=response,
        previous_rating=booking.client_rating if command_type is Rate else None,
        guards={"client_rating": booking.client_rating} if command_type is Rate else {},
    )
