# backend/app/services/booking_service.py
"""
Booking Service for the FitBook platform

Handles the booking lifecycle between clients and trainers:
- Creating booking requests with trainer and client conflict checks
- Trainer decisions (approve/reject), cancellation, completion and rating
- Rescheduling an active booking to a new window
- Listings, trainer rosters and admin statistics

Every status change is computed by app.domain.booking_transitions and
persisted with a compare-and-swap on the status it was computed from.
Notifications are published after commit and never fail the operation.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.enums import StatsPeriod
from ..core.exceptions import (
    BookingConflictException,
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from ..domain.booking_transitions import (
    Approve,
    Cancel,
    Command,
    Complete,
    Rate,
    Reject,
    Reschedule,
    TransitionResult,
    apply_transition,
)
from ..domain.session_details import build_session_details
from ..events import (
    BookingApproved,
    BookingCancelled,
    BookingCompleted,
    BookingCreated,
    BookingRated,
    BookingRejected,
    BookingRescheduled,
    EventPublisher,
)
from ..events.booking_events import BookingEvent
from ..models.booking import Booking, BookingStatus
from ..models.trainer import TrainerProfile
from ..models.user import User
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.user_repository import UserRepository
from ..schemas.booking import BookingComplete, BookingCreate, BookingReschedule
from .base import BaseService
from .conflict_checker import ConflictChecker
from .rating_service import RatingService, RatingSummary

logger = logging.getLogger(__name__)

TRAINER_CONFLICT_MESSAGE = "Trainer already has a booking that overlaps this time"
CLIENT_CONFLICT_MESSAGE = "You already have a booking that overlaps this time"
GENERIC_CONFLICT_MESSAGE = "This time slot conflicts with an existing booking"
CONCURRENT_UPDATE_MESSAGE = "Booking was modified by another request; reload and try again"

_CENT = Decimal("0.01")

_STATS_WINDOWS = {
    StatsPeriod.WEEK: timedelta(days=7),
    StatsPeriod.MONTH: timedelta(days=30),
    StatsPeriod.YEAR: timedelta(days=365),
}

_APPROVE_ACTIONS = {"approve", "approved"}
_REJECT_ACTIONS = {"reject", "rejected"}


def calculate_payment_amount(hourly_rate: Any, duration: int) -> Decimal:
    """Price of a session: duration/60 x hourly rate, rounded half-up to cents."""
    rate = Decimal(str(hourly_rate))
    return (rate * Decimal(duration) / Decimal(60)).quantize(_CENT, rounding=ROUND_HALF_UP)


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Centralizes booking business logic and coordinates the conflict
    checker, rating aggregation and event publishing.
    """

    def __init__(
        self,
        db: Session,
        event_publisher: Optional[EventPublisher] = None,
        repository: Optional[BookingRepository] = None,
        user_repository: Optional[UserRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        rating_service: Optional[RatingService] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            event_publisher: Publisher for post-commit events; events are
                dropped when no handler is subscribed
            repository: Optional BookingRepository instance
            user_repository: Optional UserRepository instance
            conflict_checker: Optional ConflictChecker instance
            rating_service: Optional RatingService instance
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, repository=self.repository)
        self.rating_service = rating_service or RatingService(
            db, booking_repository=self.repository
        )
        self.event_publisher = event_publisher or EventPublisher(inline=True)

    # Creation

    @BaseService.measure_operation("create_booking")
    def create_booking(self, client: User, booking_data: BookingCreate) -> Booking:
        """
        Create a pending booking request for ``client``.

        Raises:
            NotFoundException: trainer missing, inactive or not a trainer
            ValidationException: trainer not approved, invalid session details
            BookingConflictException: trainer or client already busy at that time
        """
        self.log_operation(
            "create_booking",
            client_id=client.id,
            trainer_id=booking_data.trainer_id,
            session_date=str(booking_data.session_date),
        )

        trainer = self._validate_booking_prerequisites(client, booking_data)
        details = build_session_details(
            booking_data.session_type, booking_data.location, booking_data.meeting_link
        )
        duration = self._validate_duration(booking_data.duration)
        amount = self._calculate_payment(trainer.trainer_profile, duration)
        recurring = booking_data.recurring_details
        recurring_columns = (
            {
                "recurring_frequency": recurring.frequency.value,
                "recurring_end_date": recurring.end_date,
                "recurring_total_sessions": recurring.total_sessions,
                "recurring_completed_sessions": 0,
            }
            if recurring is not None
            else {}
        )
        start_time = booking_data.session_time.start

        try:
            with self.repository.transaction():
                self._check_conflicts(
                    booking_data.session_date, start_time, duration, trainer.id, client.id
                )
                booking = self.repository.create(
                    client_id=client.id,
                    trainer_id=trainer.id,
                    status=BookingStatus.PENDING.value,
                    booking_type=booking_data.booking_type.value,
                    session_date=booking_data.session_date,
                    start_time=start_time,
                    end_time=booking_data.session_time.end,
                    duration=duration,
                    goals=list(booking_data.goals),
                    client_notes=booking_data.client_notes,
                    payment_amount=amount,
                    currency=settings.default_currency,
                    payment_method=booking_data.payment_method.value,
                    **details.columns(),
                    **recurring_columns,
                )
        except IntegrityError as exc:
            self.logger.warning(
                f"Unique slot constraint rejected booking for trainer {trainer.id} "
                f"on {booking_data.session_date} at {start_time}"
            )
            raise BookingConflictException(
                message=GENERIC_CONFLICT_MESSAGE,
                details={"trainer_id": trainer.id, "session_date": str(booking_data.session_date)},
            ) from exc

        self.logger.info(
            f"Booking {booking.id} requested by client {client.id} with trainer {trainer.id} "
            f"for {booking.session_date} {booking.start_time.strftime('%H:%M')}"
        )
        self._publish(
            BookingCreated(
                **self._event_fields(booking),
                payment_amount=float(booking.payment_amount),
                currency=booking.currency,
            )
        )
        return booking

    def _validate_booking_prerequisites(self, client: User, booking_data: BookingCreate) -> User:
        trainer = self.user_repository.get_with_trainer_profile(booking_data.trainer_id)
        if (
            trainer is None
            or not trainer.is_active
            or not trainer.is_trainer
            or trainer.trainer_profile is None
        ):
            raise NotFoundException("Trainer not found", code="TRAINER_NOT_FOUND")
        if not trainer.is_approved:
            raise ValidationException(
                "Trainer is not approved yet",
                code="TRAINER_NOT_APPROVED",
                details={"trainer_id": trainer.id},
            )
        if trainer.id == client.id:
            # Allowed, but worth noticing in the logs
            self.logger.warning(f"User {client.id} is booking a session with themselves")
        return trainer

    def _validate_duration(self, duration: Optional[int]) -> int:
        duration = duration or settings.default_session_duration
        if not settings.min_session_duration <= duration <= settings.max_session_duration:
            raise ValidationException(
                f"Duration must be between {settings.min_session_duration} and "
                f"{settings.max_session_duration} minutes",
                code="INVALID_DURATION",
                details={"duration": duration},
            )
        return duration

    def _calculate_payment(self, profile: Optional[TrainerProfile], duration: int) -> Decimal:
        hourly_rate = profile.hourly_rate if profile and profile.hourly_rate else None
        if hourly_rate is None:
            hourly_rate = settings.default_hourly_rate
        amount = calculate_payment_amount(hourly_rate, duration)
        if amount <= 0:
            raise ValidationException(
                "Computed payment amount must be positive", code="INVALID_PAYMENT_AMOUNT"
            )
        return amount

    def _check_conflicts(
        self,
        session_date: date,
        start_time: Any,
        duration: int,
        trainer_id: str,
        client_id: str,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        trainer_conflicts = self.conflict_checker.find_conflicts(
            session_date,
            start_time,
            duration,
            trainer_id=trainer_id,
            exclude_booking_id=exclude_booking_id,
        )
        if trainer_conflicts:
            raise BookingConflictException(
                message=TRAINER_CONFLICT_MESSAGE, details={"conflicts": trainer_conflicts}
            )
        client_conflicts = self.conflict_checker.find_conflicts(
            session_date,
            start_time,
            duration,
            client_id=client_id,
            exclude_booking_id=exclude_booking_id,
        )
        if client_conflicts:
            raise BookingConflictException(
                message=CLIENT_CONFLICT_MESSAGE, details={"conflicts": client_conflicts}
            )

    # Transitions

    def _get_booking_or_404(self, booking_id: str) -> Booking:
        booking = self.repository.get_booking(booking_id, with_details=True)
        if booking is None:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        return booking

    def _persist_transition(self, booking: Booking, result: TransitionResult) -> None:
        """Write ``result`` with a compare-and-swap; must run inside a transaction."""
        if not self.repository.transition_status(
            booking.id, result.from_status, result.changes, expected_values=result.guards
        ):
            self.logger.warning(
                f"Concurrent update detected on booking {booking.id} "
                f"(expected status {result.from_status}, guards {result.guards})"
            )
            raise InvalidStateException(
                CONCURRENT_UPDATE_MESSAGE, current_status=result.from_status
            )
        if result.response is not None:
            self.repository.add_response(
                booking.id,
                result.response.responded_by_id,
                result.response.action,
                result.response.reason,
            )

    def _apply(self, booking_id: str, command: Command) -> Tuple[Booking, TransitionResult]:
        booking = self._get_booking_or_404(booking_id)
        result = apply_transition(booking, command)
        with self.repository.transaction():
            self._persist_transition(booking, result)
        self.repository.refresh(booking)
        self.logger.info(
            f"Booking {booking.id} {result.from_status} -> {result.to_status} "
            f"by {command.actor_id} ({type(command).__name__})"
        )
        return booking, result

    @BaseService.measure_operation("approve_booking")
    def approve_booking(
        self, booking_id: str, trainer: User, trainer_notes: Optional[str] = None
    ) -> Booking:
        booking, _ = self._apply(booking_id, Approve(trainer.id, trainer_notes))
        self._publish(
            BookingApproved(**self._event_fields(booking), trainer_notes=booking.trainer_notes)
        )
        return booking

    @BaseService.measure_operation("reject_booking")
    def reject_booking(
        self, booking_id: str, trainer: User, reason: Optional[str] = None
    ) -> Booking:
        booking, result = self._apply(booking_id, Reject(trainer.id, reason))
        reason = result.response.reason if result.response else None
        self._publish(BookingRejected(**self._event_fields(booking), reason=reason))
        return booking

    def respond_to_booking(
        self,
        booking_id: str,
        trainer: User,
        action: str,
        reason: Optional[str] = None,
        trainer_notes: Optional[str] = None,
    ) -> Booking:
        """Dispatch a trainer's approve/reject decision."""
        normalized = (action or "").strip().lower()
        if normalized in _APPROVE_ACTIONS:
            return self.approve_booking(booking_id, trainer, trainer_notes)
        if normalized in _REJECT_ACTIONS:
            return self.reject_booking(booking_id, trainer, reason)
        raise ValidationException(
            "Invalid action. Use 'approve' or 'reject'",
            code="INVALID_ACTION",
            details={"action": action},
        )

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, booking_id: str, user: User, reason: Optional[str] = None) -> Booking:
        """
        Cancel a pending or approved booking.

        The client, the trainer or an admin may cancel. Cancelling an already
        cancelled booking is an invalid transition.
        """
        booking, _ = self._apply(
            booking_id, Cancel(user.id, reason, actor_is_admin=user.is_admin)
        )
        self._publish(
            BookingCancelled(
                **self._event_fields(booking),
                cancelled_by_id=user.id,
                reason=booking.cancellation_reason,
            )
        )
        return booking

    @BaseService.measure_operation("complete_booking")
    def complete_booking(
        self, booking_id: str, trainer: User, completion: Optional[BookingComplete] = None
    ) -> Booking:
        completion = completion or BookingComplete()
        booking, _ = self._apply(
            booking_id,
            Complete(
                trainer.id,
                session_notes=completion.session_notes,
                client_attended=completion.client_attended,
                trainer_rating=completion.trainer_rating,
            ),
        )
        self._publish(
            BookingCompleted(
                **self._event_fields(booking), client_attended=bool(booking.client_attended)
            )
        )
        return booking

    @BaseService.measure_operation("rate_booking")
    def rate_booking(
        self, booking_id: str, client: User, rating: int, review: Optional[str] = None
    ) -> Tuple[Booking, RatingSummary]:
        """
        Record the client's rating and fold it into the trainer's aggregate.

        The booking write and the aggregate update commit together.

        Returns:
            (updated booking, {"average", "count"} of the trainer's rating)
        """
        booking = self._get_booking_or_404(booking_id)
        result = apply_transition(booking, Rate(client.id, rating, review))
        with self.repository.transaction():
            self._persist_transition(booking, result)
            summary = self.rating_service.apply_rating(
                booking.trainer_id, rating, previous_rating=result.previous_rating
            )
        self.repository.refresh(booking)

        self.logger.info(
            f"Booking {booking.id} rated {rating} by client {client.id}"
            + (f" (was {result.previous_rating})" if result.previous_rating else "")
        )
        self._publish(
            BookingRated(
                **self._event_fields(booking),
                rating=rating,
                trainer_rating_average=summary["average"],
                trainer_rating_count=int(summary["count"]),
            )
        )
        return booking, summary

    @BaseService.measure_operation("reschedule_booking")
    def reschedule_booking(
        self, booking_id: str, user: User, reschedule_data: BookingReschedule
    ) -> Booking:
        """
        Move an active booking to a new window.

        Conflicts are checked for both parties, ignoring the booking itself.
        The payment amount is kept as computed at creation.
        """
        booking = self._get_booking_or_404(booking_id)
        duration = self._validate_duration(reschedule_data.duration)
        command = Reschedule(
            user.id,
            session_date=reschedule_data.session_date,
            start_time=reschedule_data.session_time.start,
            end_time=reschedule_data.session_time.end,
            duration=duration,
            reason=reschedule_data.reason,
            actor_is_admin=user.is_admin,
        )
        result = apply_transition(booking, command)
        previous_date = booking.session_date.isoformat()
        previous_start = booking.start_time.strftime("%H:%M")

        try:
            with self.repository.transaction():
                self._check_conflicts(
                    command.session_date,
                    command.start_time,
                    duration,
                    booking.trainer_id,
                    booking.client_id,
                    exclude_booking_id=booking.id,
                )
                self._persist_transition(booking, result)
        except IntegrityError as exc:
            raise BookingConflictException(
                message=GENERIC_CONFLICT_MESSAGE,
                details={"booking_id": booking.id, "session_date": str(command.session_date)},
            ) from exc
        self.repository.refresh(booking)

        self.logger.info(
            f"Booking {booking.id} rescheduled by {user.id} from {previous_date} "
            f"{previous_start} to {booking.session_date} {booking.start_time.strftime('%H:%M')}"
        )
        self._publish(
            BookingRescheduled(
                **self._event_fields(booking),
                rescheduled_by_id=user.id,
                previous_session_date=previous_date,
                previous_start_time=previous_start,
            )
        )
        return booking

    # Reads

    def get_booking_for_user(self, booking_id: str, user: User) -> Booking:
        booking = self._get_booking_or_404(booking_id)
        if not user.is_admin and not booking.involves(user.id):
            raise ForbiddenException(
                "You don't have permission to view this booking", code="NOT_BOOKING_PARTICIPANT"
            )
        return booking

    @staticmethod
    def _page_bounds(page: int, limit: int) -> Tuple[int, int]:
        if page < 1:
            raise ValidationException("Page must be at least 1", code="INVALID_PAGE")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationException(
                f"Limit must be between 1 and {MAX_PAGE_SIZE}", code="INVALID_PAGE_SIZE"
            )
        return (page - 1) * limit, limit

    @staticmethod
    def _status_filter(status: Optional[str]) -> Optional[List[str]]:
        if status is None:
            return None
        try:
            return [BookingStatus(status.strip().lower()).value]
        except ValueError:
            raise ValidationException(
                f"Invalid booking status: {status}",
                code="INVALID_STATUS",
                details={"allowed": [s.value for s in BookingStatus]},
            ) from None

    @BaseService.measure_operation("list_bookings_for_user")
    def list_bookings_for_user(
        self,
        user: User,
        status: Optional[str] = None,
        upcoming: bool = False,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Tuple[List[Booking], int]:
        """
        A user's own bookings: as trainer for trainers, as client otherwise.

        Returns:
            (page of bookings, total count)
        """
        offset, limit = self._page_bounds(page, limit)
        party: Dict[str, str] = (
            {"trainer_id": user.id} if user.is_trainer else {"client_id": user.id}
        )
        return self.repository.list_bookings(
            statuses=self._status_filter(status),
            upcoming_from=date.today() if upcoming else None,
            offset=offset,
            limit=limit,
            **party,
        )

    def get_pending_requests(
        self, trainer: User, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> Tuple[List[Booking], int]:
        offset, limit = self._page_bounds(page, limit)
        return self.repository.list_bookings(
            trainer_id=trainer.id,
            statuses=[BookingStatus.PENDING.value],
            offset=offset,
            limit=limit,
        )

    def get_trainer_clients(self, trainer: User) -> List[Dict[str, Any]]:
        """Distinct clients with approved or completed sessions, most recent first."""
        return self.repository.get_trainer_client_summaries(trainer.id)

    # Admin

    def list_all_bookings(
        self, status: Optional[str] = None, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> Tuple[List[Booking], int]:
        offset, limit = self._page_bounds(page, limit)
        return self.repository.list_bookings(
            statuses=self._status_filter(status), offset=offset, limit=limit
        )

    @BaseService.measure_operation("get_booking_stats")
    def get_booking_stats(self, period: StatsPeriod = StatsPeriod.MONTH) -> Dict[str, Any]:
        """
        Booking counts and amounts per status, plus paid revenue.

        Bookings are attributed to the period by creation time.
        """
        window = _STATS_WINDOWS.get(period)
        since = datetime.now(timezone.utc) - window if window else None
        breakdown = self.repository.get_status_breakdown(since)
        return {
            "period": period.value,
            "since": since,
            "total_bookings": sum(row["count"] for row in breakdown),
            "total_revenue": self.repository.get_paid_revenue(since),
            "by_status": breakdown,
        }

    def soft_delete_booking(self, booking_id: str, admin: User) -> None:
        with self.repository.transaction():
            deleted = self.repository.soft_delete(booking_id, datetime.now(timezone.utc))
            if not deleted:
                raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        self.log_operation("soft_delete_booking", booking_id=booking_id, admin_id=admin.id)

    # Events

    @staticmethod
    def _event_fields(booking: Booking) -> Dict[str, Any]:
        return {
            "booking_id": booking.id,
            "client_id": booking.client_id,
            "trainer_id": booking.trainer_id,
            "client_email": booking.client.email,
            "client_name": booking.client.name,
            "trainer_email": booking.trainer.email,
            "trainer_name": booking.trainer.name,
            "session_date": booking.session_date.isoformat(),
            "start_time": booking.start_time.strftime("%H:%M"),
            "end_time": booking.end_time.strftime("%H:%M"),
        }

    def _publish(self, event: BookingEvent) -> None:
        """Hand ``event`` to the publisher; failures never reach the caller."""
        try:
            self.event_publisher.publish(event)
        except Exception as e:
            self.logger.error(
                f"Failed to publish {type(event).__name__} for booking {event.booking_id}: {e}"
            )
