from datetime import date, datetime, time, timezone

import pytest

from app.core.exceptions import ForbiddenException, InvalidStateException, ValidationException
from app.domain.booking_transitions import (
    ALLOWED_TRANSITIONS,
    Approve,
    Cancel,
    Complete,
    Rate,
    Reject,
    Reschedule,
    apply_transition,
    validate_rating,
)
from app.models.booking import Booking, BookingStatus, BookingType, PaymentStatus

CLIENT = "01HCLIENT00000000000000000"
TRAINER = "01HTRAINER0000000000000000"
STRANGER = "01HSTRANGER000000000000000"
NOW = datetime(2024, 7, 1, 15, 0, tzinfo=timezone.utc)


def _booking(status: BookingStatus, **kwargs) -> Booking:
    return Booking(
        id="01HBOOKING0000000000000000",
        client_id=CLIENT,
        trainer_id=TRAINER,
        status=status.value,
        session_date=date(2024, 7, 1),
        start_time=time(14, 0),
        end_time=time(15, 0),
        duration=60,
        **kwargs,
    )


def _command_for(command_type):
    return {
        Approve: Approve(TRAINER),
        Reject: Reject(TRAINER),
        Cancel: Cancel(CLIENT),
        Complete: Complete(TRAINER),
        Rate: Rate(CLIENT, 5),
        Reschedule: Reschedule(CLIENT, date(2024, 7, 3), time(9, 0), time(10, 0), 60),
    }[command_type]


class TestTransitionTable:
    @pytest.mark.parametrize("command_type", list(ALLOWED_TRANSITIONS))
    @pytest.mark.parametrize("status", list(BookingStatus))
    def test_only_listed_transitions_are_accepted(self, command_type, status):
        sources, target = ALLOWED_TRANSITIONS[command_type]
        booking = _booking(status, client_rating=None)
        command = _command_for(command_type)

        if status.value in sources:
            result = apply_transition(booking, command, now=NOW)
            assert result.from_status == status.value
            assert result.to_status == (target or status.value)
        else:
            with pytest.raises(InvalidStateException) as exc_info:
                apply_transition(booking, command, now=NOW)
            assert exc_info.value.details["current_status"] == status.value

    def test_terminal_statuses_have_no_way_out_except_rating(self):
        for status in (BookingStatus.REJECTED, BookingStatus.CANCELLED):
            for command_type in ALLOWED_TRANSITIONS:
                with pytest.raises(InvalidStateException):
                    apply_transition(_booking(status), _command_for(command_type), now=NOW)


class TestApproveReject:
    def test_approve_sets_status_notes_and_response(self):
        result = apply_transition(
            _booking(BookingStatus.PENDING), Approve(TRAINER, "bring weights"), now=NOW
        )
        assert result.changes == {"trainer_notes": "bring weights", "status": "approved"}
        assert result.response.action == "approved"
        assert result.response.responded_by_id == TRAINER
        assert result.status_changed

    def test_reject_records_reason(self):
        result = apply_transition(
            _booking(BookingStatus.PENDING), Reject(TRAINER, "  fully booked  "), now=NOW
        )
        assert result.to_status == "rejected"
        assert result.response.reason == "fully booked"

    def test_only_the_booking_trainer_may_decide(self):
        with pytest.raises(ForbiddenException) as exc_info:
            apply_transition(_booking(BookingStatus.PENDING), Approve(STRANGER), now=NOW)
        assert exc_info.value.code == "NOT_BOOKING_TRAINER"

    def test_permission_is_checked_before_status(self):
        with pytest.raises(ForbiddenException):
            apply_transition(_booking(BookingStatus.COMPLETED), Reject(CLIENT), now=NOW)

    def test_transition_does_not_mutate_the_booking(self):
        booking = _booking(BookingStatus.PENDING)
        apply_transition(booking, Approve(TRAINER, "notes"), now=NOW)
        assert booking.status == "pending"
        assert booking.trainer_notes is None


class TestCancel:
    @pytest.mark.parametrize("actor", [CLIENT, TRAINER])
    def test_participants_can_cancel(self, actor):
        result = apply_transition(
            _booking(BookingStatus.APPROVED), Cancel(actor, "sick"), now=NOW
        )
        assert result.changes["status"] == "cancelled"
        assert result.changes["cancelled_by_id"] == actor
        assert result.changes["cancellation_reason"] == "sick"
        assert result.changes["cancelled_at"] == NOW
        assert result.response.action == "cancelled"

    def test_admin_can_cancel(self):
        result = apply_transition(
            _booking(BookingStatus.PENDING), Cancel(STRANGER, actor_is_admin=True), now=NOW
        )
        assert result.to_status == "cancelled"

    def test_outsider_cannot_cancel(self):
        with pytest.raises(ForbiddenException) as exc_info:
            apply_transition(_booking(BookingStatus.PENDING), Cancel(STRANGER), now=NOW)
        assert exc_info.value.code == "NOT_BOOKING_PARTICIPANT"

    def test_second_cancel_is_rejected(self):
        with pytest.raises(InvalidStateException):
            apply_transition(_booking(BookingStatus.CANCELLED), Cancel(CLIENT), now=NOW)


class TestComplete:
    def test_complete_marks_payment_paid(self):
        result = apply_transition(
            _booking(BookingStatus.APPROVED),
            Complete(TRAINER, session_notes="good form", client_attended=False),
            now=NOW,
        )
        assert result.changes["status"] == "completed"
        assert result.changes["completed_at"] == NOW
        assert result.changes["client_attended"] is False
        assert result.changes["session_notes"] == "good form"
        assert result.changes["payment_status"] == PaymentStatus.PAID.value
        assert result.changes["paid_at"] == NOW
        assert result.response is None
        assert "recurring_completed_sessions" not in result.changes

    def test_completing_recurring_booking_advances_the_series(self):
        booking = _booking(
            BookingStatus.APPROVED,
            booking_type=BookingType.RECURRING.value,
            recurring_frequency="weekly",
            recurring_completed_sessions=2,
        )
        result = apply_transition(booking, Complete(TRAINER), now=NOW)
        assert result.changes["recurring_completed_sessions"] == 3

    def test_pending_booking_cannot_be_completed(self):
        with pytest.raises(InvalidStateException):
            apply_transition(_booking(BookingStatus.PENDING), Complete(TRAINER), now=NOW)

    def test_client_cannot_complete(self):
        with pytest.raises(ForbiddenException):
            apply_transition(_booking(BookingStatus.APPROVED), Complete(CLIENT), now=NOW)

    def test_invalid_trainer_rating(self):
        with pytest.raises(ValidationException):
            apply_transition(
                _booking(BookingStatus.APPROVED), Complete(TRAINER, trainer_rating=6), now=NOW
            )


class TestRate:
    def test_rate_keeps_status_and_overwrites_notes_with_review(self):
        booking = _booking(BookingStatus.COMPLETED, session_notes="trainer notes")
        result = apply_transition(booking, Rate(CLIENT, 5, "great session"), now=NOW)
        assert result.to_status == "completed"
        assert not result.status_changed
        assert result.changes == {
            "client_rating": 5,
            "rated_at": NOW,
            "session_notes": "great session",
        }
        assert result.previous_rating is None
        assert result.guards == {"client_rating": None}

    def test_rerating_reports_previous_value(self):
        booking = _booking(BookingStatus.COMPLETED, client_rating=3)
        result = apply_transition(booking, Rate(CLIENT, 4), now=NOW)
        assert result.previous_rating == 3
        assert result.guards == {"client_rating": 3}

    def test_only_client_may_rate(self):
        with pytest.raises(ForbiddenException) as exc_info:
            apply_transition(_booking(BookingStatus.COMPLETED), Rate(TRAINER, 5), now=NOW)
        assert exc_info.value.code == "NOT_BOOKING_CLIENT"

    def test_rating_is_validated_before_status(self):
        with pytest.raises(ValidationException):
            apply_transition(_booking(BookingStatus.PENDING), Rate(CLIENT, 0), now=NOW)

    def test_rating_requires_completion(self):
        with pytest.raises(InvalidStateException):
            apply_transition(_booking(BookingStatus.APPROVED), Rate(CLIENT, 4), now=NOW)


class TestReschedule:
    def test_reschedule_moves_window_without_status_change(self):
        command = Reschedule(TRAINER, date(2024, 7, 3), time(11, 0), time(12, 30), 90, "clash")
        result = apply_transition(_booking(BookingStatus.APPROVED), command, now=NOW)
        assert result.to_status == "approved"
        assert result.changes == {
            "session_date": date(2024, 7, 3),
            "start_time": time(11, 0),
            "end_time": time(12, 30),
            "duration": 90,
        }
        assert result.response.action == "rescheduled"

    def test_completed_booking_cannot_be_rescheduled(self):
        with pytest.raises(InvalidStateException):
            apply_transition(
                _booking(BookingStatus.COMPLETED), _command_for(Reschedule), now=NOW
            )


class TestValidateRating:
    @pytest.mark.parametrize("rating", [1, 2, 3, 4, 5])
    def test_accepts_scale(self, rating):
        assert validate_rating(rating) == rating

    @pytest.mark.parametrize("rating", [0, 6, -1, 4.5, "5", True, None])
    def test_rejects_everything_else(self, rating):
        with pytest.raises(ValidationException) as exc_info:
            validate_rating(rating)
        assert exc_info.value.code == "INVALID_RATING"
