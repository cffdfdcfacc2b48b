from datetime import date, time

import pytest

from app.core.constants import TRAINER_UNAVAILABLE_MESSAGE
from app.core.exceptions import NotFoundException
from app.models.booking import BookingStatus
from app.services.availability_service import (
    AvailabilityService,
    TimeSlot,
    iter_available_slots,
    parse_hhmm,
)

MONDAY = date(2024, 7, 1)
TUESDAY = date(2024, 7, 2)


def _slots(day):
    return [slot.as_dict() for slot in day.available_slots]


class TestIterAvailableSlots:
    def test_hourly_slots_for_a_range(self):
        slots = list(iter_available_slots([{"start": "09:00", "end": "12:00"}], [], 60))
        assert slots == [
            TimeSlot(time(9, 0), time(10, 0)),
            TimeSlot(time(10, 0), time(11, 0)),
            TimeSlot(time(11, 0), time(12, 0)),
        ]

    def test_booked_start_removes_slot(self):
        slots = iter_available_slots([{"start": "09:00", "end": "12:00"}], [time(10, 0)], 60)
        assert [s.as_dict() for s in slots] == [
            {"start": "09:00", "end": "10:00"},
            {"start": "11:00", "end": "12:00"},
        ]

    def test_half_hour_booking_does_not_block_hour_slot(self):
        slots = list(iter_available_slots([{"start": "09:00", "end": "11:00"}], [time(9, 30)], 60))
        assert len(slots) == 2

    def test_ranges_are_merged_in_order_without_duplicates(self):
        ranges = [
            {"start": "14:00", "end": "16:00"},
            {"start": "08:00", "end": "10:00"},
            {"start": "09:00", "end": "11:00"},
        ]
        starts = [s.start for s in iter_available_slots(ranges, [], 60)]
        assert starts == [time(8), time(9), time(10), time(14), time(15)]

    def test_malformed_ranges_are_skipped(self):
        ranges = [
            {"start": "nine", "end": "10:00"},
            {"end": "10:00"},
            {"start": "09:00", "end": "10:00"},
        ]
        assert len(list(iter_available_slots(ranges, [], 60))) == 1

    def test_sequence_is_restartable(self):
        ranges = [{"start": "09:00", "end": "11:00"}]
        assert list(iter_available_slots(ranges, [], 60)) == list(
            iter_available_slots(ranges, [], 60)
        )

    def test_slot_size_is_configurable(self):
        slots = list(iter_available_slots([{"start": "09:00", "end": "10:00"}], [], 30))
        assert [s.as_dict()["start"] for s in slots] == ["09:00", "09:30"]

    def test_range_ending_at_midnight(self):
        slots = list(iter_available_slots([{"start": "22:00", "end": "24:00"}], [], 60))
        assert [s.as_dict() for s in slots] == [
            {"start": "22:00", "end": "23:00"},
            {"start": "23:00", "end": "24:00"},
        ]


def test_parse_hhmm():
    assert parse_hhmm("09:30") == 570
    assert parse_hhmm("24:00") == 24 * 60
    with pytest.raises(ValueError):
        parse_hhmm("25:00")


class TestAvailabilityService:
    def test_booked_hour_is_excluded(self, db, trainer, client_user, make_booking):
        make_booking(client_user, trainer, session_date=MONDAY, start=time(10, 0))
        day = AvailabilityService(db).get_available_slots(trainer.id, MONDAY)
        assert day.day_of_week == "monday"
        assert day.message is None
        assert _slots(day) == [
            {"start": "09:00", "end": "10:00"},
            {"start": "11:00", "end": "12:00"},
        ]

    def test_unavailable_day_returns_empty_with_message(self, db, trainer):
        day = AvailabilityService(db).get_available_slots(trainer.id, TUESDAY)
        assert day.available_slots == []
        assert day.message == TRAINER_UNAVAILABLE_MESSAGE

    @pytest.mark.parametrize("status", [BookingStatus.CANCELLED, BookingStatus.REJECTED])
    def test_inactive_bookings_do_not_block(self, db, trainer, client_user, make_booking, status):
        make_booking(client_user, trainer, session_date=MONDAY, start=time(10, 0), status=status)
        day = AvailabilityService(db).get_available_slots(trainer.id, MONDAY)
        assert len(day.available_slots) == 3

    def test_pending_booking_blocks(self, db, trainer, client_user, make_booking):
        make_booking(
            client_user,
            trainer,
            session_date=MONDAY,
            start=time(9, 0),
            status=BookingStatus.PENDING,
        )
        day = AvailabilityService(db).get_available_slots(trainer.id, MONDAY)
        assert [s["start"] for s in _slots(day)] == ["10:00", "11:00"]

    def test_day_names_are_case_insensitive(self, db, make_trainer):
        trainer = make_trainer(email="caps@example.com", days=["Monday"])
        day = AvailabilityService(db).get_available_slots(trainer.id, MONDAY)
        assert len(day.available_slots) == 3

    def test_non_trainer_is_not_found(self, db, client_user):
        with pytest.raises(NotFoundException):
            AvailabilityService(db).get_available_slots(client_user.id, MONDAY)

    def test_unknown_user_is_not_found(self, db):
        with pytest.raises(NotFoundException):
            AvailabilityService(db).get_available_slots("01HUNKNOWN0000000000000000", MONDAY)
