from datetime import date, time

from app.core.constants import TRAINER_UNAVAILABLE_MESSAGE
from app.models.booking import BookingStatus

TRAINERS = "/api/v1/trainers"


def test_available_slots(api_client, trainer, client_user, make_booking):
    make_booking(client_user, trainer, session_date=date(2024, 7, 1), start=time(10, 0))
    response = api_client.get(
        f"{TRAINERS}/{trainer.id}/available-slots", params={"date": "2024-07-01"}
    )
    assert response.status_code == 200
    assert response.json() == {
        "trainerId": trainer.id,
        "date": "2024-07-01",
        "dayOfWeek": "monday",
        "availableSlots": [
            {"start": "09:00", "end": "10:00"},
            {"start": "11:00", "end": "12:00"},
        ],
        "message": None,
    }


def test_available_slots_on_day_off(api_client, trainer):
    response = api_client.get(
        f"{TRAINERS}/{trainer.id}/available-slots", params={"date": "2024-07-02"}
    )
    body = response.json()
    assert body["availableSlots"] == []
    assert body["message"] == TRAINER_UNAVAILABLE_MESSAGE


def test_available_slots_errors(api_client, trainer, client_user):
    missing_date = api_client.get(f"{TRAINERS}/{trainer.id}/available-slots")
    assert missing_date.status_code == 400

    bad_date = api_client.get(
        f"{TRAINERS}/{trainer.id}/available-slots", params={"date": "July 1st"}
    )
    assert bad_date.status_code == 400

    not_trainer = api_client.get(
        f"{TRAINERS}/{client_user.id}/available-slots", params={"date": "2024-07-01"}
    )
    assert not_trainer.status_code == 404


def test_pending_requests(api_client, trainer, trainer_headers, client_user, make_booking):
    pending = make_booking(client_user, trainer, status=BookingStatus.PENDING)
    make_booking(client_user, trainer, session_date=date(2024, 7, 3))

    response = api_client.get(f"{TRAINERS}/me/requests", headers=trainer_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["id"] == pending.id


def test_pending_requests_require_trainer_role(api_client, client_headers):
    response = api_client.get(f"{TRAINERS}/me/requests", headers=client_headers)
    assert response.status_code == 403
    assert response.json()["code"] == "ROLE_REQUIRED"


def test_client_roster(
    api_client, trainer, trainer_headers, client_user, other_client, make_booking
):
    make_booking(client_user, trainer, session_date=date(2024, 7, 1))
    make_booking(
        client_user, trainer, session_date=date(2024, 7, 3), status=BookingStatus.COMPLETED
    )
    make_booking(
        other_client, trainer, session_date=date(2024, 7, 10), status=BookingStatus.PENDING
    )

    response = api_client.get(f"{TRAINERS}/me/clients", headers=trainer_headers)
    assert response.status_code == 200
    assert response.json() == [
        {
            "clientId": client_user.id,
            "name": client_user.name,
            "email": client_user.email,
            "totalBookings": 2,
            "completedSessions": 1,
            "lastSessionDate": "2024-07-03",
        }
    ]
