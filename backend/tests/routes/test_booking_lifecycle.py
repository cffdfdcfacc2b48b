"""End-to-end booking lifecycle through the HTTP API."""

from decimal import Decimal

BOOKINGS = "/api/v1/bookings"


def test_request_approve_complete_rate(
    api_client, make_trainer, client_user, client_headers, auth_headers, email_service
):
    trainer = make_trainer(hourly_rate=Decimal("50.00"))
    trainer_headers = auth_headers(trainer)

    created = api_client.post(
        BOOKINGS,
        json={
            "trainerId": trainer.id,
            "sessionDate": "2024-07-01",
            "sessionTime": {"start": "14:00"},
            "goals": ["strength", "  "],
        },
        headers=client_headers,
    )
    assert created.status_code == 201, created.text
    booking = created.json()
    booking_id = booking["id"]
    assert booking["status"] == "pending"
    assert booking["sessionTime"] == {"start": "14:00", "end": "15:00"}
    assert booking["duration"] == 60
    assert booking["goals"] == ["strength"]
    assert booking["payment"]["amount"] == 50.0
    assert booking["payment"]["status"] == "pending"
    assert booking["trainer"]["email"] == trainer.email

    approved = api_client.patch(
        f"{BOOKINGS}/{booking_id}/status",
        json={"action": "approve", "trainerNotes": "bring weights"},
        headers=trainer_headers,
    )
    assert approved.status_code == 200, approved.text
    assert approved.json()["status"] == "approved"
    assert approved.json()["trainerNotes"] == "bring weights"
    assert approved.json()["responses"][0]["action"] == "approved"

    completed = api_client.patch(
        f"{BOOKINGS}/{booking_id}/complete",
        json={"sessionNotes": "solid squat depth"},
        headers=trainer_headers,
    )
    assert completed.status_code == 200, completed.text
    body = completed.json()
    assert body["status"] == "completed"
    assert body["payment"]["status"] == "paid"
    assert body["payment"]["paidAt"] is not None
    assert body["completion"]["clientAttended"] is True

    rated = api_client.post(
        f"{BOOKINGS}/{booking_id}/rate",
        json={"rating": 5, "review": "great session"},
        headers=client_headers,
    )
    assert rated.status_code == 200, rated.text
    body = rated.json()
    assert body["booking"]["completion"]["clientRating"] == 5
    assert body["trainerRating"] == {"trainerId": trainer.id, "average": 5.0, "count": 1}

    fetched = api_client.get(f"{BOOKINGS}/{booking_id}", headers=client_headers)
    assert fetched.status_code == 200
    assert fetched.json()["completion"]["sessionNotes"] == "great session"

    sent = [(m["to"], m["tags"][1]) for m in email_service.sent]
    assert sent == [
        (trainer.email, "booking_created"),
        (client_user.email, "booking_approved"),
        (client_user.email, "booking_completed"),
        (trainer.email, "booking_rated"),
    ]


def test_request_then_cancel_frees_the_slot(
    api_client, trainer, client_user, client_headers, other_client, auth_headers
):
    payload = {
        "trainerId": trainer.id,
        "sessionDate": "2024-07-01",
        "sessionTime": {"start": "10:00"},
    }
    first = api_client.post(BOOKINGS, json=payload, headers=client_headers)
    assert first.status_code == 201

    clash = api_client.post(BOOKINGS, json=payload, headers=auth_headers(other_client))
    assert clash.status_code == 409
    assert clash.json()["code"] == "BOOKING_CONFLICT"

    cancelled = api_client.patch(
        f"{BOOKINGS}/{first.json()['id']}/cancel",
        json={"reason": "travel"},
        headers=client_headers,
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["cancellation"]["cancelledBy"] == client_user.id
    assert cancelled.json()["cancellation"]["reason"] == "travel"

    retry = api_client.post(BOOKINGS, json=payload, headers=auth_headers(other_client))
    assert retry.status_code == 201
