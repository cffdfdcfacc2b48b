from datetime import date
from decimal import Decimal

from app.models.booking import BookingStatus, PaymentStatus

ADMIN = "/api/v1/admin"


def test_admin_endpoints_require_admin(api_client, client_headers, trainer_headers):
    for headers in (client_headers, trainer_headers):
        response = api_client.get(f"{ADMIN}/bookings", headers=headers)
        assert response.status_code == 403


def test_list_all_bookings(
    api_client, admin_headers, trainer, client_user, other_client, make_booking
):
    make_booking(client_user, trainer, session_date=date(2024, 7, 1))
    make_booking(other_client, trainer, session_date=date(2024, 7, 3), status=BookingStatus.PENDING)

    response = api_client.get(f"{ADMIN}/bookings", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["total"] == 2

    pending = api_client.get(
        f"{ADMIN}/bookings", params={"status": "pending"}, headers=admin_headers
    )
    assert [b["clientId"] for b in pending.json()["items"]] == [other_client.id]


def test_stats(api_client, admin_headers, trainer, client_user, make_booking):
    make_booking(client_user, trainer, session_date=date(2024, 7, 1))
    make_booking(
        client_user,
        trainer,
        session_date=date(2024, 7, 3),
        status=BookingStatus.COMPLETED,
        payment_status=PaymentStatus.PAID.value,
        payment_amount=Decimal("80.00"),
    )

    response = api_client.get(
        f"{ADMIN}/bookings/stats", params={"period": "all"}, headers=admin_headers
    )
    assert response.status_code == 200
    body = response.json()
    assert body["period"] == "all"
    assert body["totalBookings"] == 2
    assert body["totalRevenue"] == 80.0
    assert {row["status"]: row["count"] for row in body["byStatus"]} == {
        "approved": 1,
        "completed": 1,
    }


def test_stats_rejects_unknown_period(api_client, admin_headers):
    response = api_client.get(
        f"{ADMIN}/bookings/stats", params={"period": "decade"}, headers=admin_headers
    )
    assert response.status_code == 400


def test_soft_delete(api_client, admin_headers, trainer, client_user, client_headers, make_booking):
    booking = make_booking(client_user, trainer)

    response = api_client.delete(f"{ADMIN}/bookings/{booking.id}", headers=admin_headers)
    assert response.status_code == 204
    assert response.content == b""

    fetched = api_client.get(f"/api/v1/bookings/{booking.id}", headers=client_headers)
    assert fetched.status_code == 404
    again = api_client.delete(f"{ADMIN}/bookings/{booking.id}", headers=admin_headers)
    assert again.status_code == 404


def test_recompute_rating(api_client, admin_headers, db, trainer, client_user, make_booking):
    for day, rating in ((1, 4), (3, 5), (8, 3)):
        make_booking(
            client_user,
            trainer,
            session_date=date(2024, 7, day),
            status=BookingStatus.COMPLETED,
            client_rating=rating,
        )

    response = api_client.post(
        f"{ADMIN}/trainers/{trainer.id}/rating/recompute", headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json() == {"trainerId": trainer.id, "average": 4.0, "count": 3}

    db.refresh(trainer.trainer_profile)
    assert trainer.trainer_profile.rating_count == 3


def test_recompute_unknown_trainer(api_client, admin_headers, client_user):
    response = api_client.post(
        f"{ADMIN}/trainers/{client_user.id}/rating/recompute", headers=admin_headers
    )
    assert response.status_code == 404
