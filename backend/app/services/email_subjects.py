"""
Centralized email subject builders.

Subjects stay in code for logging and versioning; bodies live in the
Jinja templates under app/templates/email.
"""

from app.core.constants import BRAND_NAME


class EmailSubject:
    """Static builders for booking notification subjects."""

    @staticmethod
    def booking_requested(client_name: str) -> str:
        return f"New booking request from {client_name.strip() or 'a client'}"

    @staticmethod
    def booking_approved(session_date: str) -> str:
        return f"Your {BRAND_NAME} session on {session_date} is confirmed"

    @staticmethod
    def booking_rejected(session_date: str) -> str:
        return f"Your {BRAND_NAME} booking request for {session_date} was declined"

    @staticmethod
    def booking_cancelled(session_date: str) -> str:
        return f"{BRAND_NAME} session on {session_date} cancelled"

    @staticmethod
    def booking_completed() -> str:
        return f"How was your {BRAND_NAME} session?"

    @staticmethod
    def booking_rescheduled(session_date: str) -> str:
        return f"{BRAND_NAME} session moved to {session_date}"

    @staticmethod
    def booking_rated(rating: int) -> str:
        return f"You received a {rating}-star rating"
