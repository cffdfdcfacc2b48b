# backend/app/services/notification_service.py
"""
Notification Service for the FitBook platform

Renders booking notifications from Jinja templates and hands them to the
configured email service. Runs on the event publisher's worker threads;
every method works from the event payload alone.
"""

from decimal import Decimal
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..core.config import settings
from ..core.constants import BRAND_NAME
from ..events.booking_events import (
    BookingApproved,
    BookingCancelled,
    BookingCompleted,
    BookingCreated,
    BookingEvent,
    BookingRated,
    BookingRejected,
    BookingRescheduled,
)
from .email_console import ConsoleEmailService
from .email_subjects import EmailSubject

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"


def _money(value: Union[float, Decimal, None], currency: str = "CAD") -> str:
    return f"{float(value or 0):,.2f} {currency}"


class NotificationService:
    """Sends booking lifecycle emails to the affected client and/or trainer."""

    def __init__(self, email_service: Optional[ConsoleEmailService] = None):
        self.email_service = email_service or ConsoleEmailService(settings.notification_sender)
        self.logger = logging.getLogger(self.__class__.__name__)
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=False,  # plain-text bodies
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.env.filters["money"] = _money

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        template = self.env.get_template(f"{template_name}.txt")
        return template.render(brand_name=BRAND_NAME, **context)

    def _send(
        self,
        template_name: str,
        event: BookingEvent,
        recipients: List[Tuple[str, str]],
        subject: str,
    ) -> bool:
        context = event.to_dict()
        sent_all = True
        for email, name in recipients:
            body = self.render(template_name, {**context, "recipient_name": name})
            sent = self.email_service.send_email(
                email, subject, body, tags=["booking", template_name]
            )
            sent_all = sent_all and sent
        self.logger.info(
            f"Sent {template_name} notification for booking {event.booking_id} "
            f"to {len(recipients)} recipient(s)"
        )
        return sent_all

    def send_booking_requested(self, event: BookingCreated) -> bool:
        return self._send(
            "booking_created",
            event,
            [(event.trainer_email, event.trainer_name)],
            EmailSubject.booking_requested(event.client_name),
        )

    def send_booking_approved(self, event: BookingApproved) -> bool:
        return self._send(
            "booking_approved",
            event,
            [(event.client_email, event.client_name)],
            EmailSubject.booking_approved(event.session_date),
        )

    def send_booking_rejected(self, event: BookingRejected) -> bool:
        return self._send(
            "booking_rejected",
            event,
            [(event.client_email, event.client_name)],
            EmailSubject.booking_rejected(event.session_date),
        )

    def send_booking_cancelled(self, event: BookingCancelled) -> bool:
        # Tell whichever participants did not cancel it themselves
        recipients = [
            (email, name)
            for user_id, email, name in (
                (event.client_id, event.client_email, event.client_name),
                (event.trainer_id, event.trainer_email, event.trainer_name),
            )
            if user_id != event.cancelled_by_id
        ]
        return self._send(
            "booking_cancelled",
            event,
            recipients,
            EmailSubject.booking_cancelled(event.session_date),
        )

    def send_booking_completed(self, event: BookingCompleted) -> bool:
        return self._send(
            "booking_completed",
            event,
            [(event.client_email, event.client_name)],
            EmailSubject.booking_completed(),
        )

    def send_booking_rescheduled(self, event: BookingRescheduled) -> bool:
        recipients = [
            (email, name)
            for user_id, email, name in (
                (event.client_id, event.client_email, event.client_name),
                (event.trainer_id, event.trainer_email, event.trainer_name),
            )
            if user_id != event.rescheduled_by_id
        ]
        return self._send(
            "booking_rescheduled",
            event,
            recipients,
            EmailSubject.booking_rescheduled(event.session_date),
        )

    def send_booking_rated(self, event: BookingRated) -> bool:
        return self._send(
            "booking_rated",
            event,
            [(event.trainer_email, event.trainer_name)],
            EmailSubject.booking_rated(event.rating),
        )
