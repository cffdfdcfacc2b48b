from collections import deque
import logging
from typing import Deque, Optional, Sequence

logger = logging.getLogger(__name__)


class ConsoleEmailService:
    """
    Email "provider" that writes messages to the log instead of sending them.

    ``keep_last`` retains that many recent messages in ``sent`` for
    inspection; the default keeps none.
    """

    def __init__(self, sender: str, keep_last: int = 0) -> None:
        self.sender = sender
        self.sent: Deque[dict] = deque(maxlen=keep_last)

    def send_email(
        self,
        to_email: str,
        subject: str,
        body: str,
        *,
        tags: Optional[Sequence[str]] = None,
    ) -> bool:
        if self.sent.maxlen:
            self.sent.append(
                {"to": to_email, "subject": subject, "body": body, "tags": list(tags or [])}
            )
        logger.info(f"[email] from={self.sender} to={to_email} subject={subject!r}")
        logger.debug(body)
        return True
