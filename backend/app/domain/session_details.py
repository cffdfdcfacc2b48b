"""Session location details as tagged variants keyed by session type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Union

from ..core.constants import MAX_LOCATION_LENGTH, MAX_MEETING_LINK_LENGTH
from ..core.exceptions import ValidationException
from ..models.booking import SessionType


@dataclass(frozen=True)
class InPersonSession:
    location: Optional[str] = None

    session_type = SessionType.IN_PERSON

    def columns(self) -> Dict[str, Optional[str]]:
        return {
            "session_type": self.session_type.value,
            "location": self.location,
            "meeting_link": None,
        }


@dataclass(frozen=True)
class VirtualSession:
    meeting_link: Optional[str] = None

    session_type = SessionType.VIRTUAL

    def columns(self) -> Dict[str, Optional[str]]:
        return {
            "session_type": self.session_type.value,
            "location": None,
            "meeting_link": self.meeting_link,
        }


@dataclass(frozen=True)
class HybridSession:
    location: Optional[str] = None
    meeting_link: Optional[str] = None

    session_type = SessionType.HYBRID

    def columns(self) -> Dict[str, Optional[str]]:
        return {
            "session_type": self.session_type.value,
            "location": self.location,
            "meeting_link": self.meeting_link,
        }


SessionDetails = Union[InPersonSession, VirtualSession, HybridSession]


def _clean(value: Optional[str], field: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > max_length:
        raise ValidationException(
            f"{field} cannot exceed {max_length} characters",
            code="FIELD_TOO_LONG",
            details={"field": field, "max_length": max_length},
        )
    return value


def build_session_details(
    session_type: Union[SessionType, str],
    location: Optional[str] = None,
    meeting_link: Optional[str] = None,
) -> SessionDetails:
    """
    Build the variant for ``session_type`` from loosely supplied fields.

    A field that belongs to the other variant is rejected rather than
    silently stored. Neither a location nor a meeting link is required.

    Raises:
        ValidationException: unknown session type, misplaced or oversized field
    """
    try:
        kind = SessionType(session_type)
    except ValueError:
        raise ValidationException(
            f"Invalid session type: {session_type}",
            code="INVALID_SESSION_TYPE",
            details={"allowed": [t.value for t in SessionType]},
        ) from None

    location = _clean(location, "location", MAX_LOCATION_LENGTH)
    meeting_link = _clean(meeting_link, "meetingLink", MAX_MEETING_LINK_LENGTH)

    if kind is SessionType.IN_PERSON:
        if meeting_link:
            raise ValidationException(
                "In-person sessions cannot have a meeting link",
                code="INVALID_SESSION_DETAILS",
                details={"session_type": kind.value, "field": "meetingLink"},
            )
        return InPersonSession(location=location)

    if kind is SessionType.VIRTUAL:
        if location:
            raise ValidationException(
                "Virtual sessions cannot have a physical location",
                code="INVALID_SESSION_DETAILS",
                details={"session_type": kind.value, "field": "location"},
            )
        return VirtualSession(meeting_link=meeting_link)

    return HybridSession(location=location, meeting_link=meeting_link)
