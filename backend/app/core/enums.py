# backend/app/core/enums.py
"""
Core enums for the FitBook platform.

Role names are stored on the user record as plain strings; these enums
are the values the booking subsystem recognises.
"""

from enum import Enum


class RoleName(str, Enum):
    """Account roles known to the platform."""

    ADMIN = "admin"
    TRAINER = "trainer"
    MEMBER = "member"


class StatsPeriod(str, Enum):
    """Reporting windows for booking statistics."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"
