"""Application-wide constants for the FitBook platform."""

from __future__ import annotations

BRAND_NAME = "FitBook"
API_VERSION = "1.0.0"
API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = "Booking lifecycle and scheduling backend for a fitness-training marketplace"

# Session duration constraints (minutes); configurable overrides live in Settings
MIN_SESSION_DURATION = 15
MAX_SESSION_DURATION = 480
DEFAULT_SESSION_DURATION = 60

# Text constraints
MAX_LOCATION_LENGTH = 200
MAX_MEETING_LINK_LENGTH = 500
MAX_GOAL_LENGTH = 100
MAX_NOTES_LENGTH = 500
MAX_REASON_LENGTH = 300
MAX_RECURRING_SESSIONS = 52

# Rating scale
MIN_RATING = 1
MAX_RATING = 5

# Query limits
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Day of week names, indexed by date.weekday()
DAYS_OF_WEEK = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

TRAINER_UNAVAILABLE_MESSAGE = "Trainer not available on this day"
