# backend/app/core/config.py
import json
import logging
from pathlib import Path
from typing import Annotated, List, Literal

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .constants import (
    BRAND_NAME,
    DEFAULT_SESSION_DURATION,
    MAX_SESSION_DURATION,
    MIN_SESSION_DURATION,
)

_BACKEND_ROOT = Path(__file__).resolve().parents[2]

logger = logging.getLogger(__name__)

load_dotenv(_BACKEND_ROOT / ".env")


class Settings(BaseSettings):
    """Runtime configuration, read from the environment and backend/.env."""

    app_name: str = BRAND_NAME
    environment: Literal["development", "test", "staging", "production"] = "development"
    debug: bool = False

    database_url: str = Field(
        default="sqlite:///./fitbook.db",
        description="SQLAlchemy URL; PostgreSQL in production, SQLite locally",
    )
    database_echo: bool = False

    secret_key: SecretStr = Field(default=SecretStr("change-me-in-production"))
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Comma-separated or a JSON list in the environment
    cors_allowed_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"]
    )

    # Scheduling
    booking_conflict_buffer_minutes: int = Field(
        default=30, ge=0, description="Padding applied on both sides of a session window"
    )
    availability_slot_minutes: int = Field(
        default=60, gt=0, le=24 * 60, description="Granularity of generated availability slots"
    )
    default_session_duration: int = DEFAULT_SESSION_DURATION
    min_session_duration: int = MIN_SESSION_DURATION
    max_session_duration: int = MAX_SESSION_DURATION

    # Pricing
    default_hourly_rate: float = Field(default=50.0, gt=0)
    default_currency: str = "CAD"

    # Notifications
    notifications_enabled: bool = True
    notification_workers: int = Field(default=4, ge=1)
    notification_sender: str = "bookings@fitbook.local"

    model_config = SettingsConfigDict(
        env_file=str(_BACKEND_ROOT / ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_currency")
    @classmethod
    def _normalize_currency(cls, value: str) -> str:
        value = value.strip().upper()
        if len(value) != 3:
            raise ValueError("default_currency must be a 3-letter ISO code")
        return value

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                return json.loads(value)
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @model_validator(mode="after")
    def _check_duration_bounds(self) -> "Settings":
        if self.min_session_duration > self.max_session_duration:
            raise ValueError("min_session_duration cannot exceed max_session_duration")
        if not (
            self.min_session_duration
            <= self.default_session_duration
            <= self.max_session_duration
        ):
            raise ValueError("default_session_duration must lie within the duration bounds")
        if self.environment == "production" and (
            self.secret_key.get_secret_value() == "change-me-in-production"
        ):
            raise ValueError("SECRET_KEY must be set in production")
        return self


settings = Settings()
