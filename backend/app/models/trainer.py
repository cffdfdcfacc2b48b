# backend/app/models/trainer.py
"""
Trainer profile model.

Holds the trainer's pricing, the recurring weekly availability template
and the incrementally maintained rating aggregate.
"""

from typing import Any, Dict, List

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class TrainerProfile(Base):
    """
    One-to-one extension of a trainer's User record.

    availability_days holds lowercase weekday names ("monday" ...).
    availability_time_slots holds ``{"start": "HH:MM", "end": "HH:MM"}`` dicts
    that apply to every listed day.
    rating_sum and rating_count are only ever changed by atomic increments;
    rating_average is derived from them.
    """

    __tablename__ = "trainer_profiles"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, unique=True, index=True)
    bio = Column(Text, nullable=True)
    specialties = Column(JSON, nullable=False, default=list)
    experience_years = Column(Integer, nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)

    availability_days = Column(JSON, nullable=False, default=list)
    availability_time_slots = Column(JSON, nullable=False, default=list)

    rating_average = Column(Float, nullable=False, default=0.0)
    rating_count = Column(Integer, nullable=False, default=0)
    rating_sum = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="trainer_profile")

    __table_args__ = (
        CheckConstraint("rating_count >= 0", name="check_rating_count_non_negative"),
        CheckConstraint(
            "hourly_rate IS NULL OR hourly_rate > 0", name="check_hourly_rate_positive"
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<TrainerProfile {self.id}: user={self.user_id} "
            f"rating={self.rating_average} ({self.rating_count})>"
        )

    @property
    def available_days(self) -> List[str]:
        return [str(day).lower() for day in (self.availability_days or [])]

    @property
    def time_slots(self) -> List[Dict[str, Any]]:
        return list(self.availability_time_slots or [])
