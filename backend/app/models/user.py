# backend/app/models/user.py
"""
User model for the FitBook platform.

Members, trainers and administrators share one table and are told apart
by ``role``. Trainers additionally own a TrainerProfile holding their
rate, weekly availability template and rating aggregate.
"""

import logging
from typing import Any

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName
from ..database import Base

logger = logging.getLogger(__name__)


class User(Base):
    """
    Account record consumed read-only by the booking subsystem.

    Attributes:
        id: ULID primary key
        email: Unique login address
        name: Display name used in notifications
        role: One of RoleName
        is_approved: Trainers must be approved before they can be booked;
            other roles are approved on creation
        is_active: Inactive users cannot authenticate
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, default=RoleName.MEMBER.value, index=True)
    is_approved = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    trainer_profile = relationship(
        "TrainerProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("role IN ('member', 'trainer', 'admin')", name="ck_users_role"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if self.role is None:
            self.role = RoleName.MEMBER.value
        if self.is_approved is None:
            # Trainers wait for admin approval; everyone else is approved on sign-up
            self.is_approved = self.role != RoleName.TRAINER.value
        if self.is_active is None:
            self.is_active = True

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email} role={self.role}>"

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    @property
    def is_trainer(self) -> bool:
        return self.role == RoleName.TRAINER.value
