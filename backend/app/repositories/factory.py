# backend/app/repositories/factory.py
"""
Repository Factory for the FitBook platform

Provides centralized creation of repository instances, ensuring consistent
initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .trainer_profile_repository import TrainerProfileRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_trainer_profile_repository(db: Session) -> "TrainerProfileRepository":
        from .trainer_profile_repository import TrainerProfileRepository

        return TrainerProfileRepository(db)
