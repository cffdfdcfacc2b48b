# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the FitBook platform

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- IRepository: Interface defining required methods for all repositories
- RepositoryFactory: Factory for creating repository instances
- BookingRepository: bookings, response log, conflict and aggregate queries
- TrainerProfileRepository: trainer profiles and atomic rating counters
- UserRepository: account lookups

Usage:
    from app.repositories import RepositoryFactory

    repository = RepositoryFactory.create_booking_repository(db)
    booking = repository.get_booking(booking_id)
"""

from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .trainer_profile_repository import TrainerProfileRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "IRepository",
    "RepositoryFactory",
    "BookingRepository",
    "TrainerProfileRepository",
    "UserRepository",
]
