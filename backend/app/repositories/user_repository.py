# backend/app/repositories/user_repository.py
"""Read access to user accounts for authentication and booking checks."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_with_trainer_profile(self, user_id: str) -> Optional[User]:
        """Load a user together with the trainer profile (if any)."""
        try:
            return (
                self.db.query(User)
                .options(joinedload(User.trainer_profile))
                .filter(User.id == user_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to load user: {str(e)}")
