# backend/app/repositories/trainer_profile_repository.py
"""
TrainerProfile Repository

Rating aggregates are only changed through single UPDATE statements so
that concurrent ratings for the same trainer never overwrite each other.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.trainer import TrainerProfile
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TrainerProfileRepository(BaseRepository[TrainerProfile]):
    def __init__(self, db: Session):
        super().__init__(db, TrainerProfile)

    def increment_rating(self, user_id: str, sum_delta: int, count_delta: int) -> bool:
        """Atomically add to the stored rating sum and count."""
        try:
            updated = (
                self.db.query(TrainerProfile)
                .filter(TrainerProfile.user_id == user_id)
                .update(
                    {
                        TrainerProfile.rating_sum: TrainerProfile.rating_sum + sum_delta,
                        TrainerProfile.rating_count: TrainerProfile.rating_count + count_delta,
                    },
                    synchronize_session="fetch",
                )
            )
            return bool(updated)
        except SQLAlchemyError as e:
            self.logger.error(f"Error incrementing rating for trainer {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to update trainer rating: {str(e)}")

    def get_rating_totals(self, user_id: str) -> Optional[Tuple[int, int]]:
        """Current (sum, count) as stored, bypassing the identity map."""
        try:
            row = (
                self.db.query(TrainerProfile.rating_sum, TrainerProfile.rating_count)
                .filter(TrainerProfile.user_id == user_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading rating for trainer {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to read trainer rating: {str(e)}")
        if row is None:
            return None
        return int(row[0] or 0), int(row[1] or 0)

    def set_rating(
        self,
        user_id: str,
        average: float,
        *,
        rating_sum: Optional[int] = None,
        rating_count: Optional[int] = None,
    ) -> bool:
        values = {TrainerProfile.rating_average: average}
        if rating_sum is not None:
            values[TrainerProfile.rating_sum] = rating_sum
        if rating_count is not None:
            values[TrainerProfile.rating_count] = rating_count
        try:
            updated = (
                self.db.query(TrainerProfile)
                .filter(TrainerProfile.user_id == user_id)
                .update(values, synchronize_session="fetch")
            )
            return bool(updated)
        except SQLAlchemyError as e:
            self.logger.error(f"Error writing rating for trainer {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to update trainer rating: {str(e)}")
