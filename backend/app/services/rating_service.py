# backend/app/services/rating_service.py
"""
Rating aggregation for trainers.

The displayed rating is derived from a running (sum, count) pair kept on
the trainer profile. Each client rating adjusts the pair with one atomic
UPDATE, so concurrent ratings cannot lose each other; the average is then
recomputed from the stored totals with one-decimal half-up rounding.

Re-rating the same booking relies on the booking write being guarded by the
previous ``client_rating``: a request that read a stale rating fails its
compare-and-swap before the pair is touched.

``recompute_trainer_rating`` rebuilds the pair from all rated bookings and
is meant for repair jobs, not the request path.
"""

import logging
from typing import Dict, Optional, Union

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from ..repositories.trainer_profile_repository import TrainerProfileRepository
from .base import BaseService
from .ratings_math import average_from_totals

logger = logging.getLogger(__name__)

RatingSummary = Dict[str, Union[float, int]]


class RatingService(BaseService):
    def __init__(
        self,
        db: Session,
        trainer_profile_repository: Optional[TrainerProfileRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
    ):
        super().__init__(db)
        self.trainer_profile_repository = (
            trainer_profile_repository
            or RepositoryFactory.create_trainer_profile_repository(db)
        )
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_booking_repository(db)
        )

    def apply_rating(
        self, trainer_id: str, rating: int, previous_rating: Optional[int] = None
    ) -> RatingSummary:
        """
        Fold one client rating into the trainer's aggregate.

        Runs inside the caller's transaction and does not commit. A re-rating
        of the same booking replaces its previous value instead of counting
        twice.
        """
        if previous_rating is None:
            sum_delta, count_delta = rating, 1
        else:
            sum_delta, count_delta = rating - previous_rating, 0

        if not self.trainer_profile_repository.increment_rating(trainer_id, sum_delta, count_delta):
            raise NotFoundException("Trainer profile not found", code="TRAINER_NOT_FOUND")

        totals = self.trainer_profile_repository.get_rating_totals(trainer_id)
        rating_sum, rating_count = totals if totals else (0, 0)
        average = average_from_totals(rating_sum, rating_count)
        self.trainer_profile_repository.set_rating(trainer_id, average)

        self.logger.info(
            f"Trainer {trainer_id} rating updated to {average} over {rating_count} ratings"
        )
        return {"average": average, "count": rating_count}

    @BaseService.measure_operation("recompute_trainer_rating")
    def recompute_trainer_rating(self, trainer_id: str) -> RatingSummary:
        """Rebuild the trainer's rating from every rated, completed booking."""
        with self.transaction():
            rating_count, rating_sum = self.booking_repository.get_client_rating_totals(trainer_id)
            average = average_from_totals(rating_sum, rating_count)
            updated = self.trainer_profile_repository.set_rating(
                trainer_id, average, rating_sum=rating_sum, rating_count=rating_count
            )
            if not updated:
                raise NotFoundException("Trainer profile not found", code="TRAINER_NOT_FOUND")

        self.log_operation("recompute_trainer_rating", trainer_id=trainer_id, count=rating_count)
        return {"average": average, "count": rating_count}
