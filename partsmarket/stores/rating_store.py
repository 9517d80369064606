"""
Rating aggregate store - the per-seller num_reviews counter.

The counter only moves through single UPDATE statements evaluated by the
database (num_reviews = num_reviews + 1), so concurrent requests never lose
an update. Callers own the transaction: nothing here commits.
"""
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from partsmarket.models.sellers import SellerProfile


class RatingAggregateStore:
    """Atomic counter operations on seller_profiles.num_reviews."""

    def __init__(self, session: Session):
        self.session = session

    def increment(self, seller_id: int) -> None:
        self.session.execute(
            update(SellerProfile)
            .where(SellerProfile.id == seller_id)
            .values(num_reviews=SellerProfile.num_reviews + 1)
        )

    def decrement(self, seller_id: int) -> None:
        # Guarded so a drifted counter can't go negative
        self.session.execute(
            update(SellerProfile)
            .where(SellerProfile.id == seller_id, SellerProfile.num_reviews > 0)
            .values(num_reviews=SellerProfile.num_reviews - 1)
        )

    def get_count(self, seller_id: int) -> int:
        """Current counter value, read straight from the database."""
        value = self.session.execute(
            select(SellerProfile.num_reviews).where(SellerProfile.id == seller_id)
        ).scalar_one_or_none()
        return value or 0
