"""
Review store - persistence and read-model queries for reviews.

Like the other stores, this never commits; the review service decides where
a transaction ends.
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, aliased

from partsmarket.models.buyers import BuyerProfile
from partsmarket.models.reviews import Review, ReviewerKind
from partsmarket.models.sellers import SellerProfile
from partsmarket.models.users import User


@dataclass(frozen=True)
class ReviewerDisplay:
    """Who wrote a review, resolved for display."""
    kind: ReviewerKind
    profile_id: int
    user_id: Optional[int]
    name: Optional[str]


@dataclass(frozen=True)
class ReviewWithReviewer:
    review: Review
    reviewer: ReviewerDisplay


class ReviewStore:
    """Review rows, replies and moderation flags."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, review_id: int) -> Optional[Review]:
        return self.session.get(Review, review_id)

    def add(self, review: Review) -> Review:
        """Insert a review and flush so the generated id is available."""
        self.session.add(review)
        self.session.flush()
        return review

    def delete(self, review: Review) -> None:
        self.session.delete(review)
        self.session.flush()

    def count_for_seller(self, seller_id: int) -> int:
        stmt = select(func.count(Review.id)).where(Review.seller_id == seller_id)
        return self.session.execute(stmt).scalar_one()

    def rating_summary(self, seller_id: int) -> Tuple[int, Optional[float]]:
        """
        Count and mean rating over the seller's review rows.

        Returns:
            (count, average) where average is None when there are no reviews
        """
        stmt = select(
            func.count(Review.id),
            func.avg(Review.rating),
        ).where(Review.seller_id == seller_id)
        count, average = self.session.execute(stmt).one()
        return count, (float(average) if average is not None else None)

    def fetch_reviews_with_reviewer_display(
        self,
        seller_id: int,
        offset: int,
        limit: int,
    ) -> List[ReviewWithReviewer]:
        """
        One page of a seller's reviews, newest first, with reviewer names joined in.

        Ties on created_at are broken by id so pages never overlap.
        """
        buyer_user = aliased(User)
        reviewer_seller = aliased(SellerProfile)
        seller_user = aliased(User)

        stmt = (
            select(
                Review,
                buyer_user.id,
                buyer_user.name,
                seller_user.id,
                seller_user.name,
            )
            .outerjoin(BuyerProfile, Review.buyer_reviewer_id == BuyerProfile.id)
            .outerjoin(buyer_user, BuyerProfile.user_id == buyer_user.id)
            .outerjoin(reviewer_seller, Review.seller_reviewer_id == reviewer_seller.id)
            .outerjoin(seller_user, reviewer_seller.user_id == seller_user.id)
            .where(Review.seller_id == seller_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .offset(offset)
            .limit(limit)
        )

        rows = []
        for review, buyer_user_id, buyer_name, seller_user_id, seller_name in self.session.execute(stmt):
            ref = review.reviewer
            if ref.kind is ReviewerKind.BUYER:
                display = ReviewerDisplay(ref.kind, ref.profile_id, buyer_user_id, buyer_name)
            else:
                display = ReviewerDisplay(ref.kind, ref.profile_id, seller_user_id, seller_name)
            rows.append(ReviewWithReviewer(review=review, reviewer=display))
        return rows
