"""Review engine: seller reviews, replies, moderation reports and rating stats.

Each ReviewService wraps one request's SQLAlchemy session and holds no other
state, so it can be built per request. Operations that touch both a review
row and the seller's num_reviews counter commit them together or roll both
back.

Ids: `seller_id` is always a seller profile id; `reviewer_id`, `reporter_id`
and `user_id` are user ids already authenticated by the caller.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.orm import Session

from partsmarket.lib.logging import get_logger, log_with_context
from partsmarket.lib.metrics import get_metrics_collector
from partsmarket.lib.settings import settings
from partsmarket.models.reviews import Review, ReviewerKind, ReviewerRef
from partsmarket.services.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ReviewEngineError,
    ValidationError,
)
from partsmarket.stores import (
    ProfileStore,
    RatingAggregateStore,
    ReviewStore,
    ReviewWithReviewer,
)


logger = get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5

T = TypeVar("T")


@dataclass(frozen=True)
class SellerStats:
    average_rating: float
    total_reviews: int


@dataclass(frozen=True)
class ReviewPage:
    reviews: List[ReviewWithReviewer]
    total: int
    has_more: bool
    page: int
    limit: int


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ReviewService:
    """Review lifecycle and seller rating aggregation.

    Provides:
    - create/delete with atomic num_reviews maintenance
    - one seller reply per review
    - last-report-wins moderation flag
    - stats computed from review rows and paginated listing
    """

    def __init__(self, session: Session):
        """Initialize review service with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session
        self.reviews = ReviewStore(session)
        self.ratings = RatingAggregateStore(session)
        self.profiles = ProfileStore(session)
        self.metrics = get_metrics_collector()

    def _run(self, operation: str, func: Callable[[], T]) -> T:
        """Run an operation, counting rejections before they propagate."""
        try:
            return func()
        except ReviewEngineError as e:
            self.metrics.increment_errors(operation, type(e).__name__)
            log_with_context(
                logger, "warning", f"{operation} rejected: {e.message}",
                operation=operation, error=type(e).__name__, **e.details,
            )
            raise

    def _commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    # ===== Commands =====

    def create_review(self, seller_id: int, reviewer_id: int, rating: int, comment: str) -> Review:
        """Create a review and bump the seller's review counter.

        The reviewer is recorded by their buyer profile when they have one,
        otherwise by their seller profile.

        Args:
            seller_id: Seller profile being reviewed
            reviewer_id: User writing the review
            rating: Integer 1-5
            comment: Review text

        Returns:
            The persisted review with id and timestamps

        Raises:
            ValidationError: Rating out of range, or reviewer has no profile
            NotFoundError: Seller or reviewer does not exist
        """
        return self._run(
            "create_review",
            lambda: self._create_review(seller_id, reviewer_id, rating, comment),
        )

    def _create_review(self, seller_id, reviewer_id, rating, comment) -> Review:
        if not _is_int(rating) or not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}",
                details={"rating": rating},
            )

        seller = self.profiles.get_seller(seller_id)
        if seller is None:
            raise NotFoundError("Seller", seller_id)

        reviewer_user = self.profiles.get_user_with_profiles(reviewer_id)
        if reviewer_user is None:
            raise NotFoundError("User", reviewer_id)

        if reviewer_user.buyer_profile is not None:
            reviewer = ReviewerRef(ReviewerKind.BUYER, reviewer_user.buyer_profile.id)
        elif reviewer_user.seller_profile is not None:
            reviewer = ReviewerRef(ReviewerKind.SELLER, reviewer_user.seller_profile.id)
        else:
            raise ValidationError(
                "User must have either a buyer or seller profile to leave a review",
                details={"reviewer_id": reviewer_id},
            )

        review = Review(
            seller_id=seller.id,
            rating=rating,
            comment=comment,
            reported=False,
        )
        review.reviewer = reviewer

        try:
            self.reviews.add(review)
            self.ratings.increment(seller.id)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        self.metrics.increment_reviews_created(reviewer.kind.value)
        log_with_context(
            logger, "info", "Review created",
            review_id=review.id, seller_id=seller.id,
            reviewer_kind=reviewer.kind.value, rating=rating,
        )
        return review

    def add_reply_to_review(self, review_id: int, seller_id: Optional[int], comment: str) -> Review:
        """Attach the reviewed seller's reply. A review takes one reply, ever.

        `seller_id` is the caller's seller profile, or None for a caller
        without one.

        Raises:
            NotFoundError: Review does not exist
            AuthorizationError: Caller is not the reviewed seller
            ConflictError: Review already has a reply
        """
        return self._run(
            "add_reply",
            lambda: self._add_reply(review_id, seller_id, comment),
        )

    def _add_reply(self, review_id, seller_id, comment) -> Review:
        review = self._get_review(review_id)

        # A replied review conflicts for every caller, owner or not
        if review.reply is not None:
            raise ConflictError(
                "Review already has a reply",
                details={"review_id": review_id},
            )

        if review.seller_id != seller_id:
            raise AuthorizationError(
                "Only the seller can reply to this review",
                details={"review_id": review_id, "seller_id": seller_id},
            )

        review.reply = {
            "comment": comment,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self._commit()

        self.metrics.increment_replies()
        log_with_context(logger, "info", "Reply added to review", review_id=review.id, seller_id=seller_id)
        return review

    def report_review(self, review_id: int, reporter_id: int, reason: str) -> Review:
        """Flag a review for moderation. A later report replaces an earlier one.

        Raises:
            NotFoundError: Review does not exist
        """
        return self._run(
            "report_review",
            lambda: self._report_review(review_id, reporter_id, reason),
        )

    def _report_review(self, review_id, reporter_id, reason) -> Review:
        review = self._get_review(review_id)

        review.reported = True
        review.report_reason = reason
        review.reporter_id = reporter_id
        self._commit()

        self.metrics.increment_reports()
        log_with_context(
            logger, "info", "Review reported",
            review_id=review.id, reporter_id=reporter_id,
        )
        return review

    def delete_review(self, review_id: int, user_id: int) -> None:
        """Delete a review written by the caller and decrement the seller's counter.

        Raises:
            NotFoundError: Review does not exist (including already deleted)
            AuthorizationError: Caller did not write the review
        """
        self._run("delete_review", lambda: self._delete_review(review_id, user_id))

    def _delete_review(self, review_id, user_id) -> None:
        review = self._get_review(review_id)

        owner_id = self.profiles.get_profile_owner(review.buyer_reviewer_id, review.seller_reviewer_id)
        if owner_id is None or owner_id != user_id:
            raise AuthorizationError(
                "Only the reviewer can delete this review",
                details={"review_id": review_id, "user_id": user_id},
            )

        seller_id = review.seller_id
        try:
            self.reviews.delete(review)
            self.ratings.decrement(seller_id)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        self.metrics.increment_reviews_deleted()
        log_with_context(logger, "info", "Review deleted", review_id=review_id, seller_id=seller_id)

    # ===== Queries =====

    def get_review(self, review_id: int) -> Review:
        return self._run("get_review", lambda: self._get_review(review_id))

    def _get_review(self, review_id: int) -> Review:
        review = self.reviews.get(review_id)
        if review is None:
            raise NotFoundError("Review", review_id)
        return review

    def get_seller_stats(self, seller_id: int) -> SellerStats:
        """Review count and mean rating, computed from the review rows.

        The num_reviews counter is not consulted; it is a fast-path hint only.
        """
        total, average = self.reviews.rating_summary(seller_id)
        return SellerStats(
            average_rating=average if average is not None else 0.0,
            total_reviews=total,
        )

    def get_seller_reviews(
        self,
        seller_id: int,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> ReviewPage:
        """Newest-first page of a seller's reviews with reviewer names resolved.

        Args:
            seller_id: Seller profile id
            page: 1-based page number
            limit: Page size, defaults to settings.review_page_size_default

        Raises:
            ValidationError: page or limit not a positive integer
        """
        return self._run(
            "get_seller_reviews",
            lambda: self._get_seller_reviews(seller_id, page, limit),
        )

    def _get_seller_reviews(self, seller_id, page, limit) -> ReviewPage:
        if limit is None:
            limit = settings.review_page_size_default

        if not _is_int(page) or page < 1:
            raise ValidationError("Page must be a positive integer", details={"page": page})
        if not _is_int(limit) or limit < 1:
            raise ValidationError("Limit must be a positive integer", details={"limit": limit})

        rows = self.reviews.fetch_reviews_with_reviewer_display(
            seller_id,
            offset=(page - 1) * limit,
            limit=limit,
        )
        total = self.reviews.count_for_seller(seller_id)

        return ReviewPage(
            reviews=rows,
            total=total,
            has_more=total > page * limit,
            page=page,
            limit=limit,
        )
