"""
Persistence layer for the review engine.

    review_store = ReviewStore(session)
    rating_store = RatingAggregateStore(session)
    profile_store = ProfileStore(session)
"""
from partsmarket.stores.profile_store import ProfileStore
from partsmarket.stores.rating_store import RatingAggregateStore
from partsmarket.stores.review_store import (
    ReviewStore,
    ReviewWithReviewer,
    ReviewerDisplay,
)

__all__ = [
    "ProfileStore",
    "RatingAggregateStore",
    "ReviewStore",
    "ReviewWithReviewer",
    "ReviewerDisplay",
]
