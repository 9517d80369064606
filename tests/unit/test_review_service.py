"""
Unit tests for the review engine.

Tests validate:
- Rating bounds and reviewer profile resolution on create
- num_reviews counter kept in step with create/delete, rolled back on failure
- One reply per review, only from the reviewed seller
- Last-report-wins moderation flag
- Stats computed from review rows
- Pagination contract
"""
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from partsmarket.lib.db import Base
from partsmarket.lib.metrics import get_metrics_collector
from partsmarket.models import BuyerProfile, Review, ReviewerKind, SellerProfile, User
from partsmarket.services.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from partsmarket.services.review_service import ReviewService
from partsmarket.stores import RatingAggregateStore, ReviewStore


@pytest.fixture
def seller_user(make_user):
    return make_user(name="Brake World Owner", seller=True, business_name="Brake World")


@pytest.fixture
def seller(seller_user):
    return seller_user.seller_profile


@pytest.fixture
def buyer(make_user):
    return make_user(name="Alice Buyer", buyer=True)


def counter(db_session, seller_id):
    return RatingAggregateStore(db_session).get_count(seller_id)


# ===== create_review =====

@pytest.mark.unit
@pytest.mark.parametrize("rating", [1, 2, 3, 4, 5])
def test_create_review_accepts_ratings_in_range(review_service, seller, buyer, rating):
    review = review_service.create_review(seller.id, buyer.id, rating, "Fits my Civic")

    assert review.id is not None
    assert review.rating == rating


@pytest.mark.unit
@pytest.mark.parametrize("rating", [0, 6, -1, 100, 3.5, True, "5", None])
def test_create_review_rejects_bad_ratings(review_service, db_session, seller, buyer, rating):
    with pytest.raises(ValidationError, match="Rating must be between 1 and 5"):
        review_service.create_review(seller.id, buyer.id, rating, "Nope")

    assert counter(db_session, seller.id) == 0
    assert ReviewStore(db_session).count_for_seller(seller.id) == 0


@pytest.mark.unit
def test_create_review_returns_persisted_review(review_service, db_session, make_user):
    """Seller 7 reviewed by buyer-user 3 with rating 5."""
    seller_user = make_user(user_id=70, seller=True, seller_id=7)
    reviewer = make_user(user_id=3, buyer=True)

    review = review_service.create_review(7, 3, 5, "Great alternator, fast shipping")

    assert review.id is not None
    assert review.seller_id == 7
    assert review.rating == 5
    assert review.reply is None
    assert review.reported is False
    assert review.created_at is not None
    assert review.updated_at is not None
    assert review.reviewer.kind is ReviewerKind.BUYER
    assert review.reviewer.profile_id == reviewer.buyer_profile.id
    assert counter(db_session, seller_user.seller_profile.id) == 1


@pytest.mark.unit
def test_create_review_unknown_seller(review_service, buyer):
    with pytest.raises(NotFoundError) as exc_info:
        review_service.create_review(9999, buyer.id, 4, "Who?")

    assert exc_info.value.resource == "Seller"
    assert exc_info.value.resource_id == 9999


@pytest.mark.unit
def test_create_review_unknown_reviewer(review_service, seller):
    with pytest.raises(NotFoundError) as exc_info:
        review_service.create_review(seller.id, 9999, 4, "Ghost")

    assert exc_info.value.resource == "User"


@pytest.mark.unit
def test_create_review_reviewer_without_profiles(review_service, db_session, seller, make_user):
    nobody = make_user()

    with pytest.raises(ValidationError, match="buyer or seller profile"):
        review_service.create_review(seller.id, nobody.id, 4, "Hello")

    assert counter(db_session, seller.id) == 0


@pytest.mark.unit
def test_create_review_as_seller_only_user(review_service, seller, make_user):
    other_shop = make_user(seller=True, business_name="Exhaust Depot")

    review = review_service.create_review(seller.id, other_shop.id, 3, "Decent supplier")

    assert review.reviewer.kind is ReviewerKind.SELLER
    assert review.reviewer.profile_id == other_shop.seller_profile.id
    assert review.buyer_reviewer_id is None


@pytest.mark.unit
def test_create_review_prefers_buyer_profile_for_dual_role_user(review_service, seller, make_user):
    both = make_user(buyer=True, seller=True)

    review = review_service.create_review(seller.id, both.id, 4, "Good")

    assert review.reviewer.kind is ReviewerKind.BUYER
    assert review.reviewer.profile_id == both.buyer_profile.id
    assert review.seller_reviewer_id is None


@pytest.mark.unit
def test_create_review_rolls_back_when_counter_update_fails(review_service, db_session, seller, buyer):
    with patch.object(review_service.ratings, "increment", side_effect=SQLAlchemyError("counter down")):
        with pytest.raises(SQLAlchemyError):
            review_service.create_review(seller.id, buyer.id, 5, "Lost?")

    assert ReviewStore(db_session).count_for_seller(seller.id) == 0
    assert counter(db_session, seller.id) == 0


@pytest.mark.unit
def test_create_review_counts_metrics(review_service, seller, buyer):
    review_service.create_review(seller.id, buyer.id, 5, "Great")
    with pytest.raises(ValidationError):
        review_service.create_review(seller.id, buyer.id, 9, "Too great")

    metrics = get_metrics_collector()
    assert metrics.get_counter_value("reviews_created_total", {"reviewer_kind": "buyer"}) == 1
    assert metrics.get_counter_value(
        "review_errors_total",
        {"operation": "create_review", "error": "ValidationError"},
    ) == 1


@pytest.fixture
def file_session_factory(tmp_path):
    """Sessions on a file-backed SQLite database, each with its own connection."""
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'reviews.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.mark.unit
def test_creates_from_two_sessions_both_count(file_session_factory):
    with file_session_factory() as setup:
        owner = User(email="owner@example.com", name="Axle Owner")
        first = User(email="first@example.com", name="First Buyer")
        second = User(email="second@example.com", name="Second Buyer")
        setup.add_all([owner, first, second])
        setup.flush()
        shop = SellerProfile(user_id=owner.id, business_name="Axle Alley")
        setup.add_all([shop, BuyerProfile(user_id=first.id), BuyerProfile(user_id=second.id)])
        setup.commit()
        seller_id, first_id, second_id = shop.id, first.id, second.id

    session_a = file_session_factory()
    session_b = file_session_factory()
    try:
        # Both sessions have loaded the seller before either one writes
        assert session_a.get(SellerProfile, seller_id).num_reviews == 0
        assert session_b.get(SellerProfile, seller_id).num_reviews == 0

        ReviewService(session_a).create_review(seller_id, first_id, 5, "Quick shipping")
        ReviewService(session_b).create_review(seller_id, second_id, 3, "Box was dented")
    finally:
        session_a.close()
        session_b.close()

    with file_session_factory() as check:
        assert RatingAggregateStore(check).get_count(seller_id) == 2
        assert ReviewService(check).get_seller_stats(seller_id).total_reviews == 2


# ===== get_seller_stats =====

@pytest.mark.unit
def test_stats_for_seller_without_reviews(review_service, seller):
    stats = review_service.get_seller_stats(seller.id)

    assert stats.average_rating == 0
    assert stats.total_reviews == 0


@pytest.mark.unit
def test_stats_match_created_reviews(review_service, db_session, seller, make_user):
    ratings = [5, 4, 4, 2, 1, 3]
    for rating in ratings:
        reviewer = make_user(buyer=True)
        review_service.create_review(seller.id, reviewer.id, rating, "ok")

    stats = review_service.get_seller_stats(seller.id)

    assert stats.total_reviews == len(ratings)
    assert stats.average_rating == pytest.approx(sum(ratings) / len(ratings))
    assert counter(db_session, seller.id) == len(ratings)


@pytest.mark.unit
def test_stats_ignore_drifted_counter(review_service, db_session, seller, buyer):
    review_service.create_review(seller.id, buyer.id, 4, "ok")
    db_session.execute(
        update(SellerProfile).where(SellerProfile.id == seller.id).values(num_reviews=42)
    )
    db_session.commit()

    stats = review_service.get_seller_stats(seller.id)

    assert stats.total_reviews == 1
    assert stats.average_rating == pytest.approx(4.0)


@pytest.mark.unit
def test_stats_are_per_seller(review_service, seller, buyer, make_user):
    other = make_user(seller=True).seller_profile
    review_service.create_review(seller.id, buyer.id, 5, "a")
    review_service.create_review(other.id, buyer.id, 1, "b")

    stats = review_service.get_seller_stats(seller.id)

    assert stats.total_reviews == 1
    assert stats.average_rating == pytest.approx(5.0)


# ===== get_seller_reviews =====

@pytest.mark.unit
def test_seller_reviews_second_page(review_service, seller, make_user):
    created = []
    for i in range(12):
        reviewer = make_user(buyer=True)
        created.append(review_service.create_review(seller.id, reviewer.id, (i % 5) + 1, f"review {i}"))

    result = review_service.get_seller_reviews(seller.id, page=2, limit=5)

    newest_first = list(reversed(created))
    assert [row.review.id for row in result.reviews] == [r.id for r in newest_first[5:10]]
    assert result.total == 12
    assert result.has_more is True


@pytest.mark.unit
def test_seller_reviews_last_page_has_no_more(review_service, seller, make_user):
    for i in range(7):
        review_service.create_review(seller.id, make_user(buyer=True).id, 4, f"r{i}")

    result = review_service.get_seller_reviews(seller.id, page=2, limit=5)

    assert len(result.reviews) == 2
    assert result.total == 7
    assert result.has_more is False


@pytest.mark.unit
def test_seller_reviews_default_limit(review_service, seller, make_user):
    for i in range(6):
        review_service.create_review(seller.id, make_user(buyer=True).id, 4, f"r{i}")

    result = review_service.get_seller_reviews(seller.id)

    assert result.page == 1
    assert result.limit == 5
    assert len(result.reviews) == 5
    assert result.has_more is True


@pytest.mark.unit
def test_seller_reviews_large_limit_returns_everything(review_service, seller, make_user):
    for i in range(3):
        review_service.create_review(seller.id, make_user(buyer=True).id, 4, f"r{i}")

    result = review_service.get_seller_reviews(seller.id, page=1, limit=100)

    assert result.limit == 100
    assert len(result.reviews) == 3
    assert result.has_more is False


@pytest.mark.unit
def test_seller_reviews_resolve_reviewer_names(review_service, seller, make_user):
    alice = make_user(name="Alice", buyer=True)
    shop = make_user(name="Bob of Exhaust Depot", seller=True)
    review_service.create_review(seller.id, alice.id, 5, "from a buyer")
    review_service.create_review(seller.id, shop.id, 3, "from a seller")

    rows = review_service.get_seller_reviews(seller.id).reviews
    by_comment = {row.review.comment: row.reviewer for row in rows}

    assert by_comment["from a buyer"].kind is ReviewerKind.BUYER
    assert by_comment["from a buyer"].name == "Alice"
    assert by_comment["from a buyer"].user_id == alice.id
    assert by_comment["from a seller"].kind is ReviewerKind.SELLER
    assert by_comment["from a seller"].name == "Bob of Exhaust Depot"
    assert by_comment["from a seller"].profile_id == shop.seller_profile.id


@pytest.mark.unit
@pytest.mark.parametrize("page,limit", [(0, 5), (-1, 5), (1, 0), (1, -3), (1, True), (1, 2.5)])
def test_seller_reviews_rejects_bad_paging(review_service, seller, page, limit):
    with pytest.raises(ValidationError):
        review_service.get_seller_reviews(seller.id, page=page, limit=limit)


# ===== add_reply_to_review =====

@pytest.fixture
def review(review_service, seller, buyer):
    return review_service.create_review(seller.id, buyer.id, 2, "Wrong part number")


@pytest.mark.unit
def test_reply_by_reviewed_seller(review_service, review, seller):
    updated = review_service.add_reply_to_review(review.id, seller.id, "Sorry, sending the right one")

    assert updated.reply["comment"] == "Sorry, sending the right one"
    assert "created_at" in updated.reply
    assert get_metrics_collector().get_counter_value("review_replies_total") == 1


@pytest.mark.unit
def test_reply_by_other_seller_is_forbidden(review_service, review, make_user):
    other = make_user(seller=True).seller_profile

    with pytest.raises(AuthorizationError):
        review_service.add_reply_to_review(review.id, other.id, "Not my review")

    assert review_service.get_review(review.id).reply is None


@pytest.mark.unit
def test_second_reply_conflicts(review_service, review, seller):
    review_service.add_reply_to_review(review.id, seller.id, "First")

    with pytest.raises(ConflictError):
        review_service.add_reply_to_review(review.id, seller.id, "Second")

    assert review_service.get_review(review.id).reply["comment"] == "First"


@pytest.mark.unit
def test_second_reply_conflicts_for_any_caller(review_service, review, seller, make_user):
    review_service.add_reply_to_review(review.id, seller.id, "First")
    other = make_user(seller=True).seller_profile

    with pytest.raises(ConflictError):
        review_service.add_reply_to_review(review.id, other.id, "Hijack")


@pytest.mark.unit
def test_reply_to_missing_review(review_service, seller):
    with pytest.raises(NotFoundError):
        review_service.add_reply_to_review(4242, seller.id, "Hello?")


@pytest.mark.unit
def test_reply_without_seller_profile(review_service, review):
    with pytest.raises(AuthorizationError):
        review_service.add_reply_to_review(review.id, None, "Buyer chiming in")


@pytest.mark.unit
def test_reply_without_seller_profile_on_replied_review_conflicts(review_service, review, seller):
    review_service.add_reply_to_review(review.id, seller.id, "First")

    with pytest.raises(ConflictError):
        review_service.add_reply_to_review(review.id, None, "Second")


@pytest.mark.unit
def test_reply_without_seller_profile_to_missing_review(review_service):
    with pytest.raises(NotFoundError):
        review_service.add_reply_to_review(4242, None, "Hello?")


# ===== report_review =====

@pytest.mark.unit
def test_report_review_last_report_wins(review_service, review, make_user):
    first = make_user(buyer=True)
    second = make_user(buyer=True)

    review_service.report_review(review.id, first.id, "spam")
    updated = review_service.report_review(review.id, second.id, "offensive language")

    assert updated.reported is True
    assert updated.report_reason == "offensive language"
    assert updated.reporter_id == second.id
    assert get_metrics_collector().get_counter_value("review_reports_total") == 2


@pytest.mark.unit
def test_report_does_not_touch_reply(review_service, review, seller, buyer):
    review_service.add_reply_to_review(review.id, seller.id, "Thanks")

    updated = review_service.report_review(review.id, buyer.id, "fake")

    assert updated.reply["comment"] == "Thanks"
    assert updated.reported is True


@pytest.mark.unit
def test_report_missing_review(review_service, buyer):
    with pytest.raises(NotFoundError):
        review_service.report_review(4242, buyer.id, "spam")


# ===== delete_review =====

@pytest.mark.unit
def test_delete_review_by_author(review_service, db_session, review, seller, buyer):
    assert counter(db_session, seller.id) == 1

    review_service.delete_review(review.id, buyer.id)

    assert counter(db_session, seller.id) == 0
    assert db_session.get(Review, review.id) is None
    assert review_service.get_seller_stats(seller.id).total_reviews == 0


@pytest.mark.unit
def test_delete_review_twice_is_not_found(review_service, review, buyer):
    review_service.delete_review(review.id, buyer.id)

    with pytest.raises(NotFoundError):
        review_service.delete_review(review.id, buyer.id)


@pytest.mark.unit
def test_delete_review_by_someone_else(review_service, db_session, review, seller, seller_user, make_user):
    stranger = make_user(buyer=True)

    with pytest.raises(AuthorizationError):
        review_service.delete_review(review.id, stranger.id)
    # The reviewed seller can't remove it either
    with pytest.raises(AuthorizationError):
        review_service.delete_review(review.id, seller_user.id)

    assert counter(db_session, seller.id) == 1


@pytest.mark.unit
def test_delete_review_written_as_seller(review_service, db_session, seller, make_user):
    shop = make_user(seller=True)
    review = review_service.create_review(seller.id, shop.id, 5, "Reliable wholesaler")

    review_service.delete_review(review.id, shop.id)

    assert counter(db_session, seller.id) == 0


@pytest.mark.unit
def test_delete_review_rolls_back_when_counter_update_fails(review_service, db_session, review, seller, buyer):
    with patch.object(review_service.ratings, "decrement", side_effect=SQLAlchemyError("counter down")):
        with pytest.raises(SQLAlchemyError):
            review_service.delete_review(review.id, buyer.id)

    assert db_session.get(Review, review.id) is not None
    assert counter(db_session, seller.id) == 1


@pytest.mark.unit
def test_create_and_delete_keep_counter_equal_to_rows(review_service, db_session, seller, make_user):
    reviewers = [make_user(buyer=True) for _ in range(5)]
    reviews = [review_service.create_review(seller.id, u.id, 3, "x") for u in reviewers]

    for review, user in list(zip(reviews, reviewers))[:2]:
        review_service.delete_review(review.id, user.id)

    assert counter(db_session, seller.id) == ReviewStore(db_session).count_for_seller(seller.id) == 3
