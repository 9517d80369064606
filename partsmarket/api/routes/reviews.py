"""
Review API routes.

Thin wrappers around ReviewService: the caller comes from the bearer token,
engine errors are mapped to status codes by the registered exception handler.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field, StrictInt

from partsmarket.api.dependencies import get_current_user, get_review_service
from partsmarket.models.reviews import Review
from partsmarket.models.users import User
from partsmarket.services.review_service import ReviewService


# Pydantic schemas
class CreateReviewRequest(BaseModel):
    """Review submission; the reviewer is the authenticated caller."""
    seller_id: int = Field(..., description="Seller profile being reviewed")
    rating: StrictInt = Field(..., description="Rating from 1 to 5")
    comment: str = Field(..., description="Review text")


class ReplyRequest(BaseModel):
    comment: str = Field(..., min_length=1, description="Seller's reply text")


class ReportRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000, description="Why the review should be moderated")


class ReplyResponse(BaseModel):
    comment: str
    created_at: datetime


class ReviewResponse(BaseModel):
    """Review as returned to clients."""
    id: int
    seller_id: int
    reviewer_kind: str
    reviewer_profile_id: int
    rating: int
    comment: str
    reply: Optional[ReplyResponse] = None
    reported: bool
    report_reason: Optional[str] = None
    reporter_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


def to_review_response(review: Review) -> ReviewResponse:
    reviewer = review.reviewer
    return ReviewResponse(
        id=review.id,
        seller_id=review.seller_id,
        reviewer_kind=reviewer.kind.value,
        reviewer_profile_id=reviewer.profile_id,
        rating=review.rating,
        comment=review.comment,
        reply=ReplyResponse(**review.reply) if review.reply else None,
        reported=review.reported,
        report_reason=review.report_reason,
        reporter_id=review.reporter_id,
        created_at=review.created_at,
        updated_at=review.updated_at,
    )


# Router
router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def create_review(
    body: CreateReviewRequest,
    user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    """Leave a review on a seller as the authenticated user."""
    review = service.create_review(
        seller_id=body.seller_id,
        reviewer_id=user.id,
        rating=body.rating,
        comment=body.comment,
    )
    return to_review_response(review)


@router.get("/{review_id}", response_model=ReviewResponse)
def get_review(
    review_id: int,
    service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    return to_review_response(service.get_review(review_id))


@router.post("/{review_id}/reply", response_model=ReviewResponse)
def reply_to_review(
    review_id: int,
    body: ReplyRequest,
    user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    """
    Reply to a review as the reviewed seller.

    A caller without a seller profile still reaches the engine, so a missing
    review is 404 and an already replied one is 409 for everybody.
    """
    seller = service.profiles.get_seller_for_user(user.id)
    seller_id = seller.id if seller is not None else None

    review = service.add_reply_to_review(review_id, seller_id, body.comment)
    return to_review_response(review)


@router.post("/{review_id}/report", response_model=ReviewResponse)
def report_review(
    review_id: int,
    body: ReportRequest,
    user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    review = service.report_review(review_id, user.id, body.reason)
    return to_review_response(review)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(
    review_id: int,
    user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
) -> Response:
    """Delete one of the caller's own reviews."""
    service.delete_review(review_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
