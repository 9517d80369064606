"""
Seller-facing review reads: rating stats and the paginated review list.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from partsmarket.api.dependencies import get_review_service
from partsmarket.api.routes.reviews import ReviewResponse, to_review_response
from partsmarket.lib.settings import settings
from partsmarket.services.review_service import ReviewService


class SellerStatsResponse(BaseModel):
    average_rating: float
    total_reviews: int


class ReviewerResponse(BaseModel):
    kind: str
    profile_id: int
    user_id: Optional[int] = None
    name: Optional[str] = None


class SellerReviewResponse(ReviewResponse):
    reviewer: ReviewerResponse


class SellerReviewsResponse(BaseModel):
    reviews: List[SellerReviewResponse]
    total: int
    has_more: bool
    page: int
    limit: int


router = APIRouter(prefix="/sellers", tags=["sellers"])


@router.get("/{seller_id}/stats", response_model=SellerStatsResponse)
def get_seller_stats(
    seller_id: int,
    service: ReviewService = Depends(get_review_service),
) -> SellerStatsResponse:
    stats = service.get_seller_stats(seller_id)
    return SellerStatsResponse(
        average_rating=stats.average_rating,
        total_reviews=stats.total_reviews,
    )


@router.get("/{seller_id}/reviews", response_model=SellerReviewsResponse)
def list_seller_reviews(
    seller_id: int,
    page: int = Query(1, description="1-based page number"),
    limit: Optional[int] = Query(
        None,
        le=settings.review_page_size_max,
        description="Reviews per page",
    ),
    service: ReviewService = Depends(get_review_service),
) -> SellerReviewsResponse:
    """
    List a seller's reviews, newest first.

    Non-positive page or limit values are rejected by the engine with 422.
    The query itself caps limit at settings.review_page_size_max.
    """
    result = service.get_seller_reviews(seller_id, page=page, limit=limit)
    return SellerReviewsResponse(
        reviews=[
            SellerReviewResponse(
                **to_review_response(row.review).model_dump(),
                reviewer=ReviewerResponse(
                    kind=row.reviewer.kind.value,
                    profile_id=row.reviewer.profile_id,
                    user_id=row.reviewer.user_id,
                    name=row.reviewer.name,
                ),
            )
            for row in result.reviews
        ],
        total=result.total,
        has_more=result.has_more,
        page=result.page,
        limit=result.limit,
    )
