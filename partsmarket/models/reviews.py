"""
Review model - buyer (or seller) feedback about a seller.
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    false,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from partsmarket.lib.db import Base
from partsmarket.models.users import utcnow


class ReviewerKind(str, enum.Enum):
    """Role the reviewer wrote the review in."""
    BUYER = "buyer"
    SELLER = "seller"


@dataclass(frozen=True)
class ReviewerRef:
    """Tagged reviewer identity: which profile table, and which row in it."""
    kind: ReviewerKind
    profile_id: int


class Review(Base):
    """
    Review entity - rating and comment left on a seller profile.

    Exactly one of buyer_reviewer_id / seller_reviewer_id is set; read it
    through `reviewer`.
    """
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Reviewed seller
    seller_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("seller_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Reviewer (one of)
    buyer_reviewer_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("buyer_profiles.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    seller_reviewer_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("seller_profiles.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    # Rating (1-5 scale)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)

    comment: Mapped[str] = mapped_column(Text, nullable=False)

    # Seller reply: {"comment": str, "created_at": ISO-8601 str}
    reply: Mapped[Optional[dict]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=True,
    )

    # Moderation
    reported: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    report_reason: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    reporter_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (
        CheckConstraint(
            "rating >= 1 AND rating <= 5",
            name="review_rating_range",
        ),
        CheckConstraint(
            "(buyer_reviewer_id IS NULL) <> (seller_reviewer_id IS NULL)",
            name="review_single_reviewer",
        ),
    )

    @property
    def reviewer(self) -> ReviewerRef:
        if self.buyer_reviewer_id is not None:
            return ReviewerRef(ReviewerKind.BUYER, self.buyer_reviewer_id)
        return ReviewerRef(ReviewerKind.SELLER, self.seller_reviewer_id)

    @reviewer.setter
    def reviewer(self, ref: ReviewerRef) -> None:
        if ref.kind is ReviewerKind.BUYER:
            self.buyer_reviewer_id, self.seller_reviewer_id = ref.profile_id, None
        else:
            self.buyer_reviewer_id, self.seller_reviewer_id = None, ref.profile_id

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, seller_id={self.seller_id}, rating={self.rating})>"
