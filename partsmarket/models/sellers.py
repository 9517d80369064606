"""
Seller profile model - extends User for part sellers.
"""
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Integer, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partsmarket.lib.db import Base
from partsmarket.models.users import utcnow

if TYPE_CHECKING:
    from partsmarket.models.users import User


class SellerProfile(Base):
    """
    Seller profile (1:1 with User) - the entity buyers review.
    """
    __tablename__ = "seller_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    user: Mapped["User"] = relationship(back_populates="seller_profile")

    business_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Denormalized review counter, only ever changed with atomic UPDATEs
    num_reviews: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (
        CheckConstraint(
            "num_reviews >= 0",
            name="seller_num_reviews_non_negative",
        ),
    )

    def __repr__(self) -> str:
        return f"<SellerProfile(id={self.id}, business={self.business_name}, reviews={self.num_reviews})>"
