"""
Buyer profile model - extends User for part buyers.
"""
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partsmarket.lib.db import Base
from partsmarket.models.users import utcnow

if TYPE_CHECKING:
    from partsmarket.models.users import User


class BuyerProfile(Base):
    """
    Buyer profile (1:1 with User).
    """
    __tablename__ = "buyer_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    user: Mapped["User"] = relationship(back_populates="buyer_profile")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return f"<BuyerProfile(id={self.id}, user_id={self.user_id})>"
