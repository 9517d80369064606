"""
User model - base account for buyers and sellers.
"""
from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Integer, String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partsmarket.lib.db import Base

if TYPE_CHECKING:
    from partsmarket.models.buyers import BuyerProfile
    from partsmarket.models.sellers import SellerProfile


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    User entity - a marketplace account.
    A user may hold a buyer profile, a seller profile, or both.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    buyer_profile: Mapped[Optional["BuyerProfile"]] = relationship(
        back_populates="user",
        uselist=False,
    )
    seller_profile: Mapped[Optional["SellerProfile"]] = relationship(
        back_populates="user",
        uselist=False,
    )

    # Timestamps
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

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
