"""
SQLAlchemy models package.
Import all models here to ensure they're registered with Base.metadata.
"""
from partsmarket.models.users import User
from partsmarket.models.buyers import BuyerProfile
from partsmarket.models.sellers import SellerProfile
from partsmarket.models.reviews import Review, ReviewerKind, ReviewerRef

__all__ = [
    "User",
    "BuyerProfile",
    "SellerProfile",
    "Review",
    "ReviewerKind",
    "ReviewerRef",
]
