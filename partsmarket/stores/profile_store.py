"""
Seller and user lookups used by the review engine.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from partsmarket.models.buyers import BuyerProfile
from partsmarket.models.sellers import SellerProfile
from partsmarket.models.users import User


class ProfileStore:
    """Read-only access to users and their buyer/seller profiles."""

    def __init__(self, session: Session):
        self.session = session

    def get_seller(self, seller_id: int) -> Optional[SellerProfile]:
        return self.session.get(SellerProfile, seller_id)

    def get_user_with_profiles(self, user_id: int) -> Optional[User]:
        """Load a user together with both sub-profiles in one round trip each."""
        stmt = (
            select(User)
            .where(User.id == user_id)
            .options(
                selectinload(User.buyer_profile),
                selectinload(User.seller_profile),
            )
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get_seller_for_user(self, user_id: int) -> Optional[SellerProfile]:
        stmt = select(SellerProfile).where(SellerProfile.user_id == user_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_profile_owner(self, buyer_id: Optional[int], seller_id: Optional[int]) -> Optional[int]:
        """
        User id owning the given buyer or seller profile.

        Exactly one of the ids is expected; returns None if the profile is gone.
        """
        if buyer_id is not None:
            stmt = select(BuyerProfile.user_id).where(BuyerProfile.id == buyer_id)
        else:
            stmt = select(SellerProfile.user_id).where(SellerProfile.id == seller_id)
        return self.session.execute(stmt).scalar_one_or_none()
