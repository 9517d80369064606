"""create_review_tables

Revision ID: 3f2a9c1d7e41
Revises:
Create Date: 2026-10-18 10:12:44.104233

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema: users, buyer/seller profiles and reviews."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'buyer_profiles',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_buyer_profiles_user_id', 'buyer_profiles', ['user_id'], unique=True)

    op.create_table(
        'seller_profiles',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('business_name', sa.String(length=255), nullable=False),
        sa.Column('num_reviews', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('num_reviews >= 0', name='seller_num_reviews_non_negative'),
    )
    op.create_index('ix_seller_profiles_user_id', 'seller_profiles', ['user_id'], unique=True)

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('seller_id', sa.Integer(), sa.ForeignKey('seller_profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('buyer_reviewer_id', sa.Integer(), sa.ForeignKey('buyer_profiles.id', ondelete='CASCADE'), nullable=True),
        sa.Column('seller_reviewer_id', sa.Integer(), sa.ForeignKey('seller_profiles.id', ondelete='CASCADE'), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('reply', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('reported', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('report_reason', sa.String(length=1000), nullable=True),
        sa.Column('reporter_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='review_rating_range'),
        sa.CheckConstraint(
            '(buyer_reviewer_id IS NULL) <> (seller_reviewer_id IS NULL)',
            name='review_single_reviewer',
        ),
    )
    op.create_index('ix_reviews_seller_id', 'reviews', ['seller_id'])
    op.create_index('ix_reviews_buyer_reviewer_id', 'reviews', ['buyer_reviewer_id'])
    op.create_index('ix_reviews_seller_reviewer_id', 'reviews', ['seller_reviewer_id'])
    op.create_index('ix_reviews_created_at', 'reviews', ['created_at'])


def downgrade() -> None:
    """Downgrade schema: drop review tables in dependency order."""
    op.drop_table('reviews')
    op.drop_table('seller_profiles')
    op.drop_table('buyer_profiles')
    op.drop_table('users')
