"""Initial schema.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    subscription_status = sa.Enum(
        'none',
        'active',
        'cancelled',
        'billing_issue',
        name='subscriptionstatus'
    )
    asset_class = sa.Enum('crypto', 'stock', name='assetclass')
    news_category = sa.Enum('stocks', 'crypto', name='newscategory')
    sync_outcome = sa.Enum('success', 'error', name='syncoutcome')

    op.create_table(
        'users',
        sa.Column('id', sa.String(128), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('fcm_token', sa.String(512), nullable=True),
        sa.Column('notifications_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('subscription_status', subscription_status, nullable=False, server_default='none'),
        sa.Column('subscription_product_id', sa.String(255), nullable=True),
        sa.Column('subscription_expires_date', sa.String(64), nullable=True),
        sa.Column('has_billing_issue', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('billing_issue_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('badge_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_active_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_token_error', sa.Text(), nullable=True),
        sa.Column('last_token_error_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_fcm_token', 'users', ['fcm_token'])

    op.create_table(
        'portfolio_assets',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(128), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('symbol', sa.String(20), nullable=False),
        sa.Column('name', sa.String(200), nullable=True),
        sa.Column('quantity', sa.Numeric(24, 8), nullable=False, server_default='0'),
        sa.Column('average_price', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'symbol', name='uq_portfolio_assets_user_symbol'),
    )
    op.create_index('ix_portfolio_assets_user_id', 'portfolio_assets', ['user_id'])
    op.create_index('ix_portfolio_assets_symbol', 'portfolio_assets', ['symbol'])

    op.create_table(
        'subscriptions',
        sa.Column('user_id', sa.String(128), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('status', subscription_status, nullable=False),
        sa.Column('product_id', sa.String(255), nullable=True),
        sa.Column('original_transaction_id', sa.String(255), nullable=True),
        sa.Column('transaction_id', sa.String(255), nullable=True),
        sa.Column('expires_date', sa.String(64), nullable=True),
        sa.Column('event_type', sa.String(64), nullable=True),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'popular_assets',
        sa.Column('symbol', sa.String(20), primary_key=True),
        sa.Column('name', sa.String(200), nullable=True),
        sa.Column('asset_class', asset_class, nullable=False),
        sa.Column('current_price', sa.Float(), nullable=False),
        sa.Column('previous_price', sa.Float(), nullable=False),
        sa.Column('percent_change_24h', sa.Float(), nullable=False, server_default='0'),
        sa.Column('market_cap', sa.Float(), nullable=True),
        sa.Column('volume_24h', sa.Float(), nullable=True),
        sa.Column('high_24h', sa.Float(), nullable=True),
        sa.Column('low_24h', sa.Float(), nullable=True),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_popular_assets_last_updated', 'popular_assets', ['last_updated'])

    op.create_table(
        'news',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('headline', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=False),
        sa.Column('url', sa.Text(), nullable=False, server_default=''),
        sa.Column('source', sa.String(255), nullable=False, server_default='Unknown'),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('related', sa.String(255), nullable=True),
        sa.Column('category', news_category, nullable=False),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    # Retention pruning and digest windows both scan by publish time
    op.create_index('ix_news_published_at', 'news', ['published_at'])
    op.create_index('ix_news_category', 'news', ['category'])

    op.create_table(
        'sync_status',
        sa.Column('job_name', sa.String(64), primary_key=True),
        sa.Column('last_run_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sync_outcome, nullable=False),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('stats', sa.JSON(), nullable=True),
    )

    op.create_table(
        'user_sessions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('fcm_token', sa.String(512), nullable=True),
        sa.Column('is_new_user', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('device_info', sa.String(255), nullable=True),
        sa.Column('platform', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_user_sessions_user_id', 'user_sessions', ['user_id'])

    op.create_table(
        'price_marks',
        sa.Column('user_id', sa.String(128), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('symbol', sa.String(20), primary_key=True),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('price_marks')
    op.drop_index('ix_user_sessions_user_id', table_name='user_sessions')
    op.drop_table('user_sessions')
    op.drop_table('sync_status')
    op.drop_index('ix_news_category', table_name='news')
    op.drop_index('ix_news_published_at', table_name='news')
    op.drop_table('news')
    op.drop_index('ix_popular_assets_last_updated', table_name='popular_assets')
    op.drop_table('popular_assets')
    op.drop_table('subscriptions')
    op.drop_index('ix_portfolio_assets_symbol', table_name='portfolio_assets')
    op.drop_index('ix_portfolio_assets_user_id', table_name='portfolio_assets')
    op.drop_table('portfolio_assets')
    op.drop_index('ix_users_fcm_token', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    for enum_name in ('syncoutcome', 'newscategory', 'assetclass', 'subscriptionstatus'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
