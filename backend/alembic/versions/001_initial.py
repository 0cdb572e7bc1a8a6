"""Initial schema with all models

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
    ]


def upgrade() -> None:
    # Tenants table
    op.create_table(
        'tenants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        sa.Column('domain', sa.String(20), nullable=False),
        sa.Column('stripe_account_id', sa.String(255), nullable=True),
        sa.Column('settings', postgresql.JSON(), nullable=False, server_default='{}'),
        *_timestamps(),
    )
    op.create_index('ix_tenants_slug', 'tenants', ['slug'])
    op.create_index('ix_tenants_domain', 'tenants', ['domain'])

    # Users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('hashed_password', sa.String(255), nullable=True),
        sa.Column('image', sa.String(1024), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='customer'),
        sa.Column('username', sa.String(100), nullable=True, unique=True),
        sa.Column('bio', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_tenant_id', 'users', ['tenant_id'])
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_username', 'users', ['username'])

    # Sessions table
    op.create_table(
        'sessions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.String(512), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
    )
    op.create_index('ix_sessions_user_id', 'sessions', ['user_id'])
    op.create_index('ix_sessions_expires_at', 'sessions', ['expires_at'])

    # Products table
    op.create_table(
        'products',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('seller_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('images', postgresql.JSON(), nullable=False, server_default='[]'),
        sa.Column('category', sa.String(100), nullable=False, server_default=''),
        sa.Column('tags', postgresql.JSON(), nullable=False, server_default='[]'),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('metadata', postgresql.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_products_tenant_id', 'products', ['tenant_id'])
    op.create_index('ix_products_seller_id', 'products', ['seller_id'])
    op.create_index('ix_products_status', 'products', ['status'])

    # Orders table
    op.create_table(
        'orders',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('items', postgresql.JSON(), nullable=False, server_default='[]'),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('stripe_payment_intent_id', sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_orders_tenant_id', 'orders', ['tenant_id'])
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    # Forum posts table
    op.create_table(
        'forum_posts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('author_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('title', sa.String(300), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('category', sa.String(50), nullable=False),
        sa.Column('tags', postgresql.JSON(), nullable=False, server_default='[]'),
        sa.Column('likes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pinned', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('locked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('ai_summary', sa.Text(), nullable=True),
        sa.Column('preview_image', sa.String(1024), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_forum_posts_tenant_id', 'forum_posts', ['tenant_id'])
    op.create_index('ix_forum_posts_author_id', 'forum_posts', ['author_id'])
    op.create_index('ix_forum_posts_category', 'forum_posts', ['category'])

    # Forum comments table
    op.create_table(
        'forum_comments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('post_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('forum_posts.id'), nullable=False),
        sa.Column('author_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('parent_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('likes', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_forum_comments_post_id', 'forum_comments', ['post_id'])
    op.create_index('ix_forum_comments_author_id', 'forum_comments', ['author_id'])
    op.create_index('ix_forum_comments_parent_id', 'forum_comments', ['parent_id'])

    # Forum categories table
    op.create_table(
        'forum_categories',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('icon', sa.String(50), nullable=False),
        sa.Column('color', sa.String(50), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_forum_categories_tenant_id', 'forum_categories', ['tenant_id'])
    op.create_index('ix_forum_categories_slug', 'forum_categories', ['slug'])

    # Like and bookmark relations
    for table, constraint in (('forum_post_likes', 'uq_post_like'), ('forum_bookmarks', 'uq_bookmark')):
        op.create_table(
            table,
            sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
            sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
            sa.Column('post_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('forum_posts.id'), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
            sa.UniqueConstraint('user_id', 'post_id', name=constraint),
        )
        op.create_index(f'ix_{table}_user_id', table, ['user_id'])
        op.create_index(f'ix_{table}_post_id', table, ['post_id'])

    # Reputation table
    op.create_table(
        'user_reputation',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('level', sa.String(20), nullable=False, server_default='bronze'),
        sa.Column('posts_created', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('comments_created', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('likes_received', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'tenant_id', name='uq_reputation'),
    )
    op.create_index('ix_user_reputation_user_id', 'user_reputation', ['user_id'])
    op.create_index('ix_user_reputation_tenant_id', 'user_reputation', ['tenant_id'])
    op.create_index('ix_user_reputation_points', 'user_reputation', ['points'])

    # Campaigns
    op.create_table(
        'forum_campaigns',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('prize', sa.String(255), nullable=False, server_default=''),
        sa.Column('target_points', sa.Integer(), nullable=False),
        sa.Column('current_progress', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_forum_campaigns_tenant_id', 'forum_campaigns', ['tenant_id'])
    op.create_index('ix_forum_campaigns_is_active', 'forum_campaigns', ['is_active'])

    op.create_table(
        'campaign_participants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('campaign_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('forum_campaigns.id'), nullable=False),
        sa.Column('joined_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.UniqueConstraint('user_id', 'campaign_id', name='uq_campaign_participant'),
    )
    op.create_index('ix_campaign_participants_user_id', 'campaign_participants', ['user_id'])
    op.create_index('ix_campaign_participants_campaign_id', 'campaign_participants', ['campaign_id'])

    # Audit trail (no foreign keys: entries outlive what they describe)
    op.create_table(
        'audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('event_type', sa.String(80), nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='success'),
        sa.Column('user_id', sa.String(120), nullable=True),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('resource_id', sa.String(120), nullable=True),
        sa.Column('resource_type', sa.String(20), nullable=True),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.String(512), nullable=True),
        sa.Column('details', postgresql.JSON(), nullable=False, server_default='{}'),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('retention_days', sa.Integer(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_audit_logs_event_type', 'audit_logs', ['event_type'])
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_tenant_id', 'audit_logs', ['tenant_id'])
    op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])
    op.create_index('ix_audit_logs_expires_at', 'audit_logs', ['expires_at'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('campaign_participants')
    op.drop_table('forum_campaigns')
    op.drop_table('user_reputation')
    op.drop_table('forum_bookmarks')
    op.drop_table('forum_post_likes')
    op.drop_table('forum_categories')
    op.drop_table('forum_comments')
    op.drop_table('forum_posts')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('sessions')
    op.drop_table('users')
    op.drop_table('tenants')
