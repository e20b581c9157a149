"""initial_schema

Revision ID: 7c1e4a9d2b10
Revises: 
Create Date: 2026-10-19 10:12:41.508113

Production-safe migration: only creates tables that do not exist yet.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '7c1e4a9d2b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    # Create users table
    if not table_exists('users'):
        op.create_table('users',
            sa.Column('id', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=True),
            sa.Column('is_premium', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('stripe_customer_id', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=False)
        op.create_index(op.f('ix_users_stripe_customer_id'), 'users', ['stripe_customer_id'], unique=False)

    # Create subscriptions table
    if not table_exists('subscriptions'):
        op.create_table('subscriptions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('stripe_customer_id', sa.String(), nullable=True),
            sa.Column('stripe_subscription_id', sa.String(), nullable=True),
            sa.Column('plan', sa.String(), nullable=True),
            sa.Column('status', sa.String(), nullable=True),
            sa.Column('trial_start', sa.DateTime(), nullable=True),
            sa.Column('trial_end', sa.DateTime(), nullable=True),
            sa.Column('current_period_start', sa.DateTime(), nullable=True),
            sa.Column('current_period_end', sa.DateTime(), nullable=True),
            sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('updated_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id')
        )
        op.create_index(op.f('ix_subscriptions_id'), 'subscriptions', ['id'], unique=False)
        op.create_index(op.f('ix_subscriptions_stripe_customer_id'), 'subscriptions', ['stripe_customer_id'], unique=False)
        op.create_index(op.f('ix_subscriptions_stripe_subscription_id'), 'subscriptions', ['stripe_subscription_id'], unique=False)

    # Create usage_events table
    if not table_exists('usage_events'):
        op.create_table('usage_events',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('feature', sa.String(), nullable=False),
            sa.Column('input_excerpt', sa.Text(), nullable=True),
            sa.Column('output_excerpt', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('idx_usage_user_feature_created', 'usage_events', ['user_id', 'feature', 'created_at'], unique=False)
        op.create_index(op.f('ix_usage_events_created_at'), 'usage_events', ['created_at'], unique=False)
        op.create_index(op.f('ix_usage_events_feature'), 'usage_events', ['feature'], unique=False)
        op.create_index(op.f('ix_usage_events_id'), 'usage_events', ['id'], unique=False)
        op.create_index(op.f('ix_usage_events_user_id'), 'usage_events', ['user_id'], unique=False)

    # Create cached_recipes table
    if not table_exists('cached_recipes'):
        op.create_table('cached_recipes',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('emoji', sa.String(), nullable=True),
            sa.Column('stage', sa.String(), nullable=True),
            sa.Column('time', sa.Integer(), nullable=True),
            sa.Column('difficulty', sa.Integer(), nullable=True),
            sa.Column('ingredients', sa.JSON(), nullable=True),
            sa.Column('ingredients_text', sa.Text(), nullable=True),
            sa.Column('steps', sa.JSON(), nullable=True),
            sa.Column('nutrition', sa.JSON(), nullable=True),
            sa.Column('tip', sa.Text(), nullable=True),
            sa.Column('tags', sa.JSON(), nullable=True),
            sa.Column('baby_month_min', sa.Integer(), nullable=False, server_default='5'),
            sa.Column('baby_month_max', sa.Integer(), nullable=False, server_default='18'),
            sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_cached_recipes_created_at'), 'cached_recipes', ['created_at'], unique=False)
        op.create_index(op.f('ix_cached_recipes_id'), 'cached_recipes', ['id'], unique=False)

    # Create videos table
    if not table_exists('videos'):
        op.create_table('videos',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('youtube_id', sa.String(), nullable=False),
            sa.Column('source', sa.String(), nullable=False, server_default='youtube'),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('channel_name', sa.String(), nullable=True),
            sa.Column('thumbnail_url', sa.String(), nullable=True),
            sa.Column('baby_month_stage', sa.String(), nullable=True),
            sa.Column('tags', sa.JSON(), nullable=True),
            sa.Column('likes_count', sa.Integer(), nullable=True),
            sa.Column('views_count', sa.Integer(), nullable=True),
            sa.Column('cached_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_videos_id'), 'videos', ['id'], unique=False)
        op.create_index(op.f('ix_videos_source'), 'videos', ['source'], unique=False)
        op.create_index(op.f('ix_videos_youtube_id'), 'videos', ['youtube_id'], unique=True)

    # Create share_posts table
    if not table_exists('share_posts'):
        op.create_table('share_posts',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('post_type', sa.String(), nullable=True),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('content', sa.Text(), nullable=True),
            sa.Column('image_url', sa.String(), nullable=True),
            sa.Column('source_name', sa.String(), nullable=True),
            sa.Column('source_url', sa.String(), nullable=True),
            sa.Column('baby_stage', sa.String(), nullable=True),
            sa.Column('tags', sa.JSON(), nullable=True),
            sa.Column('likes_count', sa.Integer(), nullable=True),
            sa.Column('comments_count', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_share_posts_id'), 'share_posts', ['id'], unique=False)
        op.create_index(op.f('ix_share_posts_source_name'), 'share_posts', ['source_name'], unique=False)
        op.create_index(op.f('ix_share_posts_source_url'), 'share_posts', ['source_url'], unique=True)

    # Create blog_posts table
    if not table_exists('blog_posts'):
        op.create_table('blog_posts',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('slug', sa.String(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('content', sa.Text(), nullable=False),
            sa.Column('category', sa.String(), nullable=True),
            sa.Column('baby_stage', sa.String(), nullable=True),
            sa.Column('published', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('views_count', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.Column('updated_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_blog_posts_category'), 'blog_posts', ['category'], unique=False)
        op.create_index(op.f('ix_blog_posts_created_at'), 'blog_posts', ['created_at'], unique=False)
        op.create_index(op.f('ix_blog_posts_id'), 'blog_posts', ['id'], unique=False)
        op.create_index(op.f('ix_blog_posts_slug'), 'blog_posts', ['slug'], unique=True)


def downgrade() -> None:
    """Downgrade: drop every table in reverse dependency order."""
    for table in ('blog_posts', 'share_posts', 'videos', 'cached_recipes', 'usage_events', 'subscriptions', 'users'):
        if table_exists(table):
            op.drop_table(table)
