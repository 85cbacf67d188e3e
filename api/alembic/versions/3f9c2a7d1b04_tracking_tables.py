"""Tracking tables: visitors, daily_visits, page_views, visitor_sessions, active_carts, daily_stats

Revision ID: 3f9c2a7d1b04
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1b04'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('visitors',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('visitor_id', sa.String(length=32), nullable=False),
        sa.Column('ip_address', sa.String(length=64), nullable=False),
        sa.Column('user_agent', sa.Text(), nullable=False),
        sa.Column('device_type', sa.String(length=16), nullable=False),
        sa.Column('browser', sa.String(length=32), nullable=False),
        sa.Column('os', sa.String(length=32), nullable=False),
        sa.Column('is_bot', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('visit_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('first_visit', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_visit', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_visitors_visitor_id'), 'visitors', ['visitor_id'], unique=True)
    op.create_index(op.f('ix_visitors_last_visit'), 'visitors', ['last_visit'], unique=False)

    op.create_table('daily_visits',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('ip_address', sa.String(length=64), nullable=False),
        sa.Column('visitor_id', sa.String(length=32), nullable=False),
        sa.Column('device_type', sa.String(length=16), nullable=False),
        sa.Column('browser', sa.String(length=32), nullable=False),
        sa.Column('os', sa.String(length=32), nullable=False),
        sa.Column('visit_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('pages_viewed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_visit_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('date', 'ip_address', name='uq_daily_visit_date_ip'),
    )
    op.create_index(op.f('ix_daily_visits_date'), 'daily_visits', ['date'], unique=False)

    op.create_table('page_views',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('visitor_id', sa.String(length=32), nullable=False),
        sa.Column('page_url', sa.Text(), nullable=False),
        sa.Column('page_title', sa.Text(), nullable=True),
        sa.Column('referrer', sa.Text(), nullable=True),
        sa.Column('session_id', sa.String(length=255), nullable=True),
        sa.Column('time_on_page', sa.Integer(), nullable=True),
        sa.Column('scroll_depth', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_page_views_visitor_id'), 'page_views', ['visitor_id'], unique=False)
    op.create_index(op.f('ix_page_views_created_at'), 'page_views', ['created_at'], unique=False)

    op.create_table('visitor_sessions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('session_id', sa.String(length=255), nullable=False),
        sa.Column('visitor_id', sa.String(length=32), nullable=False),
        sa.Column('entry_page', sa.Text(), nullable=True),
        sa.Column('exit_page', sa.Text(), nullable=True),
        sa.Column('page_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_visitor_sessions_session_id'), 'visitor_sessions', ['session_id'], unique=True)
    op.create_index(op.f('ix_visitor_sessions_visitor_id'), 'visitor_sessions', ['visitor_id'], unique=False)

    op.create_table('active_carts',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('visitor_id', sa.String(length=32), nullable=False),
        sa.Column('session_id', sa.String(length=255), nullable=True),
        sa.Column('items', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='[]'),
        sa.Column('subtotal', sa.Float(), nullable=False, server_default='0'),
        sa.Column('item_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_activity', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_email', sa.String(length=255), nullable=True),
        sa.Column('abandoned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('converted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_active_carts_visitor_id'), 'active_carts', ['visitor_id'], unique=True)
    op.create_index(op.f('ix_active_carts_last_activity'), 'active_carts', ['last_activity'], unique=False)
    op.create_index(op.f('ix_active_carts_user_email'), 'active_carts', ['user_email'], unique=False)

    op.create_table('daily_stats',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('unique_visitors', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_visits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_page_views', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('new_visitors', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('returning_visitors', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_cart_value', sa.Float(), nullable=False, server_default='0'),
        sa.Column('abandoned_carts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('converted_carts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('top_pages', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('device_breakdown', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('browser_breakdown', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('date'),
    )


def downgrade() -> None:
    op.drop_table('daily_stats')
    op.drop_index(op.f('ix_active_carts_user_email'), table_name='active_carts')
    op.drop_index(op.f('ix_active_carts_last_activity'), table_name='active_carts')
    op.drop_index(op.f('ix_active_carts_visitor_id'), table_name='active_carts')
    op.drop_table('active_carts')
    op.drop_index(op.f('ix_visitor_sessions_visitor_id'), table_name='visitor_sessions')
    op.drop_index(op.f('ix_visitor_sessions_session_id'), table_name='visitor_sessions')
    op.drop_table('visitor_sessions')
    op.drop_index(op.f('ix_page_views_created_at'), table_name='page_views')
    op.drop_index(op.f('ix_page_views_visitor_id'), table_name='page_views')
    op.drop_table('page_views')
    op.drop_index(op.f('ix_daily_visits_date'), table_name='daily_visits')
    op.drop_table('daily_visits')
    op.drop_index(op.f('ix_visitors_last_visit'), table_name='visitors')
    op.drop_index(op.f('ix_visitors_visitor_id'), table_name='visitors')
    op.drop_table('visitors')
