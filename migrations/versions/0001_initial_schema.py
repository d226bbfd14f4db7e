"""initial schema: sessions, roster, confirmations, push subscriptions

Revision ID: 0001
Revises:
Create Date: 2026-10-19 12:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'sports',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=50), nullable=False, unique=True),
    )
    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('email', sa.String(length=120), nullable=True, unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'pickup_sessions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('sport_id', sa.Integer(), sa.ForeignKey('sports.id'), nullable=True),
        sa.Column('host_id', sa.Integer(), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('player_limit', sa.Integer(), nullable=True),
        sa.Column('fee', sa.Numeric(precision=8, scale=2), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), nullable=True),
        sa.Column('series_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_pickup_sessions_start_time', 'pickup_sessions', ['start_time'])
    op.create_index('ix_pickup_sessions_series_id', 'pickup_sessions', ['series_id'])
    op.create_table(
        'pickup_session_players',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('pickup_sessions.id'), nullable=False),
        sa.Column('profile_id', sa.Integer(), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=True),
        sa.Column('joined_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('session_id', 'profile_id', name='unique_session_player'),
    )
    op.create_table(
        'session_confirmations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('pickup_sessions.id'), nullable=False),
        sa.Column('profile_id', sa.Integer(), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('reminder_sent_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('session_id', 'profile_id', name='unique_session_confirmation'),
    )
    op.create_table(
        'push_subscriptions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('profile_id', sa.Integer(), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('endpoint', sa.Text(), nullable=False, unique=True),
        sa.Column('p256dh', sa.String(length=255), nullable=False),
        sa.Column('auth', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_push_subscriptions_profile_id', 'push_subscriptions', ['profile_id'])


def downgrade():
    op.drop_index('ix_push_subscriptions_profile_id', table_name='push_subscriptions')
    op.drop_table('push_subscriptions')
    op.drop_table('session_confirmations')
    op.drop_table('pickup_session_players')
    op.drop_index('ix_pickup_sessions_series_id', table_name='pickup_sessions')
    op.drop_index('ix_pickup_sessions_start_time', table_name='pickup_sessions')
    op.drop_table('pickup_sessions')
    op.drop_table('profiles')
    op.drop_table('sports')
