"""create profiles and workout_logs tables

Revision ID: 3e1d9a7c5b20
Revises:
Create Date: 2025-12-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3e1d9a7c5b20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = inspector.get_table_names()
    if 'profiles' not in tables:
        op.create_table(
            'profiles',
            sa.Column('id', sa.String(), primary_key=True, nullable=False),
            sa.Column('username', sa.String(), nullable=True),
            sa.Column('weekly_goal', sa.Integer(), nullable=True),
            sa.Column('current_streak', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('longest_streak', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('is_week_complete', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('last_credited_week', sa.Date(), nullable=True),
            sa.Column('timezone', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('ix_profiles_id', 'profiles', ['id'])
    if 'workout_logs' not in tables:
        op.create_table(
            'workout_logs',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.String(), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
            sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('log_date', sa.Date(), nullable=False),
            sa.Column('is_rest_day', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('workout_type', sa.String(length=30), nullable=True),
            sa.Column('duration', sa.Integer(), nullable=True),
            sa.Column('intensity', sa.String(length=20), nullable=True),
            sa.Column('notes', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint('user_id', 'log_date', name='uq_workout_logs_user_day'),
        )
        op.create_index('ix_workout_logs_id', 'workout_logs', ['id'])
        op.create_index('ix_workout_logs_user_id', 'workout_logs', ['user_id'])
        op.create_index('ix_workout_logs_completed_at', 'workout_logs', ['completed_at'])


def downgrade() -> None:
    # Safe drop if exists
    op.execute('DROP TABLE IF EXISTS workout_logs')
    op.execute('DROP TABLE IF EXISTS profiles')
