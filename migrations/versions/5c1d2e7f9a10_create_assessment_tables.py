"""create assessment, proctoring session and notification tables

Revision ID: 5c1d2e7f9a10
Revises:
Create Date: 2026-10-19 09:12:44.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c1d2e7f9a10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

assessment_status = sa.Enum('PENDING', 'IN_PROGRESS', 'COMPLETED', 'FAILED', name='assessmentstatusenum')
session_status = sa.Enum('ACTIVE', 'COMPLETED', 'TERMINATED', 'FAILED', name='sessionstatusenum')
violation_type = sa.Enum(
    'TAB_SWITCH', 'WINDOW_FOCUS_LOSS', 'COPY_PASTE', 'RIGHT_CLICK', 'KEYBOARD_SHORTCUT',
    'MULTIPLE_WINDOWS', 'NO_FACE_DETECTED', 'MULTIPLE_FACES', 'LOOKING_AWAY',
    name='violationtypeenum',
)
severity = sa.Enum('LOW', 'MEDIUM', 'HIGH', name='severityenum')


def upgrade() -> None:
    op.create_table(
        'assessments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('task_title', sa.String(), nullable=False),
        sa.Column('week_index', sa.Integer(), nullable=False),
        sa.Column('day_index', sa.Integer(), nullable=False),
        sa.Column('task_index', sa.Integer(), nullable=False),
        sa.Column('status', assessment_status, nullable=False),
        sa.Column('attempt_count', sa.Integer(), nullable=False),
        sa.Column('max_attempts', sa.Integer(), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=True),
        sa.Column('passing_score', sa.Integer(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('passed', sa.Boolean(), nullable=False),
        sa.Column('time_spent_minutes', sa.Float(), nullable=True),
        sa.Column('violation_count', sa.Integer(), nullable=False),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'week_index', 'day_index', 'task_index', name='uq_assessment_user_task')
    )
    op.create_index(op.f('ix_assessments_id'), 'assessments', ['id'], unique=False)
    op.create_index(op.f('ix_assessments_user_id'), 'assessments', ['user_id'], unique=False)

    op.create_table(
        'proctoring_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('assessment_id', sa.Integer(), nullable=False),
        sa.Column('status', session_status, nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration', sa.Float(), nullable=True),
        sa.Column('last_activity', sa.DateTime(timezone=True), nullable=True),
        sa.Column('events', sa.JSON(), nullable=False),
        sa.Column('screen_recording', sa.JSON(), nullable=False),
        sa.Column('webcam_recording', sa.JSON(), nullable=False),
        sa.Column('environment', sa.JSON(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['assessment_id'], ['assessments.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_proctoring_sessions_id'), 'proctoring_sessions', ['id'], unique=False)
    op.create_index(op.f('ix_proctoring_sessions_session_id'), 'proctoring_sessions', ['session_id'], unique=True)
    op.create_index(op.f('ix_proctoring_sessions_user_id'), 'proctoring_sessions', ['user_id'], unique=False)
    op.create_index(op.f('ix_proctoring_sessions_assessment_id'), 'proctoring_sessions', ['assessment_id'], unique=False)

    op.create_table(
        'session_violations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_pk', sa.Integer(), nullable=False),
        sa.Column('type', violation_type, nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('severity', severity, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['session_pk'], ['proctoring_sessions.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_session_violations_id'), 'session_violations', ['id'], unique=False)
    op.create_index(op.f('ix_session_violations_session_pk'), 'session_violations', ['session_pk'], unique=False)

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('message', sa.String(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('link', sa.String(), nullable=True),
        sa.Column('notification_type', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notifications_id'), 'notifications', ['id'], unique=False)
    op.create_index(op.f('ix_notifications_user_id'), 'notifications', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_notifications_user_id'), table_name='notifications')
    op.drop_index(op.f('ix_notifications_id'), table_name='notifications')
    op.drop_table('notifications')
    op.drop_index(op.f('ix_session_violations_session_pk'), table_name='session_violations')
    op.drop_index(op.f('ix_session_violations_id'), table_name='session_violations')
    op.drop_table('session_violations')
    op.drop_index(op.f('ix_proctoring_sessions_assessment_id'), table_name='proctoring_sessions')
    op.drop_index(op.f('ix_proctoring_sessions_user_id'), table_name='proctoring_sessions')
    op.drop_index(op.f('ix_proctoring_sessions_session_id'), table_name='proctoring_sessions')
    op.drop_index(op.f('ix_proctoring_sessions_id'), table_name='proctoring_sessions')
    op.drop_table('proctoring_sessions')
    op.drop_index(op.f('ix_assessments_user_id'), table_name='assessments')
    op.drop_index(op.f('ix_assessments_id'), table_name='assessments')
    op.drop_table('assessments')
    severity.drop(op.get_bind(), checkfirst=True)
    violation_type.drop(op.get_bind(), checkfirst=True)
    session_status.drop(op.get_bind(), checkfirst=True)
    assessment_status.drop(op.get_bind(), checkfirst=True)
