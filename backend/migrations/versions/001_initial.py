"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-16

Creates all database tables for the Madrassati portal:
- schools: Establishments rosters are imported into
- students: Student identities with their unique login code
- access_requests: One device binding + admin decision per student
- grades, absences, notifications: Data shown to students

Also creates indexes for common query patterns.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Schools Table ─────────────────────────────────────────
    op.create_table(
        'schools',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.Text(), nullable=False),
    )

    # ── Students Table ────────────────────────────────────────
    op.create_table(
        'students',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('code', sa.String(16), nullable=False, unique=True),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=True),
    )

    # ── Access Requests Table ─────────────────────────────────
    # student_id is the primary key: the ON CONFLICT target for first logins
    op.create_table(
        'access_requests',
        sa.Column('student_id', sa.Integer(),
                  sa.ForeignKey('students.id', ondelete='CASCADE'), primary_key=True,
                  autoincrement=False),
        sa.Column('device_id', sa.String(255), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default='PENDING'),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('request_date', sa.DateTime(),
                  server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_access_requests_request_date', 'access_requests', ['request_date'])

    # ── Grades / Absences / Notifications ─────────────────────
    op.create_table(
        'grades',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('student_code', sa.Text(), nullable=False),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_grades_student_code', 'grades', ['student_code'])

    op.create_table(
        'absences',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('student_code', sa.Text(), nullable=False),
        sa.Column('date', sa.Text(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_absences_student_code', 'absences', ['student_code'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('type', sa.Text(), nullable=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('target_id', sa.Text(), nullable=False, server_default='ALL'),
        sa.Column('timestamp', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_notifications_target_id', 'notifications', ['target_id'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index('ix_notifications_target_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_absences_student_code', table_name='absences')
    op.drop_table('absences')
    op.drop_index('ix_grades_student_code', table_name='grades')
    op.drop_table('grades')
    op.drop_index('ix_access_requests_request_date', table_name='access_requests')
    op.drop_table('access_requests')
    op.drop_table('students')
    op.drop_table('schools')
