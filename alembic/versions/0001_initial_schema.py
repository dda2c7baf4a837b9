"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates the result portal tables:
- students: student records keyed by the public student_id
- results: per-cohort results with class position
- access_cards: scratch cards and their usage accounting
- admin_users: back-office accounts
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


CARD_STATUSES = ('unused', 'used', 'expired', 'deactivated')


def timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'students',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.String(50), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('gender', sa.String(20), nullable=True),
        sa.Column('grade_level', sa.String(50), nullable=True),
        sa.Column('guardian_name', sa.String(255), nullable=True),
        sa.Column('guardian_phone', sa.String(50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_students_student_id', 'students', ['student_id'], unique=True)

    op.create_table(
        'results',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.String(50), nullable=False),
        sa.Column('session', sa.String(20), nullable=False),
        sa.Column('term', sa.String(50), nullable=False),
        sa.Column('class_name', sa.String(50), nullable=False),
        sa.Column('subjects', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('total_score', sa.Integer(), nullable=True),
        sa.Column('average', sa.Numeric(5, 2), nullable=True),
        sa.Column('gpa', sa.Numeric(3, 2), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=True),
        sa.Column('out_of', sa.Integer(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_results_student_id', 'results', ['student_id'])
    op.create_index('ix_results_cohort', 'results', ['class_name', 'session', 'term'])

    card_status = sa.Enum(*CARD_STATUSES, name='cardstatus')
    op.create_table(
        'access_cards',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('serial_number', sa.String(50), nullable=False),
        sa.Column('pin', sa.String(32), nullable=False),
        sa.Column('pin_hash', sa.Text(), nullable=False),
        sa.Column('pin_lookup', sa.String(64), nullable=False),
        sa.Column('bound_student_id', sa.String(50), nullable=True),
        sa.Column('status', card_status, nullable=False, server_default='unused'),
        sa.Column('expiry_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('usage_limit', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('used_by', sa.String(50), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_access_cards_serial_number', 'access_cards', ['serial_number'], unique=True)
    op.create_index('ix_access_cards_pin_lookup', 'access_cards', ['pin_lookup'], unique=True)
    op.create_index('ix_access_cards_bound_student_id', 'access_cards', ['bound_student_id'])
    op.create_index('ix_access_cards_status', 'access_cards', ['status'])

    op.create_table(
        'admin_users',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_admin_users_email', 'admin_users', ['email'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_admin_users_email', table_name='admin_users')
    op.drop_table('admin_users')

    op.drop_index('ix_access_cards_status', table_name='access_cards')
    op.drop_index('ix_access_cards_bound_student_id', table_name='access_cards')
    op.drop_index('ix_access_cards_pin_lookup', table_name='access_cards')
    op.drop_index('ix_access_cards_serial_number', table_name='access_cards')
    op.drop_table('access_cards')
    sa.Enum(name='cardstatus').drop(op.get_bind(), checkfirst=True)

    op.drop_index('ix_results_cohort', table_name='results')
    op.drop_index('ix_results_student_id', table_name='results')
    op.drop_table('results')

    op.drop_index('ix_students_student_id', table_name='students')
    op.drop_table('students')
