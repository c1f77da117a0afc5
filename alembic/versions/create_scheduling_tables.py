"""create staff scheduling tables

Revision ID: create_scheduling_tables
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'create_scheduling_tables'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

shift_status = sa.Enum('scheduled', 'in_progress', 'completed', 'cancelled', 'no_show', name='shift_status')
time_off_type = sa.Enum('vacation', 'sick', 'personal', 'bereavement', 'other', name='time_off_type')
time_off_status = sa.Enum('pending', 'approved', 'rejected', name='time_off_status')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'staff_members',
        sa.Column('staff_id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('employee_code', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('position', sa.String(), nullable=False),
        sa.Column('department', sa.String(), nullable=False),
        sa.Column('hire_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_staff_members_employee_code', 'staff_members', ['employee_code'], unique=True)
    op.create_index('ix_staff_members_user_id', 'staff_members', ['user_id'], unique=True)

    op.create_table(
        'recurring_schedules',
        sa.Column('schedule_id', sa.Uuid(), primary_key=True),
        sa.Column('staff_id', sa.Uuid(), sa.ForeignKey('staff_members.staff_id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.SmallInteger(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('break_start', sa.Time(), nullable=True),
        sa.Column('break_end', sa.Time(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_recurring_schedules_dow'),
        sa.CheckConstraint('start_time < end_time', name='ck_recurring_schedules_range'),
    )
    op.create_index('ix_recurring_schedules_staff_id', 'recurring_schedules', ['staff_id'])

    op.create_table(
        'shifts',
        sa.Column('shift_id', sa.Uuid(), primary_key=True),
        sa.Column('staff_id', sa.Uuid(), sa.ForeignKey('staff_members.staff_id', ondelete='CASCADE'), nullable=False),
        sa.Column('shift_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('status', shift_status, nullable=False, server_default='scheduled'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('actual_start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('actual_end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('start_time < end_time', name='ck_shifts_range'),
    )
    op.create_index('ix_shifts_staff_id', 'shifts', ['staff_id'])
    op.create_index('ix_shifts_shift_date', 'shifts', ['shift_date'])
    op.create_index(
        'uq_shifts_live_staff_date_start',
        'shifts',
        ['staff_id', 'shift_date', 'start_time'],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
        sqlite_where=sa.text("status <> 'cancelled'"),
    )

    op.create_table(
        'time_off_requests',
        sa.Column('time_off_id', sa.Uuid(), primary_key=True),
        sa.Column('staff_id', sa.Uuid(), sa.ForeignKey('staff_members.staff_id', ondelete='CASCADE'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.String(), nullable=False),
        sa.Column('type', time_off_type, nullable=False, server_default='vacation'),
        sa.Column('status', time_off_status, nullable=False, server_default='pending'),
        sa.Column('reviewed_by', sa.Uuid(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('start_date <= end_date', name='ck_time_off_requests_range'),
    )
    op.create_index('ix_time_off_requests_staff_id', 'time_off_requests', ['staff_id'])

    # Postgres only: no two live shifts of one staff member may overlap on a date,
    # even when two writers pass the application check at the same time.
    if op.get_bind().dialect.name == 'postgresql':
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE shifts ADD CONSTRAINT ex_shifts_no_overlap
            EXCLUDE USING gist (
                staff_id WITH =,
                tsrange(shift_date + start_time, shift_date + end_time) WITH &&
            )
            WHERE (status <> 'cancelled')
            """
        )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('time_off_requests')
    op.drop_table('shifts')
    op.drop_table('recurring_schedules')
    op.drop_table('staff_members')

    bind = op.get_bind()
    time_off_status.drop(bind, checkfirst=True)
    time_off_type.drop(bind, checkfirst=True)
    shift_status.drop(bind, checkfirst=True)
