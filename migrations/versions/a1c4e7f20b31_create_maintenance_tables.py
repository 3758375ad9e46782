"""Create tenant request, worker and worker assignment tables

Revision ID: a1c4e7f20b31
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c4e7f20b31'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


URGENCY = sa.Enum('Low', 'Normal', 'High', 'Critical', 'Emergency', name='tenant_request_urgency')
REQUEST_STATUS = sa.Enum(
    'Draft', 'Submitted', 'Scheduled', 'Done', 'Failed', 'Declined', 'Closed',
    name='tenant_request_status',
)
SPECIALIZATION = sa.Enum(
    'General Maintenance', 'Plumbing', 'Electrical', 'HVAC', 'Carpentry', 'Painting',
    'Locksmith', 'Appliance Repair',
    name='worker_specialization',
)
ASSIGNMENT_STATUS = sa.Enum(
    'Scheduled', 'InProgress', 'Completed', 'Cancelled', 'Failed',
    name='assignment_status',
)


def upgrade() -> None:
    # Tenant requests
    op.create_table(
        'tenant_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('property_code', sa.String(50), nullable=False),
        sa.Column('unit_number', sa.String(20), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('urgency', URGENCY, nullable=False),
        sa.Column('status', REQUEST_STATUS, nullable=False),
        sa.Column('assigned_worker_email', sa.String(255), nullable=True),
        sa.Column('assigned_worker_name', sa.String(200), nullable=True),
        sa.Column('scheduled_date', sa.Date(), nullable=True),
        sa.Column('work_order_number', sa.String(20), nullable=True),
        sa.Column('completion_notes', sa.Text(), nullable=True),
        sa.Column('work_completed_successfully', sa.Boolean(), nullable=True),
        sa.Column('decline_reason', sa.Text(), nullable=True),
        sa.Column('closure_notes', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tenant_requests_id', 'tenant_requests', ['id'])
    op.create_index('ix_tenant_requests_tenant_id', 'tenant_requests', ['tenant_id'])
    op.create_index('ix_tenant_requests_property_id', 'tenant_requests', ['property_id'])
    op.create_index('ix_tenant_requests_status', 'tenant_requests', ['status'])

    # Workers
    op.create_table(
        'workers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(200), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('specialization', SPECIALIZATION, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('last_assigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_workers_id', 'workers', ['id'])
    op.create_index('ix_workers_email', 'workers', ['email'], unique=True)

    # Worker assignments (scheduling snapshot source)
    op.create_table(
        'worker_assignments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('worker_id', sa.Uuid(), nullable=False),
        sa.Column('request_id', sa.Uuid(), nullable=False),
        sa.Column('property_code', sa.String(50), nullable=False),
        sa.Column('unit_number', sa.String(20), nullable=False),
        sa.Column('unit_key', sa.String(80), nullable=False),
        sa.Column('scheduled_date', sa.Date(), nullable=False),
        sa.Column('slot', sa.Integer(), nullable=True),
        sa.Column('work_order_number', sa.String(20), nullable=False),
        sa.Column('status', ASSIGNMENT_STATUS, nullable=False),
        sa.Column('is_emergency', sa.Boolean(), nullable=False),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completion_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'unit_key', 'scheduled_date', 'slot', name='uq_worker_assignments_unit_day_slot'
        ),
    )
    op.create_index('ix_worker_assignments_id', 'worker_assignments', ['id'])
    op.create_index('ix_worker_assignments_worker_id', 'worker_assignments', ['worker_id'])
    op.create_index('ix_worker_assignments_request_id', 'worker_assignments', ['request_id'])
    op.create_index('ix_worker_assignments_property_code', 'worker_assignments', ['property_code'])
    op.create_index('ix_worker_assignments_scheduled_date', 'worker_assignments', ['scheduled_date'])


def downgrade() -> None:
    op.drop_table('worker_assignments')
    op.drop_table('workers')
    op.drop_table('tenant_requests')
    bind = op.get_bind()
    for enum_type in (ASSIGNMENT_STATUS, SPECIALIZATION, REQUEST_STATUS, URGENCY):
        enum_type.drop(bind, checkfirst=True)
