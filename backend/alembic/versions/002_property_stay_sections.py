"""Add property stay sections

Revision ID: 002_stay_sections
Revises: 001_initial
Create Date: 2026-10-19

Adds:
- check-in person, wifi, mobile coverage, fire safety and electric meter columns on properties
- surroundings and stay_metadata JSONB columns on properties
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = '002_stay_sections'
down_revision = '001_initial'
branch_labels = None
depends_on = None

FLAGS = ['wifi_in_all_rooms', 'has_fire_extinguisher', 'has_fire_alarm', 'electric_meter_accessible']

COLUMNS = [
    sa.Column('check_in_person', sa.String(255), nullable=True),
    sa.Column('wifi_speed', sa.String(50), nullable=True),
    sa.Column('mobile_network_coverage', sa.String(20), nullable=True),
    sa.Column('electric_meter_location', sa.Text(), nullable=True),
    sa.Column('surroundings', postgresql.JSONB(), nullable=True),
    sa.Column('stay_metadata', postgresql.JSONB(), nullable=True),
]


def upgrade() -> None:
    for name in FLAGS:
        op.add_column(
            'properties',
            sa.Column(name, sa.Boolean(), nullable=False, server_default=sa.false()),
        )
    for column in COLUMNS:
        op.add_column('properties', column)


def downgrade() -> None:
    for column in reversed(COLUMNS):
        op.drop_column('properties', column.name)
    for name in reversed(FLAGS):
        op.drop_column('properties', name)
