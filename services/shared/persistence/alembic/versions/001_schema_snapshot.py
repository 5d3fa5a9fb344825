"""
Schema snapshot (users, sessions, repositories, profiles)

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op

from services.shared.persistence.schema import metadata


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    metadata.create_all(bind=op.get_bind())


def downgrade():
    raise RuntimeError("Downgrades are not supported for stylecheck")
