"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00

Crea el esquema completo a partir de los modelos. Las migraciones siguientes
se generan con `python migrate.py create "mensaje"` (autogenerate).
"""
from alembic import op

from app.database.database import Base
import app.database.models  # noqa: F401

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    Base.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind())
