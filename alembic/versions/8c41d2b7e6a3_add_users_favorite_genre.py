"""Add users.favorite_genre

Revision ID: 8c41d2b7e6a3
Revises: 3f2c9a7d1e04
Create Date: 2026-10-19 15:30:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "8c41d2b7e6a3"
down_revision = "3f2c9a7d1e04"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Store each member's preferred game genre (nullable, free text)."""
    with op.batch_alter_table("users") as batch_op:
        batch_op.add_column(sa.Column("favorite_genre", sa.String(50), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_column("favorite_genre")
