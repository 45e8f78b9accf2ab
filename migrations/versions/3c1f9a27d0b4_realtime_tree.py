"""realtime tree table

Revision ID: 3c1f9a27d0b4
Revises:
Create Date: 2026-10-19 09:12:41.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f9a27d0b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the leaf table backing the realtime tree."""
    op.create_table(
        "tree_node",
        sa.Column("path", sa.Text(), nullable=False),
        sa.Column("value", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("path"),
    )


def downgrade() -> None:
    """Drop the realtime tree table."""
    op.drop_table("tree_node")
