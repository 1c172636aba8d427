"""create entries table

Revision ID: 3f2a9c1d7b64
Revises:
Create Date: 2026-02-14 09:12:30.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7b64"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("project", sa.String(length=255), nullable=False),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("end_time > start_time", name="ck_entries_end_after_start"),
    )
    op.create_index("ix_entries_project", "entries", ["project"], unique=False)
    op.create_index("ix_entries_start_time", "entries", ["start_time"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_entries_start_time", table_name="entries")
    op.drop_index("ix_entries_project", table_name="entries")
    op.drop_table("entries")
