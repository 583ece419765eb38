"""Local storage table - key-value blobs for the task list

Revision ID: 001
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy import text

revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()

    # One row per storage key; the task list lives under a single key
    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS local_storage (
            key TEXT PRIMARY KEY,
            value BLOB NOT NULL,
            updated_at TEXT NOT NULL
        )
    """))


def downgrade() -> None:
    conn = op.get_bind()
    conn.execute(text("DROP TABLE IF EXISTS local_storage"))
