"""Comments on shared toasts.

Revision ID: 002_toast_comments
Revises: 001_initial_schema
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_toast_comments"
down_revision: str | None = "001_initial_schema"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS toast_comments (
            id SERIAL PRIMARY KEY,
            toast_id INTEGER NOT NULL REFERENCES toasts(id) ON DELETE CASCADE,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            comment TEXT NOT NULL CHECK (char_length(comment) BETWEEN 1 AND 500),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_toast_comments_toast_created
        ON toast_comments(toast_id, created_at)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS toast_comments CASCADE")
