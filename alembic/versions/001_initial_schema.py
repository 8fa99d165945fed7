"""Initial schema: users, notes, toasts, reactions, badges and activity log.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL PRIMARY KEY,
            username VARCHAR(64) UNIQUE NOT NULL,
            name VARCHAR(128) NOT NULL,
            email VARCHAR(320),
            timezone VARCHAR(64) NOT NULL DEFAULT 'UTC',
            weekly_toast_day SMALLINT NOT NULL DEFAULT 0
                CHECK (weekly_toast_day BETWEEN 0 AND 6),
            voice VARCHAR(64),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Notes ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS notes (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            content TEXT,
            audio_url TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_notes_user_created
        ON notes(user_id, created_at)
    """)

    # --- Toasts: one per (user, week) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS toasts (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            audio_url TEXT,
            week_start_date DATE NOT NULL,
            note_ids JSON NOT NULL DEFAULT '[]',
            shared BOOLEAN NOT NULL DEFAULT false,
            share_code VARCHAR(64) UNIQUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_toasts_user_week UNIQUE (user_id, week_start_date)
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS toast_reactions (
            id SERIAL PRIMARY KEY,
            toast_id INTEGER NOT NULL REFERENCES toasts(id) ON DELETE CASCADE,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            emoji VARCHAR(16) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_toast_reactions_toast_user_emoji UNIQUE (toast_id, user_id, emoji)
        )
    """)

    # --- Badges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS badges (
            id SERIAL PRIMARY KEY,
            name VARCHAR(128) NOT NULL,
            description TEXT NOT NULL,
            icon VARCHAR(16),
            category VARCHAR(32) NOT NULL,
            requirement VARCHAR(64) UNIQUE NOT NULL,
            threshold INTEGER NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_badges (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            badge_id INTEGER NOT NULL REFERENCES badges(id),
            seen BOOLEAN NOT NULL DEFAULT false,
            awarded_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_badges_user_badge UNIQUE (user_id, badge_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_badges_unseen
        ON user_badges(user_id) WHERE seen = false
    """)

    # --- Activity log ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_activity (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            activity_type VARCHAR(32) NOT NULL,
            metadata JSON NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_activity_user_type
        ON user_activity(user_id, activity_type)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_activity CASCADE")
    op.execute("DROP TABLE IF EXISTS user_badges CASCADE")
    op.execute("DROP TABLE IF EXISTS badges CASCADE")
    op.execute("DROP TABLE IF EXISTS toast_reactions CASCADE")
    op.execute("DROP TABLE IF EXISTS toasts CASCADE")
    op.execute("DROP TABLE IF EXISTS notes CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
