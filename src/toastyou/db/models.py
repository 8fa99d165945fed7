"""ORM models for users, notes, toasts and their social layer, badges and the activity log."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    false,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from toastyou.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Maps to the 'users' table."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC", server_default="UTC")
    # 0 = Sunday ... 6 = Saturday
    weekly_toast_day: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0, server_default="0")
    voice: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    notes: Mapped[list[Note]] = relationship("Note", back_populates="user")
    toasts: Mapped[list[Toast]] = relationship("Toast", back_populates="user")


# ---------------------------------------------------------------------------
# Reflections
# ---------------------------------------------------------------------------


class Note(Base):
    """A single daily reflection. Read-only to the batch components."""

    __tablename__ = "notes"
    __table_args__ = (Index("idx_notes_user_created", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    user: Mapped[User] = relationship("User", back_populates="notes")


class Toast(Base):
    """Generated weekly toast. UNIQUE(user_id, week_start_date) keeps one per period."""

    __tablename__ = "toasts"
    __table_args__ = (
        UniqueConstraint("user_id", "week_start_date", name="uq_toasts_user_week"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    audio_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    note_ids: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    shared: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    share_code: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    user: Mapped[User] = relationship("User", back_populates="toasts")
    reactions: Mapped[list[ToastReaction]] = relationship(
        "ToastReaction", back_populates="toast", cascade="all, delete-orphan"
    )
    comments: Mapped[list[ToastComment]] = relationship(
        "ToastComment", back_populates="toast", cascade="all, delete-orphan"
    )


class ToastReaction(Base):
    """A friend's reaction to a shared toast."""

    __tablename__ = "toast_reactions"
    __table_args__ = (
        UniqueConstraint("toast_id", "user_id", "emoji", name="uq_toast_reactions_toast_user_emoji"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    toast_id: Mapped[int] = mapped_column(Integer, ForeignKey("toasts.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    emoji: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    toast: Mapped[Toast] = relationship("Toast", back_populates="reactions")


class ToastComment(Base):
    """A comment left on a shared toast. Editable by its author only."""

    __tablename__ = "toast_comments"
    __table_args__ = (Index("idx_toast_comments_toast_created", "toast_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    toast_id: Mapped[int] = mapped_column(Integer, ForeignKey("toasts.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    toast: Mapped[Toast] = relationship("Toast", back_populates="comments")
    author: Mapped[User] = relationship("User", lazy="joined")


# ---------------------------------------------------------------------------
# Gamification
# ---------------------------------------------------------------------------


class Badge(Base):
    """Badge definitions: static reference data seeded on startup."""

    __tablename__ = "badges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str | None] = mapped_column(String(16), nullable=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    requirement: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    threshold: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


class UserBadge(Base):
    """Badges earned by users. UNIQUE(user_id, badge_id) prevents duplicates."""

    __tablename__ = "user_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    badge_id: Mapped[int] = mapped_column(Integer, ForeignKey("badges.id"), nullable=False)
    seen: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    awarded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    badge: Mapped[Badge] = relationship("Badge", lazy="joined")


class UserActivity(Base):
    """Append-only activity log; the evaluator's trigger source."""

    __tablename__ = "user_activity"
    __table_args__ = (Index("idx_user_activity_user_type", "user_id", "activity_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    activity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    activity_metadata: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
