"""
playhub.database.models — SQLAlchemy 2.0 Data Models
=====================================================

Tables:
- users               — Member accounts (credential hash issued elsewhere)
- user_game_progress  — One row per (user, game): flags, hours, completions
- progress_reviews    — Ordered review references per progress row
- posts               — Forum posts
- reviews             — Game reviews, one per (author, game)
- comments            — Top-level comments on a post or review
- replies             — Replies to a comment (tree depth is fixed at 2)
- votes               — Like/dislike ledger, one row per (entity, voter)
- reports             — Moderation reports, one row per (entity, reporter)
- achievements        — Achievement rules keyed by trigger kind
- user_achievements   — Unlocked achievements, one row per (user, achievement)

Comments, votes and reports hang off their parent through
(``entity_type``, ``entity_id``) so one implementation serves both posts
and reviews.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all PlayHub ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class TriggerKind(enum.StrEnum):
    """User actions that may satisfy achievement rules."""
    LOGIN = "login"
    GAME_ADDED = "game_added"
    GAME_WISHLISTED = "game_wishlisted"
    GAME_COMPLETED = "game_completed"
    REVIEW_CREATED = "review_created"
    REVIEW_MILESTONE = "review_milestone"
    REPLY_POSTED = "reply_posted"
    POST_CREATED = "post_created"
    COMMENT_POSTED = "comment_posted"


class ConditionType(enum.StrEnum):
    """How an achievement rule inspects the evaluation context."""
    COUNTER_THRESHOLD = "counter_threshold"
    FIRST_OCCURRENCE = "first_occurrence"
    FLAG_TRANSITION = "flag_transition"
    ALWAYS = "always"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, default=None)
    credential_hash: Mapped[str | None] = mapped_column(String(255), default=None)
    favorite_genre: Mapped[str | None] = mapped_column(String(50), default=None)
    login_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Per-user state — removed with the account
    progress: Mapped[list[UserGameProgress]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    achievements: Mapped[list[UserAchievement]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    votes: Mapped[list[Vote]] = relationship(cascade="all, delete-orphan")
    reports: Mapped[list[Report]] = relationship(cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.display_name!r}>"


# ---------------------------------------------------------------------------
# UserGameProgress — one row per (user, game)
# ---------------------------------------------------------------------------
class UserGameProgress(Base):
    __tablename__ = "user_game_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    game_id: Mapped[str] = mapped_column(String(64), nullable=False)
    owned: Mapped[bool] = mapped_column(Boolean, default=False)
    wishlisted: Mapped[bool] = mapped_column(Boolean, default=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    hours_played: Mapped[float] = mapped_column(Float, default=0.0)
    # Only ever bumped on a completed False → True transition
    completed_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user: Mapped[User] = relationship(back_populates="progress")
    review_links: Mapped[list[ProgressReview]] = relationship(
        back_populates="progress",
        cascade="all, delete-orphan",
        order_by="ProgressReview.position",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "game_id", name="uq_progress_user_game"),
    )

    def __repr__(self) -> str:
        return f"<UserGameProgress user={self.user_id} game={self.game_id!r}>"


class ProgressReview(Base):
    """Ordered back-reference from a progress row to the reviews it produced."""
    __tablename__ = "progress_reviews"

    progress_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_game_progress.id", ondelete="CASCADE"),
        primary_key=True,
    )
    review_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("reviews.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    progress: Mapped[UserGameProgress] = relationship(back_populates="review_links")

    def __repr__(self) -> str:
        return f"<ProgressReview progress={self.progress_id} review={self.review_id}>"


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------
class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    # Snapshot at creation, never re-synced
    author_name: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    tag: Mapped[str] = mapped_column(String(20), nullable=False, default="general")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    edited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    __table_args__ = (
        Index("ix_posts_tag_created", "tag", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Post id={self.id} title={self.title!r}>"


# ---------------------------------------------------------------------------
# Reviews — at most one per (author, game)
# ---------------------------------------------------------------------------
class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    author_name: Mapped[str] = mapped_column(String(100), nullable=False)
    game_id: Mapped[str] = mapped_column(String(64), nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    subject: Mapped[str | None] = mapped_column(String(200), default=None)
    body: Mapped[str | None] = mapped_column(Text, default=None)
    hours_played: Mapped[float] = mapped_column(Float, default=0.0)
    recommend: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    edited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    __table_args__ = (
        UniqueConstraint("author_id", "game_id", name="uq_reviews_author_game"),
        Index("ix_reviews_game_created", "game_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Review id={self.id} game={self.game_id!r} score={self.score}>"


# ---------------------------------------------------------------------------
# Comments & replies
# ---------------------------------------------------------------------------
class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    author_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    author_name: Mapped[str] = mapped_column(String(100), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    edited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    replies: Mapped[list[Reply]] = relationship(
        back_populates="comment",
        cascade="all, delete-orphan",
        order_by="Reply.id",
    )

    __table_args__ = (
        Index("ix_comments_entity", "entity_type", "entity_id"),
        Index("ix_comments_author", "author_id"),
    )

    def __repr__(self) -> str:
        return f"<Comment id={self.id} on={self.entity_type}:{self.entity_id}>"


class Reply(Base):
    __tablename__ = "replies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    comment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    author_name: Mapped[str] = mapped_column(String(100), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    edited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    comment: Mapped[Comment] = relationship(back_populates="replies")

    __table_args__ = (
        Index("ix_replies_comment", "comment_id"),
        Index("ix_replies_author", "author_id"),
    )

    def __repr__(self) -> str:
        return f"<Reply id={self.id} comment={self.comment_id}>"


# ---------------------------------------------------------------------------
# Votes — one per (entity, voter)
# ---------------------------------------------------------------------------
class Vote(Base):
    __tablename__ = "votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    value: Mapped[int] = mapped_column(SmallInteger, nullable=False)  # -1 or +1
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", "user_id", name="uq_votes_entity_user"),
    )

    def __repr__(self) -> str:
        return f"<Vote {self.entity_type}:{self.entity_id} user={self.user_id} value={self.value}>"


# ---------------------------------------------------------------------------
# Reports — one per (entity, reporter)
# ---------------------------------------------------------------------------
class Report(Base):
    __tablename__ = "reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", "user_id", name="uq_reports_entity_user"),
    )

    def __repr__(self) -> str:
        return f"<Report {self.entity_type}:{self.entity_id} user={self.user_id}>"


# ---------------------------------------------------------------------------
# Achievement — a rule bound to a trigger kind
# ---------------------------------------------------------------------------
class Achievement(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    trigger_kind: Mapped[str] = mapped_column(String(40), nullable=False)
    condition_type: Mapped[str] = mapped_column(
        String(40), nullable=False, default=ConditionType.ALWAYS.value
    )
    condition_config: Mapped[dict | None] = mapped_column(JSONType, default=dict)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    unlocked_by: Mapped[list[UserAchievement]] = relationship(
        back_populates="achievement", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_achievements_trigger", "trigger_kind"),
    )

    def __repr__(self) -> str:
        return f"<Achievement id={self.id} code={self.code!r}>"


# ---------------------------------------------------------------------------
# UserAchievement — unlocked badges (composite PK makes grants idempotent)
# ---------------------------------------------------------------------------
class UserAchievement(Base):
    __tablename__ = "user_achievements"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    achievement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("achievements.id", ondelete="CASCADE"), primary_key=True
    )
    trigger_kind: Mapped[str | None] = mapped_column(String(40), default=None)
    unlocked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    user: Mapped[User] = relationship(back_populates="achievements")
    achievement: Mapped[Achievement] = relationship(back_populates="unlocked_by")

    def __repr__(self) -> str:
        return f"<UserAchievement user={self.user_id} achievement={self.achievement_id}>"
