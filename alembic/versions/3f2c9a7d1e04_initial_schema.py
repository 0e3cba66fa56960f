"""Initial PlayHub schema

Revision ID: 3f2c9a7d1e04
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f2c9a7d1e04"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    """Create users, library, content, interaction and achievement tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("credential_hash", sa.String(255), nullable=True),
        sa.Column("login_count", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
    )

    # -- Library -------------------------------------------------------------
    op.create_table(
        "user_game_progress",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("game_id", sa.String(64), nullable=False),
        sa.Column("owned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("wishlisted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("hours_played", sa.Float(), nullable=False, server_default="0"),
        sa.Column("completed_count", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("user_id", "game_id", name="uq_progress_user_game"),
    )

    # -- Content -------------------------------------------------------------
    op.create_table(
        "posts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "author_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("author_name", sa.String(100), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("tag", sa.String(20), nullable=False, server_default="general"),
        _created_at(),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_posts_tag_created", "posts", ["tag", "created_at"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "author_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("author_name", sa.String(100), nullable=False),
        sa.Column("game_id", sa.String(64), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("subject", sa.String(200), nullable=True),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("hours_played", sa.Float(), nullable=False, server_default="0"),
        sa.Column("recommend", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("author_id", "game_id", name="uq_reviews_author_game"),
    )
    op.create_index("ix_reviews_game_created", "reviews", ["game_id", "created_at"])

    op.create_table(
        "progress_reviews",
        sa.Column(
            "progress_id", sa.Integer(),
            sa.ForeignKey("user_game_progress.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column(
            "review_id", sa.Integer(),
            sa.ForeignKey("reviews.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )

    # -- Interactions --------------------------------------------------------
    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column(
            "author_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("author_name", sa.String(100), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        _created_at(),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_comments_entity", "comments", ["entity_type", "entity_id"])
    op.create_index("ix_comments_author", "comments", ["author_id"])

    op.create_table(
        "replies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "comment_id", sa.Integer(),
            sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "author_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("author_name", sa.String(100), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        _created_at(),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_replies_comment", "replies", ["comment_id"])
    op.create_index("ix_replies_author", "replies", ["author_id"])

    op.create_table(
        "votes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("value", sa.SmallInteger(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("entity_type", "entity_id", "user_id", name="uq_votes_entity_user"),
    )

    op.create_table(
        "reports",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("reason", sa.Text(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("entity_type", "entity_id", "user_id", name="uq_reports_entity_user"),
    )

    # -- Achievements --------------------------------------------------------
    op.create_table(
        "achievements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("trigger_kind", sa.String(40), nullable=False),
        sa.Column("condition_type", sa.String(40), nullable=False, server_default="always"),
        sa.Column("condition_config", _JSON, nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
    )
    op.create_index("ix_achievements_trigger", "achievements", ["trigger_kind"])

    op.create_table(
        "user_achievements",
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column(
            "achievement_id", sa.Integer(),
            sa.ForeignKey("achievements.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("trigger_kind", sa.String(40), nullable=True),
        sa.Column(
            "unlocked_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
    )


def downgrade() -> None:
    """Drop every PlayHub table, children first."""
    op.drop_table("user_achievements")
    op.drop_index("ix_achievements_trigger", table_name="achievements")
    op.drop_table("achievements")
    op.drop_table("reports")
    op.drop_table("votes")
    op.drop_index("ix_replies_author", table_name="replies")
    op.drop_index("ix_replies_comment", table_name="replies")
    op.drop_table("replies")
    op.drop_index("ix_comments_author", table_name="comments")
    op.drop_index("ix_comments_entity", table_name="comments")
    op.drop_table("comments")
    op.drop_table("progress_reviews")
    op.drop_index("ix_reviews_game_created", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("ix_posts_tag_created", table_name="posts")
    op.drop_table("posts")
    op.drop_table("user_game_progress")
    op.drop_table("users")
