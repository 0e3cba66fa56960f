"""
playhub.constants — Shared Constants & Helpers
================================================

Single source of truth for entity kinds, post tags, review bounds and the
throttled action kinds.  Import from here instead of duplicating in
services and routes.
"""

from __future__ import annotations

import enum


class EntityType(enum.StrEnum):
    """Parent kinds that carry comments, votes and reports."""
    POST = "post"
    REVIEW = "review"


class PostTag(enum.StrEnum):
    """Fixed category enumeration for forum posts."""
    GENERAL = "general"
    NEWS = "news"
    REVIEW = "review"
    DISCUSSION = "discussion"
    QUESTION = "question"
    FANART = "fanart"


class ThrottledAction(enum.StrEnum):
    """Action kinds the anti-spam throttle keys on."""
    CREATE_POST = "create_post"
    CREATE_REVIEW = "create_review"
    FILE_REPORT = "file_report"


# ---------------------------------------------------------------------------
# Review bounds
# ---------------------------------------------------------------------------
REVIEW_SCORE_MIN: float = 0.0
REVIEW_SCORE_MAX: float = 5.0

# ---------------------------------------------------------------------------
# Throttle
# ---------------------------------------------------------------------------
DEFAULT_THROTTLE_WINDOW_SECONDS: float = 2.0

# ---------------------------------------------------------------------------
# Field length limits (mirrors the column sizes in database.models)
# ---------------------------------------------------------------------------
MAX_TITLE_LENGTH = 200
MAX_SUBJECT_LENGTH = 200
MAX_REASON_LENGTH = 1000
MAX_DISPLAY_NAME_LENGTH = 100
MAX_GENRE_LENGTH = 50


def clean_text(value: str | None) -> str:
    """Trim surrounding whitespace; ``None`` becomes the empty string."""
    return (value or "").strip()
