"""
playhub.database.seed — Default Achievement Catalogue
======================================================

Baseline achievements seeded on first startup so members start unlocking
badges immediately.  Idempotent — only inserts codes that don't already
exist; rules edited later by admins are never overwritten.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from playhub.database.models import Achievement, ConditionType, TriggerKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Default achievement catalogue
# ---------------------------------------------------------------------------
DEFAULT_ACHIEVEMENTS: list[dict] = [
    {
        "code": "first_login",
        "name": "Press Start",
        "description": "Log in for the first time.",
        "trigger_kind": TriggerKind.LOGIN,
        "condition_type": ConditionType.FIRST_OCCURRENCE,
        "condition_config": {"counter": "login_count"},
    },
    {
        "code": "regular",
        "name": "Regular",
        "description": "Log in ten times.",
        "trigger_kind": TriggerKind.LOGIN,
        "condition_type": ConditionType.COUNTER_THRESHOLD,
        "condition_config": {"counter": "login_count", "value": 10},
    },
    {
        "code": "collector",
        "name": "Collector",
        "description": "Add a game to your library.",
        "trigger_kind": TriggerKind.GAME_ADDED,
        "condition_type": ConditionType.FIRST_OCCURRENCE,
        "condition_config": {"counter": "library_size"},
    },
    {
        "code": "dreamer",
        "name": "Dreamer",
        "description": "Put a game on your wishlist.",
        "trigger_kind": TriggerKind.GAME_WISHLISTED,
        "condition_type": ConditionType.FIRST_OCCURRENCE,
        "condition_config": {"counter": "wishlist_size"},
    },
    {
        "code": "finisher",
        "name": "Credits Roll",
        "description": "Mark a game as completed.",
        "trigger_kind": TriggerKind.GAME_COMPLETED,
        "condition_type": ConditionType.FLAG_TRANSITION,
        "condition_config": {"flag": "completed"},
    },
    {
        "code": "completionist",
        "name": "Completionist",
        "description": "Complete ten games.",
        "trigger_kind": TriggerKind.GAME_COMPLETED,
        "condition_type": ConditionType.COUNTER_THRESHOLD,
        "condition_config": {"counter": "games_completed", "value": 10},
    },
    {
        "code": "first_review",
        "name": "First Impressions",
        "description": "Write your first review.",
        "trigger_kind": TriggerKind.REVIEW_CREATED,
        "condition_type": ConditionType.FIRST_OCCURRENCE,
        "condition_config": {"counter": "total_reviews"},
    },
    {
        "code": "critic",
        "name": "Critic",
        "description": "Write ten reviews.",
        "trigger_kind": TriggerKind.REVIEW_MILESTONE,
        "condition_type": ConditionType.COUNTER_THRESHOLD,
        "condition_config": {"counter": "total_reviews", "value": 10},
    },
    {
        "code": "first_post",
        "name": "Hello, World",
        "description": "Publish your first forum post.",
        "trigger_kind": TriggerKind.POST_CREATED,
        "condition_type": ConditionType.FIRST_OCCURRENCE,
        "condition_config": {"counter": "total_posts"},
    },
    {
        "code": "chatterbox",
        "name": "Chatterbox",
        "description": "Leave ten comments.",
        "trigger_kind": TriggerKind.COMMENT_POSTED,
        "condition_type": ConditionType.COUNTER_THRESHOLD,
        "condition_config": {"counter": "total_comments", "value": 10},
    },
    {
        "code": "conversationalist",
        "name": "Conversationalist",
        "description": "Post twenty-five comments or replies.",
        "trigger_kind": TriggerKind.REPLY_POSTED,
        "condition_type": ConditionType.COUNTER_THRESHOLD,
        "condition_config": {"counter": "total_responses", "value": 25},
    },
]


# ---------------------------------------------------------------------------
# Seeder
# ---------------------------------------------------------------------------
def seed_default_achievements(engine: Engine) -> int:
    """Insert default achievements whose code doesn't exist yet.

    Returns the number of rows inserted.
    """
    session = Session(engine)
    inserted = 0
    try:
        existing = set(session.scalars(select(Achievement.code)).all())
        for entry in DEFAULT_ACHIEVEMENTS:
            if entry["code"] in existing:
                continue
            session.add(Achievement(
                code=entry["code"],
                name=entry["name"],
                description=entry["description"],
                trigger_kind=str(entry["trigger_kind"]),
                condition_type=str(entry["condition_type"]),
                condition_config=dict(entry["condition_config"]),
            ))
            inserted += 1
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    if inserted:
        logger.info("Seeded %d default achievements.", inserted)
    return inserted
