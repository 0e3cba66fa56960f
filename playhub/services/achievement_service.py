"""
playhub.services.achievement_service — Counter recompute & idempotent grants
=============================================================================

Entity services emit trigger events after their own transaction commits;
this module turns a trigger into unlocked achievements:

  1. Load active rules bound to the trigger kind
  2. Recompute every counter those rules read from the authoritative tables
  3. Run the pure rule check (:mod:`playhub.engine.achievements`)
  4. Insert one ``user_achievements`` row per newly satisfied rule

Grants are idempotent.  Already-unlocked rules are filtered up front, and
a concurrent duplicate insert hits the composite primary key inside a
SAVEPOINT and is treated as a no-op.  Caller-supplied counter values are
only consulted for counters with no registered source.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy import Engine, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from playhub.database.models import (
    Achievement,
    Comment,
    ConditionType,
    Post,
    Reply,
    Review,
    TriggerKind,
    User,
    UserAchievement,
    UserGameProgress,
)
from playhub.database.engine import get_session
from playhub.engine.achievements import (
    REQUIRED_CONFIG_KEYS,
    AchievementContext,
    check_rules,
    referenced_counters,
)
from playhub.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

TriggerSink = Callable[[int, str, dict | None], Any]
"""``sink(user_id, trigger_kind, context)`` — where entity services send triggers."""


# ---------------------------------------------------------------------------
# Counter sources — authoritative recomputation, keyed by counter name
# ---------------------------------------------------------------------------
def _count(session: Session, stmt) -> int:
    return int(session.scalar(stmt) or 0)


def _login_count(session: Session, user_id: int) -> int:
    return _count(session, select(User.login_count).where(User.id == user_id))


def _library_size(session: Session, user_id: int) -> int:
    return _count(session, select(func.count()).select_from(UserGameProgress).where(
        UserGameProgress.user_id == user_id, UserGameProgress.owned.is_(True),
    ))


def _wishlist_size(session: Session, user_id: int) -> int:
    return _count(session, select(func.count()).select_from(UserGameProgress).where(
        UserGameProgress.user_id == user_id, UserGameProgress.wishlisted.is_(True),
    ))


def _games_completed(session: Session, user_id: int) -> int:
    return _count(session, select(func.coalesce(func.sum(UserGameProgress.completed_count), 0)).where(
        UserGameProgress.user_id == user_id,
    ))


def _total_reviews(session: Session, user_id: int) -> int:
    return _count(session, select(func.count()).select_from(Review).where(
        Review.author_id == user_id,
    ))


def _total_posts(session: Session, user_id: int) -> int:
    return _count(session, select(func.count()).select_from(Post).where(
        Post.author_id == user_id,
    ))


def _total_comments(session: Session, user_id: int) -> int:
    return _count(session, select(func.count()).select_from(Comment).where(
        Comment.author_id == user_id,
    ))


def _total_replies(session: Session, user_id: int) -> int:
    return _count(session, select(func.count()).select_from(Reply).where(
        Reply.author_id == user_id,
    ))


def _total_responses(session: Session, user_id: int) -> int:
    return _total_comments(session, user_id) + _total_replies(session, user_id)


COUNTER_SOURCES: dict[str, Callable[[Session, int], int]] = {
    "login_count": _login_count,
    "library_size": _library_size,
    "wishlist_size": _wishlist_size,
    "games_completed": _games_completed,
    "total_reviews": _total_reviews,
    "total_posts": _total_posts,
    "total_comments": _total_comments,
    "total_replies": _total_replies,
    "total_responses": _total_responses,
}


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def build_context(
    session: Session,
    user_id: int,
    trigger_kind: str,
    rules: list[Achievement],
    context: dict | None = None,
) -> AchievementContext:
    """Assemble the evaluation context for *rules*."""
    context = context or {}
    counters: dict[str, int] = {}
    for name in referenced_counters(rules):
        source = COUNTER_SOURCES.get(name)
        if source is not None:
            counters[name] = source(session, user_id)
        elif _is_number(context.get(name)):
            counters[name] = context[name]
    return AchievementContext(
        trigger_kind=str(trigger_kind),
        counters=counters,
        transitions=frozenset(context.get("transitions") or ()),
    )


def get_unlocked_ids(session: Session, user_id: int) -> set[int]:
    rows = session.scalars(
        select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
    ).all()
    return set(rows)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------
def evaluate(
    engine: Engine,
    user_id: int,
    trigger_kind: str,
    context: dict | None = None,
) -> list[str]:
    """Evaluate every rule bound to *trigger_kind* and record new unlocks.

    Returns the codes of achievements unlocked by this call; re-delivering
    the same trigger returns an empty list.
    """
    with Session(engine) as session:
        if session.get(User, user_id) is None:
            raise NotFoundError(f"User {user_id} not found")

        rules = list(session.scalars(
            select(Achievement).where(
                Achievement.trigger_kind == str(trigger_kind),
                Achievement.active.is_(True),
            ).order_by(Achievement.id)
        ).all())
        if not rules:
            return []

        ctx = build_context(session, user_id, trigger_kind, rules, context)
        satisfied = check_rules(rules, ctx, get_unlocked_ids(session, user_id))
        codes = {rule.id: rule.code for rule in rules}

        newly_unlocked: list[str] = []
        for achievement_id in satisfied:
            try:
                with session.begin_nested():   # SAVEPOINT
                    session.add(UserAchievement(
                        user_id=user_id,
                        achievement_id=achievement_id,
                        trigger_kind=str(trigger_kind),
                    ))
                    session.flush()
            except IntegrityError:
                # Granted concurrently by another delivery of the same trigger
                logger.debug(
                    "Achievement %s already unlocked for user %d",
                    codes[achievement_id], user_id,
                )
                continue
            newly_unlocked.append(codes[achievement_id])
            logger.info(
                "Achievement unlocked: %s for user %d (trigger=%s)",
                codes[achievement_id], user_id, trigger_kind,
            )

        session.commit()
        return newly_unlocked


def fire_trigger(
    engine: Engine,
    user_id: int,
    trigger_kind: str,
    context: dict | None = None,
) -> list[str]:
    """Best-effort :func:`evaluate` — failures are logged, never raised."""
    try:
        return evaluate(engine, user_id, trigger_kind, context)
    except Exception:
        logger.exception(
            "Achievement evaluation failed for user %d (trigger=%s)",
            user_id, trigger_kind,
        )
        return []


def emit_trigger(
    engine: Engine,
    sink: TriggerSink | None,
    user_id: int,
    trigger_kind: str,
    context: dict | None = None,
) -> None:
    """Hand a trigger to *sink*, or evaluate inline when no sink is given.

    Called after the primary mutation has committed; nothing raised here
    reaches the caller.
    """
    if sink is None:
        fire_trigger(engine, user_id, trigger_kind, context)
        return
    try:
        sink(user_id, str(trigger_kind), context)
    except Exception:
        logger.exception(
            "Trigger sink failed for user %d (trigger=%s)", user_id, trigger_kind,
        )


# ---------------------------------------------------------------------------
# Catalogue & unlocked listing
# ---------------------------------------------------------------------------
def achievement_dict(a: Achievement) -> dict:
    return {
        "id": a.id,
        "code": a.code,
        "name": a.name,
        "description": a.description,
        "trigger_kind": a.trigger_kind,
        "condition_type": a.condition_type,
        "condition_config": a.condition_config or {},
        "active": a.active,
    }


def list_achievements(engine: Engine, *, include_inactive: bool = False) -> list[dict]:
    with Session(engine) as session:
        stmt = select(Achievement).order_by(Achievement.id)
        if not include_inactive:
            stmt = stmt.where(Achievement.active.is_(True))
        return [achievement_dict(a) for a in session.scalars(stmt).all()]


def list_unlocked(engine: Engine, user_id: int) -> list[dict]:
    """Achievements *user_id* has unlocked, oldest first."""
    with Session(engine) as session:
        rows = session.execute(
            select(Achievement, UserAchievement.unlocked_at)
            .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
            .where(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.unlocked_at, Achievement.id)
        ).all()
        return [
            {
                **achievement_dict(a),
                "unlocked_at": unlocked_at.isoformat() if unlocked_at else None,
            }
            for a, unlocked_at in rows
        ]


# ---------------------------------------------------------------------------
# Admin rule management
# ---------------------------------------------------------------------------
def _validate_rule(trigger_kind: str, condition_type: str, config: dict) -> None:
    if trigger_kind not in set(TriggerKind):
        raise ValidationError(f"Unknown trigger kind: {trigger_kind!r}")
    if condition_type not in set(ConditionType):
        raise ValidationError(f"Unknown condition type: {condition_type!r}")
    missing = [k for k in REQUIRED_CONFIG_KEYS[condition_type] if k not in config]
    if missing:
        raise ValidationError(
            f"{condition_type} rules need config keys: {', '.join(missing)}"
        )
    if "value" in config and not _is_number(config["value"]):
        raise ValidationError("Config 'value' must be a number")


def create_achievement(
    engine: Engine,
    *,
    code: str,
    name: str,
    trigger_kind: str,
    condition_type: str = ConditionType.ALWAYS,
    condition_config: dict | None = None,
    description: str | None = None,
) -> Achievement:
    code = (code or "").strip()
    name = (name or "").strip()
    if not code or not name:
        raise ValidationError("Achievement code and name are required")
    config = dict(condition_config or {})
    _validate_rule(str(trigger_kind), str(condition_type), config)

    achievement = Achievement(
        code=code,
        name=name,
        description=description,
        trigger_kind=str(trigger_kind),
        condition_type=str(condition_type),
        condition_config=config,
    )
    try:
        with get_session(engine) as session:
            if session.scalar(select(Achievement.id).where(Achievement.code == code)):
                raise ConflictError(f"Achievement code {code!r} already exists")
            session.add(achievement)
            session.flush()
            session.refresh(achievement)
    except IntegrityError as exc:
        raise ConflictError(f"Achievement code {code!r} already exists") from exc
    logger.info("Achievement rule created: %s (%s)", code, trigger_kind)
    return achievement


def update_achievement(
    engine: Engine,
    achievement_id: int,
    *,
    name: str | None = None,
    description: str | None = None,
    condition_config: dict | None = None,
    active: bool | None = None,
) -> Achievement:
    with get_session(engine) as session:
        achievement = session.get(Achievement, achievement_id)
        if achievement is None:
            raise NotFoundError(f"Achievement {achievement_id} not found")
        if name is not None:
            if not name.strip():
                raise ValidationError("Achievement name cannot be empty")
            achievement.name = name.strip()
        if description is not None:
            achievement.description = description
        if condition_config is not None:
            _validate_rule(
                achievement.trigger_kind, achievement.condition_type, condition_config,
            )
            achievement.condition_config = dict(condition_config)
        if active is not None:
            achievement.active = active
        session.flush()
        session.refresh(achievement)
    logger.info("Achievement rule updated: %s", achievement.code)
    return achievement
