"""
playhub.services.entities — Interactive entity lookup & shared guards
======================================================================

Posts and reviews are the two parent kinds that carry comments, votes
and reports.  Everything that needs "load the parent, check who may touch
it" goes through here so the rules live in exactly one place.
"""

from __future__ import annotations

import logging
import math

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from playhub.constants import EntityType, clean_text
from playhub.database.models import Comment, Post, Report, Reply, Review, User, Vote
from playhub.engine.throttle import ActionThrottle
from playhub.errors import NotFoundError, TooManyRequestsError, ValidationError

logger = logging.getLogger(__name__)

ENTITY_MODELS: dict[str, type[Post] | type[Review]] = {
    EntityType.POST: Post,
    EntityType.REVIEW: Review,
}

_LABELS = {EntityType.POST: "Post", EntityType.REVIEW: "Review"}


def entity_model(entity_type: str) -> type[Post] | type[Review]:
    model = ENTITY_MODELS.get(entity_type)
    if model is None:
        raise ValidationError(f"Unknown entity type: {entity_type!r}")
    return model


def load_entity(
    session: Session,
    entity_type: str,
    entity_id: int,
    *,
    for_update: bool = False,
) -> Post | Review:
    """Fetch a post or review, optionally row-locked for a read-modify-write."""
    model = entity_model(entity_type)
    stmt = select(model).where(model.id == entity_id)
    if for_update:
        stmt = stmt.with_for_update()
    entity = session.scalar(stmt)
    if entity is None:
        raise NotFoundError(f"{_LABELS[EntityType(entity_type)]} {entity_id} not found")
    return entity


def require_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


def get_or_create_user(
    session: Session, user_id: int, display_name: str | None = None,
) -> User:
    """Fetch the member row, inserting it on first sight of a token identity.

    The identity provider owns accounts; a valid token is enough to become a
    member here.  Without a *display_name* there is nothing to create from,
    so an unknown id is a ``NotFoundError``.  An existing row keeps its own
    display name, which the member may have changed since.
    """
    user = session.get(User, user_id)
    if user is not None:
        return user
    display_name = clean_text(display_name)
    if not display_name:
        raise NotFoundError(f"User {user_id} not found")
    user = User(id=user_id, display_name=display_name, login_count=0)
    session.add(user)
    session.flush()
    logger.info("User %d registered from token identity (%s)", user_id, display_name)
    return user


def enforce_throttle(
    throttle: ActionThrottle | None, user_id: int, action: str,
) -> None:
    """Raise TooManyRequestsError when *user_id* already did *action* this window."""
    if throttle is None:
        return
    allowed, retry_after = throttle.hit(user_id, action)
    if not allowed:
        logger.warning("Throttled %s for user %d (%.2fs left)", action, user_id, retry_after)
        raise TooManyRequestsError(
            f"Slow down: one {action.replace('_', ' ')} per "
            f"{throttle.window_seconds:g} seconds.",
            retry_after=retry_after,
        )


def purge_interactions(session: Session, entity_type: str, entity_id: int) -> None:
    """Delete every vote, report, comment and reply attached to an entity."""
    comment_ids = select(Comment.id).where(
        Comment.entity_type == entity_type, Comment.entity_id == entity_id,
    )
    session.execute(delete(Reply).where(Reply.comment_id.in_(comment_ids)))
    session.execute(delete(Comment).where(
        Comment.entity_type == entity_type, Comment.entity_id == entity_id,
    ))
    session.execute(delete(Vote).where(
        Vote.entity_type == entity_type, Vote.entity_id == entity_id,
    ))
    session.execute(delete(Report).where(
        Report.entity_type == entity_type, Report.entity_id == entity_id,
    ))


def validate_hours(hours: object) -> float:
    """Hours played: a finite, non-negative number (bools rejected)."""
    if isinstance(hours, bool) or not isinstance(hours, (int, float)):
        raise ValidationError("Hours played must be a number")
    if not math.isfinite(hours) or hours < 0:
        raise ValidationError("Hours played cannot be negative")
    return float(hours)
