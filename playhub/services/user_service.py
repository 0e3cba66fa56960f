"""
playhub.services.user_service — Accounts, logins & stats
=========================================================

Registration and credential checks are handled by the identity provider;
this module only keeps the member row the rest of the core hangs off.  That
row is created the first time a token identity acts (see
``entities.get_or_create_user``); members can then edit their display
name, email and favorite genre.

Deleting a member removes their per-user state (progress, unlocked
achievements, votes, reports).  Posts, reviews, comments and replies they
wrote stay up under the author name captured at creation, with the
author id cleared.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from playhub.constants import MAX_DISPLAY_NAME_LENGTH, MAX_GENRE_LENGTH, clean_text
from playhub.database.engine import get_session
from playhub.database.models import (
    Comment,
    Post,
    Reply,
    Review,
    TriggerKind,
    User,
    UserAchievement,
    UserGameProgress,
)
from playhub.errors import ConflictError, ForbiddenError, ValidationError
from playhub.identity import Identity
from playhub.services.achievement_service import COUNTER_SOURCES, TriggerSink, emit_trigger
from playhub.services.entities import get_or_create_user, require_user

logger = logging.getLogger(__name__)

_AUTHORED = (Post, Review, Comment, Reply)


def user_dict(user: User) -> dict:
    return {
        "id": user.id,
        "display_name": user.display_name,
        "login_count": user.login_count,
        "favorite_genre": user.favorite_genre,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def create_user(
    engine: Engine,
    display_name: str,
    *,
    email: str | None = None,
    credential_hash: str | None = None,
) -> User:
    display_name = clean_text(display_name)
    if not display_name:
        raise ValidationError("Display name cannot be empty")
    try:
        with get_session(engine) as session:
            user = User(
                display_name=display_name,
                email=clean_text(email) or None,
                credential_hash=credential_hash,
                login_count=0,
            )
            session.add(user)
            session.flush()
            session.refresh(user)
    except IntegrityError as exc:
        raise ConflictError("That email is already registered") from exc
    logger.info("User %d created (%s)", user.id, display_name)
    return user


def get_user(engine: Engine, user_id: int) -> dict:
    with get_session(engine) as session:
        return user_dict(require_user(session, user_id))


def record_login(
    engine: Engine,
    user_id: int,
    *,
    display_name: str | None = None,
    on_trigger: TriggerSink | None = None,
) -> int:
    """Bump the login counter and fire the ``login`` trigger.

    The auth provider calls this right after issuing a token, so the first
    login of a new identity also creates its member row from
    *display_name*.  Returns the new login count.
    """
    with get_session(engine) as session:
        get_or_create_user(session, user_id, display_name)
        session.execute(
            update(User).where(User.id == user_id)
            .values(login_count=User.login_count + 1)
        )
        count = session.scalar(select(User.login_count).where(User.id == user_id))
    logger.debug("Login recorded for user %d (count=%d)", user_id, count)
    emit_trigger(engine, on_trigger, user_id, TriggerKind.LOGIN, {"login_count": count})
    return count


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------
def _load_own(session: Session, user_id: int, requester: Identity, what: str) -> User:
    if not requester.can_moderate(user_id):
        logger.warning("User %d tried to change %s of user %d",
                       requester.user_id, what, user_id)
        raise ForbiddenError(f"You can only change your own {what}")
    if requester.user_id == user_id:
        return get_or_create_user(session, user_id, requester.display_name)
    return require_user(session, user_id)


def update_user(
    engine: Engine,
    user_id: int,
    requester: Identity,
    *,
    display_name: str | None = None,
    email: str | None = None,
) -> dict:
    """Change a member's display name and/or email (self or admin).

    An empty *email* clears it.  Content already published keeps the
    author name it was created with.
    """
    if display_name is None and email is None:
        raise ValidationError("No fields to update")
    if display_name is not None:
        display_name = clean_text(display_name)
        if not display_name:
            raise ValidationError("Display name cannot be empty")
        if len(display_name) > MAX_DISPLAY_NAME_LENGTH:
            raise ValidationError(
                f"Display name must be at most {MAX_DISPLAY_NAME_LENGTH} characters"
            )
    if email is not None:
        email = clean_text(email)
        if email and "@" not in email:
            raise ValidationError("That does not look like an email address")

    try:
        with get_session(engine) as session:
            user = _load_own(session, user_id, requester, "profile")
            if display_name is not None:
                user.display_name = display_name
            if email is not None:
                user.email = email or None
            session.flush()
            result = user_dict(user)
    except IntegrityError as exc:
        raise ConflictError("That email is already registered") from exc
    logger.info("User %d profile updated by user %d", user_id, requester.user_id)
    return result


def get_favorite_genre(engine: Engine, user_id: int) -> dict:
    with get_session(engine) as session:
        user = require_user(session, user_id)
        return {"user_id": user_id, "genre": user.favorite_genre}


def set_favorite_genre(
    engine: Engine, user_id: int, requester: Identity, genre: str,
) -> dict:
    genre = clean_text(genre)
    if not genre:
        raise ValidationError("A genre is required")
    if len(genre) > MAX_GENRE_LENGTH:
        raise ValidationError(f"Genre must be at most {MAX_GENRE_LENGTH} characters")
    with get_session(engine) as session:
        user = _load_own(session, user_id, requester, "genre")
        user.favorite_genre = genre
    logger.info("User %d favorite genre set to %s", user_id, genre)
    return {"user_id": user_id, "genre": genre}


def delete_user(engine: Engine, user_id: int, requester: Identity) -> None:
    if not requester.can_moderate(user_id):
        raise ForbiddenError("You can only delete your own account")
    with get_session(engine) as session:
        user = require_user(session, user_id)
        for model in _AUTHORED:
            session.execute(
                update(model).where(model.author_id == user_id).values(author_id=None)
            )
        session.delete(user)
    logger.info("User %d deleted by user %d", user_id, requester.user_id)


def user_stats(engine: Engine, user_id: int) -> dict:
    """Totals across the member's library, reviews and achievements."""
    with get_session(engine) as session:
        require_user(session, user_id)
        hours = session.scalar(
            select(func.coalesce(func.sum(UserGameProgress.hours_played), 0.0))
            .where(UserGameProgress.user_id == user_id)
        )
        unlocked = session.scalar(
            select(func.count()).select_from(UserAchievement)
            .where(UserAchievement.user_id == user_id)
        )
        return {
            "user_id": user_id,
            "total_hours_played": float(hours or 0.0),
            "games_completed": COUNTER_SOURCES["games_completed"](session, user_id),
            "library_size": COUNTER_SOURCES["library_size"](session, user_id),
            "wishlist_size": COUNTER_SOURCES["wishlist_size"](session, user_id),
            "reviews_written": COUNTER_SOURCES["total_reviews"](session, user_id),
            "achievements_unlocked": int(unlocked or 0),
        }
