"""
playhub.services.post_service — Forum posts
============================================

Create / list / read / edit / delete for posts.  Comments, votes and
reports on a post go through the shared thread, vote and report services
with ``EntityType.POST``.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import Engine, select

from playhub.constants import (
    MAX_TITLE_LENGTH,
    EntityType,
    PostTag,
    ThrottledAction,
    clean_text,
)
from playhub.database.engine import get_session
from playhub.database.models import Post, TriggerKind
from playhub.engine.throttle import ActionThrottle
from playhub.errors import ForbiddenError, ValidationError
from playhub.identity import Identity
from playhub.services.achievement_service import TriggerSink, emit_trigger
from playhub.services.entities import (
    enforce_throttle,
    get_or_create_user,
    load_entity,
    purge_interactions,
)
from playhub.services.views import post_view

logger = logging.getLogger(__name__)


def _validate_title(title: str | None) -> str:
    title = clean_text(title)
    if not title:
        raise ValidationError("Post title cannot be empty")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Post title must be at most {MAX_TITLE_LENGTH} characters")
    return title


def _validate_body(body: str | None) -> str:
    body = clean_text(body)
    if not body:
        raise ValidationError("Post body cannot be empty")
    return body


def _validate_tag(tag: str | None) -> str:
    try:
        return PostTag(tag).value
    except ValueError:
        allowed = ", ".join(t.value for t in PostTag)
        raise ValidationError(f"Unknown tag {tag!r} (expected one of: {allowed})") from None


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------
def create_post(
    engine: Engine,
    author: Identity,
    *,
    title: str,
    body: str,
    tag: str = PostTag.GENERAL,
    throttle: ActionThrottle | None = None,
    on_trigger: TriggerSink | None = None,
) -> Post:
    title = _validate_title(title)
    body = _validate_body(body)
    tag = _validate_tag(tag)

    with get_session(engine) as session:
        get_or_create_user(session, author.user_id, author.display_name)
        post = Post(
            author_id=author.user_id,
            author_name=author.display_name,
            title=title,
            body=body,
            tag=tag,
        )
        session.add(post)
        session.flush()
        enforce_throttle(throttle, author.user_id, ThrottledAction.CREATE_POST)
        session.refresh(post)

    logger.info("Post %d created by user %d (tag=%s)", post.id, author.user_id, tag)
    emit_trigger(engine, on_trigger, author.user_id, TriggerKind.POST_CREATED,
                 {"post_id": post.id})
    return post


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------
def list_posts(
    engine: Engine,
    *,
    tag: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[dict]:
    """Posts newest first, optionally filtered by tag."""
    with get_session(engine) as session:
        stmt = select(Post).order_by(Post.created_at.desc(), Post.id.desc())
        if tag is not None:
            stmt = stmt.where(Post.tag == _validate_tag(tag))
        posts = session.scalars(stmt.limit(limit).offset(offset)).all()
        return [post_view(session, p) for p in posts]


def get_post(engine: Engine, post_id: int) -> dict:
    with get_session(engine) as session:
        post = load_entity(session, EntityType.POST, post_id)
        return post_view(session, post)


# ---------------------------------------------------------------------------
# Edit / delete
# ---------------------------------------------------------------------------
def edit_post(
    engine: Engine,
    post_id: int,
    editor: Identity,
    *,
    title: str | None = None,
    body: str | None = None,
    tag: str | None = None,
) -> Post:
    """Overwrite the given fields; omitted fields keep their value."""
    with get_session(engine) as session:
        post = load_entity(session, EntityType.POST, post_id, for_update=True)
        if not editor.owns(post.author_id):
            raise ForbiddenError("Only the author can edit this post")
        if title is not None:
            post.title = _validate_title(title)
        if body is not None:
            post.body = _validate_body(body)
        if tag is not None:
            post.tag = _validate_tag(tag)
        post.edited_at = datetime.now(UTC)
        session.flush()
        session.refresh(post)
    logger.info("Post %d edited by user %d", post_id, editor.user_id)
    return post


def delete_post(engine: Engine, post_id: int, requester: Identity) -> None:
    with get_session(engine) as session:
        post = load_entity(session, EntityType.POST, post_id, for_update=True)
        if not requester.can_moderate(post.author_id):
            logger.warning("User %d tried to delete post %d they don't own",
                           requester.user_id, post_id)
            raise ForbiddenError("Only the author or an admin can delete this post")
        purge_interactions(session, EntityType.POST, post_id)
        session.delete(post)
    logger.info("Post %d deleted by user %d", post_id, requester.user_id)
