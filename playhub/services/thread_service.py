"""
playhub.services.thread_service — Comments & replies on any entity
===================================================================

One implementation of the discussion tree for every parent kind:
entity → comment → reply, never deeper.  Comments and replies are
addressed by the id assigned at creation and listed in creation order.

Only the author may edit; the author or an admin may delete.  Deleting
a comment takes its replies with it in the same transaction.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from playhub.constants import clean_text
from playhub.database.engine import get_session
from playhub.database.models import Comment, Reply, TriggerKind
from playhub.errors import ForbiddenError, NotFoundError, ValidationError
from playhub.identity import Identity
from playhub.services.achievement_service import TriggerSink, emit_trigger
from playhub.services.entities import get_or_create_user, load_entity

logger = logging.getLogger(__name__)


def _require_text(text: str | None, what: str) -> str:
    cleaned = clean_text(text)
    if not cleaned:
        raise ValidationError(f"{what} text cannot be empty")
    return cleaned


def _load_comment(
    session: Session, entity_type: str, entity_id: int, comment_id: int,
) -> Comment:
    comment = session.scalar(
        select(Comment).where(
            Comment.id == comment_id,
            Comment.entity_type == entity_type,
            Comment.entity_id == entity_id,
        )
    )
    if comment is None:
        raise NotFoundError(f"Comment {comment_id} not found")
    return comment


def _load_reply(session: Session, comment: Comment, reply_id: int) -> Reply:
    reply = session.scalar(
        select(Reply).where(Reply.id == reply_id, Reply.comment_id == comment.id)
    )
    if reply is None:
        raise NotFoundError(f"Reply {reply_id} not found")
    return reply


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------
def add_comment(
    engine: Engine,
    entity_type: str,
    entity_id: int,
    author: Identity,
    text: str,
    *,
    on_trigger: TriggerSink | None = None,
) -> Comment:
    """Append a top-level comment to a post or review."""
    text = _require_text(text, "Comment")
    with get_session(engine) as session:
        load_entity(session, entity_type, entity_id, for_update=True)
        get_or_create_user(session, author.user_id, author.display_name)
        comment = Comment(
            entity_type=str(entity_type),
            entity_id=entity_id,
            author_id=author.user_id,
            author_name=author.display_name,
            text=text,
        )
        session.add(comment)
        session.flush()
        session.refresh(comment)

    logger.info("Comment %d added to %s %d by user %d",
                comment.id, entity_type, entity_id, author.user_id)
    trigger_ctx = {"entity_type": str(entity_type), "entity_id": entity_id}
    emit_trigger(engine, on_trigger, author.user_id, TriggerKind.COMMENT_POSTED, trigger_ctx)
    emit_trigger(engine, on_trigger, author.user_id, TriggerKind.REPLY_POSTED, trigger_ctx)
    return comment


def add_reply(
    engine: Engine,
    entity_type: str,
    entity_id: int,
    comment_id: int,
    author: Identity,
    text: str,
    *,
    on_trigger: TriggerSink | None = None,
) -> Reply:
    """Reply to an existing comment."""
    text = _require_text(text, "Reply")
    with get_session(engine) as session:
        load_entity(session, entity_type, entity_id, for_update=True)
        comment = _load_comment(session, entity_type, entity_id, comment_id)
        get_or_create_user(session, author.user_id, author.display_name)
        reply = Reply(
            comment_id=comment.id,
            author_id=author.user_id,
            author_name=author.display_name,
            text=text,
        )
        session.add(reply)
        session.flush()
        session.refresh(reply)

    logger.info("Reply %d added to comment %d by user %d",
                reply.id, comment_id, author.user_id)
    emit_trigger(
        engine, on_trigger, author.user_id, TriggerKind.REPLY_POSTED,
        {"entity_type": str(entity_type), "entity_id": entity_id, "comment_id": comment_id},
    )
    return reply


# ---------------------------------------------------------------------------
# Edit
# ---------------------------------------------------------------------------
def edit_comment(
    engine: Engine,
    entity_type: str,
    entity_id: int,
    comment_id: int,
    editor: Identity,
    text: str,
) -> Comment:
    text = _require_text(text, "Comment")
    with get_session(engine) as session:
        load_entity(session, entity_type, entity_id, for_update=True)
        comment = _load_comment(session, entity_type, entity_id, comment_id)
        if not editor.owns(comment.author_id):
            raise ForbiddenError("Only the author can edit this comment")
        comment.text = text
        comment.edited_at = datetime.now(UTC)
        session.flush()
        session.refresh(comment)
    return comment


def edit_reply(
    engine: Engine,
    entity_type: str,
    entity_id: int,
    comment_id: int,
    reply_id: int,
    editor: Identity,
    text: str,
) -> Reply:
    text = _require_text(text, "Reply")
    with get_session(engine) as session:
        load_entity(session, entity_type, entity_id, for_update=True)
        comment = _load_comment(session, entity_type, entity_id, comment_id)
        reply = _load_reply(session, comment, reply_id)
        if not editor.owns(reply.author_id):
            raise ForbiddenError("Only the author can edit this reply")
        reply.text = text
        reply.edited_at = datetime.now(UTC)
        session.flush()
        session.refresh(reply)
    return reply


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------
def delete_comment(
    engine: Engine,
    entity_type: str,
    entity_id: int,
    comment_id: int,
    requester: Identity,
) -> None:
    """Remove a comment and every reply under it."""
    with get_session(engine) as session:
        load_entity(session, entity_type, entity_id, for_update=True)
        comment = _load_comment(session, entity_type, entity_id, comment_id)
        if not requester.can_moderate(comment.author_id):
            logger.warning("User %d tried to delete comment %d they don't own",
                           requester.user_id, comment_id)
            raise ForbiddenError("Only the author or an admin can delete this comment")
        session.delete(comment)  # cascades to replies
    logger.info("Comment %d on %s %d deleted by user %d",
                comment_id, entity_type, entity_id, requester.user_id)


def delete_reply(
    engine: Engine,
    entity_type: str,
    entity_id: int,
    comment_id: int,
    reply_id: int,
    requester: Identity,
) -> None:
    with get_session(engine) as session:
        load_entity(session, entity_type, entity_id, for_update=True)
        comment = _load_comment(session, entity_type, entity_id, comment_id)
        reply = _load_reply(session, comment, reply_id)
        if not requester.can_moderate(reply.author_id):
            logger.warning("User %d tried to delete reply %d they don't own",
                           requester.user_id, reply_id)
            raise ForbiddenError("Only the author or an admin can delete this reply")
        session.delete(reply)
    logger.info("Reply %d on comment %d deleted by user %d",
                reply_id, comment_id, requester.user_id)
