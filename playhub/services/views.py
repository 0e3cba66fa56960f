"""
playhub.services.views — Response shapes
==========================================

Turns ORM rows into plain dicts for the API.  Vote counts are always
derived from the ``votes`` table here, never stored on the entity.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from playhub.constants import EntityType
from playhub.database.models import (
    Comment,
    Post,
    Reply,
    Report,
    Review,
    UserGameProgress,
    Vote,
)
from playhub.engine.votes import VoteTally, tally


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def vote_tally(session: Session, entity_type: str, entity_id: int) -> VoteTally:
    values = session.scalars(
        select(Vote.value).where(
            Vote.entity_type == entity_type, Vote.entity_id == entity_id,
        )
    ).all()
    return tally(values)


def reply_dict(r: Reply) -> dict:
    return {
        "id": r.id,
        "comment_id": r.comment_id,
        "author_id": r.author_id,
        "author_name": r.author_name,
        "text": r.text,
        "created_at": _iso(r.created_at),
        "edited_at": _iso(r.edited_at),
    }


def comment_dict(c: Comment, *, with_replies: bool = True) -> dict:
    data = {
        "id": c.id,
        "entity_type": c.entity_type,
        "entity_id": c.entity_id,
        "author_id": c.author_id,
        "author_name": c.author_name,
        "text": c.text,
        "created_at": _iso(c.created_at),
        "edited_at": _iso(c.edited_at),
    }
    if with_replies:
        data["replies"] = [reply_dict(r) for r in c.replies]
    return data


def _interactions(session: Session, entity_type: str, entity_id: int) -> dict:
    comments = session.scalars(
        select(Comment)
        .where(Comment.entity_type == entity_type, Comment.entity_id == entity_id)
        .options(selectinload(Comment.replies))
        .order_by(Comment.id)
    ).all()
    votes = vote_tally(session, entity_type, entity_id)
    report_count = session.scalar(
        select(func.count()).select_from(Report).where(
            Report.entity_type == entity_type, Report.entity_id == entity_id,
        )
    ) or 0
    return {
        "likes": votes.likes,
        "dislikes": votes.dislikes,
        "report_count": report_count,
        "comments": [comment_dict(c) for c in comments],
    }


def post_view(session: Session, post: Post) -> dict:
    return {
        "id": post.id,
        "kind": EntityType.POST.value,
        "author_id": post.author_id,
        "author_name": post.author_name,
        "title": post.title,
        "body": post.body,
        "tag": post.tag,
        "created_at": _iso(post.created_at),
        "edited_at": _iso(post.edited_at),
        **_interactions(session, EntityType.POST, post.id),
    }


def review_view(session: Session, review: Review) -> dict:
    return {
        "id": review.id,
        "kind": EntityType.REVIEW.value,
        "author_id": review.author_id,
        "author_name": review.author_name,
        "game_id": review.game_id,
        "score": review.score,
        "subject": review.subject,
        "body": review.body,
        "hours_played": review.hours_played,
        "recommend": review.recommend,
        "created_at": _iso(review.created_at),
        "edited_at": _iso(review.edited_at),
        **_interactions(session, EntityType.REVIEW, review.id),
    }


def entity_view(session: Session, entity: Post | Review) -> dict:
    if isinstance(entity, Review):
        return review_view(session, entity)
    return post_view(session, entity)


def progress_dict(p: UserGameProgress) -> dict:
    return {
        "id": p.id,
        "user_id": p.user_id,
        "game_id": p.game_id,
        "owned": p.owned,
        "wishlisted": p.wishlisted,
        "completed": p.completed,
        "hours_played": p.hours_played,
        "completed_count": p.completed_count,
        "review_ids": [link.review_id for link in p.review_links],
        "updated_at": _iso(p.updated_at),
    }
