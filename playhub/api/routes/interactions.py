"""
playhub.api.routes.interactions — Votes, comments, replies & reports
=====================================================================

The same sub-resources hang off posts and reviews.  Each parent router
mounts one of these, built for its entity type::

    router.include_router(build_interaction_router(EntityType.POST))
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import Engine

from playhub.api.deps import get_current_identity, get_engine, get_throttle, get_trigger_sink
from playhub.constants import EntityType
from playhub.engine.throttle import ActionThrottle
from playhub.identity import Identity
from playhub.services import report_service, thread_service, vote_service
from playhub.services.achievement_service import TriggerSink
from playhub.services.views import comment_dict, reply_dict


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class VoteCast(BaseModel):
    direction: int  # +1 like, -1 dislike


class TextBody(BaseModel):
    text: str


class ReportCreate(BaseModel):
    reason: str


def build_interaction_router(entity_type: EntityType) -> APIRouter:
    router = APIRouter()

    @router.post("/{entity_id}/votes")
    def cast_vote(
        entity_id: int,
        body: VoteCast,
        identity: Identity = Depends(get_current_identity),
        engine: Engine = Depends(get_engine),
    ):
        result = vote_service.cast_vote(
            engine, entity_type, entity_id, identity, body.direction,
        )
        return result.to_dict()

    # -----------------------------------------------------------------------
    # Comments
    # -----------------------------------------------------------------------
    @router.post("/{entity_id}/comments", status_code=201)
    def add_comment(
        entity_id: int,
        body: TextBody,
        identity: Identity = Depends(get_current_identity),
        engine: Engine = Depends(get_engine),
        on_trigger: TriggerSink = Depends(get_trigger_sink),
    ):
        comment = thread_service.add_comment(
            engine, entity_type, entity_id, identity, body.text,
            on_trigger=on_trigger,
        )
        return {**comment_dict(comment, with_replies=False), "replies": []}

    @router.patch("/{entity_id}/comments/{comment_id}")
    def edit_comment(
        entity_id: int,
        comment_id: int,
        body: TextBody,
        identity: Identity = Depends(get_current_identity),
        engine: Engine = Depends(get_engine),
    ):
        comment = thread_service.edit_comment(
            engine, entity_type, entity_id, comment_id, identity, body.text,
        )
        return comment_dict(comment, with_replies=False)

    @router.delete("/{entity_id}/comments/{comment_id}", status_code=204)
    def delete_comment(
        entity_id: int,
        comment_id: int,
        identity: Identity = Depends(get_current_identity),
        engine: Engine = Depends(get_engine),
    ):
        thread_service.delete_comment(engine, entity_type, entity_id, comment_id, identity)

    # -----------------------------------------------------------------------
    # Replies
    # -----------------------------------------------------------------------
    @router.post("/{entity_id}/comments/{comment_id}/replies", status_code=201)
    def add_reply(
        entity_id: int,
        comment_id: int,
        body: TextBody,
        identity: Identity = Depends(get_current_identity),
        engine: Engine = Depends(get_engine),
        on_trigger: TriggerSink = Depends(get_trigger_sink),
    ):
        reply = thread_service.add_reply(
            engine, entity_type, entity_id, comment_id, identity, body.text,
            on_trigger=on_trigger,
        )
        return reply_dict(reply)

    @router.patch("/{entity_id}/comments/{comment_id}/replies/{reply_id}")
    def edit_reply(
        entity_id: int,
        comment_id: int,
        reply_id: int,
        body: TextBody,
        identity: Identity = Depends(get_current_identity),
        engine: Engine = Depends(get_engine),
    ):
        reply = thread_service.edit_reply(
            engine, entity_type, entity_id, comment_id, reply_id, identity, body.text,
        )
        return reply_dict(reply)

    @router.delete("/{entity_id}/comments/{comment_id}/replies/{reply_id}", status_code=204)
    def delete_reply(
        entity_id: int,
        comment_id: int,
        reply_id: int,
        identity: Identity = Depends(get_current_identity),
        engine: Engine = Depends(get_engine),
    ):
        thread_service.delete_reply(
            engine, entity_type, entity_id, comment_id, reply_id, identity,
        )

    # -----------------------------------------------------------------------
    # Reports
    # -----------------------------------------------------------------------
    @router.post("/{entity_id}/reports", status_code=201)
    def file_report(
        entity_id: int,
        body: ReportCreate,
        identity: Identity = Depends(get_current_identity),
        engine: Engine = Depends(get_engine),
        throttle: ActionThrottle = Depends(get_throttle),
    ):
        report = report_service.file_report(
            engine, entity_type, entity_id, identity, body.reason, throttle=throttle,
        )
        return {"id": report.id, "reported": True}

    return router
