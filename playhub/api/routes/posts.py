"""
playhub.api.routes.posts — Forum posts
=======================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import Engine

from playhub.api.deps import get_current_identity, get_engine, get_throttle, get_trigger_sink
from playhub.api.routes.interactions import build_interaction_router
from playhub.constants import EntityType, PostTag
from playhub.engine.throttle import ActionThrottle
from playhub.identity import Identity
from playhub.services import post_service
from playhub.services.achievement_service import TriggerSink

router = APIRouter(prefix="/posts", tags=["posts"])


class PostCreate(BaseModel):
    title: str
    body: str
    tag: str = PostTag.GENERAL.value


class PostUpdate(BaseModel):
    title: str | None = None
    body: str | None = None
    tag: str | None = None


@router.post("", status_code=201)
def create_post(
    body: PostCreate,
    identity: Identity = Depends(get_current_identity),
    engine: Engine = Depends(get_engine),
    throttle: ActionThrottle = Depends(get_throttle),
    on_trigger: TriggerSink = Depends(get_trigger_sink),
):
    post = post_service.create_post(
        engine, identity,
        title=body.title, body=body.body, tag=body.tag,
        throttle=throttle, on_trigger=on_trigger,
    )
    return post_service.get_post(engine, post.id)


@router.get("")
def list_posts(
    tag: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    engine: Engine = Depends(get_engine),
):
    return {"posts": post_service.list_posts(engine, tag=tag, limit=limit, offset=offset)}


@router.get("/{post_id}")
def get_post(post_id: int, engine: Engine = Depends(get_engine)):
    return post_service.get_post(engine, post_id)


@router.patch("/{post_id}")
def edit_post(
    post_id: int,
    body: PostUpdate,
    identity: Identity = Depends(get_current_identity),
    engine: Engine = Depends(get_engine),
):
    post_service.edit_post(engine, post_id, identity, **body.model_dump(exclude_none=True))
    return post_service.get_post(engine, post_id)


@router.delete("/{post_id}", status_code=204)
def delete_post(
    post_id: int,
    identity: Identity = Depends(get_current_identity),
    engine: Engine = Depends(get_engine),
):
    post_service.delete_post(engine, post_id, identity)


router.include_router(build_interaction_router(EntityType.POST))
