"""
playhub.api.routes.reviews — Game reviews
==========================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import Engine

from playhub.api.deps import (
    get_catalog,
    get_current_identity,
    get_engine,
    get_throttle,
    get_trigger_sink,
)
from playhub.api.routes.interactions import build_interaction_router
from playhub.constants import EntityType
from playhub.engine.throttle import ActionThrottle
from playhub.identity import Identity
from playhub.services import review_service
from playhub.services.achievement_service import TriggerSink
from playhub.services.catalog import GameCatalog

router = APIRouter(prefix="/reviews", tags=["reviews"])
games_router = APIRouter(prefix="/games", tags=["reviews"])


class ReviewCreate(BaseModel):
    game_id: str
    score: float
    subject: str | None = None
    body: str | None = None
    hours_played: float | None = None
    recommend: bool = True


class ReviewUpdate(BaseModel):
    score: float | None = None
    subject: str | None = None
    body: str | None = None
    hours_played: float | None = None
    recommend: bool | None = None


@router.post("", status_code=201)
def create_review(
    body: ReviewCreate,
    identity: Identity = Depends(get_current_identity),
    engine: Engine = Depends(get_engine),
    catalog: GameCatalog = Depends(get_catalog),
    throttle: ActionThrottle = Depends(get_throttle),
    on_trigger: TriggerSink = Depends(get_trigger_sink),
):
    review = review_service.create_review(
        engine, catalog, identity,
        **body.model_dump(),
        throttle=throttle, on_trigger=on_trigger,
    )
    return review_service.get_review(engine, review.id)


@router.get("")
def list_reviews(
    game_id: str | None = None,
    author_id: int | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    engine: Engine = Depends(get_engine),
):
    reviews = review_service.list_reviews(
        engine, game_id=game_id, author_id=author_id, limit=limit, offset=offset,
    )
    return {"reviews": reviews}


@router.get("/{review_id}")
def get_review(review_id: int, engine: Engine = Depends(get_engine)):
    return review_service.get_review(engine, review_id)


@router.patch("/{review_id}")
def edit_review(
    review_id: int,
    body: ReviewUpdate,
    identity: Identity = Depends(get_current_identity),
    engine: Engine = Depends(get_engine),
):
    review_service.edit_review(
        engine, review_id, identity, **body.model_dump(exclude_none=True),
    )
    return review_service.get_review(engine, review_id)


@router.delete("/{review_id}", status_code=204)
def delete_review(
    review_id: int,
    identity: Identity = Depends(get_current_identity),
    engine: Engine = Depends(get_engine),
):
    review_service.delete_review(engine, review_id, identity)


router.include_router(build_interaction_router(EntityType.REVIEW))


@games_router.get("/{game_id}/reviews")
def list_game_reviews(
    game_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    engine: Engine = Depends(get_engine),
):
    reviews = review_service.list_reviews(
        engine, game_id=game_id, limit=limit, offset=offset,
    )
    return {"game_id": game_id, "reviews": reviews}
