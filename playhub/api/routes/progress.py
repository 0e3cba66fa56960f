"""
playhub.api.routes.progress — The caller's game library
========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from playhub.api.deps import get_catalog, get_current_identity, get_engine, get_trigger_sink
from playhub.identity import Identity
from playhub.services import progress_service
from playhub.services.achievement_service import TriggerSink
from playhub.services.catalog import GameCatalog

router = APIRouter(prefix="/progress", tags=["progress"])


class ProgressUpdate(BaseModel):
    owned: bool | None = None
    wishlisted: bool | None = None
    completed: bool | None = None
    hours_played: float | None = Field(default=None, ge=0)


@router.put("/{game_id}")
def update_progress(
    game_id: str,
    body: ProgressUpdate,
    identity: Identity = Depends(get_current_identity),
    engine: Engine = Depends(get_engine),
    catalog: GameCatalog = Depends(get_catalog),
    on_trigger: TriggerSink = Depends(get_trigger_sink),
):
    return progress_service.update_progress(
        engine, identity.user_id, game_id,
        **body.model_dump(exclude_none=True),
        display_name=identity.display_name, catalog=catalog, on_trigger=on_trigger,
    )


@router.get("")
def list_progress(
    identity: Identity = Depends(get_current_identity),
    engine: Engine = Depends(get_engine),
):
    return {"progress": progress_service.list_progress(engine, identity.user_id)}


@router.delete("/{game_id}", status_code=204)
def delete_progress(
    game_id: str,
    identity: Identity = Depends(get_current_identity),
    engine: Engine = Depends(get_engine),
):
    progress_service.delete_progress(engine, identity.user_id, game_id)
