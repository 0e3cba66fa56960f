"""
playhub.api.routes.users — Members, profiles, logins, stats & achievements
===========================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from playhub.api.deps import get_current_identity, get_engine, get_trigger_sink
from playhub.database.engine import run_db
from playhub.identity import Identity
from playhub.services import achievement_service, progress_service, user_service
from playhub.services.achievement_service import TriggerSink

router = APIRouter(prefix="/users", tags=["users"])


class ProfileUpdate(BaseModel):
    display_name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=255)


class GenreUpdate(BaseModel):
    genre: str = Field(max_length=50)


# ---------------------------------------------------------------------------
# POST /users/me/logins — called by the auth provider after issuing a token
# ---------------------------------------------------------------------------
@router.post("/me/logins")
async def record_login(
    identity: Identity = Depends(get_current_identity),
    engine: Engine = Depends(get_engine),
    on_trigger: TriggerSink = Depends(get_trigger_sink),
):
    count = await run_db(
        user_service.record_login, engine, identity.user_id,
        display_name=identity.display_name, on_trigger=on_trigger,
    )
    return {"user_id": identity.user_id, "login_count": count}


@router.get("/{user_id}")
def get_user(user_id: int, engine: Engine = Depends(get_engine)):
    return user_service.get_user(engine, user_id)


@router.patch("/{user_id}")
def update_user(
    user_id: int,
    body: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    engine: Engine = Depends(get_engine),
):
    return user_service.update_user(
        engine, user_id, identity, **body.model_dump(exclude_none=True),
    )


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    identity: Identity = Depends(get_current_identity),
    engine: Engine = Depends(get_engine),
):
    user_service.delete_user(engine, user_id, identity)


@router.get("/{user_id}/stats")
def get_user_stats(user_id: int, engine: Engine = Depends(get_engine)):
    return user_service.user_stats(engine, user_id)


@router.get("/{user_id}/progress/{game_id}")
def get_user_progress(user_id: int, game_id: str, engine: Engine = Depends(get_engine)):
    return progress_service.get_progress(engine, user_id, game_id)


@router.get("/{user_id}/achievements")
def get_user_achievements(user_id: int, engine: Engine = Depends(get_engine)):
    user_service.get_user(engine, user_id)
    return {
        "user_id": user_id,
        "achievements": achievement_service.list_unlocked(engine, user_id),
    }


# ---------------------------------------------------------------------------
# Favorite genre
# ---------------------------------------------------------------------------
@router.get("/{user_id}/genre")
def get_genre(user_id: int, engine: Engine = Depends(get_engine)):
    return user_service.get_favorite_genre(engine, user_id)


@router.put("/{user_id}/genre")
def set_genre(
    user_id: int,
    body: GenreUpdate,
    identity: Identity = Depends(get_current_identity),
    engine: Engine = Depends(get_engine),
):
    return user_service.set_favorite_genre(engine, user_id, identity, body.genre)
