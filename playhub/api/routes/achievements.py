"""
playhub.api.routes.achievements — Catalogue & admin rule management
====================================================================
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from playhub.api.deps import get_current_admin, get_engine
from playhub.database.models import ConditionType
from playhub.errors import ValidationError
from playhub.identity import Identity
from playhub.services import achievement_service

router = APIRouter(tags=["achievements"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class AchievementCreate(BaseModel):
    code: str
    name: str
    description: str | None = None
    trigger_kind: str
    condition_type: str = ConditionType.ALWAYS.value
    condition_config: dict[str, Any] = Field(default_factory=dict)


class AchievementUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    condition_config: dict[str, Any] | None = None
    active: bool | None = None


# ---------------------------------------------------------------------------
# Public catalogue
# ---------------------------------------------------------------------------
@router.get("/achievements")
def list_achievements(engine: Engine = Depends(get_engine)):
    return {"achievements": achievement_service.list_achievements(engine)}


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------
@router.get("/admin/achievements")
def list_all_achievements(
    admin: Identity = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    return {
        "achievements": achievement_service.list_achievements(engine, include_inactive=True),
    }


@router.post("/admin/achievements", status_code=201)
def create_achievement(
    body: AchievementCreate,
    admin: Identity = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    achievement = achievement_service.create_achievement(engine, **body.model_dump())
    return achievement_service.achievement_dict(achievement)


@router.patch("/admin/achievements/{achievement_id}")
def update_achievement(
    achievement_id: int,
    body: AchievementUpdate,
    admin: Identity = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    kwargs = body.model_dump(exclude_none=True)
    if not kwargs:
        raise ValidationError("No fields to update")
    achievement = achievement_service.update_achievement(engine, achievement_id, **kwargs)
    return achievement_service.achievement_dict(achievement)
