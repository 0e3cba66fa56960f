"""
playhub.services.progress_service — Per-user, per-game progress
================================================================

Upsert semantics: the first write for a (user, game) pair creates the row,
later writes overwrite only the fields they carry.  Flag transitions
drive the library achievements:

- ``owned``       False → True   ``game_added``
- ``wishlisted``  False → True   ``game_wishlisted``
- ``completed``   False → True   ``completed_count += 1`` and ``game_completed``

Setting a flag that is already set is not a transition and fires nothing.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from playhub.constants import clean_text
from playhub.database.engine import get_session
from playhub.database.models import TriggerKind, UserGameProgress
from playhub.errors import ConflictError, NotFoundError, ValidationError
from playhub.services.achievement_service import TriggerSink, emit_trigger
from playhub.services.catalog import GameCatalog
from playhub.services.entities import get_or_create_user, validate_hours
from playhub.services.views import progress_dict

logger = logging.getLogger(__name__)


def update_progress(
    engine: Engine,
    user_id: int,
    game_id: str,
    *,
    owned: bool | None = None,
    wishlisted: bool | None = None,
    completed: bool | None = None,
    hours_played: float | None = None,
    display_name: str | None = None,
    catalog: GameCatalog | None = None,
    on_trigger: TriggerSink | None = None,
) -> dict:
    """Create or update the caller's progress row for *game_id*.

    *display_name* lets a first-time caller's member row be created from
    their token identity; without it the user must already exist.
    """
    game_id = clean_text(game_id)
    if not game_id:
        raise ValidationError("game_id is required")
    if hours_played is not None:
        hours_played = validate_hours(hours_played)

    triggers: list[tuple[TriggerKind, dict]] = []
    try:
        with get_session(engine) as session:
            get_or_create_user(session, user_id, display_name)
            progress = session.scalar(
                select(UserGameProgress).where(
                    UserGameProgress.user_id == user_id,
                    UserGameProgress.game_id == game_id,
                ).with_for_update()
            )
            if progress is None:
                if catalog is not None and not catalog.exists(game_id):
                    raise NotFoundError(f"Game {game_id} not found")
                progress = UserGameProgress(
                    user_id=user_id,
                    game_id=game_id,
                    owned=False,
                    wishlisted=False,
                    completed=False,
                    hours_played=0.0,
                    completed_count=0,
                )
                session.add(progress)
                logger.info("Progress row created for user %d, game %s", user_id, game_id)

            ctx = {"game_id": game_id}
            if owned is not None:
                if owned and not progress.owned:
                    triggers.append((TriggerKind.GAME_ADDED, ctx))
                progress.owned = owned
            if wishlisted is not None:
                if wishlisted and not progress.wishlisted:
                    triggers.append((TriggerKind.GAME_WISHLISTED, ctx))
                progress.wishlisted = wishlisted
            if completed is not None:
                if completed and not progress.completed:
                    progress.completed_count += 1
                    triggers.append((
                        TriggerKind.GAME_COMPLETED,
                        {**ctx, "transitions": ["completed"]},
                    ))
                progress.completed = completed
            if hours_played is not None:
                progress.hours_played = hours_played

            session.flush()
            session.refresh(progress)
            result = progress_dict(progress)
    except IntegrityError as exc:
        # Concurrent first write for the same (user, game)
        raise ConflictError("Progress for this game was created concurrently") from exc

    for kind, trigger_ctx in triggers:
        emit_trigger(engine, on_trigger, user_id, kind, trigger_ctx)
    return result


def get_progress(engine: Engine, user_id: int, game_id: str) -> dict:
    with get_session(engine) as session:
        progress = session.scalar(
            select(UserGameProgress)
            .where(UserGameProgress.user_id == user_id, UserGameProgress.game_id == game_id)
            .options(selectinload(UserGameProgress.review_links))
        )
        if progress is None:
            raise NotFoundError(f"No progress for game {game_id}")
        return progress_dict(progress)


def list_progress(engine: Engine, user_id: int) -> list[dict]:
    with get_session(engine) as session:
        rows = session.scalars(
            select(UserGameProgress)
            .where(UserGameProgress.user_id == user_id)
            .options(selectinload(UserGameProgress.review_links))
            .order_by(UserGameProgress.updated_at.desc(), UserGameProgress.id.desc())
        ).all()
        return [progress_dict(p) for p in rows]


def delete_progress(engine: Engine, user_id: int, game_id: str) -> None:
    """Drop a game from the user's library.  Reviews they wrote stay."""
    with get_session(engine) as session:
        progress = session.scalar(
            select(UserGameProgress).where(
                UserGameProgress.user_id == user_id,
                UserGameProgress.game_id == game_id,
            ).with_for_update()
        )
        if progress is None:
            raise NotFoundError(f"No progress for game {game_id}")
        session.delete(progress)
    logger.info("Progress for user %d, game %s deleted", user_id, game_id)
