"""
playhub.services.review_service — Game reviews
===============================================

A review may only be written for a game the catalog knows about and the
author already tracks in their library (a ``UserGameProgress`` row), and
only once per (author, game).  The review's id is appended to that
progress row's ordered review list; deleting the review prunes it again
in the same transaction.
"""

from __future__ import annotations

import logging
import math
from datetime import UTC, datetime

from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import IntegrityError

from playhub.constants import (
    MAX_SUBJECT_LENGTH,
    REVIEW_SCORE_MAX,
    REVIEW_SCORE_MIN,
    EntityType,
    ThrottledAction,
    clean_text,
)
from playhub.database.engine import get_session
from playhub.database.models import ProgressReview, Review, TriggerKind, UserGameProgress
from playhub.engine.throttle import ActionThrottle
from playhub.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PreconditionFailedError,
    ValidationError,
)
from playhub.identity import Identity
from playhub.services.achievement_service import TriggerSink, emit_trigger
from playhub.services.catalog import GameCatalog
from playhub.services.entities import (
    enforce_throttle,
    get_or_create_user,
    load_entity,
    purge_interactions,
    validate_hours,
)
from playhub.services.views import review_view

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------
def _validate_score(score: object) -> float:
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ValidationError("Score must be a number")
    if math.isnan(score) or not REVIEW_SCORE_MIN <= score <= REVIEW_SCORE_MAX:
        raise ValidationError(
            f"Score must be between {REVIEW_SCORE_MIN:g} and {REVIEW_SCORE_MAX:g}"
        )
    return float(score)


def _validate_subject(subject: str | None) -> str | None:
    subject = clean_text(subject)
    if len(subject) > MAX_SUBJECT_LENGTH:
        raise ValidationError(f"Subject must be at most {MAX_SUBJECT_LENGTH} characters")
    return subject or None


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------
def create_review(
    engine: Engine,
    catalog: GameCatalog,
    author: Identity,
    *,
    game_id: str,
    score: float,
    subject: str | None = None,
    body: str | None = None,
    hours_played: float | None = None,
    recommend: bool = True,
    throttle: ActionThrottle | None = None,
    on_trigger: TriggerSink | None = None,
) -> Review:
    """Publish a review of *game_id* by *author*.

    Raises
    ------
    ValidationError
        Score outside the allowed range or malformed fields.
    NotFoundError
        The game catalog does not know *game_id*.
    PreconditionFailedError
        The author has no progress record for the game.
    ConflictError
        The author already reviewed this game.
    TooManyRequestsError
        The author created a review less than one window ago.
    """
    game_id = clean_text(game_id)
    if not game_id:
        raise ValidationError("game_id is required")
    score = _validate_score(score)
    subject = _validate_subject(subject)
    body = clean_text(body) or None
    if hours_played is not None:
        hours_played = validate_hours(hours_played)

    if not catalog.exists(game_id):
        raise NotFoundError(f"Game {game_id} not found")

    try:
        with get_session(engine) as session:
            get_or_create_user(session, author.user_id, author.display_name)
            progress = session.scalar(
                select(UserGameProgress).where(
                    UserGameProgress.user_id == author.user_id,
                    UserGameProgress.game_id == game_id,
                ).with_for_update()
            )
            if progress is None:
                raise PreconditionFailedError(
                    "Add this game to your library before reviewing it"
                )
            duplicate = session.scalar(
                select(Review.id).where(
                    Review.author_id == author.user_id, Review.game_id == game_id,
                )
            )
            if duplicate is not None:
                raise ConflictError("You have already reviewed this game")

            review = Review(
                author_id=author.user_id,
                author_name=author.display_name,
                game_id=game_id,
                score=score,
                subject=subject,
                body=body,
                hours_played=progress.hours_played if hours_played is None else hours_played,
                recommend=recommend,
            )
            session.add(review)
            session.flush()
            progress.review_links.append(
                ProgressReview(review_id=review.id, position=len(progress.review_links))
            )
            session.flush()
            # Throttle only once the rows are known to insert cleanly
            enforce_throttle(throttle, author.user_id, ThrottledAction.CREATE_REVIEW)
            session.refresh(review)
    except IntegrityError as exc:
        raise ConflictError("You have already reviewed this game") from exc

    logger.info("Review %d created by user %d for game %s (score=%.1f)",
                review.id, author.user_id, game_id, score)
    trigger_ctx = {"game_id": game_id, "review_id": review.id}
    emit_trigger(engine, on_trigger, author.user_id, TriggerKind.REVIEW_CREATED, trigger_ctx)
    emit_trigger(engine, on_trigger, author.user_id, TriggerKind.REVIEW_MILESTONE, trigger_ctx)
    return review


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------
def list_reviews(
    engine: Engine,
    *,
    game_id: str | None = None,
    author_id: int | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[dict]:
    """Reviews newest first, optionally filtered by game and/or author."""
    with get_session(engine) as session:
        stmt = select(Review).order_by(Review.created_at.desc(), Review.id.desc())
        if game_id is not None:
            stmt = stmt.where(Review.game_id == game_id)
        if author_id is not None:
            stmt = stmt.where(Review.author_id == author_id)
        reviews = session.scalars(stmt.limit(limit).offset(offset)).all()
        return [review_view(session, r) for r in reviews]


def get_review(engine: Engine, review_id: int) -> dict:
    with get_session(engine) as session:
        review = load_entity(session, EntityType.REVIEW, review_id)
        return review_view(session, review)


# ---------------------------------------------------------------------------
# Edit / delete
# ---------------------------------------------------------------------------
def edit_review(
    engine: Engine,
    review_id: int,
    editor: Identity,
    *,
    score: float | None = None,
    subject: str | None = None,
    body: str | None = None,
    hours_played: float | None = None,
    recommend: bool | None = None,
) -> Review:
    """Overwrite the given fields; omitted fields keep their value."""
    with get_session(engine) as session:
        review = load_entity(session, EntityType.REVIEW, review_id, for_update=True)
        if not editor.owns(review.author_id):
            raise ForbiddenError("Only the author can edit this review")
        if score is not None:
            review.score = _validate_score(score)
        if subject is not None:
            review.subject = _validate_subject(subject)
        if body is not None:
            review.body = clean_text(body) or None
        if hours_played is not None:
            review.hours_played = validate_hours(hours_played)
        if recommend is not None:
            review.recommend = recommend
        review.edited_at = datetime.now(UTC)
        session.flush()
        session.refresh(review)
    logger.info("Review %d edited by user %d", review_id, editor.user_id)
    return review


def delete_review(engine: Engine, review_id: int, requester: Identity) -> None:
    """Hard-delete a review with its interactions and progress back-reference."""
    with get_session(engine) as session:
        review = load_entity(session, EntityType.REVIEW, review_id, for_update=True)
        if not requester.can_moderate(review.author_id):
            logger.warning("User %d tried to delete review %d they don't own",
                           requester.user_id, review_id)
            raise ForbiddenError("Only the author or an admin can delete this review")
        purge_interactions(session, EntityType.REVIEW, review_id)
        session.execute(delete(ProgressReview).where(ProgressReview.review_id == review_id))
        session.delete(review)
    logger.info("Review %d deleted by user %d", review_id, requester.user_id)
