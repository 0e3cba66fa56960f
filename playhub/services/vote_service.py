"""
playhub.services.vote_service — Like/dislike ledger
====================================================

Applies :func:`playhub.engine.votes.resolve_vote` to the ``votes`` table
inside one transaction, with the parent row locked so two votes on the
same entity never interleave.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError

from playhub.database.engine import get_session
from playhub.database.models import Vote
from playhub.engine.votes import VoteOutcome, VoteTally, resolve_vote
from playhub.errors import ConflictError, ForbiddenError, ValidationError
from playhub.identity import Identity
from playhub.services.entities import get_or_create_user, load_entity
from playhub.services.views import vote_tally

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VoteResult:
    outcome: VoteOutcome
    tally: VoteTally

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "likes": self.tally.likes,
            "dislikes": self.tally.dislikes,
        }


def cast_vote(
    engine: Engine,
    entity_type: str,
    entity_id: int,
    voter: Identity,
    direction: int,
) -> VoteResult:
    """Record, retract or flip *voter*'s vote on an entity.

    Voting the same direction twice retracts the vote.  Authors cannot
    vote on their own posts or reviews.
    """
    try:
        outcome, tally = _cast_vote(engine, entity_type, entity_id, voter, direction)
    except IntegrityError as exc:
        # Lost a race against a concurrent first vote by the same user
        raise ConflictError("Vote changed concurrently, try again") from exc

    logger.info("Vote %s on %s %d by user %d (direction=%+d)",
                outcome, entity_type, entity_id, voter.user_id, direction)
    return VoteResult(outcome=outcome, tally=tally)


def _cast_vote(
    engine: Engine,
    entity_type: str,
    entity_id: int,
    voter: Identity,
    direction: int,
) -> tuple[VoteOutcome, VoteTally]:
    with get_session(engine) as session:
        entity = load_entity(session, entity_type, entity_id, for_update=True)
        if entity.author_id is not None and entity.author_id == voter.user_id:
            logger.warning("User %d tried to vote on their own %s %d",
                           voter.user_id, entity_type, entity_id)
            raise ForbiddenError("You cannot vote on your own content")
        get_or_create_user(session, voter.user_id, voter.display_name)

        existing = session.scalar(
            select(Vote).where(
                Vote.entity_type == entity_type,
                Vote.entity_id == entity_id,
                Vote.user_id == voter.user_id,
            )
        )
        try:
            outcome, new_value = resolve_vote(
                existing.value if existing else None, direction,
            )
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        if new_value is None:
            session.delete(existing)
        elif existing is None:
            session.add(Vote(
                entity_type=str(entity_type),
                entity_id=entity_id,
                user_id=voter.user_id,
                value=new_value,
            ))
        else:
            existing.value = new_value
        session.flush()

        return outcome, vote_tally(session, entity_type, entity_id)
