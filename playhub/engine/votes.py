"""
playhub.engine.votes — Vote toggle resolution
===============================================

Pure calculation: given a voter's current vote (if any) and the requested
direction, decide what the ledger should hold afterwards.  Repeating the
same direction retracts the vote.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass

LIKE = 1
DISLIKE = -1
VALID_DIRECTIONS = frozenset({LIKE, DISLIKE})


class VoteOutcome(enum.StrEnum):
    ADDED = "added"
    RETRACTED = "retracted"
    CHANGED = "changed"


@dataclass(frozen=True, slots=True)
class VoteTally:
    likes: int = 0
    dislikes: int = 0

    @property
    def score(self) -> int:
        return self.likes - self.dislikes


def resolve_vote(current: int | None, direction: int) -> tuple[VoteOutcome, int | None]:
    """Return ``(outcome, new_value)``; ``new_value`` is None when the vote
    should be removed.
    """
    if direction not in VALID_DIRECTIONS:
        raise ValueError(f"direction must be +1 or -1, got {direction!r}")
    if current is None:
        return VoteOutcome.ADDED, direction
    if current == direction:
        return VoteOutcome.RETRACTED, None
    return VoteOutcome.CHANGED, direction


def tally(values: Iterable[int]) -> VoteTally:
    """Count likes and dislikes from raw vote values."""
    likes = dislikes = 0
    for value in values:
        if value == LIKE:
            likes += 1
        elif value == DISLIKE:
            dislikes += 1
    return VoteTally(likes=likes, dislikes=dislikes)
