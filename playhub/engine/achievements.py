"""
playhub.engine.achievements — Achievement Rule Evaluation
===========================================================

Handler-registry implementation for achievement rules.  Each
ConditionType maps to a pure handler that receives the rule's
``condition_config`` and an :class:`AchievementContext`.  Handlers only
read named counters and flags, so a new trigger kind needs a new rule,
never a new handler.

This module is pure calculation — no database I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol

from playhub.database.models import ConditionType

logger = logging.getLogger(__name__)


class RuleLike(Protocol):
    id: int
    code: str
    trigger_kind: str
    condition_type: str
    condition_config: dict | None
    active: bool


# ---------------------------------------------------------------------------
# Achievement Context — passed to every condition handler
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AchievementContext:
    """Snapshot of user state for one trigger delivery.

    Parameters
    ----------
    trigger_kind : The trigger being evaluated.
    counters : Named integer counters, e.g. ``{"total_reviews": 3}``.
    transitions : Flags that flipped False → True in the triggering action.
    """

    trigger_kind: str
    counters: dict[str, int] = field(default_factory=dict)
    transitions: frozenset[str] = frozenset()


# ---------------------------------------------------------------------------
# Condition handlers — pure functions (config, ctx) → bool
# ---------------------------------------------------------------------------

def _check_counter_threshold(config: dict, ctx: AchievementContext) -> bool:
    """Fires when a named counter reaches a threshold.

    Config: {"counter": "total_reviews", "value": 10}
    """
    counter = config.get("counter", "")
    value = config.get("value")
    if not counter or value is None:
        return False
    return ctx.counters.get(counter, 0) >= value


def _check_first_occurrence(config: dict, ctx: AchievementContext) -> bool:
    """Fires once the counter shows at least one occurrence.

    Config: {"counter": "total_posts"}; without a counter the delivery of
    the trigger itself counts as the occurrence.
    """
    counter = config.get("counter")
    if not counter:
        return True
    return ctx.counters.get(counter, 0) >= 1


def _check_flag_transition(config: dict, ctx: AchievementContext) -> bool:
    """Fires when a flag flipped False → True in this action.

    Config: {"flag": "completed"}
    """
    flag = config.get("flag", "")
    if not flag:
        return False
    return flag in ctx.transitions


def _check_always(config: dict, ctx: AchievementContext) -> bool:
    return True


# ---------------------------------------------------------------------------
# Handler registry
# ---------------------------------------------------------------------------
CONDITION_HANDLERS: dict[str, Callable[[dict, AchievementContext], bool]] = {
    ConditionType.COUNTER_THRESHOLD: _check_counter_threshold,
    ConditionType.FIRST_OCCURRENCE: _check_first_occurrence,
    ConditionType.FLAG_TRANSITION: _check_flag_transition,
    ConditionType.ALWAYS: _check_always,
}

# Config keys each condition type needs to be evaluable
REQUIRED_CONFIG_KEYS: dict[str, tuple[str, ...]] = {
    ConditionType.COUNTER_THRESHOLD: ("counter", "value"),
    ConditionType.FIRST_OCCURRENCE: (),
    ConditionType.FLAG_TRANSITION: ("flag",),
    ConditionType.ALWAYS: (),
}


def referenced_counters(rules: Iterable[RuleLike]) -> set[str]:
    """Names of all counters the given rules read."""
    names: set[str] = set()
    for rule in rules:
        counter = (rule.condition_config or {}).get("counter")
        if counter:
            names.add(counter)
    return names


# ---------------------------------------------------------------------------
# Main check function
# ---------------------------------------------------------------------------
def check_rules(
    rules: Iterable[RuleLike],
    ctx: AchievementContext,
    already_unlocked: set[int],
) -> list[int]:
    """Return the ids of rules newly satisfied by *ctx*.

    Rules bound to another trigger kind, inactive rules, rules already
    unlocked, and rules with an unknown condition type are skipped.
    """
    newly_satisfied: list[int] = []

    for rule in rules:
        if rule.trigger_kind != ctx.trigger_kind or not rule.active:
            continue
        if rule.id in already_unlocked:
            continue

        handler = CONDITION_HANDLERS.get(rule.condition_type)
        if handler is None:
            logger.warning(
                "Achievement %s has unknown condition type %r — skipped",
                rule.code, rule.condition_type,
            )
            continue

        if handler(rule.condition_config or {}, ctx):
            newly_satisfied.append(rule.id)

    return newly_satisfied
