"""Rule evaluator — matches an alarm against a rule set and picks the winner."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from rulegate.alarm import AlarmLike
from rulegate.policy.matcher import MatchContext, matches
from rulegate.policy.models import Ordering, Rule
from rulegate.policy.priority import compare

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Verdict:
    """Result of evaluating an alarm against a rule set."""

    winner: Rule | None
    matched: tuple[Rule, ...] = ()
    conflicts: tuple[Rule, ...] = ()

    @property
    def is_match(self) -> bool:
        return self.winner is not None

    @property
    def action(self) -> str | None:
        return self.winner.action if self.winner is not None else None


def select_winner(rules: Iterable[Rule]) -> tuple[Rule | None, tuple[Rule, ...]]:
    """Pick the highest-precedence rule and the rules it cannot be ordered against.

    Deterministic for a fixed input order: a later rule only replaces the
    current winner when it compares strictly BEFORE it.
    """
    candidates = tuple(rules)
    if not candidates:
        return None, ()

    winner = candidates[0]
    for rule in candidates[1:]:
        if compare(rule, winner) is Ordering.BEFORE:
            winner = rule

    conflicts = tuple(
        r for r in candidates if r is not winner and compare(r, winner) is Ordering.UNDEFINED
    )
    return winner, conflicts


class RuleEvaluator:
    """Evaluates alarms against an ordered set of rules."""

    def __init__(self, rules: Iterable[Rule], context: MatchContext | None = None) -> None:
        self.rules = tuple(rules)
        self.context = context or MatchContext()

    def matching(self, alarm: AlarmLike) -> tuple[Rule, ...]:
        """All rules that match the alarm, in rule-set order."""
        return tuple(r for r in self.rules if matches(r, alarm, self.context))

    def evaluate(self, alarm: AlarmLike) -> Verdict:
        matched = self.matching(alarm)
        winner, conflicts = select_winner(matched)
        if conflicts:
            logger.info(
                "Rule %s wins for alarm %s with %d unordered conflict(s)",
                winner.pid if winner else None,
                getattr(alarm, "aid", None),
                len(conflicts),
            )
        return Verdict(winner=winner, matched=matched, conflicts=conflicts)
