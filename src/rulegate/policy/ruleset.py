"""Rule set — the in-memory owner of a collection of rules keyed by ``pid``.

Mutations are serialized by a lock and swap in a new mapping, so readers
holding a snapshot never observe a half-applied update.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from typing import Any

from rulegate.identity import IdentityResolver
from rulegate.policy import codec, temporal
from rulegate.policy.equivalence import equal
from rulegate.policy.evaluator import RuleEvaluator
from rulegate.policy.matcher import MatchContext
from rulegate.policy.models import Rule

logger = logging.getLogger(__name__)


def _pid_sort_key(pid: str) -> tuple[bool, int, str]:
    return (not pid.isdigit(), int(pid) if pid.isdigit() else 0, pid)


class RuleSet:
    """Thread-safe collection of rules; one writer at a time, lock-free reads."""

    def __init__(
        self,
        rules: Iterable[Rule] = (),
        directory: IdentityResolver | None = None,
    ) -> None:
        self._directory = directory
        self._lock = threading.Lock()
        initial: dict[str, Rule] = {}
        for rule in rules:
            if rule.pid is None:
                raise ValueError("Rules in a RuleSet must have a pid")
            initial[rule.pid] = rule
        self._rules: Mapping[str, Rule] = initial

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, pid: object) -> bool:
        return pid in self._rules

    def get(self, pid: str) -> Rule | None:
        return self._rules.get(pid)

    def snapshot(self) -> tuple[Rule, ...]:
        """All rules, ordered by pid (numeric pids first)."""
        rules = self._rules
        return tuple(rules[pid] for pid in sorted(rules, key=_pid_sort_key))

    def changed(self, raw: Mapping[str, Any]) -> bool:
        """Whether ``raw`` differs in enforcement terms from the stored rule."""
        pid = raw.get("pid")
        current = self._rules.get(str(pid)) if pid is not None else None
        return not equal(current, raw, self._directory)

    def upsert(self, raw: Mapping[str, Any]) -> tuple[Rule, bool]:
        """Insert or fully replace a rule. Returns the rule and whether it changed."""
        with self._lock:
            pid = raw.get("pid")
            if pid is None or pid == "":
                raise ValueError("Rule record has no pid")
            current = self._rules.get(str(pid))
            if current is None:
                rule = codec.decode(raw, self._directory)
                is_changed = True
            else:
                rule = codec.update(current, raw, self._directory)
                is_changed = not equal(current, rule)
            rules = dict(self._rules)
            rules[str(pid)] = rule
            self._rules = rules
        logger.debug("Upserted rule %s (changed=%s)", pid, is_changed)
        return rule, is_changed

    def remove(self, pid: str) -> Rule | None:
        with self._lock:
            if pid not in self._rules:
                return None
            rules = dict(self._rules)
            removed = rules.pop(pid)
            self._rules = rules
        logger.debug("Removed rule %s", pid)
        return removed

    def prune_expired(self, now: float | None = None) -> list[str]:
        """Drop expired rules and return their pids."""
        with self._lock:
            expired = [
                pid for pid, rule in self._rules.items() if temporal.is_expired(rule, now)
            ]
            if expired:
                self._rules = {
                    pid: rule for pid, rule in self._rules.items() if pid not in expired
                }
        if expired:
            logger.info("Pruned %d expired rule(s)", len(expired))
        return expired

    def evaluator(self, context: MatchContext | None = None) -> RuleEvaluator:
        return RuleEvaluator(self.snapshot(), context)
