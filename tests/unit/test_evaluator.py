"""Tests for the rule evaluator — winner selection across matching rules."""

from __future__ import annotations

from collections.abc import Callable

from rulegate.alarm import Alarm
from rulegate.policy.codec import decode
from rulegate.policy.evaluator import RuleEvaluator, select_winner
from rulegate.policy.matcher import MatchContext

MakeAlarm = Callable[..., Alarm]


def _rule(pid: str, **fields):
    return decode({"pid": pid, "type": "ip", "target": "1.2.3.4", **fields})


def test_allow_wins_over_block(make_alarm: MakeAlarm, context: MatchContext):
    rules = [_rule("1", action="block"), _rule("2", action="allow")]
    verdict = RuleEvaluator(rules, context).evaluate(make_alarm(p__dest__ip="1.2.3.4"))
    assert verdict.is_match
    assert verdict.winner is not None
    assert verdict.winner.pid == "2"
    assert verdict.action == "allow"
    assert [r.pid for r in verdict.matched] == ["1", "2"]
    assert verdict.conflicts == ()


def test_no_match(make_alarm: MakeAlarm, context: MatchContext):
    verdict = RuleEvaluator([_rule("1")], context).evaluate(make_alarm(p__dest__ip="9.9.9.9"))
    assert not verdict.is_match
    assert verdict.winner is None
    assert verdict.action is None
    assert verdict.matched == ()


def test_unordered_rules_reported_as_conflicts(make_alarm: MakeAlarm, context: MatchContext):
    rules = [_rule("1", action="route"), _rule("2", action="block")]
    verdict = RuleEvaluator(rules, context).evaluate(make_alarm(p__dest__ip="1.2.3.4"))
    assert verdict.winner is not None
    assert verdict.winner.pid == "1"
    assert [r.pid for r in verdict.conflicts] == ["2"]


def test_equal_rules_are_not_conflicts():
    winner, conflicts = select_winner([_rule("1"), _rule("2")])
    assert winner is not None
    assert winner.pid == "1"
    assert conflicts == ()


def test_selection_is_deterministic():
    rules = [_rule("1", action="route"), _rule("2", action="block"), _rule("3", seq=1)]
    first = select_winner(rules)
    second = select_winner(list(rules))
    assert first == second
    assert first[0] is not None
    assert first[0].pid == "3"


def test_select_winner_empty():
    assert select_winner([]) == (None, ())


def test_default_context(make_alarm: MakeAlarm):
    evaluator = RuleEvaluator([_rule("1")])
    assert evaluator.evaluate(make_alarm(p__dest__ip="1.2.3.4")).is_match
