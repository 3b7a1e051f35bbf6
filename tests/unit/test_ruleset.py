"""Tests for the rule set."""

from __future__ import annotations

import threading
import time

import pytest

from rulegate.policy.codec import decode
from rulegate.policy.ruleset import RuleSet

RECORD = {"pid": "1", "type": "ip", "target": "1.2.3.4", "action": "block"}


def test_upsert_inserts_then_detects_change():
    rules = RuleSet()
    rule, changed = rules.upsert(RECORD)
    assert changed
    assert rule.pid == "1"
    assert "1" in rules
    assert len(rules) == 1

    _, changed = rules.upsert({**RECORD, "timestamp": 5})
    assert not changed

    updated, changed = rules.upsert({**RECORD, "action": "allow"})
    assert changed
    assert rules.get("1") is updated


def test_changed_against_stored_rule():
    rules = RuleSet()
    rules.upsert(RECORD)
    assert not rules.changed({**RECORD, "upnp": "false"})
    assert rules.changed({**RECORD, "target": "5.6.7.8"})
    assert rules.changed({**RECORD, "pid": "2"})


def test_upsert_without_pid_raises():
    with pytest.raises(ValueError, match="pid"):
        RuleSet().upsert({"type": "ip"})


def test_init_rejects_rules_without_pid():
    with pytest.raises(ValueError, match="pid"):
        RuleSet([decode({"type": "ip"})])


def test_snapshot_orders_numeric_pids():
    rules = RuleSet()
    for pid in ("10", "2", "abc", "1"):
        rules.upsert({**RECORD, "pid": pid})
    assert [r.pid for r in rules.snapshot()] == ["1", "2", "10", "abc"]


def test_snapshot_is_stable_across_updates():
    rules = RuleSet()
    rules.upsert(RECORD)
    before = rules.snapshot()
    rules.upsert({**RECORD, "pid": "2"})
    assert len(before) == 1
    assert len(rules.snapshot()) == 2


def test_remove():
    rules = RuleSet()
    rules.upsert(RECORD)
    removed = rules.remove("1")
    assert removed is not None
    assert removed.pid == "1"
    assert rules.remove("1") is None
    assert len(rules) == 0


def test_prune_expired():
    now = time.time()
    rules = RuleSet()
    rules.upsert({**RECORD, "expire": 60, "timestamp": now - 120})
    rules.upsert({**RECORD, "pid": "2", "expire": 60, "timestamp": now})
    rules.upsert({**RECORD, "pid": "3"})
    assert rules.prune_expired(now) == ["1"]
    assert [r.pid for r in rules.snapshot()] == ["2", "3"]


def test_evaluator_uses_snapshot(make_alarm):
    rules = RuleSet()
    rules.upsert(RECORD)
    verdict = rules.evaluator().evaluate(make_alarm(p__dest__ip="1.2.3.4"))
    assert verdict.winner is not None
    assert verdict.winner.pid == "1"


def test_concurrent_upserts():
    rules = RuleSet()

    def worker(offset: int) -> None:
        for i in range(50):
            rules.upsert({**RECORD, "pid": str(offset * 100 + i)})

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(rules) == 200
