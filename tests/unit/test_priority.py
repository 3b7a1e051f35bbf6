"""Tests for tiering, specificity and rule ordering."""

from __future__ import annotations

from rulegate.policy.codec import decode
from rulegate.policy.models import Ordering, Tier
from rulegate.policy.priority import compare, get_tier, specificity_level


def _rule(**fields):
    return decode({"type": "ip", "target": "1.2.3.4", **fields})


def test_allow_before_block():
    allow, block = _rule(action="allow"), _rule(action="block")
    assert compare(allow, block) is Ordering.BEFORE
    assert compare(block, allow) is Ordering.AFTER


def test_allow_before_app_block():
    assert compare(_rule(action="allow"), _rule(action="app_block")) is Ordering.BEFORE


def test_same_action_is_equal():
    assert compare(_rule(action="block"), _rule(action="block")) is Ordering.EQUAL


def test_route_vs_block_is_undefined():
    route, block = _rule(action="route"), _rule(action="block")
    assert compare(route, block) is Ordering.UNDEFINED
    assert compare(block, route) is Ordering.UNDEFINED


def test_equal_seq_allow_before_block():
    assert compare(_rule(action="allow", seq=5), _rule(action="block", seq=5)) is Ordering.BEFORE


def test_lower_seq_wins_regardless_of_action():
    assert compare(_rule(action="block", seq=1), _rule(action="allow", seq=3)) is Ordering.BEFORE


def test_specificity_levels():
    assert specificity_level(_rule(scope=["AA:BB:CC:DD:EE:FF"])) == 1
    assert specificity_level(_rule(guids=["wg_peer:x"])) == 1
    assert specificity_level(_rule(tag=["intf:lan0", "tag:3"])) == 2
    assert specificity_level(_rule(tag=["intf:lan0"])) == 3
    assert specificity_level(_rule()) == 4


def test_narrower_rule_wins_within_tier():
    device_block = _rule(action="block", scope=["AA:BB:CC:DD:EE:FF"])
    global_allow = _rule(action="allow")
    assert compare(device_block, global_allow) is Ordering.BEFORE
    assert compare(global_allow, device_block) is Ordering.AFTER


def test_derived_tiers():
    assert get_tier(_rule()) == Tier.REGULAR
    assert get_tier(_rule(seq=7)) == 7
    assert get_tier(_rule(action="block", alarm_type="ALARM_INTEL")) == Tier.HIGH
    assert get_tier(_rule(action="block", method="auto", category="intel")) == Tier.HIGH
    assert get_tier(decode({"type": "category", "target": "default_c"})) == Tier.HIGH
    assert get_tier(_rule(action="allow", direction="inbound")) == Tier.LOW
    assert get_tier(decode({"type": "mac", "direction": "inbound", "action": "block"})) == Tier.LOW


def test_security_block_outranks_regular_allow():
    security = _rule(action="block", alarm_type="ALARM_INTEL")
    allow = _rule(action="allow")
    assert compare(security, allow) is Ordering.BEFORE


def test_inbound_allow_sorts_after_regular():
    inbound_allow = _rule(action="allow", direction="inbound")
    block = _rule(action="block")
    assert compare(inbound_allow, block) is Ordering.AFTER
