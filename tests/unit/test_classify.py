"""Tests for rule classification predicates."""

from __future__ import annotations

from rulegate.policy import classify
from rulegate.policy.codec import decode


def test_security_block():
    assert classify.is_security_block(decode({"type": "ip", "alarm_type": "ALARM_BRO_NOTICE"}))
    assert not classify.is_security_block(
        decode({"type": "ip", "alarm_type": "ALARM_INTEL", "action": "allow"})
    )
    assert not classify.is_security_block(decode({"type": "ip", "alarm_type": "ALARM_GAME"}))


def test_active_protect():
    assert classify.is_active_protect(decode({"type": "category", "target": "default_c"}))
    assert not classify.is_active_protect(decode({"type": "category", "target": "games"}))


def test_inbound_allow_excludes_local_types():
    assert classify.is_inbound_allow(
        decode({"type": "ip", "direction": "inbound", "action": "allow"})
    )
    assert not classify.is_inbound_allow(
        decode({"type": "intranet", "direction": "inbound", "action": "allow"})
    )


def test_inbound_firewall():
    assert classify.is_inbound_firewall(decode({"type": "mac", "direction": "inbound"}))
    assert classify.is_inbound_firewall(
        decode({"type": "mac", "target": "TAG", "direction": "inbound"})
    )
    assert not classify.is_inbound_firewall(
        decode({"type": "mac", "direction": "inbound", "tag": ["tag:1"]})
    )


def test_route_to_vpn():
    assert classify.is_route_to_vpn(
        decode({"type": "mac", "action": "route", "routeType": "hard", "wanUUID": "vpn-1"})
    )
    assert not classify.is_route_to_vpn(
        decode({"type": "mac", "action": "route", "routeType": "soft", "wanUUID": "vpn-1"})
    )


def test_internet_and_intranet_blocks():
    internet = decode({"type": "mac", "target": "TAG", "direction": "outbound"})
    intranet_in = decode({"type": "intranet", "direction": "inbound"})
    assert classify.is_blocking_internet(internet)
    assert not classify.is_inbound_internet_block(internet)
    assert classify.is_inbound_intranet_block(intranet_in)
    assert not classify.is_blocking_intranet(intranet_in)
    assert classify.is_inbound_intranet_allow(
        decode({"type": "intranet", "direction": "inbound", "action": "allow"})
    )
    assert classify.is_inbound_internet_allow(
        decode({"type": "mac", "direction": "inbound", "action": "allow"})
    )
    assert classify.is_outbound_allow(decode({"type": "intranet", "action": "allow"}))


def test_is_scheduling():
    assert classify.is_scheduling(decode({"type": "ip", "expire": 60}))
    assert classify.is_scheduling(decode({"type": "ip", "cronTime": "0 8 * * *"}))
    assert not classify.is_scheduling(decode({"type": "ip"}))


def test_needs_disturb():
    assert classify.needs_disturb(decode({"type": "category", "action": "disturb"}))
    quota = {"type": "category", "action": "app_block", "appTimeUsage": {"disturbQuota": 30}}
    assert classify.needs_disturb(decode(quota))
    assert not classify.needs_disturb(decode({**quota, "disturbTimeUsed": 30}))
    assert not classify.needs_disturb(decode({"type": "category", "action": "app_block"}))


def test_needs_disturb_does_not_mutate():
    rule = decode({"type": "category", "action": "app_block", "appTimeUsage": {"disturbQuota": 5}})
    classify.needs_disturb(rule)
    assert rule.disturb_time_used is None


def test_matched_target():
    assert classify.matched_target(decode({"type": "ip"})) == ""
    assert (
        classify.matched_target(decode({"type": "ip", "scope": ["AA:BB:CC:DD:EE:FF"]}))
        == "AA:BB:CC:DD:EE:FF"
    )
    assert classify.matched_target(decode({"type": "ip", "guids": ["wg_peer:1"]})) == "wg_peer:1"
    assert classify.matched_target(decode({"type": "ip", "tag": ["tag:9"]})) == "tag:9"
    assert classify.matched_target(decode({"type": "ip", "tag": ["intf:lan0"]})) == "network:lan0"
