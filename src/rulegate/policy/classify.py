"""Rule classification predicates used for tiering and enforcement planning."""

from __future__ import annotations

from rulegate.policy.models import (
    GROUP_TARGET,
    INTF_PREFIX,
    TAG_PREFIX,
    Action,
    Direction,
    Rule,
    RuleType,
)

SECURITY_ALARM_TYPES = frozenset({"ALARM_INTEL", "ALARM_BRO_NOTICE", "ALARM_LARGE_UPLOAD"})
ACTIVE_PROTECT_TARGET = "default_c"

_OUTWARD = (Direction.OUTBOUND.value, Direction.BIDIRECTION.value)
_LOCAL_TYPES = frozenset(
    {RuleType.INTRANET.value, RuleType.NETWORK.value, RuleType.TAG.value, RuleType.DEVICE.value}
)


def is_security_block(rule: Rule) -> bool:
    """Block rules created from a security alarm or by intel auto-block."""
    if rule.action != Action.BLOCK.value:
        return False
    from_alarm = rule.alarm_type in SECURITY_ALARM_TYPES
    auto_block = rule.method == "auto" and rule.category == "intel"
    return from_alarm or auto_block


def is_active_protect(rule: Rule) -> bool:
    return (
        rule.target == ACTIVE_PROTECT_TARGET
        and rule.type == RuleType.CATEGORY.value
        and rule.action == Action.BLOCK.value
    )


def is_inbound_allow(rule: Rule) -> bool:
    return (
        rule.direction == Direction.INBOUND.value
        and rule.action == Action.ALLOW.value
        and rule.type not in _LOCAL_TYPES
    )


def is_inbound_firewall(rule: Rule) -> bool:
    """The catch-all inbound internet block (no target, or the group placeholder)."""
    return (
        rule.direction == Direction.INBOUND.value
        and rule.action == Action.BLOCK.value
        and (not rule.target or rule.target == GROUP_TARGET)
        and not rule.scope
        and not rule.tag
        and not rule.guids
        and rule.type == RuleType.MAC.value
    )


def is_route_to_vpn(rule: Rule) -> bool:
    return (
        rule.action == Action.ROUTE.value
        and rule.route_type == "hard"
        and bool(rule.wan_uuid)
    )


def _is(rule: Rule, action: Action, rule_type: RuleType, directions: tuple[str, ...]) -> bool:
    return (
        rule.action == action.value
        and rule.type == rule_type.value
        and rule.direction in directions
    )


def is_blocking_internet(rule: Rule) -> bool:
    return _is(rule, Action.BLOCK, RuleType.MAC, _OUTWARD)


def is_blocking_intranet(rule: Rule) -> bool:
    return _is(rule, Action.BLOCK, RuleType.INTRANET, _OUTWARD)


def is_inbound_internet_block(rule: Rule) -> bool:
    return _is(rule, Action.BLOCK, RuleType.MAC, (Direction.INBOUND.value,))


def is_inbound_internet_allow(rule: Rule) -> bool:
    return _is(rule, Action.ALLOW, RuleType.MAC, (Direction.INBOUND.value,))


def is_inbound_intranet_block(rule: Rule) -> bool:
    return _is(rule, Action.BLOCK, RuleType.INTRANET, (Direction.INBOUND.value,))


def is_inbound_intranet_allow(rule: Rule) -> bool:
    return _is(rule, Action.ALLOW, RuleType.INTRANET, (Direction.INBOUND.value,))


def is_outbound_allow(rule: Rule) -> bool:
    return (
        rule.action == Action.ALLOW.value
        and rule.direction in _OUTWARD
        and rule.type in (RuleType.MAC.value, RuleType.INTRANET.value)
    )


def is_scheduling(rule: Rule) -> bool:
    """Rules whose enforcement depends on time (expiry or a cron window)."""
    return bool(rule.expire) or bool(rule.cron_time)


def needs_disturb(rule: Rule) -> bool:
    """Whether the rule throttles rather than blocks (disturb or quota-based)."""
    if rule.action == Action.DISTURB.value:
        return True
    quota = (rule.app_time_usage or {}).get("disturbQuota")
    if rule.action != Action.APP_BLOCK.value or quota is None:
        return False
    try:
        return float(quota) > float(rule.disturb_time_used or 0)
    except (TypeError, ValueError):
        return False


def matched_target(rule: Rule) -> str:
    """Short label for who the rule applies to, for display."""
    target = ""
    if rule.scope:
        target = rule.scope[0]
    if rule.guids:
        target = rule.guids[0]
    if rule.tag:
        first = rule.tag[0]
        if first.startswith(TAG_PREFIX):
            target = first
        elif first.startswith(INTF_PREFIX):
            target = "network:" + first[len(INTF_PREFIX) :]
    return target
