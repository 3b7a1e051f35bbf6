"""Priority resolver — orders two overlapping rules.

The order is partial: two rules at the same tier and specificity whose
actions have no defined precedence compare as ``Ordering.UNDEFINED``, which
callers must treat as an unordered conflict rather than as equality.
"""

from __future__ import annotations

from rulegate.policy import classify
from rulegate.policy.models import INTF_PREFIX, TAG_PREFIX, Action, Ordering, Rule, Tier

_BLOCKING = (Action.BLOCK.value, Action.APP_BLOCK.value)


def get_tier(rule: Rule) -> float:
    """Explicit ``seq`` if set, otherwise the derived :class:`Tier`. Lower wins."""
    if rule.seq:
        return rule.seq
    if classify.is_security_block(rule) or classify.is_active_protect(rule):
        return Tier.HIGH
    if classify.is_inbound_allow(rule) or classify.is_inbound_firewall(rule):
        return Tier.LOW
    return Tier.REGULAR


def specificity_level(rule: Rule) -> int:
    """1 device/identity scope, 2 device-group tag, 3 network tag, 4 global."""
    if rule.scope or rule.guids:
        return 1
    if rule.tag:
        if any(t.startswith(TAG_PREFIX) for t in rule.tag):
            return 2
        if any(t.startswith(INTF_PREFIX) for t in rule.tag):
            return 3
    return 4


def _order(a: float, b: float) -> Ordering:
    if a < b:
        return Ordering.BEFORE
    if a > b:
        return Ordering.AFTER
    return Ordering.EQUAL


def compare(a: Rule, b: Rule) -> Ordering:
    """Whether ``a`` takes precedence over ``b``."""
    tier = _order(get_tier(a), get_tier(b))
    if tier is not Ordering.EQUAL:
        return tier

    level = _order(specificity_level(a), specificity_level(b))
    if level is not Ordering.EQUAL:
        return level

    if a.action == b.action:
        return Ordering.EQUAL
    if a.action == Action.ALLOW.value and b.action in _BLOCKING:
        return Ordering.BEFORE
    if a.action in _BLOCKING and b.action == Action.ALLOW.value:
        return Ordering.AFTER
    return Ordering.UNDEFINED
