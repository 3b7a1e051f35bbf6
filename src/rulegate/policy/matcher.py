"""Matcher — decides whether a single rule applies to an alarm.

The checks run in a fixed order and stop at the first miss: disabled,
alarm kind, expiration, schedule, direction, scope, identities, tags, ports,
the SSH self-suppression carve-out, and finally the type-specific target
test.
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from rulegate.alarm import BRO_NOTICE, SSH_PASSWORD_GUESSING, AlarmLike
from rulegate.environment import Environment
from rulegate.identity import IdentityDirectory, IdentityResolver
from rulegate.policy import temporal
from rulegate.policy.addresses import ip_in_network, is_mac_address, port_in_range
from rulegate.policy.models import INTF_PREFIX, Direction, Rule, RuleType
from rulegate.policy.tags import DEFAULT_TAG_TYPES, TagType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchContext:
    """The collaborators a match needs beyond the rule and the alarm."""

    directory: IdentityResolver = field(default_factory=IdentityDirectory)
    environment: Environment = field(default_factory=Environment)
    tag_types: tuple[TagType, ...] = DEFAULT_TAG_TYPES


def matches(rule: Rule, alarm: AlarmLike, context: MatchContext | None = None) -> bool:
    """Evaluate ``rule`` against ``alarm``. Never raises."""
    ctx = context or MatchContext()
    try:
        return _matches(rule, alarm, ctx)
    except Exception:
        logger.exception("Failed to match rule %s against alarm", rule.pid)
        return False


def _matches(rule: Rule, alarm: AlarmLike, ctx: MatchContext) -> bool:
    logger.debug("Comparing rule %s with alarm %s", rule.pid, getattr(alarm, "aid", None))

    if rule.disabled:
        logger.debug("mismatch, rule disabled")
        return False

    if not alarm.need_policy_match():
        logger.debug("mismatch, alarm type %s is not policy matchable", alarm.type)
        return False

    if temporal.is_expired(rule):
        logger.debug("mismatch, rule expired")
        return False

    if temporal.is_scheduled(rule) and not temporal.in_schedule(
        rule, alarm.alarm_timestamp, ctx.environment.timezone
    ):
        logger.debug("mismatch, rule not on schedule")
        return False

    if rule.direction == Direction.INBOUND.value:
        # alarms default to locally initiated traffic
        if str(alarm.get("p.local_is_client") or "1") == "1":
            logger.debug("mismatch, direction")
            return False

    if rule.scope and alarm.get("p.device.mac") not in rule.scope:
        logger.debug("mismatch, device not in scope")
        return False

    if rule.guids and not any(_identity_matches(g, alarm, ctx) for g in rule.guids):
        logger.debug("mismatch, identity")
        return False

    if rule.tag and not _tag_matches(rule.tag, alarm, ctx.tag_types):
        logger.debug("mismatch, interface/tag")
        return False

    if rule.local_port and alarm.get("p.device.port"):
        if not port_in_range(rule.local_port, alarm.get("p.device.port")):
            logger.debug("mismatch, local port")
            return False

    if rule.remote_port and alarm.get("p.dest.port"):
        if not port_in_range(rule.remote_port, alarm.get("p.dest.port")):
            logger.debug("mismatch, remote port")
            return False

    if (
        alarm.type == BRO_NOTICE
        and alarm.get("p.noticeType") == SSH_PASSWORD_GUESSING
        and ctx.environment.is_my_ip(alarm.get("p.dest.ip"))
    ):
        logger.debug("mismatch, SSH password guessing against the box itself")
        return False

    rule_type = rule.rule_type
    if rule_type is None:
        logger.debug("mismatch, unknown rule type %s", rule.type)
        return False
    target_test = _TARGET_TESTS[rule_type]
    if target_test is None:
        return False
    return target_test(rule, alarm, ctx)


def _identity_matches(guid: str, alarm: AlarmLike, ctx: MatchContext) -> bool:
    try:
        identity = ctx.directory.resolve(guid)
        if identity is None:
            return False
        value = alarm.get(identity.alarm_key_name())
        return bool(value) and value == identity.unique_id()
    except Exception:
        logger.warning("Failed to resolve identity %s", guid, exc_info=True)
        return False


def _tag_matches(tags: tuple[str, ...], alarm: AlarmLike, tag_types: Iterable[TagType]) -> bool:
    if "p.intf.id" in alarm and f"{INTF_PREFIX}{alarm.get('p.intf.id')}" in tags:
        return True
    for tag_type in tag_types:
        ids = alarm.get(tag_type.alarm_id_key)
        if not isinstance(ids, (list, tuple, set, frozenset)):
            continue
        if any(tag_type.rule_tag(tid) in tags for tid in ids):
            return True
    return False


# ---------------------------------------------------------------------------
# Type-specific target tests
# ---------------------------------------------------------------------------


def _match_ip(rule: Rule, alarm: AlarmLike, ctx: MatchContext) -> bool:
    dest = alarm.get("p.dest.ip")
    return bool(dest) and dest == rule.target


def _match_net(rule: Rule, alarm: AlarmLike, ctx: MatchContext) -> bool:
    dest = alarm.get("p.dest.ip")
    return bool(dest) and ip_in_network(dest, rule.target)


def _match_domain(rule: Rule, alarm: AlarmLike, ctx: MatchContext) -> bool:
    name = alarm.get("p.dest.name")
    if not name or not isinstance(name, str):
        return False
    return name == rule.target or fnmatch.fnmatchcase(name, f"*.{rule.target}")


def _match_mac(rule: Rule, alarm: AlarmLike, ctx: MatchContext) -> bool:
    mac = alarm.get("p.device.mac")
    if not mac:
        return False
    if is_mac_address(rule.target):
        return mac == rule.target
    # group placeholder: scope/tag were already checked above; rules never
    # take effect on the box itself
    return not ctx.environment.is_my_mac(mac)


def _match_category(rule: Rule, alarm: AlarmLike, ctx: MatchContext) -> bool:
    if not rule.match_app_id:
        category = alarm.get("p.dest.category")
        return bool(category) and category == rule.target
    app_id = alarm.get("p.dest.app.id")
    app = alarm.get("p.dest.app")
    if app_id and app_id == rule.match_app_id:
        return True
    return isinstance(app, str) and app.lower() == rule.match_app_id


def _match_device_port(rule: Rule, alarm: AlarmLike, ctx: MatchContext) -> bool:
    mac = alarm.get("p.device.mac")
    if not mac:
        return False
    port, protocol = alarm.get("p.device.port"), alarm.get("p.protocol")
    if port and protocol:
        return f"{mac}:{port}:{protocol}" == rule.target
    port, protocol = alarm.get("p.upnp.private.port"), alarm.get("p.upnp.protocol")
    if port and protocol:
        return f"{mac}:{port}:{protocol}" == rule.target
    return False


def _match_remote_port(rule: Rule, alarm: AlarmLike, ctx: MatchContext) -> bool:
    port = alarm.get("p.dest.port")
    return bool(port) and port_in_range(rule.target, port)


def _match_country(rule: Rule, alarm: AlarmLike, ctx: MatchContext) -> bool:
    country = alarm.get("p.dest.country")
    return bool(country) and country == rule.target


_TargetTest = Callable[[Rule, AlarmLike, MatchContext], bool]

# None marks types enforced elsewhere that never match an alarm directly.
_TARGET_TESTS: dict[RuleType, _TargetTest | None] = {
    RuleType.IP: _match_ip,
    RuleType.NET: _match_net,
    RuleType.DNS: _match_domain,
    RuleType.DOMAIN: _match_domain,
    RuleType.MAC: _match_mac,
    RuleType.CATEGORY: _match_category,
    RuleType.DEVICE_PORT: _match_device_port,
    RuleType.REMOTE_PORT: _match_remote_port,
    RuleType.COUNTRY: _match_country,
    RuleType.INTRANET: None,
    RuleType.NETWORK: None,
    RuleType.TAG: None,
    RuleType.DEVICE: None,
}

_unhandled = set(RuleType) - set(_TARGET_TESTS)
if _unhandled:
    raise ImportError(f"Matcher has no target test for rule types: {sorted(_unhandled)}")
