"""Temporal validity — expiration and recurring schedule windows."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import CroniterBadCronError, CroniterBadDateError, croniter

from rulegate.policy.models import Rule

logger = logging.getLogger(__name__)

# A rule expiring within this many seconds is not worth enforcing.
MIN_EXPIRE_TIME = 60


@dataclass(frozen=True)
class IdleInfo:
    """How far away a rule's idle deadline (``idleTs``) is."""

    seconds_from_now: float
    expire_soon: bool


def when_expired(rule: Rule) -> float | None:
    """Absolute epoch time at which the rule lapses, or None if it never does."""
    if not rule.expire:
        return None
    activated = rule.activated_time or rule.timestamp
    return activated + rule.expire


def expire_diff_from_now(rule: Rule, now: float | None = None) -> float | None:
    deadline = when_expired(rule)
    if deadline is None:
        return None
    return deadline - (time.time() if now is None else now)


def is_expired(rule: Rule, now: float | None = None) -> bool:
    deadline = when_expired(rule)
    if deadline is None:
        return False
    return deadline < (time.time() if now is None else now)


def will_expire_soon(
    rule: Rule,
    now: float | None = None,
    guard: float = MIN_EXPIRE_TIME,
) -> bool:
    deadline = when_expired(rule)
    if deadline is None:
        return False
    return deadline < (time.time() if now is None else now) + guard


def is_scheduled(rule: Rule) -> bool:
    """Whether the rule is only active within a recurring cron window."""
    return bool(rule.cron_time) and bool(rule.duration)


def last_fire_before(cron_time: str, event_time: float, tz: str = "UTC") -> float:
    """Epoch time of the latest cron fire at or before ``event_time``.

    Raises ValueError for an invalid expression or timezone.
    """
    try:
        zone = ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {tz}") from e
    # get_prev is strictly before its start and fires fall on whole seconds;
    # start just past the truncated event so an exact fire is included
    start = datetime.fromtimestamp(math.floor(event_time) + 1, tz=zone)
    try:
        return float(croniter(cron_time, start).get_prev(float))
    except (CroniterBadCronError, CroniterBadDateError, KeyError) as e:
        raise ValueError(f"Invalid cron expression {cron_time!r}: {e}") from e


def in_schedule(rule: Rule, event_time: float, tz: str = "UTC") -> bool:
    """True when ``event_time`` falls in ``[last fire, last fire + duration)``."""
    if not is_scheduled(rule):
        return False
    try:
        last = last_fire_before(rule.cron_time or "", event_time, tz)
    except ValueError:
        logger.warning("Rule %s has an unusable schedule", rule.pid, exc_info=True)
        return False
    logger.debug(
        "last fire: %s, duration: %s, event time: %s", last, rule.duration, event_time
    )
    return last <= event_time < last + float(rule.duration or 0)


def idle_info(
    rule: Rule,
    now: float | None = None,
    guard: float = MIN_EXPIRE_TIME,
) -> IdleInfo | None:
    if not rule.idle_ts:
        return None
    current = time.time() if now is None else now
    return IdleInfo(
        seconds_from_now=rule.idle_ts - current,
        expire_soon=rule.idle_ts < current + guard,
    )
