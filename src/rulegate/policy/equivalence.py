"""Equivalence — has a rule's enforcement-relevant shape changed?

Used when reconciling persisted rules against what is currently enforced.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any

from rulegate.identity import IdentityResolver
from rulegate.policy import codec
from rulegate.policy.addresses import is_mac_address
from rulegate.policy.models import Rule, RuleType, Tier

COMPARE_FIELDS: tuple[str, ...] = (
    "type", "target", "expire", "cronTime", "remotePort", "localPort",
    "protocol", "direction", "action", "upnp", "dnsmasq_only", "trust",
    "trafficDirection", "transferredBytes", "transferredPackets",
    "avgPacketBytes", "parentRgId", "targetRgId", "ipttl", "wanUUID",
    "owanUUID", "seq", "routeType", "resolver", "origDst", "origDport",
    "snatIP", "flowIsolation", "dscpClass", "appTimeUsage", "useBf",
)  # fmt: skip

SET_FIELDS: tuple[str, ...] = ("scope", "tag", "targets", "guids")


def field_equal(a: Any, b: Any, name: str) -> bool:
    if name == "seq":
        return (a or Tier.REGULAR) == (b or Tier.REGULAR)
    if a == b and type(a) is type(b):
        return True
    # "" does not survive a round trip through the store
    if (a is None and b == "") or (b is None and a == ""):
        return True
    if isinstance(a, (Mapping, list, tuple)) and isinstance(b, (Mapping, list, tuple)):
        return _canonical(a) == _canonical(b)
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return not isinstance(a, bool) and not isinstance(b, bool) and a == b
    return False


def _canonical(value: Any) -> str:
    if isinstance(value, Mapping):
        value = dict(value)
    elif isinstance(value, tuple):
        value = list(value)
    return json.dumps(value, sort_keys=True, default=str)


def _as_set(values: Iterable[Any] | None) -> frozenset[Any]:
    return frozenset(
        v if isinstance(v, str) else json.dumps(v, sort_keys=True, default=str)
        for v in values or ()
    )


def equal(
    a: Rule | None,
    b: Rule | Mapping[str, Any] | None,
    directory: IdentityResolver | None = None,
) -> bool:
    """Structural equality on the fields that affect enforcement.

    ``b`` may be a raw record; it is normalized first so legacy and
    stringified forms compare equal to their decoded counterparts.
    """
    if a is None or b is None:
        return False
    if not isinstance(b, Rule):
        b = codec.decode(b, directory)

    for name in COMPARE_FIELDS:
        if not field_equal(a.get(name), b.get(name), name):
            return False

    # a MAC rule implicitly scopes to its own target
    ignore_scope = a.type == RuleType.MAC.value and is_mac_address(a.target)
    for name in SET_FIELDS:
        if name == "scope" and ignore_scope:
            continue
        if _as_set(a.get(name)) != _as_set(b.get(name)):
            return False
    return True
