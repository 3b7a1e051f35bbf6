"""Rule data models — immutable dataclasses used across the entire codebase."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from rulegate.policy.schema import ATTR_BY_KEY

INTF_PREFIX = "intf:"
TAG_PREFIX = "tag:"

# target placeholder used by group/network internet blocks (type "mac")
GROUP_TARGET = "TAG"


class RuleType(str, enum.Enum):
    """Known rule types. Unknown types are stored verbatim on the rule."""

    IP = "ip"
    NET = "net"
    DNS = "dns"
    DOMAIN = "domain"
    MAC = "mac"
    CATEGORY = "category"
    DEVICE_PORT = "devicePort"
    REMOTE_PORT = "remotePort"
    COUNTRY = "country"
    INTRANET = "intranet"
    NETWORK = "network"
    TAG = "tag"
    DEVICE = "device"


RESERVED_TYPE = "internet"


class Direction(str, enum.Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"
    BIDIRECTION = "bidirection"


class Action(str, enum.Enum):
    """Common rule actions. Other action strings are carried through as-is."""

    BLOCK = "block"
    ALLOW = "allow"
    APP_BLOCK = "app_block"
    ROUTE = "route"
    DISTURB = "disturb"


class Tier(enum.IntEnum):
    """Derived priority bucket when a rule has no explicit ``seq``. Lower wins."""

    HIGH = 1
    REGULAR = 2
    LOW = 3


class Ordering(enum.Enum):
    """Outcome of comparing two rules' priority."""

    BEFORE = "before"
    AFTER = "after"
    EQUAL = "equal"
    UNDEFINED = "undefined"


class InvalidRuleError(ValueError):
    """Raised when a raw record cannot become a rule at all."""


@dataclass(frozen=True)
class FieldParseWarning:
    """A recoverable problem with one field of a raw record."""

    field: str
    value: Any
    reason: str

    def __str__(self) -> str:
        return f"{self.field}={self.value!r}: {self.reason}"


@dataclass(frozen=True)
class Rule:
    """A single normalized policy rule.

    Built by :func:`rulegate.policy.codec.decode`; never mutated afterwards.
    Collections are tuples, and empty collections are stored as ``None``.
    """

    type: str
    target: str = ""
    action: str = Action.BLOCK.value
    direction: str = Direction.BIDIRECTION.value
    pid: str | None = None

    scope: tuple[str, ...] | None = None
    guids: tuple[str, ...] | None = None
    tag: tuple[str, ...] | None = None
    targets: tuple[Any, ...] | None = None
    apply_rules: tuple[Any, ...] | None = None

    seq: float | None = None
    expire: int | None = None
    cron_time: str | None = None
    duration: float | None = None
    timestamp: float = 0.0
    activated_time: float | None = None
    idle_ts: float | None = None
    disabled: bool = False

    local_port: str | None = None
    remote_port: str | None = None

    upnp: bool = False
    dnsmasq_only: bool = False
    trust: bool = False
    use_bf: bool | None = None

    app_time_usage: Mapping[str, Any] | None = None
    disturb_method: Mapping[str, Any] | None = None
    match_app_id: str | None = None

    app_time_used: float | None = None
    priority: float | None = None
    transferred_bytes: float | None = None
    transferred_packets: float | None = None
    avg_packet_bytes: float | None = None
    disturb_time_used: float | None = None
    ipttl: float | None = None

    alarm_type: str | None = None
    method: str | None = None
    category: str | None = None
    route_type: str | None = None
    wan_uuid: str | None = None
    resolver: str | None = None

    extra: Mapping[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Read a field by its raw record key (``cronTime``, ``protocol``...)."""
        attr = ATTR_BY_KEY.get(key)
        if attr is not None:
            value = getattr(self, attr)
            return default if value is None else value
        return self.extra.get(key, default)

    @property
    def rule_type(self) -> RuleType | None:
        """The known :class:`RuleType`, or None for an unrecognised type."""
        try:
            return RuleType(self.type)
        except ValueError:
            return None
