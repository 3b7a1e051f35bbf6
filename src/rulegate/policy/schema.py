"""Declarative field schema for raw rule records.

Each raw key maps to a model attribute and a kind; the codec picks the parser
from the kind, so no other module needs to know how a field arrives on the
wire.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class FieldKind(enum.Enum):
    STRING = "string"
    BLANK_IS_ABSENT = "blank_is_absent"
    ARRAY = "array"
    OBJECT = "object"
    NUMBER = "number"
    FLAG = "flag"
    OPTIONAL_FLAG = "optional_flag"
    DURATION = "duration"
    SWITCH = "switch"
    PORT = "port"


@dataclass(frozen=True)
class FieldSpec:
    key: str
    attr: str
    kind: FieldKind


FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("type", "type", FieldKind.STRING),
    FieldSpec("target", "target", FieldKind.STRING),
    FieldSpec("action", "action", FieldKind.STRING),
    FieldSpec("direction", "direction", FieldKind.STRING),
    FieldSpec("pid", "pid", FieldKind.STRING),
    FieldSpec("scope", "scope", FieldKind.ARRAY),
    FieldSpec("guids", "guids", FieldKind.ARRAY),
    FieldSpec("tag", "tag", FieldKind.ARRAY),
    FieldSpec("targets", "targets", FieldKind.ARRAY),
    FieldSpec("applyRules", "apply_rules", FieldKind.ARRAY),
    FieldSpec("appTimeUsage", "app_time_usage", FieldKind.OBJECT),
    FieldSpec("disturbMethod", "disturb_method", FieldKind.OBJECT),
    FieldSpec("seq", "seq", FieldKind.NUMBER),
    FieldSpec("appTimeUsed", "app_time_used", FieldKind.NUMBER),
    FieldSpec("priority", "priority", FieldKind.NUMBER),
    FieldSpec("transferredBytes", "transferred_bytes", FieldKind.NUMBER),
    FieldSpec("transferredPackets", "transferred_packets", FieldKind.NUMBER),
    FieldSpec("avgPacketBytes", "avg_packet_bytes", FieldKind.NUMBER),
    FieldSpec("disturbTimeUsed", "disturb_time_used", FieldKind.NUMBER),
    FieldSpec("ipttl", "ipttl", FieldKind.NUMBER),
    FieldSpec("duration", "duration", FieldKind.NUMBER),
    FieldSpec("timestamp", "timestamp", FieldKind.NUMBER),
    FieldSpec("activatedTime", "activated_time", FieldKind.NUMBER),
    FieldSpec("idleTs", "idle_ts", FieldKind.NUMBER),
    FieldSpec("expire", "expire", FieldKind.DURATION),
    FieldSpec("cronTime", "cron_time", FieldKind.BLANK_IS_ABSENT),
    FieldSpec("resolver", "resolver", FieldKind.BLANK_IS_ABSENT),
    FieldSpec("disabled", "disabled", FieldKind.SWITCH),
    FieldSpec("upnp", "upnp", FieldKind.FLAG),
    FieldSpec("dnsmasq_only", "dnsmasq_only", FieldKind.FLAG),
    FieldSpec("trust", "trust", FieldKind.FLAG),
    FieldSpec("useBf", "use_bf", FieldKind.OPTIONAL_FLAG),
    FieldSpec("localPort", "local_port", FieldKind.PORT),
    FieldSpec("remotePort", "remote_port", FieldKind.PORT),
    FieldSpec("matchAppId", "match_app_id", FieldKind.STRING),
    FieldSpec("alarm_type", "alarm_type", FieldKind.STRING),
    FieldSpec("method", "method", FieldKind.STRING),
    FieldSpec("category", "category", FieldKind.STRING),
    FieldSpec("routeType", "route_type", FieldKind.STRING),
    FieldSpec("wanUUID", "wan_uuid", FieldKind.STRING),
)

ATTR_BY_KEY: dict[str, str] = {spec.key: spec.attr for spec in FIELDS}

# raw keys written by older releases, mapped to their current name
LEGACY_ALIASES: dict[str, str] = {
    "i.type": "type",
    "i.target": "target",
}
