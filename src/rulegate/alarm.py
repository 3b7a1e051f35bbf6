"""Alarm records consumed by the matcher.

Alarms are produced elsewhere; the rule engine only reads them. Payload keys
follow the ``p.*`` naming used by the alarm producers (``p.device.mac``,
``p.dest.ip``, ...).
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

BRO_NOTICE = "ALARM_BRO_NOTICE"
SSH_PASSWORD_GUESSING = "SSH::Password_Guessing"


class AlarmLike(Protocol):
    type: str
    alarm_timestamp: float

    def need_policy_match(self) -> bool: ...

    def get(self, key: str, default: Any = None) -> Any: ...

    def __contains__(self, key: object) -> bool: ...


@dataclass(frozen=True)
class Alarm:
    """A security alarm raised by the appliance."""

    type: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    alarm_timestamp: float = field(default_factory=time.time)
    policy_matchable: bool = True
    aid: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    def need_policy_match(self) -> bool:
        return self.policy_matchable

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self.payload

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Alarm:
        """Build an alarm from a flat record with ``type``/``timestamp``/``aid``."""
        if "type" not in record:
            raise ValueError("Alarm record must have a 'type'")
        payload = {
            k: v
            for k, v in record.items()
            if k not in ("type", "timestamp", "aid", "policy_matchable")
        }
        kwargs: dict[str, Any] = {}
        if record.get("timestamp") is not None:
            kwargs["alarm_timestamp"] = float(record["timestamp"])
        if record.get("aid") is not None:
            kwargs["aid"] = str(record["aid"])
        return cls(
            type=str(record["type"]),
            payload=payload,
            policy_matchable=bool(record.get("policy_matchable", True)),
            **kwargs,
        )
