"""Environment collaborator — the appliance's own addresses and timezone."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Environment:
    """What the rule engine needs to know about the box it runs on."""

    timezone: str = "UTC"
    own_ips: frozenset[str] = frozenset()
    own_macs: frozenset[str] = frozenset()

    def is_my_ip(self, ip: str | None) -> bool:
        return bool(ip) and ip in self.own_ips

    def is_my_mac(self, mac: str | None) -> bool:
        # own_macs is stored upper case, as rule targets are
        return bool(mac) and mac.upper() in self.own_macs
