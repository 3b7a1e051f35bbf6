"""Address and port helpers shared by the codec and the matcher."""

from __future__ import annotations

import functools
import ipaddress
import json
import re
from typing import Any

_MAC_RE = re.compile(r"^([0-9A-Fa-f]{2}:){5}[0-9A-Fa-f]{2}$")


def is_mac_address(value: Any) -> bool:
    return isinstance(value, str) and _MAC_RE.match(value) is not None


@functools.lru_cache(maxsize=1024)
def _network(cidr: str) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
    return ipaddress.ip_network(cidr, strict=False)


def ip_in_network(ip: str, cidr: str) -> bool:
    """CIDR containment; malformed addresses never match."""
    try:
        return ipaddress.ip_address(ip) in _network(cidr)
    except (TypeError, ValueError):
        return False


def parse_port_range(spec: Any) -> tuple[float, float] | None:
    """Parse ``"555"`` or ``"555-666"`` into inclusive bounds."""
    parts = str(spec if spec is not None else "").split("-")
    if len(parts) == 1:
        parts.append(parts[0])
    if len(parts) != 2:
        return None
    try:
        return float(parts[0]), float(parts[1])
    except ValueError:
        return None


def parse_port_values(port: Any) -> list[float] | None:
    """Normalize an alarm port field: a scalar, a list, or a JSON list string."""
    if isinstance(port, str):
        try:
            port = json.loads(port)
        except ValueError:
            return None
    if isinstance(port, bool):
        return None
    if isinstance(port, (int, float)):
        return [float(port)]
    if isinstance(port, (list, tuple, set, frozenset)):
        values = []
        for p in port:
            if isinstance(p, bool):
                return None
            try:
                values.append(float(p))
            except (TypeError, ValueError):
                return None
        return values
    return None


def port_in_range(spec: Any, port: Any) -> bool:
    """True when the port (or every port of a set) lies within ``spec``."""
    bounds = parse_port_range(spec)
    values = parse_port_values(port)
    if bounds is None or not values:
        return False
    low, high = bounds
    return all(low <= p <= high for p in values)
