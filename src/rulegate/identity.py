"""Identity directory — resolves GUID references to non-device principals.

A GUID has the form ``<namespace>:<uid>`` (e.g. ``wg_peer:Zm9v``). Each
namespace names the alarm field that carries the identity's unique id, which
is what the matcher compares against.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACES: dict[str, str] = {
    "wg_peer": "p.device.wgPeer",
    "vpn_profile": "p.device.vpnProfile",
}


class Identity(Protocol):
    def unique_id(self) -> str: ...

    def alarm_key_name(self) -> str: ...


class IdentityResolver(Protocol):
    def is_guid(self, value: str) -> bool: ...

    def resolve(self, guid: str) -> Identity | None: ...


@dataclass(frozen=True)
class DirectoryIdentity:
    """An identity registered in an :class:`IdentityDirectory`."""

    namespace: str
    uid: str
    alarm_key: str

    @property
    def guid(self) -> str:
        return f"{self.namespace}:{self.uid}"

    def unique_id(self) -> str:
        return self.uid

    def alarm_key_name(self) -> str:
        return self.alarm_key


class IdentityDirectory:
    """In-memory identity directory keyed by GUID."""

    def __init__(self, namespaces: Mapping[str, str] | None = None) -> None:
        self._namespaces = dict(
            DEFAULT_NAMESPACES if namespaces is None else namespaces
        )
        self._identities: dict[str, DirectoryIdentity] = {}
        self._lock = threading.Lock()

    @property
    def namespaces(self) -> tuple[str, ...]:
        return tuple(self._namespaces)

    def register(self, namespace: str, uid: str) -> DirectoryIdentity:
        """Add an identity and return it. Raises ValueError for unknown namespaces."""
        if namespace not in self._namespaces:
            raise ValueError(f"Unknown identity namespace: {namespace}")
        identity = DirectoryIdentity(
            namespace=namespace,
            uid=uid,
            alarm_key=self._namespaces[namespace],
        )
        with self._lock:
            self._identities[identity.guid] = identity
        logger.debug("Registered identity %s", identity.guid)
        return identity

    def unregister(self, guid: str) -> None:
        with self._lock:
            self._identities.pop(guid, None)

    def is_guid(self, value: str) -> bool:
        if not isinstance(value, str):
            return False
        namespace, sep, uid = value.partition(":")
        return bool(sep) and bool(uid) and namespace in self._namespaces

    def resolve(self, guid: str) -> DirectoryIdentity | None:
        return self._identities.get(guid)
