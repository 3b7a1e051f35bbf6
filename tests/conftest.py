"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from rulegate.alarm import Alarm
from rulegate.environment import Environment
from rulegate.identity import IdentityDirectory
from rulegate.policy.matcher import MatchContext

DEVICE_MAC = "AA:BB:CC:DD:EE:FF"
BOX_MAC = "20:6D:31:00:00:01"
BOX_IP = "192.168.1.1"


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def rules_path(fixtures_dir: Path) -> Path:
    return fixtures_dir / "rules.yaml"


@pytest.fixture
def alarm_path(fixtures_dir: Path) -> Path:
    return fixtures_dir / "alarm.yaml"


@pytest.fixture
def directory() -> IdentityDirectory:
    directory = IdentityDirectory()
    directory.register("wg_peer", "peer-1")
    return directory


@pytest.fixture
def environment() -> Environment:
    return Environment(
        timezone="UTC",
        own_ips=frozenset({BOX_IP}),
        own_macs=frozenset({BOX_MAC}),
    )


@pytest.fixture
def context(directory: IdentityDirectory, environment: Environment) -> MatchContext:
    return MatchContext(directory=directory, environment=environment)


@pytest.fixture
def make_alarm() -> Callable[..., Alarm]:
    def _make(alarm_type: str = "ALARM_INTEL", **payload: Any) -> Alarm:
        fields = {"p.device.mac": DEVICE_MAC, "p.local_is_client": "1"}
        fields.update({k.replace("__", "."): v for k, v in payload.items()})
        return Alarm(type=alarm_type, payload=fields)

    return _make
