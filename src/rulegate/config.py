"""Global configuration — XDG config path, config file, env vars, defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from rulegate.environment import Environment
from rulegate.identity import DEFAULT_NAMESPACES, IdentityDirectory
from rulegate.policy.matcher import MatchContext
from rulegate.policy.tags import DEFAULT_TAG_TYPES, TagType, parse_tag_types
from rulegate.policy.temporal import MIN_EXPIRE_TIME


def _default_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "rulegate"
    return Path.home() / ".config" / "rulegate"


def _split_env(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


@dataclass
class RuleGateConfig:
    """Application-wide configuration."""

    config_dir: Path = field(default_factory=_default_config_dir)
    timezone: str = "UTC"
    expire_guard: float = MIN_EXPIRE_TIME
    own_ips: list[str] = field(default_factory=list)
    own_macs: list[str] = field(default_factory=list)
    namespaces: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_NAMESPACES))
    tag_types: tuple[TagType, ...] = DEFAULT_TAG_TYPES
    verbose: bool = False

    @classmethod
    def load(cls, path: str | Path | None = None) -> RuleGateConfig:
        """Load config from ``config.yaml`` then environment variables."""
        config = cls()

        config_file = Path(path) if path else config.config_dir / "config.yaml"
        if config_file.is_file():
            config.apply_file(config_file)

        env_tz = os.environ.get("RULEGATE_TIMEZONE")
        if env_tz:
            config.timezone = env_tz

        env_guard = os.environ.get("RULEGATE_EXPIRE_GUARD")
        if env_guard:
            config.expire_guard = float(env_guard)

        env_ips = os.environ.get("RULEGATE_OWN_IPS")
        if env_ips:
            config.own_ips = _split_env(env_ips)

        env_macs = os.environ.get("RULEGATE_OWN_MACS")
        if env_macs:
            config.own_macs = _split_env(env_macs)

        return config

    def apply_file(self, path: Path) -> None:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must be a mapping")

        if "timezone" in data:
            self.timezone = str(data["timezone"])
        if "expire_guard" in data:
            self.expire_guard = float(data["expire_guard"])
        if "own_ips" in data:
            self.own_ips = [str(ip) for ip in data["own_ips"] or []]
        if "own_macs" in data:
            self.own_macs = [str(mac) for mac in data["own_macs"] or []]
        if "namespaces" in data:
            if not isinstance(data["namespaces"], dict):
                raise ValueError("namespaces must be a mapping")
            self.namespaces = {str(k): str(v) for k, v in data["namespaces"].items()}
        if "tag_types" in data:
            self.tag_types = parse_tag_types(data["tag_types"])

    def environment(self) -> Environment:
        return Environment(
            timezone=self.timezone,
            own_ips=frozenset(self.own_ips),
            own_macs=frozenset(mac.upper() for mac in self.own_macs),
        )

    def directory(self) -> IdentityDirectory:
        return IdentityDirectory(self.namespaces)

    def match_context(self, directory: IdentityDirectory | None = None) -> MatchContext:
        return MatchContext(
            directory=directory or self.directory(),
            environment=self.environment(),
            tag_types=self.tag_types,
        )
