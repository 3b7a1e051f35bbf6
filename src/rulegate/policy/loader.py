"""Load rule sets and alarms from YAML files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from rulegate.alarm import Alarm
from rulegate.identity import IdentityResolver
from rulegate.policy import codec
from rulegate.policy.models import InvalidRuleError, Rule

logger = logging.getLogger(__name__)


def load_rules(path: str | Path, directory: IdentityResolver | None = None) -> tuple[Rule, ...]:
    """Load rules from a YAML file path."""
    text = Path(path).read_text(encoding="utf-8")
    return load_rules_from_string(text, directory)


def load_rules_from_string(
    text: str,
    directory: IdentityResolver | None = None,
) -> tuple[Rule, ...]:
    """Parse a YAML document holding a list of raw rule records.

    The document is either a bare list or a mapping with a ``rules`` list.
    Records that cannot become a rule are skipped with a warning.
    """
    data = yaml.safe_load(text)
    if isinstance(data, dict):
        data = data.get("rules", [])
    if not isinstance(data, list):
        raise ValueError("Rules YAML must be a list or a mapping with 'rules'")
    return _build_rules(data, directory)


def _build_rules(records: list[Any], directory: IdentityResolver | None) -> tuple[Rule, ...]:
    rules: list[Rule] = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            logger.warning("Skipping rule #%d: not a mapping", index)
            continue
        # YAML keys may be ints (pid: 12); records are string-keyed
        record = {str(k): v for k, v in record.items()}
        try:
            rules.append(codec.decode(record, directory))
        except InvalidRuleError as e:
            logger.warning("Skipping rule #%d: %s", index, e)
    return tuple(rules)


def load_record(path: str | Path) -> dict[str, Any]:
    """Load a single raw record (a YAML mapping)."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Record YAML must be a mapping")
    return {str(k): v for k, v in data.items()}


def load_alarm(path: str | Path) -> Alarm:
    """Load an alarm from a YAML file path."""
    return load_alarm_from_string(Path(path).read_text(encoding="utf-8"))


def load_alarm_from_string(text: str) -> Alarm:
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError("Alarm YAML must be a mapping")
    return Alarm.from_record({str(k): v for k, v in data.items()})
