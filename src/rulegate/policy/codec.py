"""Codec — raw (persisted / API) records to Rule objects and back.

Raw records are loosely typed: any value may arrive as a native structure or
as a string (booleans as ``"true"``, arrays and objects as JSON). Decoding is
driven by :data:`rulegate.policy.schema.FIELDS` and never fails on a bad
sub-field; the field is dropped or defaulted and a
:class:`~rulegate.policy.models.FieldParseWarning` is recorded instead.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import math
import time
from collections.abc import Callable, Mapping
from typing import Any

from rulegate.identity import IdentityDirectory, IdentityResolver
from rulegate.policy.addresses import is_mac_address
from rulegate.policy.models import (
    RESERVED_TYPE,
    Action,
    Direction,
    FieldParseWarning,
    InvalidRuleError,
    Rule,
    RuleType,
)
from rulegate.policy.schema import FIELDS, LEGACY_ALIASES, FieldKind, FieldSpec

logger = logging.getLogger(__name__)

_SPEC_BY_KEY: dict[str, FieldSpec] = {spec.key: spec for spec in FIELDS}

Warnings = list[FieldParseWarning]


def decode(raw: Mapping[str, Any], directory: IdentityResolver | None = None) -> Rule:
    """Build a Rule from a raw record, logging any recovered field problems."""
    rule, warnings = decode_with_warnings(raw, directory)
    for warning in warnings:
        logger.warning("Rule %s: dropped malformed field %s", rule.pid, warning)
    return rule


def decode_with_warnings(
    raw: Mapping[str, Any],
    directory: IdentityResolver | None = None,
) -> tuple[Rule, tuple[FieldParseWarning, ...]]:
    """Like :func:`decode`, but return the recovered problems instead of logging.

    Raises InvalidRuleError when the record is empty, has no type, or uses the
    reserved ``internet`` type.
    """
    if not isinstance(raw, Mapping) or not raw:
        raise InvalidRuleError("Empty rule payload")

    record = _unflatten(_migrate_legacy(raw))

    rule_type = record.get("type")
    if rule_type is None or rule_type == "":
        raise InvalidRuleError("Invalid rule payload: missing type")
    if rule_type == RESERVED_TYPE:
        raise InvalidRuleError(f"Invalid rule type {rule_type}")

    warnings: Warnings = []
    values: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in record.items():
        spec = _SPEC_BY_KEY.get(key)
        if spec is None:
            extra[key] = _store_form(value)
            continue
        parsed = _PARSERS[spec.kind](key, value, warnings)
        if parsed is not None:
            values[spec.attr] = parsed

    if not isinstance(values.get("type"), str) or not values["type"]:
        raise InvalidRuleError(f"Invalid rule type {rule_type!r}")

    values["direction"] = values.get("direction") or Direction.BIDIRECTION.value
    values["action"] = values.get("action") or Action.BLOCK.value

    # without a directory only the default namespaces count as GUIDs
    _split_scope(values, directory or IdentityDirectory())

    if "target" in values:
        values["target"] = _canonical_target(values["type"], values["target"])

    if not values.get("timestamp"):
        values["timestamp"] = time.time()

    values["extra"] = extra
    return Rule(**values), tuple(warnings)


def update(rule: Rule, raw: Mapping[str, Any], directory: IdentityResolver | None = None) -> Rule:
    """Full-field replacement of ``rule`` by a newer raw record.

    The persistence id carries over when the newer record does not name one.
    """
    replacement = decode(raw, directory)
    if replacement.pid is None and rule.pid is not None:
        replacement = dataclasses.replace(replacement, pid=rule.pid)
    return replacement


def encode(rule: Rule) -> dict[str, str]:
    """Render a Rule as a flat string record ready for a key-value store."""
    record: dict[str, str] = {}
    for spec in FIELDS:
        value = getattr(rule, spec.attr)
        if value is None:
            continue
        rendered = _render(spec.kind, value)
        if rendered is not None:
            record[spec.key] = rendered
    for key, value in rule.extra.items():
        _flatten_into(record, key, value)
    return record


# ---------------------------------------------------------------------------
# Record-level passes
# ---------------------------------------------------------------------------


def _migrate_legacy(raw: Mapping[str, Any]) -> dict[str, Any]:
    record = dict(raw)
    for old, new in LEGACY_ALIASES.items():
        if old in record:
            value = record.pop(old)
            if value:
                record[new] = value
    return record


def _unflatten(record: dict[str, Any]) -> dict[str, Any]:
    """Fold dotted keys (``appTimeUsage.quota``) back into nested mappings."""
    result: dict[str, Any] = {}
    dotted: list[tuple[str, Any]] = []
    for key, value in record.items():
        if isinstance(key, str) and "." in key:
            dotted.append((key, value))
        else:
            result[key] = value

    for key, value in dotted:
        parts = key.split(".")
        node = result
        for part in parts[:-1]:
            child = node.get(part)
            if child is None:
                child = node[part] = {}
            elif isinstance(child, Mapping):
                child = node[part] = dict(child)
            else:
                # collides with a scalar; keep the key verbatim
                break
            node = child
        else:
            node[parts[-1]] = value
            continue
        result[key] = value
    return result


def _split_scope(values: dict[str, Any], directory: IdentityResolver) -> None:
    scope = values.get("scope")
    if scope is not None:
        scope_guids = [v for v in scope if directory.is_guid(v)]
        macs = tuple(v for v in scope if is_mac_address(v))
        guids = list(values.get("guids") or ()) + scope_guids
        values["scope"] = macs or None
        values["guids"] = tuple(dict.fromkeys(_hashable(g) for g in guids)) or None


def _hashable(value: Any) -> Any:
    if isinstance(value, (list, dict)):
        return json.dumps(value, sort_keys=True)
    return value


def _canonical_target(rule_type: str, target: str) -> str:
    if rule_type == RuleType.MAC.value:
        return target.upper()
    if rule_type in (RuleType.DNS.value, RuleType.DOMAIN.value):
        return target.lower()
    return target


# ---------------------------------------------------------------------------
# Per-kind parsers. Each returns None to mean "absent".
# ---------------------------------------------------------------------------


def _parse_string(key: str, value: Any, warnings: Warnings) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    warnings.append(FieldParseWarning(key, value, "expected a string"))
    return None


def _parse_blank_is_absent(key: str, value: Any, warnings: Warnings) -> str | None:
    if value == "":
        return None
    return _parse_string(key, value, warnings)


def _load_json(key: str, value: Any, expected: Any, warnings: Warnings) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError as e:
            warnings.append(FieldParseWarning(key, value, f"invalid JSON: {e}"))
            return None
    if isinstance(value, expected):
        return value
    warnings.append(FieldParseWarning(key, value, f"unsupported {type(value).__name__}"))
    return None


def _parse_array(key: str, value: Any, warnings: Warnings) -> tuple[Any, ...] | None:
    if not value:
        return None
    parsed = _load_json(key, value, (list, tuple), warnings)
    if parsed is None:
        return None
    if not isinstance(parsed, (list, tuple)):
        warnings.append(FieldParseWarning(key, value, "not an array"))
        return None
    return tuple(parsed) or None


def _parse_object(key: str, value: Any, warnings: Warnings) -> dict[str, Any] | None:
    if not value:
        return None
    parsed = _load_json(key, value, Mapping, warnings)
    if parsed is None:
        return None
    if not isinstance(parsed, Mapping):
        warnings.append(FieldParseWarning(key, value, "not an object"))
        return None
    return dict(parsed) or None


def _to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            value = float(text)
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("not a finite number")
    if isinstance(value, (int, float)):
        return value
    raise ValueError(f"unsupported {type(value).__name__}")


def _parse_number(key: str, value: Any, warnings: Warnings) -> int | float | None:
    if value is None or value == "":
        return None
    try:
        return _to_number(value)
    except (TypeError, ValueError) as e:
        warnings.append(FieldParseWarning(key, value, f"not a number: {e}"))
        return None


def _parse_duration(key: str, value: Any, warnings: Warnings) -> int | None:
    number = _parse_number(key, value, warnings)
    return None if number is None else int(number)


def _parse_switch(key: str, value: Any, warnings: Warnings) -> bool:
    return value in (True, 1, "1", "true")


def _parse_flag_value(key: str, value: Any, warnings: Warnings) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            parsed = None
        if isinstance(parsed, (bool, int, float)):
            return bool(parsed)
    warnings.append(FieldParseWarning(key, value, "not a boolean"))
    return None


def _parse_flag(key: str, value: Any, warnings: Warnings) -> bool:
    if value is None or value == "":
        return False
    return bool(_parse_flag_value(key, value, warnings))


def _parse_optional_flag(key: str, value: Any, warnings: Warnings) -> bool | None:
    if value is None or value == "":
        return None
    return _parse_flag_value(key, value, warnings)


def _parse_port(key: str, value: Any, warnings: Warnings) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    warnings.append(FieldParseWarning(key, value, "not a port or port range"))
    return None


_PARSERS: dict[FieldKind, Callable[[str, Any, Warnings], Any]] = {
    FieldKind.STRING: _parse_string,
    FieldKind.BLANK_IS_ABSENT: _parse_blank_is_absent,
    FieldKind.ARRAY: _parse_array,
    FieldKind.OBJECT: _parse_object,
    FieldKind.NUMBER: _parse_number,
    FieldKind.FLAG: _parse_flag,
    FieldKind.OPTIONAL_FLAG: _parse_optional_flag,
    FieldKind.DURATION: _parse_duration,
    FieldKind.SWITCH: _parse_switch,
    FieldKind.PORT: _parse_port,
}


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------


def format_number(value: int | float) -> str:
    """Render a number without a trailing ``.0`` for integral floats."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _render(kind: FieldKind, value: Any) -> str | None:
    if kind in (FieldKind.ARRAY, FieldKind.OBJECT):
        if not value:
            return None
        plain = list(value) if kind is FieldKind.ARRAY else dict(value)
        return json.dumps(plain)
    if kind in (FieldKind.NUMBER, FieldKind.DURATION):
        return format_number(value)
    if kind in (FieldKind.FLAG, FieldKind.OPTIONAL_FLAG):
        return "true" if value else "false"
    if kind is FieldKind.SWITCH:
        return "1" if value else None
    if kind is FieldKind.BLANK_IS_ABSENT and value == "":
        return None
    return str(value)


def _store_form(value: Any) -> Any:
    """The shape an unknown field has after a trip through the store.

    Mappings keep their nesting (they flatten to dotted keys); everything else
    becomes the string :func:`encode` would write.
    """
    if value is None:
        return None
    if isinstance(value, Mapping):
        return {str(k): _store_form(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value), default=str)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def _flatten_into(record: dict[str, str], key: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for child_key, child in value.items():
            _flatten_into(record, f"{key}.{child_key}", child)
    else:
        record[key] = _store_form(value)
