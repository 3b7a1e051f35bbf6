"""Tag types — how a rule's ``tag`` entries map to alarm id-list fields."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TagType:
    """One kind of group tag, e.g. ``tag:12`` matched against ``p.tag.ids``."""

    name: str
    prefix: str
    alarm_id_key: str

    def rule_tag(self, tag_id: Any) -> str:
        return f"{self.prefix}{tag_id}"


DEFAULT_TAG_TYPES: tuple[TagType, ...] = (
    TagType(name="group", prefix="tag:", alarm_id_key="p.tag.ids"),
    TagType(name="user", prefix="userTag:", alarm_id_key="p.utag.ids"),
    TagType(name="device", prefix="deviceTag:", alarm_id_key="p.dtag.ids"),
)


def parse_tag_types(data: Mapping[str, Any]) -> tuple[TagType, ...]:
    """Parse a ``{name: {prefix, alarm_id_key}}`` mapping from config."""
    if not isinstance(data, Mapping):
        raise ValueError("tag_types must be a mapping")
    types: list[TagType] = []
    for name, entry in data.items():
        if not isinstance(entry, Mapping):
            raise ValueError(f"tag type '{name}' must be a mapping")
        try:
            types.append(
                TagType(
                    name=str(name),
                    prefix=str(entry["prefix"]),
                    alarm_id_key=str(entry["alarm_id_key"]),
                )
            )
        except KeyError as e:
            raise ValueError(f"tag type '{name}' is missing {e}") from e
    return tuple(types)
