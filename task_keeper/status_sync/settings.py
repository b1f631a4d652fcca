"""Settings record, persisted-shape migration and JSON persistence."""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .statuses import (
    LEFTMOST,
    MAX_TAGS_PER_STATUS,
    PRIORITY_RULES,
    RIGHTMOST,
    PriorityRule,
    default_status_to_tags,
    is_status_code,
)
from .tags import normalize_tag, normalize_tags

logger = logging.getLogger(__name__)

CURRENT_KEYS = {"priority_rule", "status_to_tags"}
# Same shape as the current one, spelled the way earlier releases wrote it.
CAMEL_CASE_KEYS = {"rightmostTagWins", "statusToTags"}


class ConfigurationFormatError(ValueError):
    """Persisted settings that cannot be interpreted."""


@dataclass(frozen=True)
class Settings:
    priority_rule: PriorityRule = LEFTMOST
    status_to_tags: Mapping[str, tuple[str, ...]] = field(default_factory=default_status_to_tags)

    def __post_init__(self) -> None:
        frozen = MappingProxyType(
            {code: tuple(tags) for code, tags in self.status_to_tags.items()}
        )
        object.__setattr__(self, "status_to_tags", frozen)

    def with_priority_rule(self, rule: str) -> Settings:
        if rule not in PRIORITY_RULES:
            raise ValueError(f"Unknown priority rule: {rule!r}")
        return replace(self, priority_rule=rule)  # type: ignore[arg-type]

    def with_status_tags(self, code: str, tags: Iterable[str]) -> Settings:
        if not is_status_code(code):
            raise ValueError(f"Status code must be a single character: {code!r}")
        mapping = {status: list(values) for status, values in self.status_to_tags.items()}
        mapping[code] = normalize_tags(tags)
        return replace(self, status_to_tags=mapping)


def parse_tag_text(value: str) -> tuple[list[str], bool]:
    """Split a comma-separated tag list; returns the kept tags and whether any were cut."""
    tags = normalize_tags(value.split(","))
    return tags[:MAX_TAGS_PER_STATUS], len(tags) > MAX_TAGS_PER_STATUS


def settings_to_raw(settings: Settings) -> dict[str, Any]:
    return {
        "priority_rule": settings.priority_rule,
        "status_to_tags": {
            code: list(tags) for code, tags in settings.status_to_tags.items()
        },
    }


def settings_from_raw(raw: Any) -> Settings:
    """Interpret any persisted shape, upgrading older ones to the current record.

    Accepted shapes, oldest first:

    * ``{tag: status}`` single values
    * ``{status: [tags]}`` arrays
    * ``{"priority_rule": ..., "status_to_tags": {...}}`` (or the camelCase
      ``rightmostTagWins`` / ``statusToTags`` spelling)

    Entries are read one at a time; whatever cannot be interpreted is logged
    and replaced by the defaults, never raised.
    """
    if raw is None:
        return Settings()
    status_to_tags = default_status_to_tags()
    priority_rule: PriorityRule = LEFTMOST
    problems: list[str] = []
    if not isinstance(raw, Mapping):
        problems.append(f"expected an object, got {type(raw).__name__}")
    elif raw.keys() & (CURRENT_KEYS | CAMEL_CASE_KEYS):
        try:
            priority_rule = read_priority_rule(raw)
        except ConfigurationFormatError as exc:
            problems.append(str(exc))
        mapping = raw.get("status_to_tags", raw.get("statusToTags", {}))
        if isinstance(mapping, Mapping):
            merge_status_lists(status_to_tags, mapping, problems)
        else:
            problems.append("status_to_tags is not an object")
    else:
        merge_legacy_entries(status_to_tags, raw, problems)
    for problem in problems:
        logger.warning("Ignoring settings entry: %s", problem)
    return Settings(priority_rule=priority_rule, status_to_tags=status_to_tags)


def read_priority_rule(raw: Mapping[str, Any]) -> PriorityRule:
    if "priority_rule" in raw:
        value = raw["priority_rule"]
        if value == RIGHTMOST:
            return RIGHTMOST
        if value == LEFTMOST:
            return LEFTMOST
        raise ConfigurationFormatError(f"unknown priority rule {value!r}")
    if "rightmostTagWins" in raw:
        value = raw["rightmostTagWins"]
        if not isinstance(value, bool):
            raise ConfigurationFormatError(f"rightmostTagWins is not a boolean: {value!r}")
        return RIGHTMOST if value else LEFTMOST
    return LEFTMOST


def check_status_list(code: Any, tags: Any) -> list[str]:
    if not is_status_code(code):
        raise ConfigurationFormatError(f"status code {code!r} is not a single character")
    if not isinstance(tags, list):
        raise ConfigurationFormatError(f"tags for status {code!r} are not a list")
    return normalize_tags(tags)


def merge_status_lists(
    target: dict[str, list[str]],
    mapping: Mapping[str, Any],
    problems: list[str],
) -> None:
    for code, tags in mapping.items():
        try:
            target[code] = check_status_list(code, tags)
        except ConfigurationFormatError as exc:
            problems.append(str(exc))


def merge_legacy_entries(
    target: dict[str, list[str]],
    raw: Mapping[str, Any],
    problems: list[str],
) -> None:
    for key, value in raw.items():
        try:
            if isinstance(value, str):
                append_legacy_tag(target, key, value)
            else:
                target[key] = check_status_list(key, value)
        except ConfigurationFormatError as exc:
            problems.append(str(exc))


def append_legacy_tag(target: dict[str, list[str]], tag: Any, status: str) -> None:
    if not is_status_code(status):
        raise ConfigurationFormatError(f"tag {tag!r} points at invalid status {status!r}")
    normalized = normalize_tag(str(tag))
    if not normalized:
        raise ConfigurationFormatError(f"empty tag for status {status!r}")
    tags = target.setdefault(status, [])
    if normalized not in tags:
        tags.append(normalized)


class JsonSettingsStore:
    """Settings persisted as one JSON document."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> Any | None:
        if not self.path.exists():
            return None
        with self.path.open("r", encoding="utf-8") as fh:
            try:
                return json.load(fh)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise ConfigurationFormatError(f"{self.path}: {exc}") from exc

    def save(self, raw: Mapping[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            # Key order decides which status wins a shared tag; keep it.
            json.dump(raw, fh, indent=2, ensure_ascii=False)
