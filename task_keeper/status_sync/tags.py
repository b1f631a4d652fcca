"""Tag index compilation and tag-priority status resolution."""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .statuses import LEFTMOST, MARK_INCOMPLETE, RIGHTMOST, PriorityRule

logger = logging.getLogger(__name__)

TODO_FALLBACK_RE = re.compile(r"\bto-?do\b", re.IGNORECASE)

# A tag ends where the next character cannot continue it.
TAG_BOUNDARY = r"(?![A-Za-z0-9_-])"


def normalize_tag(value: str) -> str:
    cleaned = value.strip()
    if cleaned.startswith("#"):
        cleaned = cleaned[1:]
    return cleaned.lower()


def normalize_tags(values: Iterable[Any]) -> list[str]:
    """Normalize and dedupe tags, keeping first-seen order and dropping empties."""
    seen = set()
    result: list[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        normalized = normalize_tag(value)
        if normalized and normalized not in seen:
            seen.add(normalized)
            result.append(normalized)
    return result


@dataclass(frozen=True)
class TagMatch:
    tag: str
    status: str
    start: int


@dataclass(frozen=True)
class ResolvedIndex:
    """Reverse tag lookup plus the single alternation pattern built over it.

    Instances are never mutated; a settings change builds a new one.
    """

    tag_to_status: Mapping[str, str]
    pattern: re.Pattern[str] | None
    priority_rule: PriorityRule = LEFTMOST
    tags: tuple[str, ...] = field(default=())

    @property
    def is_empty(self) -> bool:
        return self.pattern is None

    def find_matches(self, text: str) -> list[TagMatch]:
        if self.pattern is None:
            return []
        matches: list[TagMatch] = []
        for match in self.pattern.finditer(text):
            tag = match.group(1).lower()
            status = self.tag_to_status.get(tag)
            if status is not None:
                matches.append(TagMatch(tag=tag, status=status, start=match.start()))
        return matches

    def resolve(self, remainder: str) -> str | None:
        """Return the status the line should carry, or ``None`` for no decision.

        ``MARK_INCOMPLETE`` is a decision too: the line mentions to-do but none
        of the configured tags.
        """
        matches = self.find_matches(remainder)
        if matches:
            if self.priority_rule == RIGHTMOST:
                winner = max(matches, key=lambda item: item.start)
            else:
                winner = min(matches, key=lambda item: item.start)
            return winner.status
        if TODO_FALLBACK_RE.search(remainder):
            return MARK_INCOMPLETE
        return None


def build_index(
    status_to_tags: Mapping[str, Any],
    priority_rule: PriorityRule = LEFTMOST,
) -> ResolvedIndex:
    tag_to_status: dict[str, str] = {}
    ordered_tags: list[str] = []
    for status, tags in status_to_tags.items():
        if not isinstance(tags, (list, tuple)):
            logger.debug("Ignoring non-list tags for status %r", status)
            continue
        for tag in normalize_tags(tags):
            if tag in tag_to_status:
                if tag_to_status[tag] != status:
                    logger.debug(
                        "Tag %r already assigned to %r; ignoring for %r",
                        tag,
                        tag_to_status[tag],
                        status,
                    )
                continue
            tag_to_status[tag] = status
            ordered_tags.append(tag)
    if not ordered_tags:
        return ResolvedIndex(
            tag_to_status=MappingProxyType({}), pattern=None, priority_rule=priority_rule
        )
    longest_first = sorted(ordered_tags, key=len, reverse=True)
    alternation = "|".join(re.escape(tag) for tag in longest_first)
    pattern = re.compile(rf"#({alternation}){TAG_BOUNDARY}", re.IGNORECASE)
    return ResolvedIndex(
        tag_to_status=MappingProxyType(tag_to_status),
        pattern=pattern,
        priority_rule=priority_rule,
        tags=tuple(longest_first),
    )
