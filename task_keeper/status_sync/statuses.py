"""Checkbox status catalog and default tag assignments."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PriorityRule = Literal["leftmost", "rightmost"]

LEFTMOST: PriorityRule = "leftmost"
RIGHTMOST: PriorityRule = "rightmost"
PRIORITY_RULES: tuple[PriorityRule, ...] = (LEFTMOST, RIGHTMOST)

# Blank status written by the to-do keyword fallback.
MARK_INCOMPLETE = " "

# Final states set by the user; never rewritten automatically.
PROTECTED_STATUSES = frozenset({"x", "-"})

MAX_TAGS_PER_STATUS = 30


@dataclass(frozen=True)
class StatusDefinition:
    """A status marker written between the checkbox brackets."""

    code: str
    name: str
    description: str


STATUS_DEFINITIONS: tuple[StatusDefinition, ...] = (
    StatusDefinition("/", "Incomplete", "Task in progress"),
    StatusDefinition("x", "Done", "Completed task"),
    StatusDefinition("-", "Canceled", "Cancelled task"),
    StatusDefinition(">", "Forwarded", "Forwarded/delegated task"),
    StatusDefinition("<", "Scheduling", "Scheduled for later"),
    StatusDefinition("?", "Question", "Needs clarification"),
    StatusDefinition("!", "Important", "High priority task"),
    StatusDefinition("*", "Star", "Starred/favorite task"),
    StatusDefinition('"', "Quote", "Quote or reference"),
    StatusDefinition("l", "Location", "Location-based task"),
    StatusDefinition("b", "Bookmark", "Bookmarked task"),
    StatusDefinition("i", "Information", "Info or note"),
    StatusDefinition("S", "Savings", "Money/savings related"),
    StatusDefinition("I", "Idea", "New idea"),
    StatusDefinition("p", "Pros", "Positive aspect"),
    StatusDefinition("c", "Cons", "Negative aspect"),
    StatusDefinition("f", "Fire", "Urgent/hot task"),
    StatusDefinition("k", "Key", "Key task"),
    StatusDefinition("w", "Win", "Achievement/win"),
    StatusDefinition("u", "Up", "Upward progress"),
    StatusDefinition("d", "Down", "Downward/decline"),
)

STATUS_BY_CODE: dict[str, StatusDefinition] = {
    definition.code: definition for definition in STATUS_DEFINITIONS
}


def default_status_to_tags() -> dict[str, list[str]]:
    """Return a fresh copy of the default mapping: one tag per status, named after it."""
    return {definition.code: [definition.name.lower()] for definition in STATUS_DEFINITIONS}


def is_status_code(value: object) -> bool:
    return isinstance(value, str) and len(value) == 1 and value not in "\n\r"


def describe(code: str) -> str:
    definition = STATUS_BY_CODE.get(code)
    if definition is None:
        return f"[{code}]"
    return f"{definition.name} - [{code}]"
