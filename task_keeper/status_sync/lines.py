"""Fence-aware classification of checkbox task lines."""
from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

CHECKBOX_RE = re.compile(r"^(\s*)- \[(.)\] (.*)$")
FENCE_MARKERS = ("```", "~~~")


@dataclass(frozen=True)
class CheckboxLine:
    indent: str
    status: str
    remainder: str

    def render(self, status: str) -> str:
        return f"{self.indent}- [{status}] {self.remainder}"


def is_fence_delimiter(line: str) -> bool:
    return line.strip().startswith(FENCE_MARKERS)


class LineClassifier:
    """Classifies lines one at a time, tracking whether a code fence is open."""

    def __init__(self) -> None:
        self.inside_fence = False

    def classify(self, line: str) -> CheckboxLine | None:
        if is_fence_delimiter(line):
            self.inside_fence = not self.inside_fence
            return None
        if self.inside_fence:
            return None
        match = CHECKBOX_RE.match(line)
        if not match:
            return None
        indent, status, remainder = match.groups()
        return CheckboxLine(indent=indent, status=status, remainder=remainder)


def iter_checkbox_lines(lines: Iterable[str]) -> Iterator[tuple[int, CheckboxLine]]:
    classifier = LineClassifier()
    for index, line in enumerate(lines):
        checkbox = classifier.classify(line)
        if checkbox is not None:
            yield index, checkbox
