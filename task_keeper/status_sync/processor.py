"""Whole-document scanning: turns tag decisions into line replacements."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .lines import iter_checkbox_lines
from .statuses import PROTECTED_STATUSES
from .tags import ResolvedIndex

logger = logging.getLogger(__name__)

CHECKBOX_MARKER = "- ["
MAX_DOCUMENT_LINES = 5000


@dataclass(frozen=True)
class LineChange:
    index: int
    old_line: str
    new_line: str


@dataclass
class ScanOutcome:
    """Result of scanning one document.

    ``text`` is ``None`` when nothing changed; callers must not write back then.
    """

    text: str | None = None
    changes: list[LineChange] = field(default_factory=list)
    skipped_reason: str | None = None

    @property
    def changed(self) -> int:
        return len(self.changes)


def collect_changes(lines: list[str], index: ResolvedIndex) -> list[LineChange]:
    changes: list[LineChange] = []
    for line_number, checkbox in iter_checkbox_lines(lines):
        if checkbox.status in PROTECTED_STATUSES:
            continue
        desired = index.resolve(checkbox.remainder)
        if desired is None or desired == checkbox.status:
            continue
        changes.append(
            LineChange(
                index=line_number,
                old_line=lines[line_number],
                new_line=checkbox.render(desired),
            )
        )
    return changes


def scan_document(text: str, index: ResolvedIndex) -> ScanOutcome:
    if CHECKBOX_MARKER not in text:
        return ScanOutcome(skipped_reason="no-checkboxes")
    lines = text.split("\n")
    if len(lines) > MAX_DOCUMENT_LINES:
        logger.debug("Skipping document with %d lines", len(lines))
        return ScanOutcome(skipped_reason="oversize")
    changes = collect_changes(lines, index)
    if not changes:
        return ScanOutcome()
    for change in changes:
        lines[change.index] = change.new_line
    return ScanOutcome(text="\n".join(lines), changes=changes)
