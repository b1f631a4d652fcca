from __future__ import annotations

import pytest

from task_keeper.status_sync.processor import MAX_DOCUMENT_LINES, scan_document
from task_keeper.status_sync.statuses import RIGHTMOST, default_status_to_tags
from task_keeper.status_sync.tags import ResolvedIndex, build_index

SAMPLE = "\n".join(
    [
        "# Groceries",
        "",
        "- [ ] buy milk #important",
        "  - [ ] nested #star",
        "- [x] paid rent #important",
        "- [-] skipped gym #fire",
        "- [ ] plain item",
        "- [!] remember this todo item",
        "```markdown",
        "- [ ] example inside a fence #important",
        "```",
        "- [*] already starred #star",
        "",
    ]
)


@pytest.fixture()
def index() -> ResolvedIndex:
    return build_index(default_status_to_tags())


def test_scan_rewrites_only_status_characters(index: ResolvedIndex) -> None:
    outcome = scan_document(SAMPLE, index)
    assert outcome.text is not None
    lines = outcome.text.split("\n")
    assert lines[2] == "- [!] buy milk #important"
    assert lines[3] == "  - [*] nested #star"
    assert lines[7] == "- [ ] remember this todo item"
    assert outcome.changed == 3
    assert [change.index for change in outcome.changes] == [2, 3, 7]
    assert outcome.changes[0].old_line == "- [ ] buy milk #important"


def test_protected_statuses_are_untouched(index: ResolvedIndex) -> None:
    outcome = scan_document(SAMPLE, index)
    assert outcome.text is not None
    lines = outcome.text.split("\n")
    assert lines[4] == "- [x] paid rent #important"
    assert lines[5] == "- [-] skipped gym #fire"


def test_fenced_checkboxes_are_untouched(index: ResolvedIndex) -> None:
    outcome = scan_document(SAMPLE, index)
    assert outcome.text is not None
    assert "- [ ] example inside a fence #important" in outcome.text.split("\n")


def test_unclosed_fence_protects_rest_of_document(index: ResolvedIndex) -> None:
    text = "- [ ] a #star\n~~~\n- [ ] b #star\n- [ ] c #fire"
    outcome = scan_document(text, index)
    assert outcome.text == "- [*] a #star\n~~~\n- [ ] b #star\n- [ ] c #fire"


def test_scan_is_idempotent(index: ResolvedIndex) -> None:
    first = scan_document(SAMPLE, index)
    assert first.text is not None
    second = scan_document(first.text, index)
    assert second.changed == 0
    assert second.text is None


def test_no_match_is_a_no_op(index: ResolvedIndex) -> None:
    outcome = scan_document("- [ ] plain item\n- [?] another one", index)
    assert outcome.text is None
    assert outcome.changed == 0
    assert outcome.skipped_reason is None


def test_documents_without_checkboxes_short_circuit(index: ResolvedIndex) -> None:
    outcome = scan_document("just prose #important\n* [ ] star bullet", index)
    assert outcome.text is None
    assert outcome.skipped_reason == "no-checkboxes"


def test_oversize_documents_are_skipped(index: ResolvedIndex) -> None:
    lines = ["- [ ] task #important"] * (MAX_DOCUMENT_LINES + 1)
    outcome = scan_document("\n".join(lines), index)
    assert outcome.text is None
    assert outcome.skipped_reason == "oversize"

    at_limit = scan_document("\n".join(lines[:MAX_DOCUMENT_LINES]), index)
    assert at_limit.changed == MAX_DOCUMENT_LINES


def test_rightmost_rule(index: ResolvedIndex) -> None:
    rightmost = build_index(default_status_to_tags(), RIGHTMOST)
    text = "- [ ] a #important #star"
    assert scan_document(text, index).text == "- [!] a #important #star"
    assert scan_document(text, rightmost).text == "- [*] a #important #star"


def test_empty_index_applies_todo_fallback_only() -> None:
    empty = build_index({})
    text = "- [!] todo: call back #important\n- [?] #important"
    outcome = scan_document(text, empty)
    assert outcome.text == "- [ ] todo: call back #important\n- [?] #important"


def test_crlf_line_endings_are_preserved(index: ResolvedIndex) -> None:
    outcome = scan_document("- [ ] a #star\r\n- [ ] b\r\n", index)
    assert outcome.text == "- [*] a #star\r\n- [ ] b\r\n"
