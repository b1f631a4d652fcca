from __future__ import annotations

from pathlib import Path

import pytest

from task_keeper.status_sync.keeper import StatusKeeper, percent_complete
from task_keeper.status_sync.settings import JsonSettingsStore, Settings
from task_keeper.status_sync.statuses import RIGHTMOST
from task_keeper.status_sync.store import DocumentIOError, FilesystemDocumentStore


class MemoryStore:
    def __init__(self, documents: dict[str, str]) -> None:
        self.documents = dict(documents)
        self.writes: list[str] = []
        self.unreadable: set[str] = set()

    def read(self, document_id: str) -> str:
        if document_id in self.unreadable or document_id not in self.documents:
            raise DocumentIOError(f"cannot read {document_id}")
        return self.documents[document_id]

    def modify(self, document_id: str, text: str) -> None:
        self.writes.append(document_id)
        self.documents[document_id] = text

    def list_all(self) -> list[str]:
        return list(self.documents)


@pytest.fixture()
def vault(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    (root / "projects").mkdir(parents=True)
    (root / "inbox.md").write_text("- [ ] buy milk #important\n- [ ] plain\n", encoding="utf-8")
    (root / "projects" / "ship.md").write_text(
        "# Ship\r\n- [ ] launch #star #fire\r\n- [x] tested #fire\r\n", encoding="utf-8", newline=""
    )
    (root / "projects" / "notes.txt").write_text("- [ ] ignored #star\n", encoding="utf-8")
    (root / "quiet.md").write_text("nothing to do here\n", encoding="utf-8")
    (root / ".task-keeper").mkdir()
    (root / ".task-keeper" / "readme.md").write_text("- [ ] #star\n", encoding="utf-8")
    return root


def test_process_document_writes_only_on_change() -> None:
    store = MemoryStore({"a.md": "- [ ] x #star", "b.md": "- [*] x #star"})
    keeper = StatusKeeper(store)
    assert keeper.process_document("a.md") == 1
    assert keeper.process_document("b.md") == 0
    assert store.writes == ["a.md"]
    assert store.documents["a.md"] == "- [*] x #star"


def test_scan_corpus_statistics_and_progress() -> None:
    store = MemoryStore(
        {
            "one.md": "- [ ] a #star\n- [ ] b #fire",
            "two.md": "- [ ] nothing",
            "three.md": "- [ ] c #idea",
        }
    )
    calls: list[tuple[int, int, int]] = []
    stats = StatusKeeper(store).scan_corpus(lambda *args: calls.append(args))
    assert (stats.files_scanned, stats.files_updated, stats.tasks_updated) == (3, 2, 3)
    assert calls == [(33, 1, 3), (67, 2, 3), (100, 3, 3)]
    assert stats.errors == []


def test_scan_corpus_continues_past_errors() -> None:
    store = MemoryStore({"bad.md": "", "good.md": "- [ ] a #star"})
    store.unreadable.add("bad.md")
    stats = StatusKeeper(store).scan_corpus()
    assert stats.files_scanned == 2
    assert stats.files_updated == 1
    assert stats.errors == [("bad.md", "cannot read bad.md")]


def test_percent_complete_rounds_half_up() -> None:
    assert percent_complete(1, 8) == 13
    assert percent_complete(1, 3) == 33
    assert percent_complete(2, 3) == 67
    assert percent_complete(0, 0) == 100


def test_settings_change_rebuilds_index(tmp_path: Path) -> None:
    settings_store = JsonSettingsStore(tmp_path / "settings.json")
    store = MemoryStore({"a.md": "- [ ] a #important #star"})
    keeper = StatusKeeper(store, settings_store)
    keeper.load_settings()
    old_index = keeper.context.index
    keeper.set_priority_rule(RIGHTMOST)
    assert keeper.context.index is not old_index
    assert old_index.priority_rule == "leftmost"
    assert keeper.process_document("a.md") == 1
    assert store.documents["a.md"] == "- [*] a #important #star"

    reloaded = StatusKeeper(store, settings_store)
    assert reloaded.load_settings().priority_rule == RIGHTMOST


def test_set_status_tags(tmp_path: Path) -> None:
    settings_store = JsonSettingsStore(tmp_path / "settings.json")
    store = MemoryStore({"a.md": "- [ ] a #redstar"})
    keeper = StatusKeeper(store, settings_store)
    assert not keeper.set_status_tags("*", "star, #RedStar")
    assert keeper.settings.status_to_tags["*"] == ("star", "redstar")
    assert keeper.process_document("a.md") == 1
    assert store.documents["a.md"] == "- [*] a #redstar"


def test_broken_settings_file_falls_back(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    keeper = StatusKeeper(MemoryStore({}), JsonSettingsStore(path))
    assert keeper.load_settings() == Settings()


def test_filesystem_vault_scan(vault: Path) -> None:
    store = FilesystemDocumentStore(vault)
    assert store.list_all() == ["inbox.md", "projects/ship.md", "quiet.md"]
    stats = StatusKeeper(store).scan_corpus()
    assert (stats.files_scanned, stats.files_updated, stats.tasks_updated) == (3, 2, 2)
    assert (vault / "inbox.md").read_text(encoding="utf-8") == (
        "- [!] buy milk #important\n- [ ] plain\n"
    )
    assert (vault / "projects" / "ship.md").read_bytes() == (
        b"# Ship\r\n- [*] launch #star #fire\r\n- [x] tested #fire\r\n"
    )
    again = StatusKeeper(store).scan_corpus()
    assert again.files_updated == 0


def test_filesystem_store_errors(vault: Path) -> None:
    store = FilesystemDocumentStore(vault)
    with pytest.raises(DocumentIOError):
        store.read("missing.md")
    assert store.document_id(vault / "projects" / "ship.md") == "projects/ship.md"
    assert store.document_id(vault.parent / "elsewhere.md") is None


def test_undecodable_settings_file_falls_back(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_bytes(b'{"priority_rule": "\xff"}')
    keeper = StatusKeeper(MemoryStore({}), JsonSettingsStore(path))
    assert keeper.load_settings() == Settings()
