"""Process-scoped keeper: settings context, per-document sync and corpus scans."""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from .processor import ScanOutcome, scan_document
from .settings import (
    ConfigurationFormatError,
    Settings,
    parse_tag_text,
    settings_from_raw,
    settings_to_raw,
)
from .statuses import PriorityRule
from .store import DocumentStore
from .tags import ResolvedIndex, build_index

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], None]


class SettingsStore(Protocol):
    def load(self) -> Any | None: ...

    def save(self, raw: Any) -> None: ...


@dataclass(frozen=True)
class KeeperContext:
    settings: Settings
    index: ResolvedIndex

    @classmethod
    def from_settings(cls, settings: Settings) -> KeeperContext:
        return cls(
            settings=settings,
            index=build_index(settings.status_to_tags, settings.priority_rule),
        )


@dataclass
class ScanStatistics:
    files_scanned: int = 0
    files_updated: int = 0
    tasks_updated: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)


def percent_complete(processed: int, total: int) -> int:
    if total <= 0:
        return 100
    # Round half up.
    return (processed * 200 + total) // (total * 2)


class StatusKeeper:
    def __init__(
        self,
        store: DocumentStore,
        settings_store: SettingsStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.settings_store = settings_store
        self.context = KeeperContext.from_settings(settings or Settings())

    @property
    def settings(self) -> Settings:
        return self.context.settings

    def load_settings(self) -> Settings:
        raw = None
        if self.settings_store is not None:
            try:
                raw = self.settings_store.load()
            except (ConfigurationFormatError, OSError) as exc:
                logger.warning("Could not load settings, using defaults: %s", exc)
        self.context = KeeperContext.from_settings(settings_from_raw(raw))
        return self.context.settings

    def update_settings(self, settings: Settings) -> None:
        # Swap before saving; a failed save still leaves the new index active.
        self.context = KeeperContext.from_settings(settings)
        if self.settings_store is not None:
            self.settings_store.save(settings_to_raw(settings))

    def set_priority_rule(self, rule: PriorityRule) -> None:
        self.update_settings(self.settings.with_priority_rule(rule))

    def set_status_tags(self, code: str, raw_tags: str) -> bool:
        tags, truncated = parse_tag_text(raw_tags)
        if truncated:
            logger.warning("Only the first %d tags were kept for [%s]", len(tags), code)
        self.update_settings(self.settings.with_status_tags(code, tags))
        return truncated

    def preview_document(
        self, document_id: str, index: ResolvedIndex | None = None
    ) -> ScanOutcome:
        text = self.store.read(document_id)
        return scan_document(text, self.context.index if index is None else index)

    def process_document(self, document_id: str, index: ResolvedIndex | None = None) -> int:
        """Sync one document; returns the number of task lines rewritten."""
        outcome = self.preview_document(document_id, index)
        if outcome.text is None:
            return 0
        self.store.modify(document_id, outcome.text)
        logger.info("Updated %d task(s) in %s", outcome.changed, document_id)
        return outcome.changed

    def scan_corpus(self, progress: ProgressCallback | None = None) -> ScanStatistics:
        stats = ScanStatistics()
        index = self.context.index
        document_ids = self.store.list_all()
        total = len(document_ids)
        for position, document_id in enumerate(document_ids, start=1):
            try:
                changed = self.process_document(document_id, index)
            except Exception as exc:
                logger.exception("Failed to sync %s", document_id)
                stats.errors.append((document_id, str(exc)))
                changed = 0
            stats.files_scanned += 1
            if changed:
                stats.files_updated += 1
                stats.tasks_updated += changed
            if progress is not None:
                progress(percent_complete(position, total), position, total)
        logger.info(
            "Scan complete. Files scanned: %d, Files updated: %d, Tasks updated: %d",
            stats.files_scanned,
            stats.files_updated,
            stats.tasks_updated,
        )
        return stats
