"""Filesystem change events feeding the change scheduler."""
from __future__ import annotations

import logging
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from .scheduler import ChangeScheduler
from .store import FilesystemDocumentStore, is_markdown_path

logger = logging.getLogger(__name__)


def event_path(value: str | bytes) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class MarkdownModifiedHandler(FileSystemEventHandler):
    """Notifies the scheduler whenever a Markdown document's content may have changed.

    Editors that save through a temporary file show up as a create or as a
    move onto the document, not as a modify.
    """

    def __init__(self, store: FilesystemDocumentStore, scheduler: ChangeScheduler) -> None:
        super().__init__()
        self.store = store
        self.scheduler = scheduler

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.notify_path(event_path(event.src_path))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.notify_path(event_path(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.notify_path(event_path(event.dest_path))

    def notify_path(self, path: str) -> None:
        if not path or not is_markdown_path(path):
            return
        document_id = self.store.document_id(Path(path))
        if document_id is None:
            return
        logger.debug("Changed: %s", document_id)
        self.scheduler.notify(document_id)


def watch_vault(store: FilesystemDocumentStore, scheduler: ChangeScheduler) -> BaseObserver:
    """Start watching ``store.root`` recursively; the caller stops and joins the observer."""
    observer = Observer()
    observer.schedule(MarkdownModifiedHandler(store, scheduler), str(store.root), recursive=True)
    observer.start()
    logger.info("Watching %s", store.root)
    return observer
