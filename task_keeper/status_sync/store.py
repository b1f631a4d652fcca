"""Document stores the keeper reads from and writes back to."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".md", ".markdown"}
SETTINGS_DIRNAME = ".task-keeper"


class DocumentIOError(OSError):
    """A document could not be read or written."""


class DocumentStore(Protocol):
    def read(self, document_id: str) -> str: ...

    def modify(self, document_id: str, text: str) -> None: ...

    def list_all(self) -> list[str]: ...


def iter_markdown_files(root: Path) -> Iterator[Path]:
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        if any(part == SETTINGS_DIRNAME for part in path.relative_to(root).parts):
            continue
        if path.suffix.lower() in SUPPORTED_EXTENSIONS:
            yield path


def is_markdown_path(path: str | Path) -> bool:
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS


class FilesystemDocumentStore:
    """Markdown files under ``root``, addressed by POSIX paths relative to it."""

    def __init__(self, root: Path) -> None:
        self.root = root.resolve()

    def path_for(self, document_id: str) -> Path:
        return self.root / document_id

    def document_id(self, path: str | Path) -> str | None:
        try:
            relative = Path(path).resolve().relative_to(self.root)
        except ValueError:
            return None
        return relative.as_posix()

    def read(self, document_id: str) -> str:
        path = self.path_for(document_id)
        try:
            # newline="" keeps CRLF documents byte-for-byte on write-back.
            with path.open("r", encoding="utf-8", newline="") as fh:
                return fh.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentIOError(f"Failed to read {document_id}: {exc}") from exc

    def modify(self, document_id: str, text: str) -> None:
        path = self.path_for(document_id)
        try:
            with path.open("w", encoding="utf-8", newline="") as fh:
                fh.write(text)
        except OSError as exc:
            raise DocumentIOError(f"Failed to write {document_id}: {exc}") from exc
        logger.debug("Wrote %s", document_id)

    def list_all(self) -> list[str]:
        return [path.relative_to(self.root).as_posix() for path in iter_markdown_files(self.root)]
