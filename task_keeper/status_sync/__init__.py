"""Keeps checkbox task statuses in step with their tags."""
from __future__ import annotations

from . import keeper, lines, processor, scheduler, settings, statuses, store, tags
from .keeper import ScanStatistics, StatusKeeper
from .processor import ScanOutcome, scan_document
from .tags import ResolvedIndex, build_index

__all__ = [
    "keeper",
    "lines",
    "processor",
    "scheduler",
    "settings",
    "statuses",
    "store",
    "tags",
    "ResolvedIndex",
    "ScanOutcome",
    "ScanStatistics",
    "StatusKeeper",
    "build_index",
    "scan_document",
]
