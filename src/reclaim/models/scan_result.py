"""Scan options and scan result dataclasses."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable

from reclaim.models.item import CategoryDescriptor, CleanableItem
from reclaim.models.outcome import EntryResult

DEFAULT_MIN_SIZE = 1024 * 1024  # 1 MiB
DEFAULT_DAYS_OLD = 30
DEFAULT_MAX_DEPTH = 6


@dataclass(frozen=True, slots=True)
class ScanOptions:
    """Options accepted by ``Scanner.scan``.

    ``min_size`` only matters to the duplicate scanner and ``days_old``
    only to dependency-tree scanners; ``max_depth`` bounds every walk.
    Setting ``cancel`` stops the walk between top-level directory entries.
    """

    min_size: int = DEFAULT_MIN_SIZE
    days_old: int = DEFAULT_DAYS_OLD
    max_depth: int = DEFAULT_MAX_DEPTH
    cancel: threading.Event | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.min_size < 0:
            raise ValueError(f"min_size must be >= 0, got {self.min_size}")
        if self.days_old < 0:
            raise ValueError(f"days_old must be >= 0, got {self.days_old}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")

    @property
    def cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()


@dataclass(slots=True)
class ScanResult:
    """Result of scanning one category.

    ``items`` are ordered largest first and hold each path once.
    ``error`` is non-empty when a scan root existed but could not be read
    at all, so callers can tell "nothing found" from "could not look".
    ``skipped`` lists entries passed over because they could not be
    inspected.
    """

    category: CategoryDescriptor
    items: list[CleanableItem] = field(default_factory=list)
    total_size: int = 0
    error: str = ""
    skipped: list[EntryResult] = field(default_factory=list)

    @classmethod
    def from_items(
        cls,
        category: CategoryDescriptor,
        items: Iterable[CleanableItem],
        error: str = "",
        skipped: Iterable[EntryResult] = (),
    ) -> ScanResult:
        """Build a result with items deduplicated by path, sorted by size descending and totalled."""
        # Overlapping roots can report the same path twice.
        unique = dict.fromkeys(items)
        ordered = sorted(unique, key=lambda i: (-i.size_bytes, str(i.path)))
        return cls(
            category=category,
            items=ordered,
            total_size=sum(i.size_bytes for i in ordered),
            error=error,
            skipped=list(skipped),
        )
