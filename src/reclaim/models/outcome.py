"""Per-entry outcomes aggregated by batch operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class EntryStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class EntryResult:
    """Outcome of processing a single path within a batch.

    Batch operations (removal, backup, restore) produce one of these per
    entry instead of letting an exception escape, so one bad file never
    aborts the rest of the batch.
    """

    path: Path
    status: EntryStatus
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status is EntryStatus.OK

    @classmethod
    def success(cls, path: Path) -> EntryResult:
        return cls(path, EntryStatus.OK)

    @classmethod
    def skipped(cls, path: Path, reason: str) -> EntryResult:
        return cls(path, EntryStatus.SKIPPED, reason)

    @classmethod
    def failure(cls, path: Path, reason: str) -> EntryResult:
        return cls(path, EntryStatus.FAILED, reason)
