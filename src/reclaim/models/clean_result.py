"""Cleaning result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from reclaim.models.item import CategoryDescriptor


@dataclass(slots=True)
class RemovalReport:
    """What ``remove_items`` did (or would do, on a dry run)."""

    deleted: list[Path] = field(default_factory=list)
    freed_bytes: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(slots=True)
class CleanResult:
    """Result of a cleaning operation, attributed to one category."""

    category: CategoryDescriptor
    deleted: list[Path] = field(default_factory=list)
    freed_bytes: int = 0
    errors: list[str] = field(default_factory=list)
    dry_run: bool = False
    backup_dir: Path | None = None

    @property
    def files_removed(self) -> int:
        return len(self.deleted)

    @classmethod
    def from_report(
        cls,
        category: CategoryDescriptor,
        report: RemovalReport,
        dry_run: bool = False,
    ) -> CleanResult:
        return cls(
            category=category,
            deleted=list(report.deleted),
            freed_bytes=report.freed_bytes,
            errors=list(report.errors),
            dry_run=dry_run,
        )
