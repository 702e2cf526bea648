"""Backup store dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass(slots=True)
class BackupManifest:
    """Mapping from mirrored paths inside a generation back to the originals.

    Never written to disk: the mirrored directory layout already encodes
    it.  Contains an entry only for items whose move succeeded.
    """

    backup_dir: Path
    original_path_of: dict[Path, Path] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class BackupFailure:
    path: Path
    reason: str


@dataclass(slots=True)
class BackupOutcome:
    """Result of one ``backup_items`` call."""

    backup_dir: Path
    success: int = 0
    failed: int = 0
    failures: list[BackupFailure] = field(default_factory=list)
    manifest: BackupManifest | None = None


@dataclass(frozen=True, slots=True)
class BackupInfo:
    """One backup generation as shown by ``list_backups``."""

    name: str
    path: Path
    date: datetime
    size: int


@dataclass(slots=True)
class RestoreOutcome:
    success: int = 0
    failed: int = 0
    failures: list[BackupFailure] = field(default_factory=list)
