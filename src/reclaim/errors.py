"""Error taxonomy for filesystem and backup operations.

These are raised by low-level primitives and caught at the per-entry
seam of every batch operation, where they become an ``EntryResult`` or
an error string.  Only argument validation (``ValueError``) is allowed
to escape a batch call.
"""

from __future__ import annotations

from pathlib import Path


class ReclaimError(Exception):
    """Base class for errors tied to a single path."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class AccessError(ReclaimError):
    """Path is missing or not accessible (permission denied)."""


class ReadError(ReclaimError):
    """Hashing, stat or read of a file failed."""


class MoveError(ReclaimError):
    """Rename failed, e.g. across devices or on a locked file."""


class NotFoundError(ReclaimError):
    """Backup root or backup generation does not exist."""
