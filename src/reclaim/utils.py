"""Filesystem probe primitives and shared helpers.

Everything a scanner or the backup store needs from the filesystem goes
through here: existence checks, sizes, content hashes, tree walks and
item removal.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Iterator

from reclaim.errors import AccessError, ReadError
from reclaim.models.clean_result import RemovalReport
from reclaim.models.item import CleanableItem
from reclaim.models.outcome import EntryResult

log = logging.getLogger(__name__)

_CHUNK_SIZE = 65_536  # 64 KB
_HIDDEN_PREFIX = "."


def xdg_config_home() -> Path:
    """Return XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def xdg_data_home() -> Path:
    """Return XDG_DATA_HOME, defaulting to ~/.local/share."""
    return Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))


def is_hidden(name: str) -> bool:
    return name.startswith(_HIDDEN_PREFIX)


def exists(path: Path | str) -> bool:
    """Check whether *path* exists without ever raising.

    A dangling symlink counts as existing: it is still an entry that can
    be removed or moved.
    """
    try:
        os.lstat(path)
    except (OSError, ValueError):
        return False
    return True


def get_size(path: Path | str) -> int:
    """Return the size of a file, or the total size of a directory tree.

    Symlinks are never followed; each one counts as its own (small) size.
    Entries that cannot be read are skipped.  A missing path has size 0.
    """
    try:
        st = os.lstat(path)
    except OSError:
        return 0
    if not os.path.isdir(path) or os.path.islink(path):
        return st.st_size

    total = 0
    stack: list[Path | str] = [path]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                for entry in it:
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            stack.append(entry.path)
                        else:
                            total += entry.stat(follow_symlinks=False).st_size
                    except OSError:
                        log.debug("Cannot stat: %s", entry.path)
        except OSError:
            log.debug("Cannot read directory: %s", current)
    return total


def get_file_hash(path: Path | str) -> str:
    """Compute SHA-256 of a file using chunked reads.

    Raises:
        ReadError: The file cannot be opened or a read fails mid-stream.
    """
    h = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            while chunk := f.read(_CHUNK_SIZE):
                h.update(chunk)
    except OSError as e:
        raise ReadError(path, e.strerror or str(e)) from e
    return h.hexdigest()


def walk(
    root: Path,
    max_depth: int,
    *,
    descend: Callable[[os.DirEntry], bool] | None = None,
    cancel: threading.Event | None = None,
) -> Iterator[os.DirEntry]:
    """Yield non-hidden entries under *root*, depth first, in name order.

    Directories at depth ``max_depth`` are yielded but not entered.
    Symlinked directories are never entered.  *descend* can veto entering
    a directory.  Unreadable subdirectories are skipped; only an
    unreadable *root* is an error.

    Raises:
        AccessError: *root* itself cannot be listed.
    """
    try:
        top = _sorted_entries(root)
    except OSError as e:
        raise AccessError(root, e.strerror or str(e)) from e

    for entry in top:
        if cancel is not None and cancel.is_set():
            log.info("Walk of %s cancelled", root)
            return
        yield from _walk_entry(entry, 0, max_depth, descend)


def _walk_entry(
    entry: os.DirEntry,
    depth: int,
    max_depth: int,
    descend: Callable[[os.DirEntry], bool] | None,
) -> Iterator[os.DirEntry]:
    if is_hidden(entry.name):
        return
    yield entry
    try:
        is_dir = entry.is_dir(follow_symlinks=False)
    except OSError:
        return
    if not is_dir or depth >= max_depth:
        return
    if descend is not None and not descend(entry):
        return
    try:
        children = _sorted_entries(entry.path)
    except OSError:
        log.debug("Cannot read directory: %s", entry.path)
        return
    for child in children:
        yield from _walk_entry(child, depth + 1, max_depth, descend)


def _sorted_entries(directory: Path | str) -> list[os.DirEntry]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda e: e.name)


def remove_items(items: Iterable[CleanableItem], dry_run: bool = False) -> RemovalReport:
    """Remove items one by one and report what happened.

    With ``dry_run`` nothing is touched; the report says what would be
    deleted.  Items that no longer exist are reported as errors in both
    modes.  A failing item never stops the rest of the batch.
    """
    report = RemovalReport()
    for item in items:
        outcome = _remove_one(item, dry_run)
        if outcome.ok:
            report.deleted.append(item.path)
            report.freed_bytes += item.size_bytes
        else:
            report.errors.append(f"{item.path}: {outcome.reason}")
    return report


def _remove_one(item: CleanableItem, dry_run: bool) -> EntryResult:
    if not exists(item.path):
        return EntryResult.failure(item.path, "no longer exists")
    if dry_run:
        return EntryResult.success(item.path)
    try:
        if item.path.is_dir() and not item.path.is_symlink():
            shutil.rmtree(item.path)
        else:
            item.path.unlink()
    except OSError as e:
        return EntryResult.failure(item.path, e.strerror or str(e))
    log.debug("Removed %s", item.path)
    return EntryResult.success(item.path)


def bytes_to_human(size_bytes: int) -> str:
    """Convert byte count to a human-readable string."""
    if size_bytes < 0:
        return f"-{bytes_to_human(-size_bytes)}"
    if size_bytes == 0:
        return "0 B"

    units = ("B", "KB", "MB", "GB", "TB")
    value = float(size_bytes)
    for unit in units[:-1]:
        if abs(value) < 1024:
            return f"{value:.1f} {unit}" if unit != "B" else f"{int(value)} B"
        value /= 1024
    return f"{value:.1f} {units[-1]}"


def format_relative_time(when: datetime) -> str:
    """Format a timestamp as relative time ('2 hours ago')."""
    now = datetime.now(when.tzinfo) if when.tzinfo else datetime.now()
    seconds = int((now - when).total_seconds())

    if seconds < 60:
        return "just now"
    if seconds < 3600:
        m = seconds // 60
        return f"{m} minute{'s' if m != 1 else ''} ago"
    if seconds < 86400:
        h = seconds // 3600
        return f"{h} hour{'s' if h != 1 else ''} ago"
    d = seconds // 86400
    if d < 30:
        return f"{d} day{'s' if d != 1 else ''} ago"
    mo = d // 30
    if mo < 12:
        return f"{mo} month{'s' if mo != 1 else ''} ago"
    y = d // 365
    return f"{y} year{'s' if y != 1 else ''} ago"
