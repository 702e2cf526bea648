"""Backup store: move items aside before they are deleted, and put them back.

Each ``backup_items`` call creates one *generation*: a timestamp-named
directory under the backup root.  Inside it every item is stored at its
original absolute path, mirrored as a relative path::

    /home/me/Downloads/a.iso  ->  <root>/2024-05-01_10-00-00-000000/home/me/Downloads/a.iso

That layout is the only record of where things came from, so restoring
is the structural inverse and needs no separate index file.  Items are
moved with a rename, which is instant on the same filesystem and fails
(leaving the item in place) across filesystems.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
import stat
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Iterable, Iterator

from reclaim.errors import MoveError, NotFoundError
from reclaim.models.backup import BackupFailure, BackupInfo, BackupManifest, BackupOutcome, RestoreOutcome
from reclaim.models.item import CleanableItem
from reclaim.models.outcome import EntryResult
from reclaim.utils import exists, get_size, xdg_data_home

log = logging.getLogger(__name__)

BACKUP_ROOT = xdg_data_home() / "reclaim" / "backups"

DEFAULT_RETENTION_DAYS = 7

_GENERATION_FORMAT = "%Y-%m-%d_%H-%M-%S-%f"
_GENERATION_NAME_LEN = len("2000-01-01_00-00-00-000000")

ProgressCallback = Callable[[int, int], None]  # (current, total)


def get_backup_dir() -> Path:
    """Return the backup root. The location is the same for every process."""
    return BACKUP_ROOT


def ensure_backup_dir() -> Path:
    """Create the backup root if needed and return it."""
    root = get_backup_dir()
    root.mkdir(parents=True, exist_ok=True)
    return root


def new_generation_dir() -> Path:
    """Create and return a fresh, uniquely named generation directory."""
    root = ensure_backup_dir()
    base = datetime.now().strftime(_GENERATION_FORMAT)
    suffix = 0
    while True:
        name = base if suffix == 0 else f"{base}-{suffix}"
        candidate = root / name
        try:
            candidate.mkdir()
            return candidate
        except FileExistsError:
            suffix += 1


def mirror_path(original: Path, backup_dir: Path) -> Path:
    """Map an absolute path to its location inside *backup_dir*."""
    original = Path(original)
    if not original.is_absolute():
        raise ValueError(f"Cannot mirror a relative path: {original}")
    return backup_dir.joinpath(*original.parts[1:])


def original_path(mirrored: Path, backup_dir: Path) -> Path:
    """Inverse of ``mirror_path``."""
    relative = Path(mirrored).relative_to(backup_dir)
    return Path(os.sep).joinpath(*relative.parts)


def find_backup(name: str) -> Path:
    """Return the generation directory called *name*.

    Raises:
        NotFoundError: No such generation exists.
    """
    path = get_backup_dir() / name
    if name in ("", ".", "..") or os.sep in name or not path.is_dir():
        raise NotFoundError(path, "no such backup")
    return path


# ── backup ───────────────────────────────────────────────────────────────


def backup_item(item: CleanableItem, backup_dir: Path) -> bool:
    """Move *item* into *backup_dir*.

    Returns False if the item is missing or could not be moved; in that
    case the item is untouched and must not be deleted.
    """
    return _backup_one(item, Path(backup_dir)).ok


def backup_items(items: Iterable[CleanableItem], on_progress: ProgressCallback | None = None) -> BackupOutcome:
    """Move all *items* into a new backup generation, in order.

    *on_progress* is called as ``(current, total)`` after every attempt,
    successful or not.  Failures are reported in the outcome; this
    function does not raise for them.
    """
    items = list(items)
    total = len(items)
    if not items:
        return BackupOutcome(backup_dir=get_backup_dir(), manifest=BackupManifest(get_backup_dir()))

    try:
        backup_dir = new_generation_dir()
    except OSError as e:
        log.warning("Cannot create backup generation under %s: %s", get_backup_dir(), e)
        outcome = BackupOutcome(backup_dir=get_backup_dir(), manifest=BackupManifest(get_backup_dir()))
        for index, item in enumerate(items, 1):
            outcome.failed += 1
            outcome.failures.append(BackupFailure(item.path, f"backup directory unavailable: {e}"))
            if on_progress:
                on_progress(index, total)
        return outcome

    manifest = BackupManifest(backup_dir)
    outcome = BackupOutcome(backup_dir=backup_dir, manifest=manifest)

    for index, item in enumerate(items, 1):
        result = _backup_one(item, backup_dir)
        if result.ok:
            outcome.success += 1
            manifest.original_path_of[mirror_path(item.path, backup_dir).relative_to(backup_dir)] = item.path
        else:
            outcome.failed += 1
            outcome.failures.append(BackupFailure(item.path, result.reason))
        if on_progress:
            on_progress(index, total)

    if outcome.success == 0:
        _remove_if_empty(backup_dir)

    log.info("Backed up %d items to %s (%d failed)", outcome.success, backup_dir, outcome.failed)
    return outcome


def _backup_one(item: CleanableItem, backup_dir: Path) -> EntryResult:
    source = item.path
    if not exists(source):
        return EntryResult.failure(source, "does not exist")
    target = mirror_path(source, backup_dir)
    if exists(target):
        return EntryResult.failure(source, f"already backed up as {target}")
    try:
        _move(source, target)
    except MoveError as e:
        log.warning("Backup failed: %s", e)
        return EntryResult.failure(source, e.reason)
    log.debug("Backed up %s -> %s", source, target)
    return EntryResult.success(source)


def _move(source: Path, target: Path) -> None:
    """Rename *source* to *target*, creating parent directories.

    Raises:
        MoveError: The rename failed; *source* is left where it was.
    """
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        source.rename(target)
    except OSError as e:
        if e.errno == errno.EXDEV:
            raise MoveError(source, "cannot move across filesystems") from e
        raise MoveError(source, e.strerror or str(e)) from e


# ── listing and retention ────────────────────────────────────────────────


def list_backups() -> list[BackupInfo]:
    """List backup generations, newest first.

    Returns an empty list when there is no backup root yet.  Entries that
    cannot be inspected are left out.
    """
    backups = [
        BackupInfo(name=path.name, path=path, date=date, size=get_size(path))
        for path, date in _iter_generations()
    ]
    backups.sort(key=lambda b: b.date, reverse=True)
    return backups


def clean_old_backups(max_age_days: int = DEFAULT_RETENTION_DAYS) -> int:
    """Delete generations older than *max_age_days* and return how many went.

    Running it again right away removes nothing more.
    """
    if max_age_days < 0:
        raise ValueError(f"max_age_days must be >= 0, got {max_age_days}")

    cutoff = datetime.now() - timedelta(days=max_age_days)
    removed = 0
    for path, date in list(_iter_generations()):
        if date >= cutoff:
            continue
        try:
            shutil.rmtree(path)
        except OSError as e:
            log.warning("Cannot remove old backup %s: %s", path, e)
            continue
        removed += 1
        log.info("Removed old backup %s", path.name)
    return removed


def _iter_generations() -> Iterator[tuple[Path, datetime]]:
    root = get_backup_dir()
    try:
        names = sorted(os.listdir(root))
    except OSError:
        log.debug("No backup directory at %s", root)
        return

    for name in names:
        path = root / name
        try:
            st = path.lstat()
        except OSError:
            log.debug("Cannot stat backup: %s", path)
            continue
        if not stat.S_ISDIR(st.st_mode):
            continue
        yield path, _generation_date(name, st.st_mtime)


def _generation_date(name: str, mtime: float) -> datetime:
    """Creation time encoded in the name, or the mtime for foreign entries."""
    try:
        return datetime.strptime(name[:_GENERATION_NAME_LEN], _GENERATION_FORMAT)
    except ValueError:
        return datetime.fromtimestamp(mtime)


# ── restore ──────────────────────────────────────────────────────────────


def restore_backup(backup_dir: Path | str) -> RestoreOutcome:
    """Move everything in *backup_dir* back to its original location.

    Each file is restored independently.  A file whose original location
    is occupied again is left in the backup and counted as failed.
    Directories emptied by the restore are removed, and so is the
    generation itself once nothing is left in it.

    Raises:
        ValueError: *backup_dir* is not a generation directly under the
            backup root (the root itself included).
    """
    backup_dir = Path(backup_dir)
    if backup_dir.parent != get_backup_dir() or backup_dir.name in ("", ".", ".."):
        raise ValueError(f"Not a backup generation under {get_backup_dir()}: {backup_dir}")
    outcome = RestoreOutcome()
    if not backup_dir.is_dir():
        log.warning("Backup directory not found: %s", backup_dir)
        return outcome

    for result in _restore_tree(backup_dir):
        if result.ok:
            outcome.success += 1
        else:
            outcome.failed += 1
            outcome.failures.append(BackupFailure(result.path, result.reason))

    _prune_empty_dirs(backup_dir)
    log.info("Restored %d files from %s (%d failed)", outcome.success, backup_dir, outcome.failed)
    return outcome


def _restore_tree(backup_dir: Path) -> Iterator[EntryResult]:
    unreadable: list[EntryResult] = []

    def on_error(e: OSError) -> None:
        unreadable.append(EntryResult.failure(Path(e.filename or backup_dir), e.strerror or str(e)))

    for dirpath, dirnames, filenames in os.walk(backup_dir, onerror=on_error):
        dirnames.sort()
        current = Path(dirpath)
        # Symlinks to directories show up in dirnames but are entries to move.
        links = [d for d in dirnames if (current / d).is_symlink()]
        dirnames[:] = [d for d in dirnames if d not in links]

        for name in sorted(filenames + links):
            yield _restore_one(current / name, backup_dir)

        if not dirnames and not filenames and not links and current != backup_dir:
            _recreate_empty_dir(current, backup_dir)

    yield from unreadable


def _restore_one(mirrored: Path, backup_dir: Path) -> EntryResult:
    target = original_path(mirrored, backup_dir)
    if exists(target):
        return EntryResult.failure(target, "destination already exists")
    try:
        _move(mirrored, target)
    except MoveError as e:
        log.warning("Restore failed for %s: %s", target, e.reason)
        return EntryResult.failure(target, e.reason)
    log.debug("Restored %s", target)
    return EntryResult.success(target)


def _recreate_empty_dir(mirrored: Path, backup_dir: Path) -> None:
    target = original_path(mirrored, backup_dir)
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        log.debug("Cannot recreate empty directory %s: %s", target, e)


def _prune_empty_dirs(backup_dir: Path) -> None:
    for dirpath, _dirnames, _filenames in os.walk(backup_dir, topdown=False):
        _remove_if_empty(Path(dirpath))


def _remove_if_empty(directory: Path) -> None:
    try:
        directory.rmdir()
    except OSError as e:
        if e.errno not in (errno.ENOTEMPTY, errno.EEXIST, errno.ENOENT):
            log.debug("Cannot remove %s: %s", directory, e)
