"""Scanner for stale dependency trees such as ``node_modules``."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from reclaim.errors import AccessError
from reclaim.models.clean_result import CleanResult
from reclaim.models.item import CategoryDescriptor, CleanableItem, SafetyLevel
from reclaim.models.outcome import EntryResult
from reclaim.models.scan_result import ScanOptions, ScanResult
from reclaim.models.scanner import clean_with_probe
from reclaim.utils import exists, get_size, walk

log = logging.getLogger(__name__)

CATEGORY = CategoryDescriptor(
    id="node-modules",
    name="Node Modules",
    group="Development",
    safety_level=SafetyLevel.MODERATE,
    description="Dependency directories of projects that are orphaned or untouched for a while",
)

# Dependency directory name -> manifest files that mark its project.
DEPENDENCY_DIRS: Mapping[str, tuple[str, ...]] = {
    "node_modules": ("package.json",),
    "bower_components": ("bower.json",),
}

_SECONDS_PER_DAY = 86_400


def default_roots() -> tuple[Path, ...]:
    home = Path.home()
    return tuple(home / name for name in ("Projects", "Developer", "Code", "dev", "workspace", "src", "Documents"))


class DependencyTreeScanner:
    """Finds dependency trees whose project is gone or has not been touched recently.

    A dependency directory is removable when its parent holds no manifest
    file, or when the newest manifest is older than ``days_old``.  File
    contents are never read.
    """

    category = CATEGORY

    def __init__(
        self,
        roots: Sequence[Path | str] | None = None,
        dependency_dirs: Mapping[str, tuple[str, ...]] | None = None,
    ) -> None:
        self._roots = tuple(Path(r).expanduser().absolute() for r in roots) if roots is not None else None
        self._dependency_dirs = dict(dependency_dirs or DEPENDENCY_DIRS)

    @property
    def roots(self) -> tuple[Path, ...]:
        return self._roots if self._roots is not None else default_roots()

    def scan(self, options: ScanOptions | None = None) -> ScanResult:
        options = options or ScanOptions()
        cutoff = time.time() - options.days_old * _SECONDS_PER_DAY
        items: list[CleanableItem] = []
        errors: list[str] = []
        skipped: list[EntryResult] = []
        # Overlapping roots reach the same tree more than once.
        reported: set[str] = set()

        for root in self.roots:
            if options.cancelled:
                break
            if not exists(root):
                log.debug("Scan root does not exist: %s", root)
                continue
            try:
                for entry in walk(root, options.max_depth, descend=self._should_descend, cancel=options.cancel):
                    if entry.path in reported:
                        continue
                    item = self._inspect(entry, cutoff, skipped)
                    if item is not None:
                        reported.add(entry.path)
                        items.append(item)
            except AccessError as e:
                log.warning("Cannot read scan root: %s", e)
                errors.append(str(e))

        result = ScanResult.from_items(self.category, items, error="; ".join(errors), skipped=skipped)
        log.info("Dependency tree scan: %d stale trees, %d bytes", len(result.items), result.total_size)
        return result

    def clean(self, items: Sequence[CleanableItem], dry_run: bool = False) -> CleanResult:
        return clean_with_probe(self.category, items, dry_run)

    def _should_descend(self, entry: os.DirEntry) -> bool:
        # Nested trees belong to the outer one.
        return entry.name not in self._dependency_dirs

    def _inspect(self, entry: os.DirEntry, cutoff: float, skipped: list[EntryResult]) -> CleanableItem | None:
        """Return an item for *entry* if it is a stale dependency tree."""
        manifests = self._dependency_dirs.get(entry.name)
        if manifests is None:
            return None
        try:
            if not entry.is_dir(follow_symlinks=False):
                return None
        except OSError as e:
            skipped.append(EntryResult.skipped(Path(entry.path), e.strerror or str(e)))
            return None

        path = Path(entry.path)
        project = path.parent
        manifest_mtime = _newest_mtime(project / name for name in manifests)

        if manifest_mtime is None:
            reason = f"Orphaned {entry.name} (no {' or '.join(manifests)})"
        elif manifest_mtime < cutoff:
            days = int((time.time() - manifest_mtime) // _SECONDS_PER_DAY)
            reason = f"Project untouched for {days} days"
        else:
            return None

        size = get_size(path)
        if size == 0:
            return None
        return CleanableItem(
            path=path,
            size_bytes=size,
            display_name=project.name,
            is_directory=True,
            description=reason,
        )


def _newest_mtime(paths: Iterable[Path]) -> float | None:
    newest: float | None = None
    for path in paths:
        try:
            mtime = path.stat().st_mtime
        except OSError:
            continue
        if newest is None or mtime > newest:
            newest = mtime
    return newest
