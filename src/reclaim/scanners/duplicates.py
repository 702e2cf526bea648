"""Scanner that finds files with identical content."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Sequence

from reclaim.errors import AccessError, ReadError
from reclaim.models.clean_result import CleanResult
from reclaim.models.duplicate_group import DuplicateGroup
from reclaim.models.item import CategoryDescriptor, CleanableItem, SafetyLevel
from reclaim.models.outcome import EntryResult
from reclaim.models.scan_result import ScanOptions, ScanResult
from reclaim.models.scanner import clean_with_probe
from reclaim.scanners.dependency_trees import DEPENDENCY_DIRS
from reclaim.utils import exists, get_file_hash, walk

log = logging.getLogger(__name__)

CATEGORY = CategoryDescriptor(
    id="duplicates",
    name="Duplicate Files",
    group="Storage",
    safety_level=SafetyLevel.RISKY,
    description="Files with identical content; the most recently modified copy is kept",
)


@dataclass(frozen=True, slots=True)
class FileCandidate:
    """A regular file considered for duplicate grouping."""

    path: Path
    size: int
    mtime: float


def default_roots() -> tuple[Path, ...]:
    home = Path.home()
    return (home / "Downloads", home / "Documents", home / "Desktop")


def _outside_dependency_tree(entry: os.DirEntry) -> bool:
    return entry.name not in DEPENDENCY_DIRS


def find_duplicate_groups(
    candidates: Iterable[FileCandidate],
    hasher: Callable[[Path], str] | None = None,
    skipped: list[EntryResult] | None = None,
) -> list[DuplicateGroup]:
    """Group candidates by content and pick a keeper for each group.

    Only files sharing a size are hashed.  Files that cannot be hashed are
    left out and, when *skipped* is given, recorded there.  The keeper is
    the most recently modified file; ties go to the greatest path so the
    choice is stable between runs.
    """
    hash_file = hasher or get_file_hash

    by_size: dict[int, list[FileCandidate]] = {}
    for candidate in candidates:
        by_size.setdefault(candidate.size, []).append(candidate)

    groups: list[DuplicateGroup] = []
    for size in sorted(by_size):
        same_size = by_size[size]
        if len(same_size) < 2:
            continue

        by_hash: dict[str, list[FileCandidate]] = {}
        for candidate in same_size:
            try:
                digest = hash_file(candidate.path)
            except ReadError as e:
                log.debug("Cannot hash, skipping: %s", e)
                if skipped is not None:
                    skipped.append(EntryResult.skipped(candidate.path, e.reason))
                continue
            by_hash.setdefault(digest, []).append(candidate)

        for digest, members in sorted(by_hash.items()):
            if len(members) < 2:
                continue
            groups.append(_make_group((size, digest), members))

    return groups


def _make_group(fingerprint: tuple[int, str], members: list[FileCandidate]) -> DuplicateGroup:
    keeper = max(members, key=lambda c: (c.mtime, str(c.path)))
    rest = sorted((c for c in members if c is not keeper), key=lambda c: str(c.path))
    return DuplicateGroup(
        fingerprint=fingerprint,
        keeper=_to_item(keeper),
        removable=tuple(_to_item(c, duplicate_of=keeper.path) for c in rest),
    )


def _to_item(candidate: FileCandidate, duplicate_of: Path | None = None) -> CleanableItem:
    return CleanableItem(
        path=candidate.path,
        size_bytes=candidate.size,
        display_name=candidate.path.name,
        is_directory=False,
        description=f"Duplicate of: {duplicate_of}" if duplicate_of else "",
    )


class DuplicateScanner:
    """Finds files with identical content and offers to remove all but the newest copy."""

    category = CATEGORY

    def __init__(self, roots: Sequence[Path | str] | None = None) -> None:
        self._roots = tuple(Path(r).expanduser().absolute() for r in roots) if roots is not None else None

    @property
    def roots(self) -> tuple[Path, ...]:
        return self._roots if self._roots is not None else default_roots()

    def scan(self, options: ScanOptions | None = None) -> ScanResult:
        options = options or ScanOptions()
        skipped: list[EntryResult] = []
        candidates, errors = self._collect(options, skipped)
        groups = find_duplicate_groups(candidates, skipped=skipped)
        items = [item for group in groups for item in group.removable]

        result = ScanResult.from_items(self.category, items, error="; ".join(errors), skipped=skipped)
        log.info(
            "Duplicate scan: %d candidates, %d groups, %d removable files, %d skipped",
            len(candidates),
            len(groups),
            len(result.items),
            len(skipped),
        )
        return result

    def find_groups(self, options: ScanOptions | None = None) -> list[DuplicateGroup]:
        """Like ``scan`` but returns the groups, keepers included."""
        candidates, _ = self._collect(options or ScanOptions(), [])
        return find_duplicate_groups(candidates)

    def clean(self, items: Sequence[CleanableItem], dry_run: bool = False) -> CleanResult:
        return clean_with_probe(self.category, items, dry_run)

    def _collect(
        self,
        options: ScanOptions,
        skipped: list[EntryResult],
    ) -> tuple[list[FileCandidate], list[str]]:
        """Walk the roots and return files big enough to consider.

        Dependency trees are not entered: their contents belong to the
        dependency-tree scanner, and a keeper inside one could be removed
        along with the tree.
        """
        candidates: list[FileCandidate] = []
        errors: list[str] = []
        seen_inodes: set[tuple[int, int]] = set()

        for root in self.roots:
            if options.cancelled:
                break
            if not exists(root):
                log.debug("Scan root does not exist: %s", root)
                continue
            try:
                for entry in walk(root, options.max_depth, descend=_outside_dependency_tree, cancel=options.cancel):
                    try:
                        if not entry.is_file(follow_symlinks=False):
                            continue
                        st = entry.stat(follow_symlinks=False)
                    except OSError as e:
                        log.debug("Cannot stat: %s", entry.path)
                        skipped.append(EntryResult.skipped(Path(entry.path), e.strerror or str(e)))
                        continue
                    if st.st_size == 0 or st.st_size < options.min_size:
                        continue
                    # Hard links share storage; removing one frees nothing.
                    inode = (st.st_dev, st.st_ino)
                    if inode in seen_inodes:
                        continue
                    seen_inodes.add(inode)
                    candidates.append(FileCandidate(Path(entry.path), st.st_size, st.st_mtime))
            except AccessError as e:
                log.warning("Cannot read scan root: %s", e)
                errors.append(str(e))

        return candidates, errors
