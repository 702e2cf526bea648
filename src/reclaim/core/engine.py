"""Scanning and cleaning orchestration engine."""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Sequence

from reclaim import backup
from reclaim.core.registry import ScannerRegistry
from reclaim.models.clean_result import CleanResult
from reclaim.models.item import CategoryDescriptor, CleanableItem, SafetyLevel
from reclaim.models.scan_result import ScanOptions, ScanResult
from reclaim.models.scanner import Scanner

log = logging.getLogger(__name__)

ProgressCallback = Callable[[str, str], None]  # (scanner_id, status_message)
ResultCallback = Callable[[ScanResult], None]
CleanResultCallback = Callable[[CleanResult], None]


def requires_confirmation(category: CategoryDescriptor) -> bool:
    """Whether a human should confirm before this category is cleaned."""
    return category.safety_level is not SafetyLevel.SAFE


class ReclaimEngine:
    """Sequences scan, backup and removal across scanners.

    Scanners run one after another so progress and ordering stay
    deterministic.  Nothing is cached between scans.
    """

    def __init__(self, registry: ScannerRegistry) -> None:
        self.registry = registry

    def scan(
        self,
        scanner_ids: Sequence[str] | None = None,
        options: ScanOptions | None = None,
        on_progress: ProgressCallback | None = None,
        on_result: ResultCallback | None = None,
    ) -> list[ScanResult]:
        """Scan for cleanable items.

        Args:
            scanner_ids: Specific scanner ids to run. If None, run all.
            options: Options passed to every scanner.
            on_progress: Optional callback for progress updates.
            on_result: Optional callback fired after each successful scan.

        Returns:
            One scan result per scanner that completed.
        """
        results: list[ScanResult] = []
        for scanner in self._resolve_scanners(scanner_ids):
            scanner_id = scanner.category.id
            if options is not None and options.cancelled:
                log.info("Scan cancelled before '%s'", scanner_id)
                break
            if on_progress:
                on_progress(scanner_id, "scanning")
            try:
                result = scanner.scan(options)
            except Exception:
                log.exception("Scanner '%s' failed during scan", scanner_id)
                if on_progress:
                    on_progress(scanner_id, "error")
                continue
            results.append(result)
            if on_result:
                on_result(result)
            if on_progress:
                on_progress(scanner_id, "done")
        return results

    def clean(
        self,
        selection: Mapping[str, Sequence[CleanableItem]],
        dry_run: bool = False,
        use_backup: bool = True,
        on_progress: ProgressCallback | None = None,
        on_result: CleanResultCallback | None = None,
    ) -> list[CleanResult]:
        """Remove the selected items, category by category.

        With *use_backup* every item is first moved into a backup
        generation; items that could not be moved stay where they are and
        are reported as errors.  Without it, items are deleted right away
        by their scanner.  Dry runs never touch the filesystem.

        Args:
            selection: Mapping of scanner id to the items to remove.
            dry_run: Report what would be removed without removing it.
            use_backup: Move items into the backup store instead of deleting.
            on_progress: Optional callback for progress updates.
            on_result: Optional callback fired after each category finishes.
        """
        results: list[CleanResult] = []
        for scanner_id, items in selection.items():
            scanner = self.registry.get(scanner_id)
            if scanner is None:
                log.warning("Scanner '%s' not found, skipping", scanner_id)
                continue
            if on_progress:
                on_progress(scanner_id, "cleaning")
            try:
                if use_backup and not dry_run:
                    result = self._backup_and_remove(scanner, items)
                else:
                    result = scanner.clean(list(items), dry_run=dry_run)
            except Exception:
                log.exception("Scanner '%s' failed during clean", scanner_id)
                result = CleanResult(category=scanner.category, errors=["Scanner crashed during cleaning"])
            results.append(result)
            if on_result:
                on_result(result)
            if on_progress:
                on_progress(scanner_id, "error" if result.errors else "done")
        return results

    def _backup_and_remove(self, scanner: Scanner, items: Sequence[CleanableItem]) -> CleanResult:
        """Move items into one backup generation; only moved items count as removed."""
        items = list(dict.fromkeys(items))
        outcome = backup.backup_items(items)
        failed = {f.path for f in outcome.failures}
        moved = [item for item in items if item.path not in failed]
        return CleanResult(
            category=scanner.category,
            deleted=[item.path for item in moved],
            freed_bytes=sum(item.size_bytes for item in moved),
            errors=[f"{f.path}: {f.reason}" for f in outcome.failures],
            backup_dir=outcome.backup_dir if outcome.success else None,
        )

    def _resolve_scanners(self, scanner_ids: Sequence[str] | None) -> list[Scanner]:
        if not scanner_ids:
            return self.registry.get_all()
        resolved: list[Scanner] = []
        for scanner_id in scanner_ids:
            scanner = self.registry.get(scanner_id)
            if scanner is None:
                log.warning("Scanner '%s' not found, skipping", scanner_id)
            else:
                resolved.append(scanner)
        return resolved
