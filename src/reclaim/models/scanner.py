"""Scanner capability shared by every category variant."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from reclaim.models.clean_result import CleanResult
from reclaim.models.item import CategoryDescriptor, CleanableItem
from reclaim.models.scan_result import ScanOptions, ScanResult


@runtime_checkable
class Scanner(Protocol):
    """What every scanner variant provides.

    Variants are independent classes that satisfy this protocol; adding a
    variant means writing a new class and registering it, not extending a
    base class.
    """

    @property
    def category(self) -> CategoryDescriptor:
        """Constant descriptor of what this scanner finds."""

    def scan(self, options: ScanOptions | None = None) -> ScanResult:
        """Find cleanable items. MUST NOT delete anything and MUST NOT raise
        for per-entry filesystem problems."""

    def clean(self, items: Sequence[CleanableItem], dry_run: bool = False) -> CleanResult:
        """Remove *items*, or report what would be removed on a dry run."""


def clean_with_probe(
    category: CategoryDescriptor,
    items: Sequence[CleanableItem],
    dry_run: bool = False,
) -> CleanResult:
    """Default ``clean`` implementation: remove items and attribute the result.

    Variants whose items are plain files or directories delegate here.
    """
    from reclaim.utils import remove_items

    report = remove_items(items, dry_run)
    return CleanResult.from_report(category, report, dry_run=dry_run)
