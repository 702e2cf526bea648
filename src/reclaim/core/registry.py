"""Central scanner registry."""

from __future__ import annotations

import logging
from typing import Iterator

from reclaim.models.scanner import Scanner
from reclaim.scanners import BUILTIN_SCANNERS
from reclaim.settings import Settings

log = logging.getLogger(__name__)


class ScannerRegistry:
    """Stores and retrieves registered scanners by category id."""

    def __init__(self) -> None:
        self._scanners: dict[str, Scanner] = {}

    def register(self, scanner: Scanner) -> None:
        """Register a scanner instance."""
        if not isinstance(scanner, Scanner):
            raise TypeError(f"{type(scanner).__name__} does not implement the Scanner interface")
        scanner_id = scanner.category.id
        if scanner_id in self._scanners:
            log.warning("Scanner '%s' already registered, skipping duplicate", scanner_id)
            return
        self._scanners[scanner_id] = scanner
        log.debug("Registered scanner: %s (%s)", scanner_id, scanner.category.name)

    def get(self, scanner_id: str) -> Scanner | None:
        """Get a scanner by its category id."""
        return self._scanners.get(scanner_id)

    def get_all(self) -> list[Scanner]:
        """Get all registered scanners."""
        return list(self._scanners.values())

    def get_by_group(self, group: str) -> list[Scanner]:
        """Get all scanners whose category belongs to *group*."""
        return [s for s in self._scanners.values() if s.category.group == group]

    def __len__(self) -> int:
        return len(self._scanners)

    def __iter__(self) -> Iterator[Scanner]:
        return iter(self._scanners.values())

    def __contains__(self, scanner_id: str) -> bool:
        return scanner_id in self._scanners


def load_scanners(registry: ScannerRegistry, settings: Settings | None = None) -> None:
    """Instantiate and register the built-in scanners.

    Scanners listed in ``scanners.disabled`` are left out; configured
    ``scanners.<id>.roots`` replace a scanner's default roots.
    """
    settings = settings or Settings()
    disabled = settings.disabled_scanners

    for cls in BUILTIN_SCANNERS:
        scanner_id = cls.category.id
        if scanner_id in disabled:
            log.info("Scanner '%s' disabled in settings", scanner_id)
            continue
        registry.register(cls(roots=settings.scanner_roots(scanner_id)))

    log.info("Loaded %d scanners", len(registry))
