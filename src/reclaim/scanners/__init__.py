"""Built-in scanner variants."""

from reclaim.scanners.dependency_trees import DependencyTreeScanner
from reclaim.scanners.duplicates import DuplicateScanner

BUILTIN_SCANNERS = (DuplicateScanner, DependencyTreeScanner)

__all__ = ["BUILTIN_SCANNERS", "DependencyTreeScanner", "DuplicateScanner"]
