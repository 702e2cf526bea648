"""Cleanable items and the category descriptors scanners declare."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class SafetyLevel(str, Enum):
    """Risk tier of a category, used to decide whether to ask before cleaning."""

    SAFE = "safe"
    MODERATE = "moderate"
    RISKY = "risky"


@dataclass(frozen=True, slots=True)
class CategoryDescriptor:
    """Static description of what a scanner finds.

    One instance per scanner variant; it never changes for the lifetime
    of the process.
    """

    id: str
    name: str
    group: str
    safety_level: SafetyLevel
    description: str = ""


@dataclass(frozen=True, slots=True)
class CleanableItem:
    """A file or directory that can be removed.

    Identity is the absolute path: two items with the same path compare
    equal regardless of the other fields.  Items are never mutated after
    a scan; a new scan produces new items.
    """

    path: Path
    size_bytes: int = field(compare=False)
    display_name: str = field(compare=False)
    is_directory: bool = field(default=False, compare=False)
    description: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.path, Path):
            object.__setattr__(self, "path", Path(self.path))
        if not self.path.is_absolute():
            raise ValueError(f"Item path must be absolute: {self.path}")
        if self.size_bytes < 0:
            raise ValueError(f"size_bytes must be >= 0, got {self.size_bytes}")
