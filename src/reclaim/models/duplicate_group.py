"""Duplicate group dataclass."""

from __future__ import annotations

from dataclasses import dataclass

from reclaim.models.item import CleanableItem

Fingerprint = tuple[int, str]  # (size_bytes, content digest)


@dataclass(frozen=True, slots=True)
class DuplicateGroup:
    """Files sharing one content fingerprint.

    ``keeper`` is the copy that stays; everything in ``removable`` may be
    deleted.  A group always has at least two members.
    """

    fingerprint: Fingerprint
    keeper: CleanableItem
    removable: tuple[CleanableItem, ...]

    def __post_init__(self) -> None:
        if not self.removable:
            raise ValueError("A duplicate group needs at least two members")
        if self.keeper in self.removable:
            raise ValueError(f"Keeper listed as removable: {self.keeper.path}")

    @property
    def members(self) -> tuple[CleanableItem, ...]:
        return (self.keeper, *self.removable)

    @property
    def wasted_bytes(self) -> int:
        return sum(i.size_bytes for i in self.removable)
