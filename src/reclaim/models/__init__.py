"""Reclaim data models."""

from reclaim.models.item import CategoryDescriptor, CleanableItem, SafetyLevel
from reclaim.models.scan_result import ScanOptions, ScanResult
from reclaim.models.clean_result import CleanResult, RemovalReport
from reclaim.models.duplicate_group import DuplicateGroup
from reclaim.models.outcome import EntryResult, EntryStatus
from reclaim.models.backup import BackupFailure, BackupInfo, BackupManifest, BackupOutcome, RestoreOutcome
from reclaim.models.scanner import Scanner, clean_with_probe

__all__ = [
    "BackupFailure",
    "BackupInfo",
    "BackupManifest",
    "BackupOutcome",
    "CategoryDescriptor",
    "CleanResult",
    "CleanableItem",
    "DuplicateGroup",
    "EntryResult",
    "EntryStatus",
    "RemovalReport",
    "RestoreOutcome",
    "SafetyLevel",
    "ScanOptions",
    "ScanResult",
    "Scanner",
    "clean_with_probe",
]
