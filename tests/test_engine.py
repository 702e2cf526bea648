"""Tests for the scan/clean engine."""

from __future__ import annotations

import threading
from datetime import datetime
from pathlib import Path

import pytest

from reclaim.core.engine import ReclaimEngine, requires_confirmation
from reclaim.core.registry import ScannerRegistry
from reclaim.models.clean_result import CleanResult
from reclaim.models.item import CategoryDescriptor, CleanableItem, SafetyLevel
from reclaim.models.scan_result import ScanOptions, ScanResult
from reclaim.scanners.dependency_trees import DependencyTreeScanner
from reclaim.scanners.duplicates import DuplicateScanner


class FakeScanner:
    """Test scanner that doesn't touch the filesystem."""

    def __init__(self, scanner_id: str = "fake", fail: bool = False, safety: SafetyLevel = SafetyLevel.MODERATE):
        self._category = CategoryDescriptor(
            id=scanner_id,
            name=f"Fake ({scanner_id})",
            group="Test",
            safety_level=safety,
        )
        self._fail = fail
        self.cleaned: list[tuple[list[CleanableItem], bool]] = []
        self.seen_options: list[ScanOptions | None] = []

    @property
    def category(self) -> CategoryDescriptor:
        return self._category

    def scan(self, options: ScanOptions | None = None) -> ScanResult:
        self.seen_options.append(options)
        if self._fail:
            raise RuntimeError("scan failed")
        item = CleanableItem(path=Path(f"/tmp/{self._category.id}"), size_bytes=1024, display_name="fake")
        return ScanResult.from_items(self._category, [item])

    def clean(self, items, dry_run: bool = False) -> CleanResult:
        if self._fail:
            raise RuntimeError("clean failed")
        items = list(items)
        self.cleaned.append((items, dry_run))
        return CleanResult(
            category=self._category,
            deleted=[i.path for i in items],
            freed_bytes=sum(i.size_bytes for i in items),
            dry_run=dry_run,
        )


def _engine(*scanners) -> ReclaimEngine:
    registry = ScannerRegistry()
    for scanner in scanners:
        registry.register(scanner)
    return ReclaimEngine(registry)


@pytest.fixture
def engine():
    return _engine(FakeScanner("alpha"), FakeScanner("beta"))


class TestScan:
    def test_scan_all(self, engine):
        results = engine.scan()
        assert [r.category.id for r in results] == ["alpha", "beta"]

    def test_scan_specific_scanners(self, engine):
        results = engine.scan(scanner_ids=["beta"])
        assert [r.category.id for r in results] == ["beta"]

    def test_unknown_scanner_is_skipped(self, engine):
        results = engine.scan(scanner_ids=["nope", "alpha"])
        assert [r.category.id for r in results] == ["alpha"]

    def test_options_are_passed_through(self):
        scanner = FakeScanner("alpha")
        options = ScanOptions(min_size=5)
        _engine(scanner).scan(options=options)
        assert scanner.seen_options == [options]

    def test_scan_handles_scanner_errors(self):
        engine = _engine(FakeScanner("good"), FakeScanner("bad", fail=True))
        events: list[tuple[str, str]] = []

        results = engine.scan(on_progress=lambda sid, status: events.append((sid, status)))

        assert [r.category.id for r in results] == ["good"]
        assert ("bad", "error") in events
        assert ("good", "done") in events

    def test_progress_order(self, engine):
        events: list[tuple[str, str]] = []
        engine.scan(on_progress=lambda sid, status: events.append((sid, status)))
        assert events == [
            ("alpha", "scanning"),
            ("alpha", "done"),
            ("beta", "scanning"),
            ("beta", "done"),
        ]

    def test_on_result_not_called_for_errors(self):
        engine = _engine(FakeScanner("good"), FakeScanner("bad", fail=True))
        received: list[ScanResult] = []
        engine.scan(on_result=received.append)
        assert [r.category.id for r in received] == ["good"]

    def test_cancelled_scan_runs_nothing(self, engine):
        cancel = threading.Event()
        cancel.set()
        assert engine.scan(options=ScanOptions(cancel=cancel)) == []


class TestClean:
    def test_dry_run_delegates_to_scanner(self):
        scanner = FakeScanner("alpha")
        items = scanner.scan().items

        results = _engine(scanner).clean({"alpha": items}, dry_run=True)

        assert scanner.cleaned == [(items, True)]
        assert results[0].dry_run is True
        assert results[0].backup_dir is None

    def test_no_backup_deletes_through_scanner(self):
        scanner = FakeScanner("alpha")
        items = scanner.scan().items

        results = _engine(scanner).clean({"alpha": items}, use_backup=False)

        assert scanner.cleaned == [(items, False)]
        assert results[0].freed_bytes == 1024

    def test_backup_moves_items(self, tmp_path, make_file, isolate_backups):
        scanner = FakeScanner("alpha")
        f = make_file(tmp_path / "victim.bin", b"v" * 1024)
        item = CleanableItem(path=f, size_bytes=1024, display_name=f.name)

        results = _engine(scanner).clean({"alpha": [item]})

        result = results[0]
        assert scanner.cleaned == []
        assert result.deleted == [f]
        assert result.freed_bytes == 1024
        assert result.errors == []
        assert result.backup_dir is not None
        assert result.backup_dir.parent == isolate_backups
        assert not f.exists()

    def test_backup_failure_keeps_item(self, tmp_path, make_file, isolate_backups):
        present = make_file(tmp_path / "present.bin")
        missing = tmp_path / "missing.bin"
        items = [
            CleanableItem(path=missing, size_bytes=500, display_name="missing"),
            CleanableItem(path=present, size_bytes=1024, display_name="present"),
        ]

        result = _engine(FakeScanner("alpha")).clean({"alpha": items})[0]

        assert result.deleted == [present]
        assert result.freed_bytes == 1024
        assert len(result.errors) == 1
        assert str(missing) in result.errors[0]

    def test_nothing_moved_has_no_backup_dir(self, tmp_path, isolate_backups):
        item = CleanableItem(path=tmp_path / "gone.bin", size_bytes=10, display_name="gone")

        result = _engine(FakeScanner("alpha")).clean({"alpha": [item]})[0]

        assert result.backup_dir is None
        assert result.errors

    def test_unknown_scanner_is_skipped(self, engine):
        assert engine.clean({"nope": []}, dry_run=True) == []

    def test_clean_handles_scanner_errors(self):
        engine = _engine(FakeScanner("bad", fail=True))
        received: list[CleanResult] = []
        events: list[tuple[str, str]] = []

        results = engine.clean(
            {"bad": []},
            use_backup=False,
            on_progress=lambda sid, status: events.append((sid, status)),
            on_result=received.append,
        )

        assert len(results) == 1
        assert results[0].errors
        assert received == results
        assert ("bad", "error") in events


def test_keeper_inside_dependency_tree_survives_full_clean(tmp_path, make_file):
    documents = tmp_path / "Documents"
    report = make_file(documents / "report.pdf", b"r" * 4096, mtime=datetime(2020, 1, 1))
    make_file(documents / "tool" / "node_modules" / "pkg" / "report.pdf", b"r" * 4096, mtime=datetime(2024, 1, 1))
    engine = _engine(DuplicateScanner(roots=[documents]), DependencyTreeScanner(roots=[documents]))

    results = engine.scan(options=ScanOptions(min_size=100))
    selection = {r.category.id: r.items for r in results if r.items}
    engine.clean(selection, use_backup=False)

    assert list(selection) == ["node-modules"]
    assert report.read_bytes() == b"r" * 4096
    assert not (documents / "tool" / "node_modules").exists()


def test_requires_confirmation():
    def category(level):
        return CategoryDescriptor(id="x", name="X", group="Test", safety_level=level)

    assert requires_confirmation(category(SafetyLevel.SAFE)) is False
    assert requires_confirmation(category(SafetyLevel.MODERATE)) is True
    assert requires_confirmation(category(SafetyLevel.RISKY)) is True
