"""Tests for the JSON settings store."""

from __future__ import annotations

import json
from pathlib import Path

from reclaim.models.scan_result import DEFAULT_DAYS_OLD, DEFAULT_MAX_DEPTH, DEFAULT_MIN_SIZE, ScanOptions
from reclaim.settings import Settings


class TestSettings:
    def test_defaults_without_file(self, tmp_path):
        settings = Settings(tmp_path / "missing.json")

        assert settings.get("scan.min_size") is None
        assert settings.get("scan.min_size", 5) == 5
        assert settings.scan_options() == ScanOptions(
            min_size=DEFAULT_MIN_SIZE, days_old=DEFAULT_DAYS_OLD, max_depth=DEFAULT_MAX_DEPTH
        )
        assert settings.retention_days == 7
        assert settings.disabled_scanners == set()

    def test_set_persists(self, tmp_path):
        path = tmp_path / "conf" / "settings.json"
        Settings(path).set("backup.retention_days", 14)

        assert json.loads(path.read_text()) == {"backup": {"retention_days": 14}}
        assert Settings(path).retention_days == 14

    def test_set_replaces_non_dict_parent(self, tmp_path):
        settings = Settings(tmp_path / "settings.json")
        settings.set("scan", 3)
        settings.set("scan.days_old", 10)

        assert settings.get("scan") == {"days_old": 10}

    def test_invalid_json_is_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")

        assert Settings(path).get("scan.min_size") is None

    def test_non_object_is_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2, 3]")

        assert Settings(path).get("0") is None

    def test_scan_options_from_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"scan": {"min_size": 10, "days_old": 3, "max_depth": 2}}))

        assert Settings(path).scan_options() == ScanOptions(min_size=10, days_old=3, max_depth=2)

    def test_invalid_values_fall_back(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"scan": {"min_size": -1, "days_old": "ten", "max_depth": True}}))

        options = Settings(path).scan_options()

        assert options.min_size == DEFAULT_MIN_SIZE
        assert options.days_old == DEFAULT_DAYS_OLD
        assert options.max_depth == DEFAULT_MAX_DEPTH

    def test_scanner_roots(self, tmp_path, fake_home):
        path = tmp_path / "settings.json"
        path.write_text(
            json.dumps(
                {
                    "scanners": {
                        "duplicates": {"roots": ["~/Media", "/srv/share"]},
                        "node-modules": {"roots": "not-a-list"},
                    }
                }
            )
        )
        settings = Settings(path)

        assert settings.scanner_roots("duplicates") == [fake_home / "Media", Path("/srv/share")]
        assert settings.scanner_roots("node-modules") is None
        assert settings.scanner_roots("other") is None

    def test_default_path_follows_xdg(self, fake_home):
        assert Settings().path == fake_home / ".config" / "reclaim" / "settings.json"
