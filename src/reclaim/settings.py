"""JSON-backed settings store."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from reclaim.backup import DEFAULT_RETENTION_DAYS
from reclaim.models.scan_result import DEFAULT_DAYS_OLD, DEFAULT_MAX_DEPTH, DEFAULT_MIN_SIZE, ScanOptions
from reclaim.utils import xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_DIR = "reclaim"
_SETTINGS_FILE = "settings.json"


class Settings:
    """Persistent settings backed by a JSON file.

    Uses dot-notation keys for nested access:
        settings.get("scan.min_size")  # reads data["scan"]["min_size"]
        settings.set("backup.retention_days", 14)  # writes + saves

    Recognised keys: ``scan.min_size``, ``scan.days_old``,
    ``scan.max_depth``, ``backup.retention_days``,
    ``scanners.<id>.roots`` and ``scanners.disabled``.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or (xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE)
        self._data: dict[str, Any] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Set a value by dot-notation key and persist to disk."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        self._save()

    def get_int(self, key: str, default: int) -> int:
        """Get a non-negative integer, falling back to *default* on bad values."""
        value = self.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            log.warning("Ignoring invalid value for %s: %r", key, value)
            return default
        return value

    def scan_options(self) -> ScanOptions:
        return ScanOptions(
            min_size=self.get_int("scan.min_size", DEFAULT_MIN_SIZE),
            days_old=self.get_int("scan.days_old", DEFAULT_DAYS_OLD),
            max_depth=self.get_int("scan.max_depth", DEFAULT_MAX_DEPTH),
        )

    @property
    def retention_days(self) -> int:
        return self.get_int("backup.retention_days", DEFAULT_RETENTION_DAYS)

    def scanner_roots(self, scanner_id: str) -> list[Path] | None:
        """Configured scan roots for a scanner, or None to use its defaults."""
        roots = self.get(f"scanners.{scanner_id}.roots")
        if roots is None:
            return None
        if not isinstance(roots, list) or not all(isinstance(r, str) for r in roots):
            log.warning("Ignoring invalid roots for scanner '%s': %r", scanner_id, roots)
            return None
        return [Path(r).expanduser() for r in roots]

    @property
    def disabled_scanners(self) -> set[str]:
        disabled = self.get("scanners.disabled", [])
        if not isinstance(disabled, list):
            log.warning("Ignoring invalid scanners.disabled: %r", disabled)
            return set()
        return {str(d) for d in disabled}

    def _load(self) -> None:
        """Load settings from disk, gracefully handling errors."""
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return
        if not isinstance(data, dict):
            log.warning("Settings file %s does not contain an object, ignoring it", self._path)
            return
        self._data = data

    def _save(self) -> None:
        """Persist settings to disk."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._data, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            log.warning("Could not save settings to %s: %s", self._path, e)
