"""Shared test fixtures."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import pytest

import reclaim.backup as backup


@pytest.fixture
def isolate_backups(tmp_path, monkeypatch):
    """Redirect the backup root to a temp directory."""
    root = tmp_path / "reclaim_backups"
    monkeypatch.setattr(backup, "BACKUP_ROOT", root)
    return root


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    """Point Path.home() and the XDG directories at a temp directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", staticmethod(lambda: home))
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    return home


@pytest.fixture
def make_file():
    """Write a file, creating parents, optionally with a given mtime."""

    def _make(path: Path, data: bytes = b"x" * 1024, mtime: datetime | float | None = None) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        if mtime is not None:
            ts = mtime.timestamp() if isinstance(mtime, datetime) else mtime
            os.utime(path, (ts, ts))
        return path

    return _make
