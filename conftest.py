"""Pytest configuration: puts the in-repo src package on sys.path and shares fixtures."""
from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).resolve().parent / "src"
if SRC_PATH.exists():
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture
def t0():
    """Fixed reference instant for timestamp arithmetic."""
    return datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path, monkeypatch):
    """Keep default workspace and export paths inside the test's tmp dir."""
    monkeypatch.setenv("LIQUID_FRAMES_WORKSPACE", str(tmp_path / "default-workspace.json"))
    monkeypatch.setenv("LIQUID_FRAMES_EXPORT_DIR", str(tmp_path / "exports"))
    monkeypatch.setenv("LIQUID_FRAMES_VERBOSITY", "1")
