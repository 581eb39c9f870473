"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep user config files and FERRY_* variables out of tests."""
    monkeypatch.setenv("FERRY_CONFIG", str(tmp_path / "missing-config.yml"))
    for name in ("FERRY_DEFAULT_SITE", "FERRY_DEFAULT_KEY", "FERRY_CONCURRENCY"):
        monkeypatch.delenv(name, raising=False)
