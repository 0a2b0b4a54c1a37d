"""Shared fixtures for relsync tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from relsync.store.memory import MemoryStore


@pytest.fixture()
def base_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect all relsync runtime files to a temporary directory.

    Patches ``relsync.config.get_base_dir`` so that nothing touches the real
    ``~/.relsync/``.
    """
    fake_base = tmp_path / ".relsync"
    fake_base.mkdir()
    (fake_base / "logs").mkdir()

    monkeypatch.setattr("relsync.config.get_base_dir", lambda: fake_base)

    return fake_base


@pytest.fixture()
def store() -> MemoryStore:
    """Store with ``users`` and ``posts`` (posts.author -> users)."""
    s = MemoryStore()
    s.register("users", "id")
    s.register("posts", "id", {"author": "users"})
    return s
