"""Tests for relsync.cli module."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx
import pytest
import structlog
from typer.testing import CliRunner

from relsync.cli import app
from relsync.config import load_config

runner = CliRunner()

_MANIFEST = """
[types.users]

[types.posts]
relations = { author = "users" }

[[pending]]
type = "users"
new = true
entity = { id = "tmp-1", name = "Ann" }

[[pending]]
type = "posts"
new = true
entity = { id = "tmp-2", author = "tmp-1", title = "Hello" }
"""

_CYCLE = """
[types.employees]
relations = { manager = "employees" }

[[pending]]
type = "employees"
entity = { id = 1, manager = 2 }
"""


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()


@pytest.fixture()
def manifest(tmp_path: Path) -> Path:
    path = tmp_path / "manifest.toml"
    path.write_text(_MANIFEST, encoding="utf-8")
    return path


def _mock_client(handler):
    def factory(base_url: str, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=base_url, transport=httpx.MockTransport(handler))

    return factory


# ---------------------------------------------------------------------------
# 1. --help
# ---------------------------------------------------------------------------


def test_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "relsync" in result.output.lower()


# ---------------------------------------------------------------------------
# 2. plan
# ---------------------------------------------------------------------------


def test_plan_shows_levels(base_dir: Path, manifest: Path):
    result = runner.invoke(app, ["plan", str(manifest)])

    assert result.exit_code == 0
    assert "Sync levels" in result.output
    assert "users" in result.output
    assert "posts" in result.output


def test_plan_nothing_pending(base_dir: Path, tmp_path: Path):
    path = tmp_path / "empty.toml"
    path.write_text("[types.users]\n", encoding="utf-8")

    result = runner.invoke(app, ["plan", str(path)])

    assert result.exit_code == 0
    assert "Nothing pending" in result.output


def test_plan_reports_cycle(base_dir: Path, tmp_path: Path):
    path = tmp_path / "cycle.toml"
    path.write_text(_CYCLE, encoding="utf-8")

    result = runner.invoke(app, ["plan", str(path)])

    assert result.exit_code == 1
    assert "Circular dependency" in result.output
    assert "employees -> employees" in result.output


def test_plan_invalid_manifest(base_dir: Path, tmp_path: Path):
    path = tmp_path / "bad.toml"
    path.write_text('[[pending]]\ntype = "ghosts"\n', encoding="utf-8")

    result = runner.invoke(app, ["plan", str(path)])

    assert result.exit_code == 1
    assert "Invalid manifest" in result.output


# ---------------------------------------------------------------------------
# 3. sync
# ---------------------------------------------------------------------------


def test_sync_requires_base_url(base_dir: Path, manifest: Path):
    result = runner.invoke(app, ["sync", str(manifest)])

    assert result.exit_code == 1
    assert "No base URL" in result.output


def test_sync_success(base_dir: Path, manifest: Path, monkeypatch: pytest.MonkeyPatch):
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        if request.url.path == "/users":
            return httpx.Response(201, json={"id": 1, "name": "Ann"})
        return httpx.Response(201, json={"id": 2, "author": 1, "title": "Hello"})

    monkeypatch.setattr("relsync.cli._make_client", _mock_client(handler))

    result = runner.invoke(app, ["sync", str(manifest), "--base-url", "http://api.test"])

    assert result.exit_code == 0
    assert "2 succeeded" in result.output
    assert seen == [("POST", "/users"), ("POST", "/posts")]
    assert (base_dir / "logs" / "sync.log").exists()


def test_sync_failure_exits_nonzero(base_dir: Path, manifest: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr("relsync.cli._make_client", _mock_client(lambda request: httpx.Response(500)))

    result = runner.invoke(app, ["sync", str(manifest), "-u", "http://api.test"])

    assert result.exit_code == 1
    assert "2 failed" in result.output


# ---------------------------------------------------------------------------
# 4. config
# ---------------------------------------------------------------------------


def test_config_show_defaults(base_dir: Path):
    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    assert "store_key" in result.output
    assert "(not set)" in result.output


def test_config_set_float(base_dir: Path):
    result = runner.invoke(app, ["config", "set", "sync.operation_timeout_seconds", "5"])

    assert result.exit_code == 0
    assert load_config().sync.operation_timeout_seconds == 5.0


def test_config_set_base_url_used_by_sync(base_dir: Path, manifest: Path, monkeypatch: pytest.MonkeyPatch):
    urls: list[str] = []

    def factory(base_url: str, timeout: float) -> httpx.AsyncClient:
        urls.append(base_url)
        return httpx.AsyncClient(
            base_url=base_url,
            transport=httpx.MockTransport(lambda request: httpx.Response(201, json={"id": 1})),
        )

    monkeypatch.setattr("relsync.cli._make_client", factory)
    runner.invoke(app, ["config", "set", "http.base_url", "http://configured.test"])

    result = runner.invoke(app, ["sync", str(manifest)])

    assert result.exit_code == 0
    assert urls == ["http://configured.test"]


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("nodot", "x"),
        ("bogus.field", "x"),
        ("sync.bogus", "x"),
        ("sync.operation_timeout_seconds", "soon"),
    ],
)
def test_config_set_rejects(base_dir: Path, key: str, value: str):
    result = runner.invoke(app, ["config", "set", key, value])
    assert result.exit_code == 1
