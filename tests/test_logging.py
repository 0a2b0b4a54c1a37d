"""Tests for the structured logging configuration."""

from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest
import structlog

from relsync.logging import setup_logging


@pytest.fixture(autouse=True)
def _reset_logging():
    """Reset logging state between tests."""
    hook = sys.excepthook
    yield
    sys.excepthook = hook
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# -- File creation ----------------------------------------------------------


def test_setup_creates_log_dir_and_files(tmp_path: Path):
    log_dir = tmp_path / "logs"
    setup_logging(log_level="info", log_dir=log_dir)

    structlog.get_logger("relsync.test").info("hello")

    assert (log_dir / "relsync.log").exists()
    assert (log_dir / "sync.log").exists()


# -- relsync.log format ------------------------------------------------------


def test_main_log_human_readable(tmp_path: Path):
    log_dir = tmp_path / "logs"
    setup_logging(log_level="info", log_dir=log_dir)

    structlog.get_logger("relsync.cli").info("test_event", key="value")

    content = (log_dir / "relsync.log").read_text()
    assert "test_event" in content
    assert "key=value" in content


# -- sync.log format ---------------------------------------------------------


def test_sync_log_json(tmp_path: Path):
    log_dir = tmp_path / "logs"
    setup_logging(log_level="info", log_dir=log_dir)

    structlog.get_logger("relsync.sync.scheduler").info("level_settled", level=0, failed=1)

    data = json.loads((log_dir / "sync.log").read_text().strip())
    assert data["event"] == "level_settled"
    assert data["failed"] == 1
    assert data["level"] == "info"
    assert "timestamp" in data


def test_sync_log_renders_unserializable_values(tmp_path: Path):
    log_dir = tmp_path / "logs"
    setup_logging(log_level="info", log_dir=log_dir)

    structlog.get_logger("relsync.sync.invoker").info("endpoint_failed", error=ValueError("boom"))

    data = json.loads((log_dir / "sync.log").read_text().strip())
    assert data["error"] == "boom"


# -- Filtering ----------------------------------------------------------------


def test_sync_log_excludes_non_sync_events(tmp_path: Path):
    log_dir = tmp_path / "logs"
    setup_logging(log_level="info", log_dir=log_dir)

    structlog.get_logger("relsync.endpoints.http").info("rest_event")
    structlog.get_logger("relsync.sync.scheduler").info("sync_event")

    sync_content = (log_dir / "sync.log").read_text()
    main_content = (log_dir / "relsync.log").read_text()
    assert "sync_event" in sync_content
    assert "rest_event" not in sync_content
    assert "rest_event" in main_content
    assert "sync_event" in main_content


# -- Levels -------------------------------------------------------------------


def test_level_filtering_suppresses_lower(tmp_path: Path):
    log_dir = tmp_path / "logs"
    setup_logging(log_level="warning", log_dir=log_dir)

    log = structlog.get_logger("relsync.test")
    log.info("should_not_appear")
    log.warning("should_appear")

    content = (log_dir / "relsync.log").read_text()
    assert "should_not_appear" not in content
    assert "should_appear" in content


def test_http_client_loggers_capped(tmp_path: Path):
    setup_logging(log_level="debug", log_dir=tmp_path / "logs")
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


# -- Handlers -----------------------------------------------------------------


def test_rotation_parameters(tmp_path: Path):
    setup_logging(log_level="info", log_dir=tmp_path / "logs")

    rotating = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
    assert len(rotating) == 2
    for handler in rotating:
        assert handler.maxBytes == 10 * 1024 * 1024
        assert handler.backupCount == 5


def test_no_log_dir_no_handlers():
    setup_logging(log_level="info", log_dir=None)
    assert logging.getLogger().handlers == []


# -- Context variables --------------------------------------------------------


def test_sync_run_context_in_sync_log(tmp_path: Path):
    log_dir = tmp_path / "logs"
    setup_logging(log_level="info", log_dir=log_dir)

    structlog.contextvars.bind_contextvars(sync_run="abc123")
    structlog.get_logger("relsync.sync.scheduler").info("with_context")

    data = json.loads((log_dir / "sync.log").read_text().strip())
    assert data["sync_run"] == "abc123"


# -- Uncaught exceptions and bad levels ---------------------------------------


def test_uncaught_exception_logged(tmp_path: Path):
    log_dir = tmp_path / "logs"
    setup_logging(log_level="info", log_dir=log_dir)

    try:
        raise RuntimeError("kaboom")
    except RuntimeError as exc:
        sys.excepthook(type(exc), exc, exc.__traceback__)

    content = (log_dir / "relsync.log").read_text()
    assert "Unhandled exception" in content
    assert "kaboom" in content


def test_unknown_level_falls_back_to_info(tmp_path: Path):
    setup_logging(log_level="chatty", log_dir=tmp_path / "logs")
    assert logging.getLogger().level == logging.INFO
