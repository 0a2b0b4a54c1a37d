"""Configuration management for relsync."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

_BASE_DIR_NAME = ".relsync"
_CONFIG_FILE = "config.toml"
_LOG_DIR = "logs"

DEFAULT_STORE_KEY = "relsync"


def get_base_dir() -> Path:
    """Return the base directory for all relsync runtime files (~/.relsync/)."""
    return Path.home() / _BASE_DIR_NAME


# ---------------------------------------------------------------------------
# Config models
# ---------------------------------------------------------------------------


class SyncConfig(BaseModel):
    """Settings that control the synchronization scheduler."""

    store_key: str = Field(default=DEFAULT_STORE_KEY, description="Store slice holding the entity state")
    operation_timeout_seconds: float = Field(
        default=30.0,
        ge=0.0,
        description="Deadline for a single endpoint call (0 disables it)",
    )

    @property
    def operation_timeout(self) -> float | None:
        return self.operation_timeout_seconds or None


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="info", description="Logging level")


class HttpConfig(BaseModel):
    """Settings for the REST endpoint adapter."""

    base_url: str = Field(default="", description="Base URL of the remote API")
    timeout_seconds: float = Field(default=30.0, gt=0.0, description="HTTP client timeout")


class AppConfig(BaseModel):
    """Top-level application configuration."""

    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)

    # -- derived paths (not stored in TOML) --------------------------------

    @property
    def base_dir(self) -> Path:
        return get_base_dir()

    @property
    def log_dir(self) -> Path:
        return self.base_dir / _LOG_DIR


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------


def ensure_dirs() -> None:
    """Create the base directory and log directory if they don't already exist."""
    base = get_base_dir()
    base.mkdir(mode=0o700, parents=True, exist_ok=True)
    (base / _LOG_DIR).mkdir(mode=0o700, parents=True, exist_ok=True)


def config_exists() -> bool:
    """Return True if a config file is present on disk."""
    return (get_base_dir() / _CONFIG_FILE).is_file()


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def load_config() -> AppConfig:
    """Load configuration from TOML, falling back to defaults if the file is missing."""
    path = get_base_dir() / _CONFIG_FILE
    if not path.is_file():
        return AppConfig()

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    return AppConfig.model_validate(raw)


def _format_toml_value(value: object) -> str:
    """Format a single Python value as a TOML literal."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    msg = f"Unsupported TOML value type: {type(value)}"
    raise TypeError(msg)


def _dump_toml(config: AppConfig) -> str:
    """Serialize an AppConfig to a minimal TOML string (tables with scalar values)."""
    lines: list[str] = []
    sections = [
        ("sync", config.sync),
        ("logging", config.logging),
        ("http", config.http),
    ]
    for section_name, section_model in sections:
        lines.append(f"[{section_name}]")
        for key, value in section_model.model_dump(mode="python").items():
            lines.append(f"{key} = {_format_toml_value(value)}")
        lines.append("")
    return "\n".join(lines)


def save_config(config: AppConfig) -> None:
    """Save configuration to TOML and restrict file permissions to owner-only."""
    ensure_dirs()
    path = get_base_dir() / _CONFIG_FILE
    path.write_text(_dump_toml(config), encoding="utf-8")
    os.chmod(path, 0o600)
