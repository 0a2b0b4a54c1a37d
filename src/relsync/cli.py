"""CLI interface for relsync."""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from relsync.config import AppConfig, ensure_dirs, load_config, save_config
from relsync.endpoints import rest_endpoints
from relsync.errors import CircularDependencyError, ManifestError
from relsync.logging import setup_logging
from relsync.manifest import Manifest, build_store, load_manifest
from relsync.store.memory import MemoryStore
from relsync.sync import SyncInterceptor, SyncReport, plan_levels

app = typer.Typer(
    name="relsync",
    help="Relation-aware synchronization of store entities with remote API endpoints.",
    add_completion=False,
)
console = Console()


def main() -> None:
    """Entry point that wraps ``app()`` with a clean KeyboardInterrupt handler."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("Interrupted.")
        raise SystemExit(130) from None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load(manifest_path: Path, cfg: AppConfig) -> tuple[Manifest, MemoryStore]:
    try:
        manifest = load_manifest(manifest_path)
    except ManifestError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc
    return manifest, build_store(manifest, cfg.sync.store_key)


def _print_cycle(exc: CircularDependencyError) -> None:
    console.print(f"[red]Circular dependency:[/red] {' -> '.join(exc.chain)}")
    console.print(f"[dim]relation '{exc.relation}' of '{exc.dependent}'[/dim]")


def _make_client(base_url: str, timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=base_url, timeout=timeout)


async def _run_sync(manifest: Manifest, store: MemoryStore, base_url: str, cfg: AppConfig) -> SyncReport:
    async with _make_client(base_url, cfg.http.timeout_seconds) as client:
        endpoints = rest_endpoints(
            client,
            manifest.types,
            {data_key: spec.id_field for data_key, spec in manifest.types.items()},
        )
        interceptor = SyncInterceptor.from_config(store, endpoints, cfg)
        return await interceptor.sync_pending()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def plan(
    manifest_path: Path = typer.Argument(..., help="Manifest TOML file", exists=True, dir_okay=False),
) -> None:
    """Show the order in which pending entities would be synchronized."""
    cfg = load_config()
    _manifest, store = _load(manifest_path, cfg)
    interceptor = SyncInterceptor(store, {}, store_key=cfg.sync.store_key)

    try:
        levels = plan_levels(interceptor.pending_operation_set())
    except CircularDependencyError as exc:
        _print_cycle(exc)
        raise typer.Exit(1) from exc

    if not levels:
        console.print("[dim]Nothing pending.[/dim]")
        return

    table = Table(title="Sync levels")
    table.add_column("Level", justify="right")
    table.add_column("Entity types")
    table.add_column("Operations", justify="right")
    for level in levels:
        table.add_row(str(level.index), ", ".join(level.data_keys), str(len(level.operations)))
    console.print(table)


@app.command()
def sync(
    manifest_path: Path = typer.Argument(..., help="Manifest TOML file", exists=True, dir_okay=False),
    base_url: str = typer.Option("", "--base-url", "-u", help="Remote API base URL (default: http.base_url)"),
) -> None:
    """Synchronize every pending entity of a manifest against a REST API."""
    cfg = load_config()
    url = base_url or cfg.http.base_url
    if not url:
        console.print("[red]No base URL.[/red]  Pass --base-url or run [bold]relsync config set http.base_url URL[/bold].")
        raise typer.Exit(1)

    ensure_dirs()
    setup_logging(cfg.logging.level, cfg.log_dir)

    manifest, store = _load(manifest_path, cfg)
    try:
        report = asyncio.run(_run_sync(manifest, store, url, cfg))
    except CircularDependencyError as exc:
        _print_cycle(exc)
        raise typer.Exit(1) from exc

    style = "red" if report.failed else "dim"
    console.print(
        f"[bold]{report.levels}[/bold] level(s): "
        f"[green]{report.succeeded} succeeded[/green], "
        f"[{style}]{report.failed} failed[/{style}]"
    )
    for outcome in report.failures():
        console.print(f"  [red]{outcome.data_key}[/red] {escape(repr(outcome.id))}: {escape(str(outcome.error))}")
    if report.failed:
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


config_app = typer.Typer(name="config", help="View and modify configuration.", add_completion=False)
app.add_typer(config_app)


@config_app.command(name="show")
def config_show() -> None:
    """Show current configuration."""
    cfg = load_config()

    console.print("\n[bold]Current Configuration[/bold]\n")

    console.print("[bold cyan]\\[sync][/bold cyan]")
    console.print(f"  store_key                 = {cfg.sync.store_key}")
    console.print(f"  operation_timeout_seconds = {cfg.sync.operation_timeout_seconds}")

    console.print("\n[bold cyan]\\[logging][/bold cyan]")
    console.print(f"  level = {cfg.logging.level}")

    console.print("\n[bold cyan]\\[http][/bold cyan]")
    console.print(f"  base_url        = {cfg.http.base_url or '[dim](not set)[/dim]'}")
    console.print(f"  timeout_seconds = {cfg.http.timeout_seconds}")
    console.print()


@config_app.command(name="set")
def config_set(
    key: str = typer.Argument(help="Dotted key, e.g. sync.operation_timeout_seconds"),
    value: str = typer.Argument(help="New value"),
) -> None:
    """Set a configuration value (e.g. relsync config set http.base_url http://localhost:8000)."""
    parts = key.split(".", maxsplit=1)
    if len(parts) != 2:
        console.print("[red]Key must be in section.field format (e.g. sync.store_key).[/red]")
        raise typer.Exit(1)

    section_name, field_name = parts

    cfg = load_config()
    section_map = {
        "sync": cfg.sync,
        "logging": cfg.logging,
        "http": cfg.http,
    }

    if section_name not in section_map:
        console.print(f"[red]Unknown section:[/red] {section_name}")
        console.print(f"[dim]Valid sections: {', '.join(section_map)}[/dim]")
        raise typer.Exit(1)

    section_model = section_map[section_name]
    fields = type(section_model).model_fields
    if field_name not in fields:
        console.print(f"[red]Unknown field:[/red] {section_name}.{field_name}")
        console.print(f"[dim]Valid fields: {', '.join(fields)}[/dim]")
        raise typer.Exit(1)

    try:
        coerced = _coerce_value(value, fields[field_name].annotation)
        section_data = section_model.model_dump(mode="python")
        section_data[field_name] = coerced
        new_section = type(section_model)(**section_data)
    except (ValueError, TypeError) as exc:
        console.print(f"[red]Invalid value:[/red] {exc}")
        raise typer.Exit(1) from exc

    setattr(cfg, section_name, new_section)
    save_config(cfg)
    console.print(f"[green]Set[/green] {key} = {coerced}")


def _coerce_value(raw: str, field_type: type) -> object:
    """Coerce a string value to the expected field type."""
    if field_type is bool:
        if raw.lower() in ("true", "1", "yes"):
            return True
        if raw.lower() in ("false", "0", "no"):
            return False
        msg = f"Cannot convert '{raw}' to bool (use true/false)"
        raise ValueError(msg)

    if field_type is int:
        return int(raw)

    if field_type is float:
        return float(raw)

    return raw
