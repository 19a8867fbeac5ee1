"""CLI entry point for BlogPilot."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
import httpx

from blogpilot.autopilot import Autopilot, JobResult
from blogpilot.config import ConfigError, Settings, load_settings
from blogpilot.images import UnknownImageServiceError, check_image_services
from blogpilot.logging import setup_logging
from blogpilot.run_store import RunStatus, RunStore
from blogpilot.wiring import build_clients, build_pipeline

config_option = click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to blogpilot.yaml (auto-detected if not specified)",
)
verbose_option = click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")


def _load(config_path: Path | None, verbose: bool) -> Settings:
    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    log = settings.logging
    setup_logging(
        log.dir,
        "DEBUG" if verbose else log.level,
        log_file=log.file,
        max_bytes=log.max_bytes,
        backup_count=log.backup_count,
        console=verbose,
    )
    return settings


@click.group()
@click.version_option(package_name="blogpilot")
def main() -> None:
    """BlogPilot - automated blog writing and publishing."""
    pass


@main.command()
@config_option
@verbose_option
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address")
@click.option("--port", default=8000, show_default=True, type=int, help="Bind port")
def serve(config_path: Path | None, verbose: bool, host: str, port: int) -> None:
    """Serve the REST API (and the autopilot, if enabled in config)."""
    import uvicorn  # noqa: PLC0415

    from blogpilot.api import create_app  # noqa: PLC0415

    settings = _load(config_path, verbose)
    click.echo(f"Serving BlogPilot API on http://{host}:{port}")
    uvicorn.run(create_app(settings), host=host, port=port, log_level="info")


async def _run_once(settings: Settings) -> JobResult | None:
    clients = build_clients(settings)
    store = RunStore(settings.database.path)
    try:
        pipeline = build_pipeline(settings, clients, run_store=store)
        autopilot = Autopilot(pipeline, config=settings.autopilot)
        return await autopilot.run_once()
    finally:
        await clients.aclose()
        store.close()


@main.command("run-once")
@config_option
@verbose_option
def run_once(config_path: Path | None, verbose: bool) -> None:
    """Create and publish a single article, then exit."""
    settings = _load(config_path, verbose)
    click.echo("Creating one blog article...")
    try:
        result = asyncio.run(_run_once(settings))
    except UnknownImageServiceError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    if result is None or not result.success:
        error = result.error if result else "job did not run"
        click.echo(f"Failed: {error}", err=True)
        sys.exit(1)

    click.echo(f'Successfully created: "{result.title}"')
    click.echo(f"  Article id: {result.article_id}")
    click.echo(f"  Run id: {result.run_id}")


async def _check_images(timeout: float) -> list[tuple[str, bool]]:
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        statuses = await check_image_services(client)
    return [(s.service, s.available) for s in statuses]


@main.command("check-images")
@config_option
@verbose_option
def check_images(config_path: Path | None, verbose: bool) -> None:
    """Check which generative image services are reachable."""
    settings = _load(config_path, verbose)
    click.echo("Checking image services...")
    for service, available in asyncio.run(_check_images(settings.images.timeout)):
        mark = "available" if available else "unavailable"
        click.echo(f"  {service}: {mark}")
    click.echo(f"Configured fallback order: {', '.join(settings.images.services)}")


@main.command()
@config_option
@click.option(
    "--status",
    type=click.Choice([s.value for s in RunStatus]),
    default=None,
    help="Only show runs with this status",
)
@click.option("--limit", default=20, show_default=True, type=int, help="Max runs to show")
def runs(config_path: Path | None, status: str | None, limit: int) -> None:
    """List recent job runs."""
    settings = _load(config_path, False)
    store = RunStore(settings.database.path)
    try:
        history = store.list_runs(status=RunStatus(status) if status else None, limit=limit)
        if not history:
            click.echo("No runs recorded yet.")
            return
        for run in history:
            outcome = run.title or run.error or run.topic or ""
            click.echo(f"{run.started_at:%Y-%m-%d %H:%M}  {run.status:<9}  {run.id}  {outcome}")
    finally:
        store.close()


if __name__ == "__main__":
    main()
