"""Command-line entry point for agent CLI connectivity checks."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agentprobe import __version__
from agentprobe.config.settings import Settings
from agentprobe.core.errors import ConfigurationError
from agentprobe.core.logging import get_logger, setup_logging
from agentprobe.detection.service import ConnectionsService
from agentprobe.providers.catalog import PROVIDER_CATALOG
from agentprobe.providers.models import CliProviderStatus, StatusCode


app = typer.Typer(
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

logger = get_logger(__name__)

STATUS_STYLES = {
    StatusCode.CONNECTED: "green",
    StatusCode.MISSING: "yellow",
    StatusCode.NEEDS_KEY: "magenta",
    StatusCode.ERROR: "red",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"agentprobe {__version__}")
        raise typer.Exit()


@app.callback()
def app_main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Detect which agent command-line tools are installed and usable."""


@app.command()
def providers() -> None:
    """List the agent CLIs known to the detector."""

    console = Console()
    table = Table(
        title="Known Providers",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Commands", style="cyan")
    table.add_column("Detectable", style="green")
    table.add_column("Install", style="dim")

    for definition in PROVIDER_CATALOG:
        table.add_row(
            definition.id,
            definition.name,
            ", ".join(definition.commands) or "—",
            "yes" if definition.detectable else "no",
            definition.install_command or "",
        )

    console.print(table)


def build_settings(
    config: Path | None,
    timeout_ms: int | None,
    store: Path | None,
    log_level: str | None,
) -> Settings:
    overrides: dict[str, dict[str, Any]] = {}
    if timeout_ms is not None:
        overrides["detection"] = {"default_timeout_ms": timeout_ms}
    if store is not None:
        overrides["store"] = {"path": store}
    if log_level is not None:
        overrides["logging"] = {"level": log_level.upper()}
    return Settings.from_config(config, **overrides)


def build_service(settings: Settings) -> ConnectionsService:
    return ConnectionsService.from_settings(settings)


async def _collect_statuses(
    service: ConnectionsService, provider: str | None
) -> list[CliProviderStatus]:
    try:
        if provider is None:
            await service.initialize()
            return list(service.get_provider_summaries().values())

        await service.load_cached_statuses()
        summary = await service.check_provider(provider)
        return [summary] if summary is not None else []
    finally:
        await service.shutdown()


def _render_table(console: Console, statuses: list[CliProviderStatus]) -> None:
    table = Table(
        title="Provider Status",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Provider", style="bold")
    table.add_column("Status")
    table.add_column("Version", style="cyan")
    table.add_column("Command", style="dim")
    table.add_column("Message")

    for status in statuses:
        style = STATUS_STYLES.get(status.status, "white")
        table.add_row(
            status.name,
            f"[{style}]{status.status.value}[/{style}]",
            status.version or "—",
            status.command or "—",
            escape(status.message or ""),
        )

    console.print(table)


@app.command()
def status(
    provider: Annotated[
        str | None,
        typer.Option("--provider", "-p", help="Check a single provider by id"),
    ] = None,
    timeout_ms: Annotated[
        int | None,
        typer.Option("--timeout-ms", min=1, help="Probe timeout in milliseconds"),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the statuses as JSON"),
    ] = False,
    store: Annotated[
        Path | None,
        typer.Option("--store", help="JSON file used to persist statuses"),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to a TOML configuration file"),
    ] = None,
) -> None:
    """Probe agent CLIs and report their connectivity status."""

    console = Console()
    try:
        settings = build_settings(config, timeout_ms, store, log_level)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    setup_logging(
        json_logs=settings.logging.json_logs, log_level=settings.logging.level
    )
    logger.debug(
        "status_command_start",
        provider=provider,
        store=str(settings.store.path),
        timeout_ms=settings.detection.default_timeout_ms,
    )

    service = build_service(settings)
    if provider is not None and provider not in {
        d.id for d in service.definitions
    }:
        console.print(f"[red]Unknown provider:[/red] {escape(provider)}")
        raise typer.Exit(2)

    statuses = asyncio.run(_collect_statuses(service, provider))

    if as_json:
        typer.echo(
            json.dumps([s.model_dump(mode="json") for s in statuses], indent=2)
        )
        return

    _render_table(console, statuses)


def main() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    sys.exit(app())
