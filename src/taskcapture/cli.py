"""Command-line interface for the task-capture core.

Provides commands for configuration validation and for trying the capture
pipeline by hand.

Usage:
    python -m taskcapture validate-config
    python -m taskcapture capture "работа: отчет завтра в 10:00" -z Europe/Moscow
    python -m taskcapture split "1. buy milk\\n2. call mom" --mode shadow
    python -m taskcapture next-occurrence 2026-02-13 weekdays --time 09:00
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from taskcapture.config import _get_config_path, load_config, validate_config_file
from taskcapture.config_schema import AppConfig, FolderConfig, _validate_timezone
from taskcapture.core.errors import ConfigLoadError, ConfigValidationError
from taskcapture.core.logging import configure_logging

console = Console()

_config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to config file (default: config/config.yaml)",
)


def _load_cli_config(config_path: Path | None) -> AppConfig:
    """Load config for a CLI command.

    A missing file falls back to built-in defaults so the pipeline can be
    tried without any setup; a broken file is an error.
    """
    path = config_path or _get_config_path()
    if not path.exists():
        console.print(f"[dim]No config at {path}, using defaults[/dim]")
        return AppConfig()

    try:
        return load_config(path)
    except (ConfigLoadError, ConfigValidationError) as e:
        console.print(f"[red]Config error:[/red] {e}")
        sys.exit(1)


def _parse_folder(value: str) -> FolderConfig:
    slug, sep, display_name = value.partition("=")
    if not sep:
        raise click.BadParameter(f"Expected slug=Display Name, got '{value}'")
    try:
        return FolderConfig(slug=slug.strip(), display_name=display_name)
    except ValidationError as e:
        messages = "; ".join(err["msg"] for err in e.errors())
        raise click.BadParameter(f"Invalid folder '{value}': {messages}") from e


def _check_timezone(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:
    if value is None:
        return None
    try:
        return _validate_timezone(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _decode_escapes(text: str) -> str:
    # Lets list input be typed on one shell line ("1. a\n2. b")
    return text.replace("\\n", "\n")


@click.group()
@click.option("--debug/--no-debug", default=False, help="Enable debug logging")
def cli(debug: bool) -> None:
    """Task capture - turn free-text messages into structured tasks."""
    log_level = "DEBUG" if debug else "WARNING"
    # CLI output is for people; services use JSON logs
    configure_logging(log_level=log_level, json_output=False, stream=sys.stderr)


@cli.command("validate-config")
@_config_option
def validate_config(config_path: Path | None) -> None:
    """Validate the configuration file.

    Checks that config.yaml exists and passes Pydantic schema validation.
    Reports specific errors for invalid fields.
    """
    if config_path:
        console.print(f"Validating config: [cyan]{config_path}[/cyan]")
    else:
        console.print("Validating config: [cyan]config/config.yaml[/cyan]")

    is_valid, message = validate_config_file(config_path)

    if is_valid:
        console.print(f"\n[green]✓[/green] {message}")
        sys.exit(0)
    else:
        console.print(f"\n[red]✗[/red] {message}")
        sys.exit(1)


@cli.command("capture")
@click.argument("text")
@click.option(
    "--timezone",
    "-z",
    default=None,
    callback=_check_timezone,
    help="IANA timezone (default: config timezone)",
)
@click.option(
    "--media",
    "media_type",
    type=click.Choice(["photo", "document", "voice"]),
    default=None,
    help="Treat the text as the caption of a media message",
)
@click.option(
    "--folder",
    "folders",
    multiple=True,
    help="Extra custom folder as slug=Display Name (repeatable)",
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@_config_option
def capture(
    text: str,
    timezone: str | None,
    media_type: str | None,
    folders: tuple[str, ...],
    as_json: bool,
    config_path: Path | None,
) -> None:
    """Split and classify TEXT like an incoming chat message."""
    from taskcapture.service import CaptureService

    config = _load_cli_config(config_path)
    custom_folders = [_parse_folder(value) for value in folders]
    service = CaptureService(config)

    try:
        results = asyncio.run(
            service.capture(
                _decode_escapes(text),
                media_type=media_type,  # type: ignore[arg-type]
                custom_folders=custom_folders,  # type: ignore[arg-type]
                timezone=timezone,
            )
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(130)

    if as_json:
        console.print_json(json.dumps([r.to_dict() for r in results], ensure_ascii=False))
        return

    if not results:
        console.print("[yellow]Nothing to capture.[/yellow]")
        return

    table = Table(box=None, padding=(0, 2))
    table.add_column("#", justify="right", style="dim")
    table.add_column("Content")
    table.add_column("Folder", style="cyan")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Schedule")
    table.add_column("AI?", justify="center")

    for index, result in enumerate(results, start=1):
        schedule = " ".join(
            part for part in (result.scheduled_date, result.scheduled_time) if part
        )
        if result.recurrence_rule:
            schedule = f"{schedule} ({result.recurrence_rule})".strip()
        folder = result.folder
        if result.has_explicit_tag:
            folder = f"{folder} [dim](explicit)[/dim]"
        table.add_row(
            str(index),
            result.content,
            folder,
            result.type,
            result.status,
            schedule or "-",
            "yes" if result.needs_ai_classification else "",
        )

    console.print(table)


@cli.command("split")
@click.argument("text")
@click.option(
    "--mode",
    type=click.Choice(["off", "shadow", "apply"]),
    default=None,
    help="Override splitter.mode from config",
)
@_config_option
def split(text: str, mode: str | None, config_path: Path | None) -> None:
    """Show how TEXT would be split into items."""
    from taskcapture.capture.folders import build_folder_aliases
    from taskcapture.splitter.orchestrator import SplitOrchestrator

    config = _load_cli_config(config_path)
    if mode:
        splitter = config.splitter.model_copy(update={"mode": mode})
        config = config.model_copy(update={"splitter": splitter})

    aliases = build_folder_aliases(config.folders)
    orchestrator = SplitOrchestrator.from_config(config, aliases=aliases)
    result = asyncio.run(orchestrator.split(_decode_escapes(text)))

    console.print(
        f"[bold]Split[/bold] mode={orchestrator.mode} source={result.source} "
        f"provider={result.provider}"
    )
    if result.explicit_folder:
        console.print(f"  Folder:  [cyan]{result.explicit_folder}[/cyan]")
    for index, item in enumerate(result.items, start=1):
        console.print(f"  {index:>2}. {item}")
    if result.ai_attempt is not None and result.ai_attempt.failures:
        console.print(f"  [dim]AI failures: {', '.join(result.ai_attempt.failures)}[/dim]")


@cli.command("next-occurrence")
@click.argument("scheduled_date")
@click.argument("rule", type=click.Choice(["daily", "weekdays", "weekly"]))
@click.option("--time", "scheduled_time", default=None, help="Wall-clock time HH:MM")
@click.option("--timezone", "-z", default="UTC", callback=_check_timezone, help="IANA timezone")
def next_occurrence_cmd(
    scheduled_date: str,
    rule: str,
    scheduled_time: str | None,
    timezone: str,
) -> None:
    """Compute the next occurrence of a recurring task."""
    from taskcapture.capture.recurrence import build_next_recurring_schedule

    try:
        schedule = build_next_recurring_schedule(
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            deadline=None,
            recurrence_rule=rule,  # type: ignore[arg-type]
            timezone=timezone,
        )
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"Next date:  [cyan]{schedule.scheduled_date}[/cyan]")
    if schedule.deadline is not None:
        console.print(f"Deadline:   {schedule.deadline} (epoch ms, {timezone})")


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
