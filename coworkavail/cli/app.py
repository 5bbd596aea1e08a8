"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.file_booking_source import FileBookingSource
from ..adapters.http_booking_source import HttpBookingSource
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import ConfigError
from ..domain.models import AvailabilityResult, DayAvailability
from ..services.availability import AvailabilityService, BookingQuerySource

app = typer.Typer(
    name="coworkavail",
    help="Check coworking space availability and find free slots",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _build_source(config: AppConfig) -> BookingQuerySource:
    if config.booking_api_url:
        return HttpBookingSource(
            base_url=config.booking_api_url,
            token=config.booking_api_token,
            timezone=config.timezone,
        )
    if config.bookings_file:
        return FileBookingSource(config.bookings_file, timezone=config.timezone)
    raise ConfigError("Configure either booking_api_url or bookings_file.")


def build_service(config: AppConfig) -> AvailabilityService:
    """Wire the availability service from configuration."""
    return AvailabilityService(
        booking_source=_build_source(config),
        rules=config.to_rule_set(),
        cache_ttl_seconds=config.cache.ttl_seconds,
        cache_max_entries=config.cache.max_entries,
        source_timeout=config.source_timeout,
    )


def _space_label(config: AppConfig, space_id: str) -> str:
    space = config.find_space(space_id)
    return space.display_name() if space else space_id


def _print_result(result: AvailabilityResult, tz: str) -> None:
    if result.ok:
        console.print("[bold green]✓ Available[/bold green]")
    else:
        console.print("[bold red]✗ Not available[/bold red]")

    for error in result.errors:
        console.print(f"  [red]{error.code.value}[/red] ({error.field}): {error.message}")

    for conflict in result.conflicts:
        line = f"  [yellow]{conflict.kind.value}[/yellow]: {conflict.message}"
        if conflict.suggested_action:
            line += f" [dim]→ {conflict.suggested_action}[/dim]"
        console.print(line)

    for warning in result.warnings:
        console.print(f"  [cyan]note[/cyan]: {warning}")

    if result.suggestions:
        console.print("\n[bold]Suggested alternatives:[/bold]")
        for suggestion in result.suggestions:
            console.print(f"  {suggestion.format_display(tz)}")


def _grid_table(title: str, grid: DayAvailability, tz: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Slot", style="bold")
    table.add_column("Status")
    table.add_column("Peak", style="dim")

    for slot in grid.slots:
        local = slot.interval.in_timezone(tz)
        status = "[green]free[/green]" if slot.available else f"[red]{slot.reason}[/red]"
        table.add_row(
            f"{local.start.format('HH:mm')} - {local.end.format('HH:mm')}",
            status,
            "peak" if slot.is_peak else "",
        )

    return table


def _resolve_date(config: AppConfig, value: Optional[str]) -> str:
    return value or pendulum.now(config.timezone).format("YYYY-MM-DD")


@app.command()
def check(
    space: Annotated[str, typer.Argument(help="Space id")],
    start: Annotated[str, typer.Argument(help="Start, e.g. '2024-11-25 10:00' (config time zone)")],
    end: Annotated[str, typer.Argument(help="End, e.g. '2024-11-25 11:00'")],
    config_file: ConfigOption = None,
    skip_rules: Annotated[bool, typer.Option("--skip-rules", help="Only check booking conflicts.")] = False,
    exclude: Annotated[Optional[str], typer.Option("--exclude", help="Booking id to ignore (when editing).")] = None,
    verbose: VerboseOption = False,
):
    """
    Check whether a space can be booked for an interval.

    Examples:

        coworkavail check desk-1 "2024-11-25 10:00" "2024-11-25 11:00"

        coworkavail check room-a 2024-11-25T10:00+01:00 2024-11-25T12:00+01:00 --skip-rules
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file)
        service = build_service(config)
    except (FileNotFoundError, ValueError, ConfigError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"\n[bold cyan]{_space_label(config, space)}[/bold cyan]: {start} → {end}\n")

    result = asyncio.run(
        service.check_availability(space, start, end, skip_rules=skip_rules, exclude_booking_id=exclude)
    )
    _print_result(result, config.timezone)
    console.print()

    if not result.ok:
        raise typer.Exit(2)


@app.command()
def day(
    space: Annotated[str, typer.Argument(help="Space id")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD). Defaults to today.")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show the 30-minute slot grid of one space for a day.
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file)
        service = build_service(config)
    except (FileNotFoundError, ValueError, ConfigError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    target = _resolve_date(config, date)
    grid = asyncio.run(service.get_day_availability(space, target))

    if not grid.ok:
        console.print(f"[bold red]Error:[/bold red] {grid.error.message}")
        raise typer.Exit(1)

    console.print()
    console.print(_grid_table(f"{_space_label(config, space)} · {target}", grid, config.timezone))
    console.print(f"\n{len(grid.available_slots())} of {len(grid.slots)} slots free\n")


@app.command()
def bulk(
    spaces: Annotated[Optional[List[str]], typer.Argument(help="Space ids. Defaults to all configured spaces.")] = None,
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD). Defaults to today.")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show slot grids for several spaces at once.
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file)
        service = build_service(config)
    except (FileNotFoundError, ValueError, ConfigError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    space_ids = list(spaces or [space.id for space in config.spaces])
    if not space_ids:
        console.print("[yellow]No spaces given and none configured.[/yellow]")
        raise typer.Exit(1)

    target = _resolve_date(config, date)
    grids = asyncio.run(service.get_bulk_availability(space_ids, target))

    failed = 0
    for space_id, grid in grids.items():
        console.print()
        if not grid.ok:
            failed += 1
            console.print(f"[bold red]✗ {_space_label(config, space_id)}:[/bold red] {grid.error.message}")
            continue
        console.print(_grid_table(f"{_space_label(config, space_id)} · {target}", grid, config.timezone))

    console.print()
    if failed:
        raise typer.Exit(2)


@app.command()
def rules(
    config_file: ConfigOption = None,
):
    """
    Show the configured business rules.
    """
    try:
        config = _load_config(config_file)
        rule_set = config.to_rule_set()
    except (FileNotFoundError, ValueError, ConfigError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    peak = "none"
    if rule_set.peak_window is not None:
        peak = (
            f"{rule_set.peak_window.start:%H:%M} - {rule_set.peak_window.end:%H:%M} "
            f"(x{rule_set.peak_window.multiplier:g})"
        )

    console.print(Panel.fit(
        f"[bold]Time zone:[/bold] {rule_set.timezone}\n"
        f"[bold]Operating hours:[/bold] {rule_set.open_time:%H:%M} - {rule_set.close_time:%H:%M}\n"
        f"[bold]Buffer:[/bold] {rule_set.buffer_minutes} min\n"
        f"[bold]Advance booking:[/bold] {rule_set.advance.min_hours:g} h - {rule_set.advance.max_days:g} days\n"
        f"[bold]Duration:[/bold] {rule_set.duration.min_minutes} - {rule_set.duration.max_minutes} min\n"
        f"[bold]Same-day cutoff:[/bold] {rule_set.same_day_cutoff:%H:%M}\n"
        f"[bold]Weekend bookings:[/bold] {'allowed' if rule_set.weekend_booking_allowed else 'not allowed'}\n"
        f"[bold]Peak hours:[/bold] {peak}",
        title="Business rules"
    ))


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]coworkavail[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
