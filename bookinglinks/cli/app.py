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
from rich.table import Table

from ..adapters.fixture_loader import populate_storage
from ..adapters.memory_storage import InMemoryStorage
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import BookingError
from ..domain.models import WEEKDAY_NAMES, Slot
from ..domain.slot_engine import SlotAvailabilityEngine
from ..domain.time_utils import generate_calendar_dates, weekday_index
from ..services.booking import BookingService
from ..services.host import HostService

app = typer.Typer(
    name="bookinglinks",
    help="Compute bookable meeting slots from weekly availability",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_config(config_file: Optional[Path], required: bool = True) -> AppConfig:
    """Load the YAML config; fall back to defaults when it is optional and absent."""
    config_path = config_file or get_default_config_path()
    if not config_path.exists() and not required:
        return AppConfig()
    return AppConfig.load_from_yaml(config_path)


def _parse_day(value: str) -> pendulum.Date:
    try:
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    except ValueError as e:
        console.print(f"[red]Could not parse date '{value}': {e}[/red]")
        raise typer.Exit(1)


async def _slots_from_data(
    data_file: Optional[Path],
    host: str,
    meeting_type: Optional[str],
    day: pendulum.Date,
    duration: int,
    timezone: Optional[str],
) -> List[Slot]:
    storage = InMemoryStorage()
    await populate_storage(storage, data_file)

    if meeting_type:
        return await BookingService(storage).available_slots(host, meeting_type, day, timezone)

    user = await storage.get_user_by_username(host)
    if user is None:
        raise BookingError(f"User not found: {host}")
    return await HostService(storage).own_available_slots(user.id, day, duration, timezone)


def _print_slots(slots: List[Slot], timezone: str) -> None:
    if not slots:
        console.print(
            "[yellow]⚠ No available slots for this date.[/yellow]\n"
            "Try another day or a shorter duration."
        )
        return

    table = Table(
        title=f"{len(slots)} available slot(s) ({timezone})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("#", style="dim", justify="right")
    table.add_column("Start", style="bold green")
    table.add_column("End")
    table.add_column("ISO-8601", style="dim")

    for idx, slot in enumerate(slots, 1):
        table.add_row(
            str(idx),
            slot.start.format("h:mm A"),
            slot.end.format("h:mm A"),
            slot.to_iso8601(),
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def slots(
    date: Annotated[str, typer.Argument(help="Day to check (YYYY-MM-DD)")],
    config_file: ConfigOption = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Meeting duration in minutes")] = None,
    timezone: Annotated[Optional[str], typer.Option("--timezone", "-t", help="IANA timezone to show slots in")] = None,
    host: Annotated[Optional[str], typer.Option("--host", help="Host username from the booking data file")] = None,
    meeting_type: Annotated[Optional[str], typer.Option("--type", help="Meeting type slug; uses its duration")] = None,
    data_file: Annotated[Optional[Path], typer.Option("--data", help="JSON booking data. Defaults to the bundled sample.")] = None,
    verbose: VerboseOption = False,
):
    """
    List bookable slots for one day.

    Examples:

        # Availability rules from config.yaml, no bookings
        bookinglinks slots 2024-11-25

        # Host and meeting type from booking data
        bookinglinks slots 2024-11-25 --host alex --type intro-call

        # Show slots in the guest's timezone
        bookinglinks slots 2024-11-25 --host alex --type deep-dive -t Europe/Berlin
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file, required=host is None)
        day = _parse_day(date)
        min_duration = duration if duration is not None else config.defaults.duration_minutes

        if host:
            found = asyncio.run(
                _slots_from_data(
                    data_file or config.data_file,
                    host,
                    meeting_type,
                    day,
                    min_duration,
                    timezone,
                )
            )
            shown_tz = timezone or (found[0].start.timezone_name if found else config.timezone)
        else:
            shown_tz = timezone or config.timezone
            found = SlotAvailabilityEngine().slots_for_day(
                day=day,
                rules=config.get_rules(),
                booked=[],
                duration_minutes=min_duration,
                timezone=shown_tz,
                host_timezone=config.get_host_timezone(),
            )

        console.print(f"\n[bold cyan]🗓️  {day.format('dddd, MMMM D, YYYY')}[/bold cyan]")
        _print_slots(found, shown_tz)

    except (FileNotFoundError, ValueError, BookingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def availability(config_file: ConfigOption = None):
    """
    List the configured weekly availability.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not config.availability:
        console.print("[yellow]No availability defined in the config file.[/yellow]")
        return

    table = Table(
        title=f"Weekly availability ({config.get_host_timezone()})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Day", style="bold yellow")
    table.add_column("From")
    table.add_column("Until")

    for rule in sorted(config.get_rules(), key=lambda r: r.day_of_week):
        table.add_row(rule.weekday_name, rule.start_time, rule.end_time)

    console.print()
    console.print(table)
    console.print()


@app.command()
def calendar(
    year: Annotated[int, typer.Argument(help="Year, e.g. 2024")],
    month: Annotated[int, typer.Argument(help="Month 1-12")],
    config_file: ConfigOption = None,
):
    """
    Print a month view; days with availability are highlighted.
    """
    try:
        config = _load_config(config_file, required=False)
        dates = generate_calendar_dates(year, month)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    available_days = {rule.day_of_week for rule in config.get_rules()}

    table = Table(
        title=pendulum.date(year, month, 1).format("MMMM YYYY"),
        show_header=True,
        header_style="bold cyan"
    )
    for idx in range(7):
        table.add_column(WEEKDAY_NAMES[idx][:3], justify="right")

    for week_start in range(0, len(dates), 7):
        cells = []
        for day in dates[week_start:week_start + 7]:
            label = str(day.day)
            if day.month != month:
                label = f"[dim]{label}[/dim]"
            elif weekday_index(day) in available_days:
                label = f"[bold green]{label}[/bold green]"
            cells.append(label)
        table.add_row(*cells)

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]bookinglinks[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
