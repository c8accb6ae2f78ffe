"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Annotated, Tuple

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.factory import build_calendar_clients
from ..adapters.memory_store import InMemoryScheduleStore
from ..adapters.mock_calendar_client import MockCalendarClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SlotEngineError
from ..domain.models import Schedule
from ..domain.slot_calculator import SlotCalculator, localize
from ..domain.windows import resolve_windows
from ..services.availability import AvailabilityService, CalendarClientProtocol

app = typer.Typer(
    name="slotengine",
    help="Compute bookable slots from weekly availability and calendar busy time",
    add_completion=False
)

console = Console()

# Indexed like WeeklyRule.day_of_week (0=Sunday)
DAY_NAMES = ["So", "Mo", "Di", "Mi", "Do", "Fr", "Sa"]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _determine_time_range(
    *,
    tz: str,
    start_option: Optional[str],
    end_option: Optional[str]
) -> Tuple[DateTime, DateTime]:
    """
    Resolve the requested date range in the schedule timezone.
    Defaults to today plus seven days.
    """
    if start_option:
        try:
            start_date = pendulum.from_format(start_option, "YYYY-MM-DD", tz=tz).start_of("day")
        except ValueError as e:
            console.print(f"[red]Fehler beim Parsen des Startdatums: {e}[/red]")
            raise typer.Exit(1)
    else:
        start_date = pendulum.now(tz).start_of("day")

    if end_option:
        try:
            end_date = pendulum.from_format(end_option, "YYYY-MM-DD", tz=tz).end_of("day")
        except ValueError as e:
            console.print(f"[red]Fehler beim Parsen des Enddatums: {e}[/red]")
            raise typer.Exit(1)
    else:
        end_date = start_date.add(days=7).end_of("day")

    return start_date, end_date


def _build_clients(config: AppConfig, schedule: Schedule, mock: bool) -> List[CalendarClientProtocol]:
    """
    Calendar clients for the run. In mock mode every configured calendar is
    served from mock data instead of its provider.
    """
    if not mock:
        return build_calendar_clients(config.calendars)

    if not config.calendars:
        return [MockCalendarClient(calendar_id=schedule.owner or schedule.id)]

    return [
        MockCalendarClient(calendar_id=calendar.calendar_id, data_file=calendar.data_file)
        for calendar in config.calendars
    ]


def _format_rules(schedule: Schedule) -> str:
    rules = sorted(schedule.rules, key=lambda r: ((r.day_of_week + 6) % 7, r.start))
    return ", ".join(f"{DAY_NAMES[r.day_of_week]} {r.start}-{r.end}" for r in rules) or "-"


@app.command()
def slots(
    event_type: Annotated[str, typer.Argument(help="Slug des Termintyps (z. B. 'intro-call')")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD)")] = None,
    timezone: Annotated[Optional[str], typer.Option("--timezone", "-z", help="Zeitzone für die Ausgabe (IANA)")] = None,
    mock: Annotated[bool, typer.Option("--mock", help="Mock-Daten statt echter Kalender nutzen.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug-Logging aktivieren.")] = False,
):
    """
    Generate bookable slots for an event type.

    Examples:

        # Next seven days in the schedule timezone
        slotengine slots intro-call

        # Custom date range, shown in another timezone
        slotengine slots intro-call --start 2025-01-13 --end 2025-01-17 --timezone America/New_York

        # Use mock data (no calendar credentials needed)
        slotengine slots intro-call --mock
    """
    try:
        config = _load_config(config_file)
        _configure_logging("DEBUG" if verbose else config.log_level)

        pendulum.set_locale("de")

        event_config = config.find_event_type(event_type)
        schedule = config.find_schedule(event_config.schedule).to_domain()
        tz = schedule.timezone

        console.print("\n" + "="*60)
        console.print("[bold cyan]🗓️  Slotengine - Buchbare Termine[/bold cyan]")
        console.print("="*60 + "\n")

        range_start, range_end = _determine_time_range(
            tz=tz,
            start_option=start,
            end_option=end
        )

        if mock:
            console.print("[yellow]⚠  MOCK-MODUS: Verwende Test-Daten[/yellow]\n")

        output_timezone = timezone or config.output_timezone

        console.print("[bold cyan]📊 Zusammenfassung:[/bold cyan]")
        console.print(f"   Termintyp: {event_config.title or event_config.slug}")
        console.print(f"   Zeitplan: {schedule.id} ({tz})")
        console.print(f"   Zeitraum: {range_start.format('DD.MM.YYYY')} - {range_end.format('DD.MM.YYYY')}")
        console.print(f"   Dauer: {event_config.duration_minutes} Minuten")
        if output_timezone:
            console.print(f"   Ausgabe-Zeitzone: {output_timezone}")
        console.print()

        service = AvailabilityService(
            schedule_store=InMemoryScheduleStore(s.to_domain() for s in config.schedules),
            calendar_clients=_build_clients(config, schedule, mock),
            slot_calculator=SlotCalculator(max_range_days=config.max_range_days),
        )

        found = asyncio.run(
            service.find_slots(
                event_type=event_config.to_domain(),
                range_start=range_start,
                range_end=range_end,
                output_timezone=output_timezone,
            )
        )

        if not found:
            console.print(
                "[yellow]⚠ Keine buchbaren Termine gefunden.[/yellow]\n"
                "Versuchen Sie einen längeren Zeitraum."
            )
        else:
            console.print(f"[bold green]✓ {len(found)} buchbare(r) Termin(e) gefunden:[/bold green]\n")

            for slot in found:
                console.print(f"  {slot.format_display()}")

        console.print()

    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def windows(
    schedule_id: Annotated[str, typer.Argument(help="Id des Zeitplans")],
    day: Annotated[str, typer.Argument(help="Datum (YYYY-MM-DD)")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
):
    """
    Show the availability windows that apply on a date.
    """
    try:
        config = _load_config(config_file)
        schedule_config = config.find_schedule(schedule_id)

        if schedule_config is None:
            console.print(f"[bold red]Fehler:[/bold red] Unbekannter Zeitplan '{schedule_id}'")
            raise typer.Exit(1)

        schedule = schedule_config.to_domain()
        target = pendulum.from_format(day, "YYYY-MM-DD").date()
        zone = schedule.zone()

        resolved = resolve_windows(schedule, target)

        if not resolved:
            console.print(f"\n[yellow]Keine Verfügbarkeit am {target.format('DD.MM.YYYY')}.[/yellow]\n")
            return

        table = Table(
            title=f"{schedule.id}: {target.format('DD.MM.YYYY')} ({schedule.timezone})",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Von", style="bold yellow")
        table.add_column("Bis", style="bold yellow")
        table.add_column("UTC", style="dim")

        for window_start, window_end in resolved:
            start_instant = localize(target, window_start, zone)
            end_instant = localize(target, window_end, zone)

            if start_instant is None or end_instant is None:
                utc = "[red]existiert nicht (Zeitumstellung)[/red]"
            else:
                utc = (
                    f"{start_instant.in_timezone('UTC').format('HH:mm')} - "
                    f"{end_instant.in_timezone('UTC').format('HH:mm')}"
                )

            table.add_row(str(window_start), str(window_end), utc)

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def list_schedules(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to config file"
    )
):
    """
    List all configured schedules.
    """
    try:
        config = _load_config(config_file)

        if not config.schedules:
            console.print("[yellow]Keine Zeitpläne in der Config-Datei definiert.[/yellow]")
            return

        table = Table(
            title="Konfigurierte Zeitpläne",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Id", style="bold yellow")
        table.add_column("Zeitzone")
        table.add_column("Besitzer", style="dim")
        table.add_column("Wochenregeln")
        table.add_column("Ausnahmen", justify="right")

        for schedule_config in config.schedules:
            schedule = schedule_config.to_domain()
            table.add_row(
                schedule.id,
                schedule.timezone,
                schedule.owner or "-",
                _format_rules(schedule),
                str(len(schedule.overrides))
            )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotengine[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
