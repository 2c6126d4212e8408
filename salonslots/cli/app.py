"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Dict, List, Optional, Tuple

import pendulum
import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.file_directory import FileDirectory
from ..adapters.http_directory import HttpDirectory
from ..adapters.json_store import JsonFileBlockStore
from ..adapters.memory_store import InMemoryBlockStore
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SalonSlotsError, ScheduleParseError
from ..domain.models import BlockedRange, Slot
from ..domain.schedule import ScheduleResolver, validate_opening_hours
from ..domain.slot_tiler import SlotTiler
from ..services.availability import AvailabilityService
from ..services.blocks import BlockService

app = typer.Typer(
    name="salonslots",
    help="List bookable salon slots and manage blocked time ranges",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output.")]


def _load_config(config_file: Optional[Path], verbose: bool = False) -> AppConfig:
    config_path = config_file or get_default_config_path()
    try:
        config = AppConfig.load_from_yaml(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    logging.basicConfig(
        level="DEBUG" if verbose else config.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    return config


def build_services(config: AppConfig) -> Tuple[AvailabilityService, BlockService]:
    """Wire adapters and services from the configuration."""
    if config.store.backend == "memory":
        store = InMemoryBlockStore()
    else:
        store = JsonFileBlockStore(config.store.path)

    if config.directory.backend == "http":
        directory = HttpDirectory(
            base_url=config.directory.base_url,
            timeout_seconds=config.directory.timeout_seconds,
        )
    else:
        directory = FileDirectory(config.directory.path)

    availability = AvailabilityService(
        directory=directory,
        block_store=store,
        resolver=ScheduleResolver(timezone=config.timezone),
        tiler=SlotTiler(duration_minutes=config.slot_duration_minutes),
        fail_open=config.fail_open,
        timezone=config.timezone,
    )
    return availability, BlockService(store, timezone=config.timezone)


def _print_blocks(blocks: List[BlockedRange], title: str) -> None:
    if not blocks:
        console.print("[yellow]No blocked slots.[/yellow]")
        return

    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Salon")
    table.add_column("Artist", style="bold yellow")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Reason")

    for block in blocks:
        table.add_row(
            block.id,
            block.salon_id,
            block.artist_id or "(all artists)",
            block.start.format("YYYY-MM-DD HH:mm"),
            block.end.format("YYYY-MM-DD HH:mm"),
            block.reason or "",
        )

    console.print()
    console.print(table)
    console.print()


def _print_slots(slots_by_day: Dict[str, List[Slot]]) -> None:
    total = sum(len(slots) for slots in slots_by_day.values())
    if not total:
        console.print("[yellow]⚠ No available slots found.[/yellow]")
        return

    console.print(f"[bold green]✓ {total} available slot(s):[/bold green]\n")
    for day, slots in slots_by_day.items():
        console.print(f"[bold]{day}[/bold]")
        for slot in slots:
            console.print(f"  {slot.start.format('HH:mm')} – {slot.end.format('HH:mm')}")


@app.command()
def slots(
    salon: Annotated[Optional[str], typer.Option("--salon", "-s", help="Salon ID (salon-level view)")] = None,
    artist: Annotated[Optional[str], typer.Option("--artist", "-a", help="Artist ID (artist view)")] = None,
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Day (YYYY-MM-DD). Defaults to today.")] = None,
    days: Annotated[int, typer.Option("--days", "-n", min=1, max=31, help="Number of days to list")] = 1,
    as_json: Annotated[bool, typer.Option("--json", help="Print slots as JSON instead of a list")] = False,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    List available 30-minute slots for a salon or an artist.

    Examples:

        salonslots slots --salon salon-1 --date 2026-02-16
        salonslots slots --artist artist-1 --date 2026-02-16 --days 7
        salonslots slots --salon salon-1 --json
    """
    if bool(salon) == bool(artist):
        console.print("[red]Error: pass exactly one of --salon or --artist.[/red]")
        raise typer.Exit(1)

    config = _load_config(config_file, verbose)
    availability, _ = build_services(config)

    try:
        start_day = (
            pendulum.from_format(date, "YYYY-MM-DD").date() if date
            else pendulum.today(config.timezone).date()
        )
    except ValueError as e:
        console.print(f"[red]Error parsing date: {e}[/red]")
        raise typer.Exit(1)

    end_day = start_day.add(days=days - 1)

    try:
        if artist:
            slots_by_day = availability.get_artist_slots_between(artist, start_day, end_day)
        else:
            slots_by_day = {}
            current = start_day
            while current <= end_day:
                day_slots = availability.get_salon_slots(salon, current)
                if day_slots:
                    slots_by_day[current.isoformat()] = day_slots
                current = current.add(days=1)
    except SalonSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(data={
            day: [slot.to_dict() for slot in day_slots] for day, day_slots in slots_by_day.items()
        })
    else:
        _print_slots(slots_by_day)


@app.command()
def block_create(
    salon_id: Annotated[str, typer.Argument(help="Salon that owns the block")],
    start: Annotated[str, typer.Option("--start", help="Block start (ISO 8601)")],
    end: Annotated[str, typer.Option("--end", help="Block end (ISO 8601)")],
    artist: Annotated[Optional[str], typer.Option("--artist", "-a", help="Restrict the block to one artist")] = None,
    reason: Annotated[Optional[str], typer.Option("--reason", "-r", help="Why the range is blocked")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Block a time range for a whole salon or for one artist.
    """
    config = _load_config(config_file, verbose)
    _, blocks = build_services(config)

    try:
        block = blocks.create(salon_id, start, end, reason=reason, artist_id=artist)
    except SalonSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓ Blocked slot created:[/green] {block.id}")


@app.command()
def block_list(
    salon: Annotated[Optional[str], typer.Option("--salon", "-s", help="List blocks of a salon")] = None,
    artist: Annotated[Optional[str], typer.Option("--artist", "-a", help="List blocks scoped to an artist")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    List blocked ranges of a salon or an artist, ordered by start.
    """
    if bool(salon) == bool(artist):
        console.print("[red]Error: pass exactly one of --salon or --artist.[/red]")
        raise typer.Exit(1)

    config = _load_config(config_file, verbose)
    _, blocks = build_services(config)

    try:
        if salon:
            _print_blocks(blocks.list_by_salon(salon), f"Blocked slots of salon {salon}")
        else:
            _print_blocks(blocks.list_by_artist(artist), f"Blocked slots of artist {artist}")
    except SalonSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def block_update(
    block_id: Annotated[str, typer.Argument(help="Block to update")],
    start: Annotated[Optional[str], typer.Option("--start", help="New start (ISO 8601)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="New end (ISO 8601)")] = None,
    reason: Annotated[Optional[str], typer.Option("--reason", "-r", help="New reason")] = None,
    clear_reason: Annotated[bool, typer.Option("--clear-reason", help="Remove the reason")] = False,
    artist: Annotated[Optional[str], typer.Option("--artist", "-a", help="Scope the block to this artist")] = None,
    salon_wide: Annotated[bool, typer.Option("--salon-wide", help="Apply the block to all artists")] = False,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Change some fields of a blocked range.
    """
    if reason is not None and clear_reason:
        console.print("[red]Error: --reason and --clear-reason cannot be used together.[/red]")
        raise typer.Exit(1)
    if artist is not None and salon_wide:
        console.print("[red]Error: --artist and --salon-wide cannot be used together.[/red]")
        raise typer.Exit(1)

    changes: Dict[str, Optional[str]] = {}
    if start is not None:
        changes["start"] = start
    if end is not None:
        changes["end"] = end
    if reason is not None or clear_reason:
        changes["reason"] = reason
    if artist is not None or salon_wide:
        changes["artist_id"] = artist

    config = _load_config(config_file, verbose)
    _, blocks = build_services(config)

    try:
        block = blocks.update(block_id, changes)
    except SalonSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    _print_blocks([block], "Updated blocked slot")


@app.command()
def block_delete(
    block_id: Annotated[str, typer.Argument(help="Block to delete")],
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Delete a blocked range.
    """
    config = _load_config(config_file, verbose)
    _, blocks = build_services(config)

    try:
        blocks.delete(block_id)
    except SalonSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓ Blocked slot {block_id} deleted.[/green]")


@app.command()
def check(
    start: Annotated[str, typer.Option("--start", help="Range start (ISO 8601)")],
    end: Annotated[str, typer.Option("--end", help="Range end (ISO 8601)")],
    salon: Annotated[Optional[str], typer.Option("--salon", "-s", help="Salon ID")] = None,
    artist: Annotated[Optional[str], typer.Option("--artist", "-a", help="Artist ID")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Check whether a time range is blocked.
    """
    config = _load_config(config_file, verbose)
    availability, _ = build_services(config)

    try:
        blocked = availability.is_range_blocked(start, end, artist_id=artist, salon_id=salon)
    except SalonSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if blocked:
        console.print("[yellow]This range is blocked.[/yellow]")
    else:
        console.print("[green]This range is available.[/green]")


@app.command()
def hours_check(
    hours_file: Annotated[Path, typer.Argument(help="YAML or JSON file with one opening-hours record")],
):
    """
    Validate an opening-hours record before it is stored.

    Example:

        salonslots hours-check hours.json
    """
    try:
        with open(hours_file, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        console.print(f"[bold red]Error:[/bold red] Could not read {hours_file}: {e}")
        raise typer.Exit(1)
    except yaml.YAMLError as e:
        console.print(f"[bold red]Error:[/bold red] Invalid YAML in {hours_file}: {e}")
        raise typer.Exit(1)

    try:
        canonical = validate_opening_hours(raw)
    except ScheduleParseError as e:
        console.print(f"[bold red]Invalid opening hours:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title="Opening hours", show_header=True, header_style="bold cyan")
    table.add_column("Day", style="cyan")
    table.add_column("Open")
    table.add_column("Close")
    for day, day_hours in canonical.items():
        if day_hours is None:
            table.add_row(day, "closed", "")
        else:
            table.add_row(day, day_hours["start"], day_hours["end"])

    console.print(table)
    console.print("[green]✓ Opening hours are valid.[/green]")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salonslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
