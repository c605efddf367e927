"""
Main CLI application using Typer.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..adapters.authenticator import ApiAuthenticator
from ..adapters.mock_schedule_client import MockScheduleClient
from ..adapters.payloads import parse_blocks
from ..adapters.schedule_client import ScheduleAPIClient
from ..config import AppConfig, Colleague, get_default_config_path
from ..domain.exceptions import FreeTimeError
from ..domain.intersector import STATUS_FREE, STATUS_PARTIAL
from ..domain.models import DAY_ABBREVIATIONS, OccupancyQuery
from ..domain.presentation import ComparisonGrid, slots_payload
from ..domain.slot_merger import FreeSlotCalculator
from ..services.free_time_finder import FreeTimeFinderService

app = typer.Typer(
    name="freetimefinder",
    help="Find the weekly time windows when a group of students is free",
    add_completion=False
)

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use bundled sample schedules and skip authentication.")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]
JsonOption = Annotated[bool, typer.Option("--json", help="Print the result as JSON.")]


def configure_logging(level: str, verbose: bool = False) -> None:
    """Route log records through rich, at DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path], verbose: bool = False) -> AppConfig:
    config_path = config_file or get_default_config_path()

    if config_file is None and not config_path.exists():
        config = AppConfig()
    else:
        config = AppConfig.load_from_yaml(config_path)

    configure_logging(config.log_level, verbose)
    logger.debug("Using configuration from %s", config_path)
    return config


def _build_client(config: AppConfig, mock: bool, announce: bool = True):
    if mock:
        if announce:
            err_console.print("[yellow]⚠  MOCK MODE: using sample schedules[/yellow]\n")
        return MockScheduleClient()

    authenticator = ApiAuthenticator(base_url=config.api_base_url)
    access_token = authenticator.get_access_token()
    return ScheduleAPIClient(base_url=config.api_base_url, access_token=access_token)


def _resolve_participants(config: AppConfig, client, participants: List[str]) -> tuple[AppConfig, List[str]]:
    """
    Resolve names or ids, asking the service for colleagues when the config
    does not know them all.
    """
    try:
        return config, config.resolve_participants(participants)
    except ValueError:
        logger.debug("Falling back to the colleague list of the schedule service")

    remote = [
        Colleague(name=colleague.name or colleague.id, id=colleague.id, email=colleague.email)
        for colleague in client.get_colleagues()
    ]
    merged = config.with_colleagues(remote)
    return merged, merged.resolve_participants(participants)


def _render_grid(grid: ComparisonGrid, config: AppConfig) -> Table:
    names = {person_id: config.display_name_for(person_id) for person_id in grid.selected_ids}

    table = Table(
        title=f"Comparison of {len(grid.selected_ids)} "
              f"{'person' if len(grid.selected_ids) == 1 else 'people'}",
        show_header=True,
        header_style="bold cyan",
        show_lines=True
    )
    table.add_column("Hour", style="bold")
    for day in grid.days:
        table.add_column(DAY_ABBREVIATIONS[day], justify="left")

    for hour, cells in grid.rows():
        row = [f"{hour:02d}:00"]
        for cell in cells:
            if cell.status == STATUS_FREE:
                text = "[green]✓ Free[/green]"
            else:
                colour = "yellow" if cell.status == STATUS_PARTIAL else "red"
                lines = [
                    escape(f"{names[person_id].split(' ')[0]}: {cell.labels.get(person_id, 'busy')}")
                    for person_id in cell.occupied_ids
                ]
                text = f"[{colour}]" + "\n".join(lines) + f"[/{colour}]"
            if cell.is_now:
                text = f"[reverse]{text}[/reverse]"
            row.append(text)
        table.add_row(*row)

    return table


@app.command()
def slots(
    participants: Annotated[Optional[List[str]], typer.Argument(help="Names or ids (e.g. 'me ana').")] = None,
    group: Annotated[Optional[str], typer.Option("--group", "-g", help="Use the members of this group id.")] = None,
    config_file: ConfigOption = None,
    granularity: Annotated[Optional[int], typer.Option("--granularity", help="Sampling step in minutes")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Earliest time of day (HH:MM)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Latest time of day (HH:MM)")] = None,
    day: Annotated[Optional[List[int]], typer.Option("--day", "-d", help="Day of week 1-7 (repeatable)")] = None,
    today: Annotated[bool, typer.Option("--today", help="Only search today's weekday.")] = False,
    min_duration: Annotated[Optional[int], typer.Option("--min-duration", help="Minimum slot length in minutes")] = None,
    as_json: JsonOption = False,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    List the weekly slots when everyone selected is free.

    Examples:

        freetimefinder slots me ana bruno

        freetimefinder slots --group g-algebra --granularity 30

        freetimefinder slots me ana --today --start 12:00 --end 20:00

        freetimefinder slots me ana --mock --json
    """
    try:
        config = _load_config(config_file, verbose)

        if group and participants:
            console.print("[red]Error: pass either participants or --group, not both.[/red]")
            raise typer.Exit(1)
        if not group and not participants:
            console.print("[red]Error: pass participants or --group.[/red]")
            raise typer.Exit(1)

        days = day or None
        if today:
            days = [pendulum.now(config.timezone).isoweekday()]

        window = config.defaults.scan_window(
            granularity_minutes=granularity,
            day_start=start,
            day_end=end,
            days=days,
        )
        min_minutes = min_duration if min_duration is not None else config.defaults.min_duration_minutes

        client = _build_client(config, mock, announce=not as_json)
        service = FreeTimeFinderService(
            schedule_client=client,
            calculator=FreeSlotCalculator(scan_window=window),
            grid_hours=config.defaults.grid_hours(),
        )

        if group:
            found = service.find_group_slots(group, min_minutes)
        else:
            config, person_ids = _resolve_participants(config, client, participants)
            found = service.find_common_slots(person_ids, min_minutes)

        if as_json:
            typer.echo(json.dumps(slots_payload(found), indent=2))
            return

        console.print(f"[bold cyan]Scan window:[/bold cyan] {window.describe()}\n")
        if not found:
            console.print(
                "[yellow]⚠ No common free slots found.[/yellow]\n"
                "Try a wider window or fewer participants."
            )
            return

        console.print(f"[bold green]✓ {len(found)} common free slot(s):[/bold green]\n")
        for slot in found:
            console.print(f"  {slot.format_display()}")
        console.print()

    except (FileNotFoundError, ValueError, FreeTimeError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def compare(
    participants: Annotated[List[str], typer.Argument(help="Names or ids to compare.")],
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show a day x hour grid of who is busy when.
    """
    try:
        config = _load_config(config_file, verbose)
        client = _build_client(config, mock, announce=not as_json)
        config, person_ids = _resolve_participants(config, client, participants)

        service = FreeTimeFinderService(
            schedule_client=client,
            calculator=FreeSlotCalculator(scan_window=config.defaults.scan_window()),
            grid_hours=config.defaults.grid_hours(),
        )

        now = OccupancyQuery.from_datetime(pendulum.now(config.timezone))
        grid = service.compare(person_ids, now=now)

        if as_json:
            typer.echo(json.dumps(grid.to_dict(), indent=2))
            return

        console.print()
        console.print(_render_grid(grid, config))
        console.print("[green]✓ Free[/green] all free   "
                      "[yellow]■[/yellow] partially occupied   "
                      "[red]■[/red] all occupied\n")

    except (FileNotFoundError, ValueError, FreeTimeError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def validate(
    schedule_file: Annotated[Path, typer.Argument(help="YAML or JSON file with a list of blocks.")],
):
    """
    Check a local schedule file and report blocks that would be rejected.
    """
    if not schedule_file.exists():
        console.print(f"[bold red]Error:[/bold red] File not found: {schedule_file}")
        raise typer.Exit(1)

    try:
        with open(schedule_file, "r", encoding="utf-8") as f:
            if schedule_file.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (ValueError, yaml.YAMLError) as e:
        console.print(f"[bold red]Error:[/bold red] Could not read {schedule_file}: {e}")
        raise typer.Exit(1)

    raw_blocks = data.get("blocos", data.get("blocks")) if isinstance(data, dict) else data
    if raw_blocks is None:
        console.print(f"[bold red]Error:[/bold red] No block list found in {schedule_file}")
        raise typer.Exit(1)

    try:
        blocks, rejected = parse_blocks(raw_blocks)
    except FreeTimeError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"\n[green]✓ {len(blocks)} valid block(s)[/green]")
    for block in sorted(blocks, key=lambda b: (b.day_of_week, b.start_minutes)):
        console.print(f"  {block}")

    if rejected:
        table = Table(title="Rejected blocks", show_header=True, header_style="bold red")
        table.add_column("#", style="bold")
        table.add_column("Reason")
        for item in rejected:
            table.add_row(str(item.index), item.reason)
        console.print()
        console.print(table)
        raise typer.Exit(1)

    console.print()


@app.command()
def list_colleagues(
    config_file: ConfigOption = None,
    remote: Annotated[bool, typer.Option("--remote", help="Ask the schedule service instead of the config.")] = False,
    mock: MockOption = False,
):
    """
    List colleagues from the config file or the schedule service.
    """
    try:
        config = _load_config(config_file)

        table = Table(title="Colleagues", show_header=True, header_style="bold cyan")
        table.add_column("Name (Alias)", style="bold yellow")
        table.add_column("Id")
        table.add_column("E-mail", style="dim")

        if remote or mock:
            colleagues = _build_client(config, mock).get_colleagues()
            for colleague in colleagues:
                table.add_row(colleague.name, colleague.id, colleague.email)
        else:
            if not config.colleagues:
                console.print("[yellow]No colleagues defined in the config file.[/yellow]")
                return
            for colleague in config.colleagues:
                table.add_row(colleague.name, colleague.id, colleague.email)

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, FreeTimeError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def login(
    config_file: ConfigOption = None,
    email: Annotated[Optional[str], typer.Option("--email", help="Account e-mail")] = None,
):
    """
    Log in to the schedule service and cache the access token.
    """
    try:
        config = _load_config(config_file)
        account = email or typer.prompt("E-mail")
        password = typer.prompt("Password", hide_input=True)

        authenticator = ApiAuthenticator(base_url=config.api_base_url)
        token = authenticator.get_access_token(email=account, password=password, force_refresh=True)

        if authenticator.insecure_storage_warning:
            console.print(f"[yellow]{authenticator.insecure_storage_warning}[/yellow]")

        profile = ScheduleAPIClient(base_url=config.api_base_url, access_token=token).test_connection()
        console.print(Panel.fit(
            f"[bold green]✓ Logged in![/bold green]\n\n"
            f"[bold]User:[/bold] {profile.get('nome', 'N/A')}\n"
            f"[bold]E-mail:[/bold] {profile.get('email', account)}",
            title="✓ Connection test"
        ))

    except (FileNotFoundError, ValueError, FreeTimeError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}\n")
        raise typer.Exit(1)


@app.command()
def logout(config_file: ConfigOption = None):
    """
    Clear the cached access token.
    """
    try:
        config = _load_config(config_file)
        ApiAuthenticator(base_url=config.api_base_url).clear_cache()
        console.print("\n[green]✓ Token cache cleared.[/green]")
        console.print("You will need to log in again next time.\n")

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    console.print(f"\n[bold cyan]freetimefinder[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
