"""Status command: which slots are running and how much they have logged."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from ..config import Config
from ..errors import PistactlError
from ..logging_config import setup_logger
from ..process import list_processes
from ..status import SlotStatus, collect_status
from ..tmux import Tmux
from . import AppState

logger = setup_logger("pistactl.commands.status")

console = Console()


def status_table(statuses: list[SlotStatus]) -> Table:
    table = Table(box=None)
    table.add_column("POSITION", justify="right")
    table.add_column("NAME", style="bold")
    table.add_column("RUNNING?")
    table.add_column("LOG_LINES", justify="right")
    for s in statuses:
        running = "[green]YES[/green]" if s.running else "[red]NO[/red]"
        table.add_row(str(s.position), s.name, running, str(s.log_lines))
    return table


def show_status(cfg: Config, tmux: Tmux) -> list[SlotStatus]:
    header = Table(show_header=False, box=None)
    header.add_column("Label", style="bold")
    header.add_column("Value", style="cyan")
    header.add_row("socket name", tmux.sock)
    header.add_row("session", tmux.session)
    header.add_row("slots dir", str(cfg.slots_fifos_dir))
    console.print(header)
    console.print("")

    statuses = collect_status(tmux, list_processes, cfg.slots_fifos_dir)
    console.print(status_table(statuses))
    return statuses


def status_command(ctx: typer.Context):
    """Show each slot's window, whether its feed is running, and its log size."""
    state: AppState = ctx.obj
    try:
        show_status(state.config, state.tmux)
    except (PistactlError, OSError) as e:
        logger.error("Status failed: %s", e)
        console.print(f"[red]Status failed:[/red] {e}")
        raise typer.Exit(code=1)
