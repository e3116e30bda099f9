"""pistactl command line interface."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from . import NAME, __version__
from .commands import AppState
from .commands.lifecycle import attach_command, restart_command, start_command, stop_command
from .commands.status import status_command
from .config import DEFAULT_CONFIG_PATH, Config
from .errors import ConfigError
from .logging_config import configure_logging, setup_logger
from .tmux import Tmux

logger = setup_logger("pistactl.cli")

console = Console()

app = typer.Typer(
    name=NAME,
    help="Run pista and its feeds inside a dedicated tmux session.",
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"{NAME} {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help=f"Path to configuration file [default: {DEFAULT_CONFIG_PATH}]",
    ),
    sock: Optional[str] = typer.Option(None, "--sock", help="tmux socket name (tmux -L)"),
    session: Optional[str] = typer.Option(None, "--session", help="tmux session name"),
    slots_dir: Optional[Path] = typer.Option(
        None, "--slots-dir", help="Directory holding slot FIFOs and scripts"
    ),
    debug: bool = typer.Option(False, "--debug", help="Verbose logging to stderr"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version"
    ),
):
    """Load configuration once and share it with the subcommand."""
    if debug:
        configure_logging(True)
    try:
        cfg = Config.load(config).with_overrides(
            sock=sock, session=session, slots_dir=slots_dir, debug=debug
        )
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {e}")
        raise typer.Exit(code=1)
    configure_logging(cfg.debug)
    logger.debug("cfg: %r", cfg)
    ctx.obj = AppState(config=cfg, tmux=Tmux(cfg.sock, cfg.session))


app.command("status")(status_command)
app.command("start")(start_command)
app.command("stop")(stop_command)
app.command("restart")(restart_command)
app.command("attach")(attach_command)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
