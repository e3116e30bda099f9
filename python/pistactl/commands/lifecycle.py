"""start / stop / restart / attach."""

from __future__ import annotations

import shlex
import shutil
from pathlib import Path

import typer
from rich.console import Console

from ..config import Config
from ..errors import PistactlError
from ..fs import write_executable
from ..logging_config import setup_logger
from ..slots import (
    NAME_ERR,
    NAME_OUT,
    NAME_RUN,
    RENDERER_WINDOW_NAME,
    RUN_COMMAND,
    SlotRuntime,
    SlotSpec,
    exit_notification_lines,
    join_specs,
    start_slots,
)
from ..tmux import Tmux
from . import AppState

logger = setup_logger("pistactl.commands.lifecycle")

console = Console()


def renderer_script_lines(cfg: Config, specs: list[SlotSpec]) -> list[str]:
    invocation = " ".join(
        part
        for part in (shlex.quote(cfg.pista.renderer), cfg.pista.to_arg_str(), join_specs(specs))
        if part
    )
    return [
        "#! /bin/bash",
        f"cd {shlex.quote(str(cfg.slots_fifos_dir))} && "
        f"{invocation} >> ./{NAME_OUT} 2>> ./{NAME_ERR};",
        *exit_notification_lines(cfg.notifications, "pista exited!", "code: $code\nlog:\n$log"),
    ]


def start(cfg: Config, tmux: Tmux) -> list[SlotRuntime]:
    """Create the session, start every slot, then start pista in window 0.

    Fails fast. Whatever was created before the failure is left in place for
    ``stop`` to remove.
    """
    slots_dir = cfg.slots_fifos_dir
    slots_dir.mkdir(parents=True, exist_ok=True)
    tmux.new_session(slots_dir)
    runtimes = start_slots(
        cfg.notifications,
        cfg.pista.slots,
        slots_dir,
        tmux,
        length_timeout=cfg.slot_length_timeout,
    )
    write_executable(
        slots_dir / NAME_RUN,
        renderer_script_lines(cfg, [r.spec for r in runtimes]),
    )
    term = tmux.zeroth_terminal(RENDERER_WINDOW_NAME)
    tmux.send_text(term, RUN_COMMAND)
    tmux.send_enter(term)
    logger.info("Started %d slot(s) in session %r", len(runtimes), tmux.session)
    return runtimes


def stop(cfg: Config, tmux: Tmux) -> None:
    """Kill the session and remove the slots tree; failures are logged, never raised."""
    try:
        tmux.kill_session()
    except (PistactlError, OSError) as e:
        logger.error("Failure in kill session: %s", e)
    try:
        shutil.rmtree(cfg.slots_fifos_dir)
    except OSError as e:
        logger.error(
            "Failure in removal of slot directory: %s. Error: %s", cfg.slots_fifos_dir, e
        )


def restart(cfg: Config, tmux: Tmux) -> list[SlotRuntime]:
    stop(cfg, tmux)
    return start(cfg, tmux)


def attach(tmux: Tmux) -> None:
    tmux.attach()


def _fail(action: str, e: Exception) -> typer.Exit:
    logger.error("%s failed: %s", action, e)
    console.print(f"[red]{action} failed:[/red] {e}")
    return typer.Exit(code=1)


def _print_started(runtimes: list[SlotRuntime], slots_dir: Path) -> None:
    console.print(f"[green]Started[/green] {len(runtimes)} slot(s) in {slots_dir}")
    for runtime in runtimes:
        console.print(
            f"  [dim]{runtime.terminal}[/dim] {runtime.directory.name} "
            f"len={runtime.length} ttl={runtime.ttl}"
        )


def start_command(ctx: typer.Context):
    """Start the tmux session, every configured slot and pista."""
    state: AppState = ctx.obj
    try:
        runtimes = start(state.config, state.tmux)
    except (PistactlError, OSError) as e:
        raise _fail("Start", e)
    _print_started(runtimes, state.config.slots_fifos_dir)


def stop_command(ctx: typer.Context):
    """Kill the tmux session and remove the slots directory (best-effort)."""
    state: AppState = ctx.obj
    stop(state.config, state.tmux)
    console.print("[green]Stopped[/green]")


def restart_command(ctx: typer.Context):
    """Stop, then start."""
    state: AppState = ctx.obj
    try:
        runtimes = restart(state.config, state.tmux)
    except (PistactlError, OSError) as e:
        raise _fail("Restart", e)
    _print_started(runtimes, state.config.slots_fifos_dir)


def attach_command(ctx: typer.Context):
    """Attach to the pistactl tmux session."""
    state: AppState = ctx.obj
    try:
        attach(state.tmux)
    except (PistactlError, OSError) as e:
        raise _fail("Attach", e)
