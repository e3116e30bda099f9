"""Spawning external tools and reading the OS process table.

Every tmux, ps and other tool invocation goes through :func:`run`.
"""

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .errors import ExternalCommandFailed
from .logging_config import setup_logger

logger = setup_logger("pistactl.process")


@dataclass(frozen=True)
class ProcessInfo:
    comm: str
    fg: bool
    tty: Optional[Path] = None


def command_line(cmd: str, args: Sequence[str]) -> str:
    return shlex.join([cmd, *args])


def run(cmd: str, args: Sequence[str], *, capture_stdout: bool = True) -> str:
    """Run ``cmd`` with ``args`` to completion and return its stdout.

    stderr is always captured so it can be embedded in the failure. With
    ``capture_stdout=False`` the child writes straight to our stdout (used for
    interactive commands such as ``tmux attach``) and an empty string is returned.

    Raises:
        ExternalCommandFailed: on a nonzero exit status or death by signal.
        OSError: when the command cannot be spawned at all.
    """
    line = command_line(cmd, args)
    logger.debug("Running: %s", line)
    try:
        proc = subprocess.run(
            [cmd, *args],
            stdout=subprocess.PIPE if capture_stdout else None,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
        )
    except OSError as e:
        logger.error("Failed to spawn %s: %s", line, e)
        raise
    if proc.returncode != 0:
        # Negative return codes mean the child was terminated by a signal.
        code = proc.returncode if proc.returncode > 0 else None
        raise ExternalCommandFailed(line, code, proc.stderr or "")
    return proc.stdout or ""


def _parse_ps_line(line: str) -> ProcessInfo | None:
    parts = line.split(None, 2)
    if len(parts) < 3:
        return None
    stat, tty, comm = parts
    return ProcessInfo(
        comm=comm.strip(),
        fg="+" in stat,
        tty=None if tty in ("?", "-") else Path("/dev") / tty,
    )


def list_processes() -> list[ProcessInfo]:
    """Snapshot of all processes: command name, foreground flag and controlling tty."""
    out = run("ps", ["-e", "-o", "stat=,tty=,comm="])
    procs: list[ProcessInfo] = []
    for line in out.splitlines():
        info = _parse_ps_line(line)
        if info is None:
            logger.debug("Skipping unparseable ps row: %r", line)
            continue
        procs.append(info)
    return procs
