"""Slot directories, wrapper scripts and FIFOs.

Each slot lives in ``<slots_dir>/<position>-<name>/``:

    cmd   the user's command behind a shebang for its interpreter
    run   wrapper: redirects cmd into the FIFO and alerts on exit
    out   FIFO read by pista
    err   stderr of cmd, appended
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from . import fs, scripts
from .config import Notifications, Slot
from .discovery import discover_slot_length
from .logging_config import setup_logger
from .tmux import Terminal, Tmux

logger = setup_logger("pistactl.slots")

NAME_CMD = "cmd"
NAME_RUN = "run"
NAME_OUT = "out"
NAME_ERR = "err"
RUN_COMMAND = f"./{NAME_RUN}"
RENDERER_WINDOW_NAME = "pista"


@dataclass(frozen=True)
class SlotSpec:
    """One positional slot argument of pista: ``<fifo> <length> <ttl>``."""

    pipe: Path
    length: int
    ttl: int

    def to_arg(self) -> str:
        return f"{shlex.quote(str(self.pipe))} {self.length} {self.ttl}"


@dataclass(frozen=True)
class SlotRuntime:
    directory: Path
    pipe: Path
    length: int
    ttl: int
    terminal: Terminal

    @property
    def spec(self) -> SlotSpec:
        return SlotSpec(pipe=self.pipe, length=self.length, ttl=self.ttl)


def slot_dir_name(position: int, name: str) -> str:
    return f"{position}-{name}"


def slot_name(position: int, slot: Slot) -> str:
    return slot.name if slot.name is not None else str(position)


def exit_notification_lines(
    notif: Notifications,
    subject: str,
    body: str,
    variables: dict[str, str] | None = None,
) -> list[str]:
    """Shell lines that alert with the exit code and a tail of ./err.

    Must directly follow the command whose exit code is reported. ``body`` may
    reference ``$code``, ``$log`` and any of ``variables``.
    """
    tail = scripts.tail_log(
        f"./{NAME_ERR}", notif.log_lines_limit, notif.indent, notif.width_limit
    )
    return [
        "code=$?",
        *(f"{key}={shlex.quote(value)}" for key, value in (variables or {}).items()),
        f"log=$({tail})",
        f'body="{body}"',
        scripts.notify_send_critical(shlex.quote(subject), '"$body"'),
    ]


def cmd_script_lines(slot: Slot) -> list[str]:
    return [f"#! {slot.interpreter}", slot.cmd]


def run_script_lines(notif: Notifications, slot_dir: Path, name: str) -> list[str]:
    return [
        "#! /bin/bash",
        "# This script wraps the user-provided script,",
        f"# which was written to ./{NAME_CMD},",
        "# adding output redirection and",
        "# a notification in case of an unexpected exit.",
        f"cd {shlex.quote(str(slot_dir))} && ./{NAME_CMD} > ./{NAME_OUT} 2>> ./{NAME_ERR};",
        *exit_notification_lines(
            notif,
            "pista feed exited!",
            "slot: $slot_name\ncode: $code\nlog:\n$log",
            {"slot_name": name},
        ),
    ]


def start_slot(
    notif: Notifications,
    slot: Slot,
    slot_dir: Path,
    name: str,
    tmux: Tmux,
    *,
    length_timeout: float,
) -> SlotRuntime:
    """Create the slot's files and FIFO, launch it in a new terminal, resolve its length.

    Nothing is cleaned up on failure; ``stop`` removes the whole slots tree.
    """
    slot_dir.mkdir(parents=True, exist_ok=True)
    pipe = slot_dir / NAME_OUT
    fs.mkfifo(pipe)
    fs.write_executable(slot_dir / NAME_CMD, cmd_script_lines(slot))
    fs.write_executable(slot_dir / NAME_RUN, run_script_lines(notif, slot_dir, name))

    term = tmux.new_terminal(slot_dir, name)
    tmux.send_text(term, RUN_COMMAND)
    tmux.send_enter(term)

    if slot.len is not None:
        logger.info("User-defined slot length found: %d, for command: %r", slot.len, slot.cmd)
        length = slot.len
    else:
        logger.warning(
            "User-defined slot length NOT found. Waiting for first line in FIFO: %s. "
            "From command: %r",
            pipe,
            slot.cmd,
        )
        discovered = discover_slot_length(tmux, term, pipe, RUN_COMMAND, length_timeout)
        length = 0 if discovered is None else discovered

    return SlotRuntime(directory=slot_dir, pipe=pipe, length=length, ttl=slot.ttl, terminal=term)


def start_slots(
    notif: Notifications,
    slots: Iterable[Slot],
    slots_dir: Path,
    tmux: Tmux,
    *,
    length_timeout: float,
) -> list[SlotRuntime]:
    """Start every slot in declaration order; positions are 1-based."""
    runtimes: list[SlotRuntime] = []
    for position, slot in enumerate(slots, 1):
        name = slot_name(position, slot)
        slot_dir = slots_dir / slot_dir_name(position, name)
        runtimes.append(
            start_slot(notif, slot, slot_dir, name, tmux, length_timeout=length_timeout)
        )
    return runtimes


def join_specs(specs: Sequence[SlotSpec]) -> str:
    return " ".join(spec.to_arg() for spec in specs)
