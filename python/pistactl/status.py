"""Reconcile tmux panes with the process table for `pistactl status`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Protocol

from . import fs
from .logging_config import setup_logger
from .process import ProcessInfo
from .slots import NAME_ERR, NAME_RUN, RENDERER_WINDOW_NAME, slot_dir_name
from .tmux import ZEROTH_WINDOW, PaneInfo

logger = setup_logger("pistactl.status")


class PaneLister(Protocol):
    def list_panes(self) -> list[PaneInfo]: ...


@dataclass(frozen=True)
class SlotStatus:
    position: int
    name: str
    running: bool
    log_lines: int


def running_ttys(procs: Iterable[ProcessInfo]) -> set[Path]:
    """TTYs whose foreground process is a slot (or renderer) ``run`` wrapper."""
    return {p.tty for p in procs if p.fg and p.comm == NAME_RUN and p.tty is not None}


def log_file(slots_dir: Path, pane: PaneInfo) -> Path:
    if pane.window_id == ZEROTH_WINDOW:
        return slots_dir / NAME_ERR
    return slots_dir / slot_dir_name(pane.window_id, pane.window_name) / NAME_ERR


def _log_lines(path: Path) -> int:
    try:
        return fs.count_lines(path)
    except OSError as e:
        logger.error("Failed to read log file %s: %s", path, e)
        return 0


def collect_status(
    tmux: PaneLister,
    list_processes: Callable[[], list[ProcessInfo]],
    slots_dir: Path,
) -> list[SlotStatus]:
    panes = sorted(tmux.list_panes(), key=lambda p: p.window_id)
    fg = running_ttys(list_processes())
    statuses: list[SlotStatus] = []
    for pane in panes:
        if pane.window_id != pane.pane_id:
            logger.debug(
                "Window id %d and pane id %d differ (%s)",
                pane.window_id,
                pane.pane_id,
                pane.window_name,
            )
        if pane.window_id == ZEROTH_WINDOW and pane.window_name != RENDERER_WINDOW_NAME:
            logger.warning(
                "Expected window %d to be named %r, found %r",
                ZEROTH_WINDOW,
                RENDERER_WINDOW_NAME,
                pane.window_name,
            )
        statuses.append(
            SlotStatus(
                position=pane.window_id,
                name=pane.window_name,
                running=pane.tty in fg,
                log_lines=_log_lines(log_file(slots_dir, pane)),
            )
        )
    return statuses
