"""tmux control for a single pistactl session.

All commands run against a dedicated tmux server (``tmux -L <sock>``) so the
user's own tmux sessions are never touched. Terminal addresses are formatted
from ``session:window.pane`` on every call; tmux owns the real state.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from . import process
from .errors import AddressParseError
from .logging_config import setup_logger

logger = setup_logger("pistactl.tmux")

# Window 0 always exists in a fresh session; slot windows are allocated after it.
ZEROTH_WINDOW = 0
FIRST_SLOT_WINDOW = 1

_LIST_PANES_FORMAT = "#{window_id} #{window_name} #{pane_tty} #{pane_id}"
_WINDOW_ID_TAG = "@"
_PANE_ID_TAG = "%"


@dataclass(frozen=True)
class Terminal:
    session: str
    window: int
    pane: int = 0

    def __str__(self) -> str:
        return f"{self.session}:{self.window}.{self.pane}"


@dataclass(frozen=True)
class PaneInfo:
    window_id: int
    window_name: str
    tty: Path
    pane_id: int


def _parse_tagged_id(value: str, tag: str, line: str) -> int:
    if not value.startswith(tag):
        raise AddressParseError(line, f"expected {tag!r} prefix in {value!r}")
    try:
        return int(value[len(tag) :])
    except ValueError:
        raise AddressParseError(line, f"non-integer id in {value!r}") from None


def parse_pane_line(line: str) -> PaneInfo:
    parts = line.split()
    if len(parts) != 4:
        raise AddressParseError(line, f"expected 4 fields, got {len(parts)}")
    window_id, window_name, tty, pane_id = parts
    return PaneInfo(
        window_id=_parse_tagged_id(window_id, _WINDOW_ID_TAG, line),
        window_name=window_name,
        tty=Path(tty),
        pane_id=_parse_tagged_id(pane_id, _PANE_ID_TAG, line),
    )


def _parse_lines(output: str) -> list[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


class Tmux:
    """Owns the window allocator for one session on one tmux socket."""

    def __init__(self, sock: str, session: str):
        self.sock = sock
        self.session = session
        self._next_window = FIRST_SLOT_WINDOW

    def __repr__(self) -> str:
        return (
            f"Tmux(sock={self.sock!r}, session={self.session!r}, "
            f"next_window={self._next_window})"
        )

    # -- session lifecycle ---------------------------------------------------

    def new_session(self, cwd: Path) -> None:
        self._run(["new-session", "-d", "-s", self.session, "-c", str(cwd)])
        # tmux would otherwise rename windows after their foreground command, and
        # window names are how status finds each slot's directory.
        self._run(["set-option", "-w", "-g", "automatic-rename", "off"])
        self._run(["set-option", "-w", "-g", "allow-rename", "off"])
        self._next_window = FIRST_SLOT_WINDOW
        logger.info("Created session %r on socket %r in %s", self.session, self.sock, cwd)

    def kill_session(self) -> None:
        self._run(["kill-session", "-t", self.session])
        logger.info("Killed session %r on socket %r", self.session, self.sock)

    def attach(self) -> None:
        self._run(["attach", "-t", self.session], capture_stdout=False)

    # -- terminal allocation -------------------------------------------------

    def new_terminal(self, cwd: Path, name: str) -> Terminal:
        """Open the next slot window, rooted at ``cwd`` and named ``name``."""
        window = self._next_window
        self._run(
            [
                "new-window",
                "-d",
                "-t",
                f"{self.session}:{window}",
                "-c",
                str(cwd),
                "-n",
                name,
            ]
        )
        self._next_window += 1
        term = Terminal(session=self.session, window=window)
        logger.debug("Allocated terminal: %s (%s)", term, name)
        return term

    def zeroth_terminal(self, name: str) -> Terminal:
        """Rename window 0 in place; it does not consume an allocator slot."""
        term = Terminal(session=self.session, window=ZEROTH_WINDOW)
        self._run(["rename-window", "-t", f"{self.session}:{ZEROTH_WINDOW}", name])
        logger.debug("Renamed zeroth terminal: %s (%s)", term, name)
        return term

    # -- key delivery --------------------------------------------------------
    #
    # Commands are launched in two steps (literal text, then Enter) so that the
    # length probe can interrupt and retype without re-deriving addresses.

    def send_text(self, term: Terminal, text: str) -> None:
        logger.debug("Sending text. Terminal: %s. Text: %r", term, text)
        # -l disables key name lookup: the text is typed as literal UTF-8.
        self._run(["send-keys", "-t", str(term), "-l", text])

    def send_enter(self, term: Terminal) -> None:
        self._run(["send-keys", "-t", str(term), "Enter"])

    def send_interrupt(self, term: Terminal) -> None:
        logger.debug("Sending interrupt. Terminal: %s", term)
        self._run(["send-keys", "-t", str(term), "C-c"])

    # -- queries -------------------------------------------------------------

    def list_panes(self) -> list[PaneInfo]:
        out = self._run(["list-panes", "-s", "-t", self.session, "-F", _LIST_PANES_FORMAT])
        return [parse_pane_line(line) for line in _parse_lines(out)]

    def _run(self, args: Sequence[str], *, capture_stdout: bool = True) -> str:
        return process.run("tmux", ["-L", self.sock, *args], capture_stdout=capture_stdout)
