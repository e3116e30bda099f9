"""Pytest fixtures for pistactl tests."""

import os
import tempfile
from pathlib import Path

# Keep test runs from writing into ~/.pistactl/.logs.
os.environ.setdefault("PISTACTL_LOG_DIR", tempfile.mkdtemp(prefix="pistactl-test-logs-"))

import pytest

from pistactl.errors import ExternalCommandFailed
from pistactl.tmux import Terminal


class RecordingRunner:
    """Stands in for ``pistactl.process.run``.

    ``responses`` maps a tmux subcommand (e.g. ``"list-panes"``) to the stdout to
    return, or to an exception instance to raise.
    """

    def __init__(self):
        self.calls: list[tuple[str, list[str]]] = []
        self.responses: dict[str, object] = {}

    def __call__(self, cmd, args, *, capture_stdout=True):
        args = list(args)
        self.calls.append((cmd, args))
        key = args[2] if cmd == "tmux" and len(args) > 2 else cmd
        response = self.responses.get(key, "")
        if isinstance(response, Exception):
            raise response
        return response

    def tmux_subcommands(self) -> list[list[str]]:
        """tmux argument lists with the ``-L <sock>`` prefix removed."""
        return [args[2:] for cmd, args in self.calls if cmd == "tmux"]


@pytest.fixture
def runner(monkeypatch) -> RecordingRunner:
    """Replace the process runner for every module that shells out."""
    fake = RecordingRunner()
    monkeypatch.setattr("pistactl.process.run", fake)
    return fake


class FakeTmux:
    """Session controller double that records key delivery."""

    def __init__(self, session: str = "test", on_enter=None):
        self.session = session
        self.sock = "test-sock"
        self.next_window = 1
        self.events: list[tuple] = []
        self.on_enter = on_enter

    def new_terminal(self, cwd: Path, name: str) -> Terminal:
        term = Terminal(session=self.session, window=self.next_window)
        self.next_window += 1
        self.events.append(("new_terminal", str(term), cwd, name))
        return term

    def zeroth_terminal(self, name: str) -> Terminal:
        term = Terminal(session=self.session, window=0)
        self.events.append(("zeroth_terminal", str(term), name))
        return term

    def send_text(self, term: Terminal, text: str) -> None:
        self.events.append(("text", str(term), text))

    def send_enter(self, term: Terminal) -> None:
        self.events.append(("enter", str(term)))
        if self.on_enter is not None:
            self.on_enter(term)

    def send_interrupt(self, term: Terminal) -> None:
        self.events.append(("interrupt", str(term)))

    def kinds(self) -> list[str]:
        return [e[0] for e in self.events]


@pytest.fixture
def fake_tmux() -> FakeTmux:
    return FakeTmux()


@pytest.fixture
def command_failed() -> ExternalCommandFailed:
    return ExternalCommandFailed("tmux -L test kill-session -t test", 1, "no server running")


@pytest.fixture
def make_fake_tmux():
    """Factory for FakeTmux with a custom Enter hook."""
    return FakeTmux
