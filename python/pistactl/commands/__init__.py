"""Top-level pistactl operations invoked by the CLI."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import Config
from ..tmux import Tmux


@dataclass
class AppState:
    """Shared by every subcommand through ``typer.Context.obj``."""

    config: Config
    tmux: Tmux
