"""pistactl - run pista status-bar feeds inside a dedicated tmux session."""

__version__ = "0.1.0"

NAME = "pistactl"
