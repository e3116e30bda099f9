"""Error types raised by pistactl.

Filesystem and pipe failures are plain ``OSError`` and propagate as-is.
"""

from __future__ import annotations

from typing import Optional


class PistactlError(Exception):
    """Base class for pistactl errors."""


class ExternalCommandFailed(PistactlError):
    """A spawned tool exited with a nonzero status (or was killed by a signal)."""

    def __init__(self, command_line: str, code: Optional[int], stderr: str):
        self.command_line = command_line
        self.code = code
        self.stderr = stderr
        code_str = "none" if code is None else str(code)
        super().__init__(
            f"Failed to run: {command_line!r}. Code: {code_str}. Stderr: {stderr!r}"
        )


class AddressParseError(PistactlError):
    """A row of a tmux listing did not have the expected shape."""

    def __init__(self, line: str, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"Invalid tmux listing row {line!r}: {reason}")


class ConfigError(PistactlError):
    """Invalid configuration file contents."""
