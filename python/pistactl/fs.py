"""Filesystem helpers for slot directories."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Iterable

PERM_OWNER_RWX = stat.S_IRUSR | stat.S_IWUSR | stat.S_IXUSR


def mkfifo(path: Path) -> None:
    os.mkfifo(path)


def write_executable(path: Path, lines: Iterable[str]) -> None:
    """Write ``lines`` to ``path``, make it owner-rwx and flush it to disk."""
    with open(path, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(line)
            f.write("\n")
        os.fchmod(f.fileno(), PERM_OWNER_RWX)
        f.flush()
        os.fsync(f.fileno())


def count_lines(path: Path) -> int:
    with open(path, "rb") as f:
        return sum(1 for _ in f)
