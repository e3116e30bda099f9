"""Slot length discovery.

pista needs every slot's width (in bytes) up front. When the config does not
declare one we read the first line the feed writes to its FIFO, measure it, and
restart the feed so that first sample is not lost to the probe.
"""

from __future__ import annotations

import queue
import threading
from pathlib import Path
from typing import Optional, Protocol

from .logging_config import setup_logger
from .tmux import Terminal

logger = setup_logger("pistactl.discovery")

DEFAULT_TIMEOUT_S = 10.0


class KeySender(Protocol):
    def send_text(self, term: Terminal, text: str) -> None: ...

    def send_enter(self, term: Terminal) -> None: ...

    def send_interrupt(self, term: Terminal) -> None: ...


_ReadResult = tuple[Optional[bytes], Optional[OSError]]


def _read_line_into(path: Path, results: "queue.Queue[_ReadResult]") -> None:
    try:
        # Opening a FIFO for reading blocks until a writer attaches.
        with open(path, "rb") as f:
            line = f.readline()
    except OSError as e:
        results.put((None, e))
        return
    results.put((line, None))


def read_first_line(path: Path, timeout_s: float = DEFAULT_TIMEOUT_S) -> Optional[bytes]:
    """Read one line from ``path`` within ``timeout_s`` seconds.

    The read happens on a daemon thread because neither the FIFO open nor the
    read can be given a timeout. On timeout the thread is abandoned, not killed;
    it finishes whenever the writer produces a line or closes the pipe.

    Returns:
        The line without its terminator, or None on end-of-stream or timeout.

    Raises:
        OSError: if the read itself fails.
    """
    results: "queue.Queue[_ReadResult]" = queue.Queue(maxsize=1)
    reader = threading.Thread(
        target=_read_line_into,
        args=(path, results),
        name=f"pistactl-head-{path.parent.name}",
        daemon=True,
    )
    reader.start()
    try:
        line, error = results.get(timeout=timeout_s)
    except queue.Empty:
        logger.error("Timed out after %.1fs waiting to read: %s", timeout_s, path)
        return None
    if error is not None:
        raise error
    if not line:
        logger.warning("FIFO empty and did not block: %s", path)
        return None
    return line.rstrip(b"\n").rstrip(b"\r")


def restart_feed(tmux: KeySender, term: Terminal, run_command: str) -> None:
    tmux.send_interrupt(term)
    tmux.send_text(term, run_command)
    tmux.send_enter(term)


def discover_slot_length(
    tmux: KeySender,
    term: Terminal,
    pipe: Path,
    run_command: str,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> Optional[int]:
    """Measure the first line on ``pipe`` in bytes, then restart the feed in ``term``.

    The restart happens whatever the outcome of the read, except when the read
    raised.
    """
    head = read_first_line(pipe, timeout_s)
    # pista counts slot widths in bytes, not characters.
    length = None if head is None else len(head)
    if length is None:
        logger.warning("Slot length unknown for %s. Restarting feed in %s", pipe, term)
    else:
        logger.info("Read slot length: %d from %s. Restarting feed in %s", length, pipe, term)
    restart_feed(tmux, term, run_command)
    return length
