"""Unit tests for slot length discovery over real FIFOs."""

import os
import threading

import pytest

from pistactl.discovery import discover_slot_length, read_first_line
from pistactl.tmux import Terminal


def _write_later(path, data: bytes) -> threading.Thread:
    def write():
        with open(path, "wb") as f:
            f.write(data)

    thread = threading.Thread(target=write, daemon=True)
    thread.start()
    return thread


@pytest.fixture
def fifo(tmp_path):
    path = tmp_path / "out"
    os.mkfifo(path)
    return path


class TestReadFirstLine:
    """Tests for read_first_line."""

    def test_reads_one_line(self, fifo):
        """The first line is returned without its newline."""
        writer = _write_later(fifo, b"first\nsecond\n")

        assert read_first_line(fifo, timeout_s=5) == b"first"
        writer.join(timeout=5)

    def test_line_without_newline_at_close(self, fifo):
        """A final unterminated line still counts."""
        writer = _write_later(fifo, b"partial")

        assert read_first_line(fifo, timeout_s=5) == b"partial"
        writer.join(timeout=5)

    def test_end_of_stream_returns_none(self, fifo):
        """A writer closing without output yields None, not an error."""
        writer = _write_later(fifo, b"")

        assert read_first_line(fifo, timeout_s=5) is None
        writer.join(timeout=5)

    def test_timeout_returns_none(self, fifo):
        """No writer within the deadline yields None."""
        assert read_first_line(fifo, timeout_s=0.2) is None

        # Release the abandoned reader.
        _write_later(fifo, b"").join(timeout=5)

    def test_read_error_propagates(self, tmp_path):
        """Real I/O failures are raised."""
        with pytest.raises(OSError):
            read_first_line(tmp_path, timeout_s=5)


class TestDiscoverSlotLength:
    """Tests for discover_slot_length."""

    def test_length_is_counted_in_bytes(self, fifo, fake_tmux):
        """Multi-byte characters count by their UTF-8 size."""
        _write_later(fifo, "héllo ☀\n".encode("utf-8"))
        term = Terminal("test", 1)

        length = discover_slot_length(fake_tmux, term, fifo, "./run", timeout_s=5)

        assert length == len("héllo ☀".encode("utf-8")) == 10

    def test_restarts_feed_after_reading(self, fifo, fake_tmux):
        """One interrupt, then the command is retyped and entered."""
        _write_later(fifo, b"abc\n")
        term = Terminal("test", 2)

        discover_slot_length(fake_tmux, term, fifo, "./run", timeout_s=5)

        assert fake_tmux.events == [
            ("interrupt", "test:2.0"),
            ("text", "test:2.0", "./run"),
            ("enter", "test:2.0"),
        ]

    def test_restarts_feed_after_timeout(self, fifo, fake_tmux):
        """The restart happens even when nothing was read."""
        term = Terminal("test", 1)

        length = discover_slot_length(fake_tmux, term, fifo, "./run", timeout_s=0.2)

        assert length is None
        assert fake_tmux.kinds() == ["interrupt", "text", "enter"]
        _write_later(fifo, b"").join(timeout=5)
