"""Unit tests for status reconciliation."""

from pathlib import Path

from pistactl.commands.lifecycle import start
from pistactl.config import Config
from pistactl.process import ProcessInfo
from pistactl.status import SlotStatus, collect_status, log_file, running_ttys
from pistactl.tmux import PaneInfo, Tmux


class FakePanes:
    def __init__(self, panes):
        self.panes = panes

    def list_panes(self):
        return list(self.panes)


def _panes():
    return [
        PaneInfo(window_id=1, window_name="cpu", tty=Path("/dev/pts/1"), pane_id=1),
        PaneInfo(window_id=0, window_name="pista", tty=Path("/dev/pts/0"), pane_id=0),
    ]


class TestRunningTtys:
    """Tests for running_ttys."""

    def test_only_foreground_run_wrappers(self):
        """Background processes and other commands are ignored."""
        procs = [
            ProcessInfo(comm="run", fg=True, tty=Path("/dev/pts/1")),
            ProcessInfo(comm="run", fg=False, tty=Path("/dev/pts/2")),
            ProcessInfo(comm="bash", fg=True, tty=Path("/dev/pts/3")),
            ProcessInfo(comm="run", fg=True, tty=None),
        ]

        assert running_ttys(procs) == {Path("/dev/pts/1")}


class TestCollectStatus:
    """Tests for collect_status."""

    def test_running_flags_follow_the_process_table(self, tmp_path):
        """Only the pane whose tty has a foreground 'run' is running."""
        procs = [ProcessInfo(comm="run", fg=True, tty=Path("/dev/pts/1"))]

        statuses = collect_status(FakePanes(_panes()), lambda: procs, tmp_path)

        assert [(s.position, s.name, s.running) for s in statuses] == [
            (0, "pista", False),
            (1, "cpu", True),
        ]

    def test_renderer_running_when_its_tty_is_listed(self, tmp_path):
        """Window 0 reports running when its tty also appears."""
        procs = [
            ProcessInfo(comm="run", fg=True, tty=Path("/dev/pts/1")),
            ProcessInfo(comm="run", fg=True, tty=Path("/dev/pts/0")),
        ]

        statuses = collect_status(FakePanes(_panes()), lambda: procs, tmp_path)

        assert all(s.running for s in statuses)

    def test_counts_log_lines(self, tmp_path):
        """Window 0 reads <slots>/err; window k reads <slots>/<k>-<name>/err."""
        (tmp_path / "err").write_text("a\nb\n")
        (tmp_path / "1-cpu").mkdir()
        (tmp_path / "1-cpu" / "err").write_text("x\ny\nz\n")

        statuses = collect_status(FakePanes(_panes()), lambda: [], tmp_path)

        assert statuses == [
            SlotStatus(position=0, name="pista", running=False, log_lines=2),
            SlotStatus(position=1, name="cpu", running=False, log_lines=3),
        ]

    def test_missing_log_counts_as_zero(self, tmp_path):
        """A missing log does not hide the other rows."""
        (tmp_path / "err").write_text("only\n")

        statuses = collect_status(FakePanes(_panes()), lambda: [], tmp_path)

        assert [s.log_lines for s in statuses] == [1, 0]

    def test_unexpected_zeroth_name_is_not_fatal(self, tmp_path):
        """A renamed window 0 is still reported."""
        panes = [PaneInfo(window_id=0, window_name="bash", tty=Path("/dev/pts/0"), pane_id=0)]

        statuses = collect_status(FakePanes(panes), lambda: [], tmp_path)

        assert statuses[0].name == "bash"


class TestLogFile:
    """Tests for log_file."""

    def test_paths(self, tmp_path):
        pista, cpu = sorted(_panes(), key=lambda p: p.window_id)

        assert log_file(tmp_path, pista) == tmp_path / "err"
        assert log_file(tmp_path, cpu) == tmp_path / "1-cpu" / "err"


class TestStatusAfterStart:
    """Window names chosen at start come back intact through list-panes."""

    def test_configured_names_survive_the_listing(self, runner, tmp_path):
        cfg = Config.from_dict(
            {
                "sock_name": "sock",
                "session": "sess",
                "slots_fifos_dir": str(tmp_path),
                "pista": {
                    "slots": [
                        {"cmd": "uptime", "name": "cpu-load", "len": 20},
                        {"cmd": "date", "len": 28},
                    ]
                },
            }
        )
        tmux = Tmux(cfg.sock, cfg.session)
        start(cfg, tmux)

        windows = [
            (args[args.index("-t") + 1].split(":")[1], args[args.index("-n") + 1])
            for args in runner.tmux_subcommands()
            if args[0] == "new-window"
        ]
        assert windows == [("1", "cpu-load"), ("2", "2")]
        rows = ["@0 pista /dev/pts/0 %0"] + [
            f"@{index} {name} /dev/pts/{index} %{index}" for index, name in windows
        ]
        runner.responses["list-panes"] = "\n".join(rows) + "\n"
        procs = [ProcessInfo(comm="run", fg=True, tty=Path("/dev/pts/1"))]

        statuses = collect_status(tmux, lambda: procs, cfg.slots_fifos_dir)

        assert [(s.position, s.name, s.running) for s in statuses] == [
            (0, "pista", False),
            (1, "cpu-load", True),
            (2, "2", False),
        ]
