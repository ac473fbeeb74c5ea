"""Tests for daemon process discovery and cleanup."""

from pathlib import Path

from mb_opclip.config import Config
from mb_opclip.daemon.process import is_connectable, is_daemon_running, read_pid, stop_daemon


class TestReadPid:
    """PID file parsing."""

    def test_valid(self, tmp_path: Path) -> None:
        """Whitespace around the PID is ignored."""
        path = tmp_path / "daemon.pid"
        path.write_text("1234\n")
        assert read_pid(path) == 1234

    def test_missing_or_garbled(self, tmp_path: Path) -> None:
        """Absent or non-numeric files read as None."""
        path = tmp_path / "daemon.pid"
        assert read_pid(path) is None
        path.write_text("not-a-pid")
        assert read_pid(path) is None


class TestNotRunning:
    """Behaviour when no daemon exists."""

    def test_socket_not_connectable(self, tmp_path: Path) -> None:
        """A missing socket path is not connectable."""
        assert not is_connectable(tmp_path / "daemon.sock")

    def test_stop_removes_stale_files(self, tmp_path: Path) -> None:
        """Stopping with a stale PID file cleans up and reports nothing stopped."""
        cfg = Config(data_dir=tmp_path)
        cfg.daemon_pid_path.write_text("999999999")
        cfg.daemon_sock_path.write_text("")
        assert not is_daemon_running(cfg)
        assert stop_daemon(cfg) is False
        assert not cfg.daemon_pid_path.exists()
        assert not cfg.daemon_sock_path.exists()
