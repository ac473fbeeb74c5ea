"""Locating, spawning and stopping the per-user daemon.

The socket and PID file under the data dir are the daemon's well-known
address. The PID alone is not trusted: a recycled PID is told apart by
``PROCESS_TAG`` in the command line.
"""

import contextlib
import os
import signal
import socket
import subprocess  # nosec B404
import time
from collections.abc import Callable
from pathlib import Path

from mm_clikit import is_process_running

from mb_opclip.config import Config

PROCESS_TAG = "mb-opclip"

START_TIMEOUT = 5.0
STOP_TIMEOUT = 3.0


def _wait_until(predicate: Callable[[], bool], timeout: float, interval: float = 0.05) -> bool:
    """Poll ``predicate`` until it holds or ``timeout`` seconds pass."""
    deadline = time.monotonic() + timeout
    while True:
        if predicate():
            return True
        if time.monotonic() >= deadline:
            return False
        time.sleep(interval)


def read_pid(pid_path: Path) -> int | None:
    """PID recorded by the daemon, or None when the file is absent or garbled."""
    try:
        return int(pid_path.read_text().strip())
    except (OSError, ValueError):
        return None


def is_connectable(sock_path: Path) -> bool:
    """True when something accepts connections on the daemon socket."""
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as probe:
        probe.settimeout(1.0)
        try:
            probe.connect(str(sock_path))
        except OSError:
            return False
    return True


def is_daemon_running(cfg: Config) -> bool:
    """True when our daemon owns the PID file or answers on the socket."""
    if is_process_running(cfg.daemon_pid_path, command_contains=PROCESS_TAG):
        return True
    return is_connectable(cfg.daemon_sock_path)


def spawn_daemon(cfg: Config) -> None:
    """Start ``mb-opclip daemon`` detached from the calling terminal."""
    argv = [*cfg.cli_base_args(), "daemon"]
    subprocess.Popen(  # noqa: S603  # nosec B603, B607
        argv,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


def ensure_daemon(cfg: Config) -> None:
    """Make sure the daemon answers on its socket, spawning it on first use.

    Raises:
        RuntimeError: The spawned daemon did not come up in time.

    """
    sock_path = cfg.daemon_sock_path
    if is_connectable(sock_path):
        return
    spawn_daemon(cfg)
    if not _wait_until(lambda: is_connectable(sock_path), START_TIMEOUT):
        msg = f"Daemon did not start within {START_TIMEOUT}s."
        raise RuntimeError(msg)


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    return True


def stop_daemon(cfg: Config) -> bool:
    """Terminate the daemon by signal, escalating to SIGKILL if it lingers.

    Stale PID and socket files are removed either way. Returns True when a
    live daemon was signalled.
    """
    pid = read_pid(cfg.daemon_pid_path)
    stopped = False
    if pid is not None and is_process_running(cfg.daemon_pid_path, command_contains=PROCESS_TAG):
        try:
            os.kill(pid, signal.SIGTERM)
        except ProcessLookupError:
            pass
        else:
            stopped = True
            if not _wait_until(lambda: not _pid_alive(pid), STOP_TIMEOUT, interval=0.1):
                with contextlib.suppress(ProcessLookupError):
                    os.kill(pid, signal.SIGKILL)
    remove_runtime_files(cfg)
    return stopped


def remove_runtime_files(cfg: Config) -> None:
    """Delete the PID file and socket if present."""
    for path in (cfg.daemon_pid_path, cfg.daemon_sock_path):
        path.unlink(missing_ok=True)
