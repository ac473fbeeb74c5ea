"""Stop the daemon."""

import time

import typer
from mm_clikit import is_process_running

from mb_opclip.app_context import use_context
from mb_opclip.daemon.client import DaemonClient
from mb_opclip.daemon.process import PROCESS_TAG, is_connectable, is_daemon_running, stop_daemon


def stop(ctx: typer.Context) -> None:
    """Stop the daemon; a pending clipboard restore runs immediately."""
    app = use_context(ctx)

    pid_alive = is_process_running(app.cfg.daemon_pid_path, command_contains=PROCESS_TAG)
    reachable = is_connectable(app.cfg.daemon_sock_path)

    if reachable:
        # Socket stop first so the daemon flushes its clipboard restore before exiting
        DaemonClient(app.cfg).stop()
        time.sleep(0.5)
    if pid_alive and is_daemon_running(app.cfg):
        stop_daemon(app.cfg)

    if is_daemon_running(app.cfg):
        app.out.print_error_and_exit("stop_failed", "Daemon is still running after stop attempt.")

    app.out.print_stopped()
