"""Lock the identity and clear clipboard."""

import contextlib

import typer

from mb_opclip.app_context import use_context
from mb_opclip.clipboard import SystemClipboard
from mb_opclip.daemon.client import DaemonClient
from mb_opclip.daemon.process import is_daemon_running


def lock(ctx: typer.Context) -> None:
    """Lock the identity, cancel the pending clipboard restore, and clear clipboard."""
    app = use_context(ctx)

    # Best-effort clipboard clear regardless of daemon state
    with contextlib.suppress(Exception):
        SystemClipboard().clear()

    # Daemon not running, identity is already locked
    if not is_daemon_running(app.cfg):
        app.out.print_locked()
        return

    client = DaemonClient(app.cfg)
    client.cancel_restore()
    resp = client.lock()
    if not resp.ok:
        app.out.print_error_and_exit(resp.error, resp.message)
    app.out.print_locked()
