"""Show daemon status."""

import typer

from mb_opclip.app_context import use_context
from mb_opclip.daemon.client import DaemonClient
from mb_opclip.daemon.process import is_connectable


def health(ctx: typer.Context) -> None:
    """Show daemon status (running, identity locked/unlocked, pending clipboard restore)."""
    app = use_context(ctx)

    if not is_connectable(app.cfg.daemon_sock_path):
        app.out.print_health(running=False, locked=True, restore_pending=False)
        return

    resp = DaemonClient(app.cfg).health()
    if not resp.ok:
        app.out.print_error_and_exit(resp.error, resp.message)
    app.out.print_health(
        running=True, locked=not resp.data.get("unlocked", False), restore_pending=bool(resp.data.get("restore_pending"))
    )
