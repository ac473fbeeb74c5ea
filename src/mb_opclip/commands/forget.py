"""Forget the session and evict the agent's keys."""

import typer

from mb_opclip.app_context import use_context
from mb_opclip.provider import OpCli


def forget(ctx: typer.Context) -> None:
    """Delete the cached session and lock the identity."""
    app = use_context(ctx)
    app.sessions(app.sealer(), OpCli()).forget()
    app.out.print_forgotten()
