"""Unlock the identity in the agent."""

import typer

from mb_opclip.app_context import prompt_passphrase, use_context


def unlock(ctx: typer.Context) -> None:
    """Unlock the identity with its passphrase and keep it in the agent."""
    app = use_context(ctx)
    resp = app.daemon().unlock(prompt_passphrase())
    if not resp.ok:
        app.out.print_error_and_exit(resp.error, resp.message)
    app.out.print_unlocked()
