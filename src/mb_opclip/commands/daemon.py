"""Hidden CLI command: run the daemon process."""

import typer

from mb_opclip.app_context import use_context
from mb_opclip.daemon.server import run_server


def daemon(ctx: typer.Context) -> None:
    """Run the key agent and clipboard restore daemon. Not intended for manual use."""
    run_server(use_context(ctx).cfg)
