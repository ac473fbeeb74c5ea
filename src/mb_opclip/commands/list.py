"""List item titles."""

import typer

from mb_opclip.app_context import use_context
from mb_opclip.errors import AppError


def list_(
    ctx: typer.Context,
    filter_: str | None = typer.Argument(default=None, help="Filter titles by substring"),
    *,
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Fetch the index again"),
) -> None:
    """List item titles, optionally filter by substring."""
    app = use_context(ctx)
    try:
        titles = app.vault().titles(refresh=refresh, filter_=filter_)
    except AppError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_titles(titles)
