"""Copy an item's field to the clipboard, or list titles and fields."""

import typer

from mb_opclip.app_context import use_context
from mb_opclip.errors import AppError


def get(
    ctx: typer.Context,
    title: str | None = typer.Argument(default=None, help="Item title; omit to list all titles"),
    field: str = typer.Argument(default="password", help="Field label, or 'totp' / 'uuid'"),
    *,
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Bypass the index and item cache"),
    print_: bool = typer.Option(False, "--print", "-p", help="Print to stdout instead of copying to clipboard"),
    fields: bool = typer.Option(False, "--fields", "-f", help="List the item's fields instead of delivering one"),
) -> None:
    """Copy a field (password by default) of the titled item to the clipboard."""
    app = use_context(ctx)
    try:
        vault = app.vault()
        if title is None:
            app.out.print_titles(vault.titles(refresh=refresh))
            return
        if fields:
            app.out.print_fields(title, vault.field_names(title, refresh=refresh))
            return
        value = vault.field(title, field, refresh=refresh)
        app.broker().deliver(f"{title}/{field}", value, print_mode=print_)
    except AppError as e:
        app.out.print_error_and_exit(e.code, str(e))
