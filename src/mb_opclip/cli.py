"""CLI entry point for mb-opclip."""

from pathlib import Path
from typing import Annotated

import typer
from mm_clikit import TyperPlus

from mb_opclip.app_context import AppContext
from mb_opclip.commands.daemon import daemon
from mb_opclip.commands.forget import forget
from mb_opclip.commands.get import get
from mb_opclip.commands.health import health
from mb_opclip.commands.init import init
from mb_opclip.commands.list import list_
from mb_opclip.commands.lock import lock
from mb_opclip.commands.stop import stop
from mb_opclip.commands.unlock import unlock
from mb_opclip.config import Config
from mb_opclip.errors import ConfigError
from mb_opclip.log import setup_logging
from mb_opclip.output import Output

app = TyperPlus(package_name="mb-opclip")


@app.callback()
def callback(
    ctx: typer.Context,
    *,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON.")] = False,
    data_dir: Annotated[Path | None, typer.Option("--data-dir", help="Data directory path.")] = None,
) -> None:
    """Cached, session-reusing access to 1Password items from the terminal."""
    out = Output(json_mode=json_output)
    try:
        cfg = Config.build(data_dir)
    except ConfigError as e:
        out.print_error_and_exit(e.code, str(e))
    cfg.data_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
    setup_logging(cfg.log_path)
    ctx.obj = AppContext(out=out, cfg=cfg)


# Setup
app.command()(init)
app.command()(forget)

# Daemon
app.command(hidden=True)(daemon)
app.command()(stop)
app.command()(lock)
app.command()(unlock)
app.command(aliases=["h"])(health)

# Items
app.command(aliases=["g"])(get)
app.command("list", aliases=["l"])(list_)
