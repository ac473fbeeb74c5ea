"""First-time setup: identity, config.toml and sealed account secrets."""

import json

import typer

from mb_opclip.app_context import use_context
from mb_opclip.auth import Authenticator
from mb_opclip.config import Config
from mb_opclip.errors import AppError
from mb_opclip.identity import IdentityFile
from mb_opclip.provider import OpCli
from mb_opclip.store import EncryptedStore, Sealer


def init(ctx: typer.Context) -> None:
    """First-time setup: create the identity and seal the account secrets."""
    app = use_context(ctx)
    cfg = app.cfg
    identity = IdentityFile(cfg.identity_path)
    if identity.exists or cfg.config_path.exists():
        app.out.print_error_and_exit("already_initialized", f"Already initialized in {cfg.data_dir}.")

    email: str = typer.prompt("1Password email")
    domain: str = typer.prompt("Sign-in domain", default="my.1password.com")
    secret_key: str = typer.prompt("Secret key", hide_input=True)
    master_password: str = typer.prompt("Master password", hide_input=True)
    passphrase: str = typer.prompt("Create identity passphrase", hide_input=True, confirmation_prompt=True)

    try:
        pair = identity.create(passphrase)
        # JSON string escapes are valid TOML basic-string escapes.
        cfg.config_path.write_text(
            f"email = {json.dumps(email)}\ndomain = {json.dumps(domain)}\nrecipient = {json.dumps(pair.recipient)}\n"
        )
        new_cfg = Config.build(cfg.data_dir)
        sealer = Sealer(pair.recipient, identity=lambda: pair.private)
        Authenticator(new_cfg, EncryptedStore(cfg.data_dir, sealer), OpCli()).provision(master_password, secret_key)
    except AppError as e:
        app.out.print_error_and_exit(e.code, str(e))
    app.out.print_init_done(pair.recipient)
