"""Application context shared across CLI commands, and wiring of the request pipeline."""

import logging
from dataclasses import dataclass

import typer

from mb_opclip.auth import Authenticator
from mb_opclip.broker import ClipboardBroker
from mb_opclip.clipboard import SystemClipboard
from mb_opclip.config import Config
from mb_opclip.daemon.client import DaemonClient
from mb_opclip.daemon.process import ensure_daemon, is_daemon_running
from mb_opclip.errors import DecryptError
from mb_opclip.output import Output
from mb_opclip.provider import OpCli
from mb_opclip.resolver import ItemResolver
from mb_opclip.session import SessionManager
from mb_opclip.store import EncryptedStore, Sealer
from mb_opclip.vault import Vault

logger = logging.getLogger(__name__)


def prompt_passphrase() -> str:
    """Ask for the identity passphrase."""
    result: str = typer.prompt("Enter identity passphrase", hide_input=True)
    return result


def prompt_totp() -> str:
    """Ask for a 2FA code."""
    result: str = typer.prompt("Enter 2FA code")
    return result


@dataclass(frozen=True, slots=True)
class AppContext:
    """Shared application state passed through Typer context."""

    out: Output
    cfg: Config

    def daemon(self) -> DaemonClient:
        """Return a client for the daemon, starting it if needed."""
        ensure_daemon(self.cfg)
        return DaemonClient(self.cfg)

    def agent_identity(self) -> bytes:
        """Fetch the unlocked identity from the agent.

        Raises:
            DecryptError: The agent cannot be reached or stays locked.

        """
        try:
            return self.daemon().identity(password_prompt=prompt_passphrase)
        except (RuntimeError, OSError, ValueError) as e:
            raise DecryptError(f"Key agent unavailable: {e}", code="agent_unavailable") from None

    def evict_keys(self) -> None:
        """Lock the agent if it is running; never starts it."""
        if not is_daemon_running(self.cfg):
            return
        try:
            DaemonClient(self.cfg).lock()
        except OSError:
            logger.warning("Key agent did not answer the lock request.")

    def sealer(self) -> Sealer:
        """Build the seal/open capability for this invocation."""
        return Sealer(self.cfg.recipient, identity=self.agent_identity)

    def sessions(self, sealer: Sealer, provider: OpCli) -> SessionManager:
        """Build the session manager backed by the cache dir."""
        auth = Authenticator(self.cfg, EncryptedStore(self.cfg.data_dir, sealer), provider, totp_prompt=prompt_totp)
        return SessionManager(
            EncryptedStore(self.cfg.cache_dir, sealer), auth.sign_in, evict_keys=self.evict_keys, ttl=self.cfg.session_ttl
        )

    def vault(self) -> Vault:
        """Build the title → field pipeline.

        Raises:
            ConfigError: Account settings are missing.

        """
        self.cfg.require_account()
        sealer = self.sealer()
        provider = OpCli()
        sessions = self.sessions(sealer, provider)
        resolver = ItemResolver(EncryptedStore(self.cfg.cache_dir, sealer), provider, sessions)
        return Vault(sessions, resolver, provider)

    def broker(self) -> ClipboardBroker:
        """Build the clipboard broker; restores are armed in the daemon."""
        return ClipboardBroker(
            self.out, SystemClipboard(), lambda written, prior: self.daemon().schedule_restore(written, prior)
        )


def use_context(ctx: typer.Context) -> AppContext:
    """Extract application context from Typer context."""
    result: AppContext = ctx.obj
    return result
