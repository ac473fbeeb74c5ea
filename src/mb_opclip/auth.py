"""Sign-in capability built from the config and the sealed, user-provisioned account secrets."""

import logging
from collections.abc import Callable

from mb_opclip.config import Config
from mb_opclip.errors import ConfigError
from mb_opclip.provider import ItemProvider
from mb_opclip.store import EncryptedStore

logger = logging.getLogger(__name__)

# Store keys of the write-once secrets, relative to the data dir.
MASTER_SECRET_KEY = "master"
VAULT_SECRET_KEY = "secret_key"


class Authenticator:
    """Signs in to the provider with the sealed master password and secret key."""

    def __init__(
        self,
        cfg: Config,
        secrets: EncryptedStore,
        provider: ItemProvider,
        totp_prompt: Callable[[], str] | None = None,
    ) -> None:
        """Initialize the authenticator.

        Args:
            cfg: Application configuration (account settings).
            secrets: Store rooted at the data dir holding the sealed account secrets.
            provider: Remote vault operations.
            totp_prompt: Asks the user for a 2FA code; used only when ``cfg.two_factor`` is set.

        """
        self._cfg = cfg
        self._secrets = secrets
        self._provider = provider
        self._totp_prompt = totp_prompt

    @property
    def provisioned(self) -> bool:
        """Whether both account secrets are present."""
        return self._secrets.exists(MASTER_SECRET_KEY) and self._secrets.exists(VAULT_SECRET_KEY)

    def provision(self, master_password: str, secret_key: str) -> None:
        """Seal the account secrets. They are written once and never overwritten.

        Raises:
            ConfigError: Secrets already provisioned or empty values.

        """
        if self._secrets.exists(MASTER_SECRET_KEY) or self._secrets.exists(VAULT_SECRET_KEY):
            raise ConfigError("Account secrets are already provisioned.", "already_initialized")
        if not master_password or not secret_key:
            raise ConfigError("Master password and secret key cannot be empty.", "empty_secret")
        self._secrets.put(MASTER_SECRET_KEY, master_password.encode())
        self._secrets.put(VAULT_SECRET_KEY, secret_key.encode())
        logger.info("Account secrets provisioned.")

    def sign_in(self) -> str:
        """Return a fresh session token.

        Raises:
            ConfigError: Account settings or sealed secrets are missing.
            DecryptError: Sealed secrets cannot be opened.
            AuthError: Provider rejected the sign-in.

        """
        self._cfg.require_account()
        master_password = self._read_secret(MASTER_SECRET_KEY)
        secret_key = self._read_secret(VAULT_SECRET_KEY)
        totp = self._totp_prompt() if self._cfg.two_factor and self._totp_prompt is not None else None
        logger.info("Signing in as %s", self._cfg.email)
        return self._provider.sign_in(self._cfg.domain, self._cfg.email, secret_key, master_password, totp)

    def _read_secret(self, key: str) -> str:
        value = self._secrets.get(key)
        if value is None:
            msg = f"Missing sealed secret {self._secrets.path(key)}. Run 'mb-opclip init' first."
            raise ConfigError(msg, "missing_secret")
        return value.decode()
