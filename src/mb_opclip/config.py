"""Centralized application configuration."""

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field

from mb_opclip.errors import ConfigError

DEFAULT_DATA_DIR = Path.home() / ".local" / "mb-opclip"

# Keys read from config.toml, with the python types they must have.
_TOML_KEYS: dict[str, type] = {
    "email": str,
    "domain": str,
    "recipient": str,
    "two_factor": bool,
    "clipboard_timeout": int,
    "inactivity_timeout": int,
    "session_ttl": int,
}


class Config(BaseModel):
    """Application-wide configuration."""

    model_config = ConfigDict(frozen=True)

    data_dir: Path = Field(description="Base directory for all application data")
    email: str = Field(default="", description="1Password account email")
    domain: str = Field(default="", description="1Password sign-in domain, e.g. my.1password.com")
    recipient: str = Field(default="", description="Base64 X25519 public key all local blobs are sealed to")
    two_factor: bool = Field(default=False, description="Prompt for a 2FA code on sign-in")
    clipboard_timeout: int = Field(default=30, ge=1, description="Clipboard restore timeout in seconds")
    inactivity_timeout: int = Field(default=0, ge=0, description="Agent auto-lock after inactivity in seconds (0 = disabled)")
    session_ttl: int = Field(default=29 * 60, ge=1, description="Session reuse window in seconds")

    @computed_field(description="Optional TOML configuration file")
    @property
    def config_path(self) -> Path:
        """Optional TOML configuration file."""
        return self.data_dir / "config.toml"

    @computed_field(description="Passphrase-protected identity file")
    @property
    def identity_path(self) -> Path:
        """Passphrase-protected identity file."""
        return self.data_dir / "identity.json"

    @computed_field(description="Encrypted cache directory")
    @property
    def cache_dir(self) -> Path:
        """Encrypted cache directory (index, session, items)."""
        return self.data_dir / "cache"

    @computed_field(description="Unix domain socket for daemon")
    @property
    def daemon_sock_path(self) -> Path:
        """Unix domain socket for daemon."""
        return self.data_dir / "daemon.sock"

    @computed_field(description="Daemon PID file")
    @property
    def daemon_pid_path(self) -> Path:
        """Daemon PID file."""
        return self.data_dir / "daemon.pid"

    @computed_field(description="Log file")
    @property
    def log_path(self) -> Path:
        """Log file."""
        return self.data_dir / "opclip.log"

    def require_account(self) -> None:
        """Raise if any account setting needed for sign-in is missing.

        Raises:
            ConfigError: One or more of email, domain, recipient is empty.

        """
        missing = [name for name in ("email", "domain", "recipient") if not getattr(self, name)]
        if missing:
            msg = f"Missing {', '.join(missing)} in {self.config_path}. Run 'mb-opclip init' first."
            raise ConfigError(msg, "missing_config")

    def cli_base_args(self) -> list[str]:
        """Build CLI base args, including --data-dir only when non-default."""
        args: list[str] = ["mb-opclip"]
        if self.data_dir != DEFAULT_DATA_DIR:
            args.extend(["--data-dir", str(self.data_dir)])
        return args

    @staticmethod
    def build(data_dir: Path | None = None) -> "Config":
        """Build a Config from defaults and optional config.toml.

        Raises:
            ConfigError: config.toml is unreadable or holds invalid values.

        """
        resolved_dir = data_dir if data_dir is not None else DEFAULT_DATA_DIR
        config_path = resolved_dir / "config.toml"

        kwargs: dict[str, Any] = {"data_dir": resolved_dir}
        if config_path.is_file():
            try:
                with config_path.open("rb") as f:
                    toml_data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"Invalid TOML in {config_path}: {e}", "invalid_config") from None
            for key, type_ in _TOML_KEYS.items():
                if isinstance(toml_data.get(key), type_):
                    kwargs[key] = toml_data[key]

        try:
            return Config(**kwargs)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {config_path}: {e}", "invalid_config") from None
