"""Tests for Config model validation, computed paths and config.toml loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from mb_opclip.config import Config
from mb_opclip.errors import ConfigError

DATA_DIR = Path("/fake/data-dir")


class TestConfigPaths:
    """Computed path properties derive from data_dir."""

    def test_config_path(self):
        """Config file is data_dir / config.toml."""
        assert Config(data_dir=DATA_DIR).config_path == DATA_DIR / "config.toml"

    def test_identity_path(self):
        """Identity file is data_dir / identity.json."""
        assert Config(data_dir=DATA_DIR).identity_path == DATA_DIR / "identity.json"

    def test_cache_dir(self):
        """Cache lives under data_dir / cache."""
        assert Config(data_dir=DATA_DIR).cache_dir == DATA_DIR / "cache"

    def test_daemon_paths(self):
        """Socket and PID files sit in data_dir."""
        cfg = Config(data_dir=DATA_DIR)
        assert cfg.daemon_sock_path == DATA_DIR / "daemon.sock"
        assert cfg.daemon_pid_path == DATA_DIR / "daemon.pid"


class TestConfigValidation:
    """Pydantic field constraints."""

    def test_defaults(self):
        """Default values for optional fields."""
        cfg = Config(data_dir=DATA_DIR)
        assert cfg.clipboard_timeout == 30
        assert cfg.inactivity_timeout == 0
        assert cfg.session_ttl == 29 * 60
        assert cfg.two_factor is False

    def test_clipboard_timeout_below_minimum(self):
        """clipboard_timeout < 1 is rejected."""
        with pytest.raises(ValidationError):
            Config(data_dir=DATA_DIR, clipboard_timeout=0)

    def test_frozen(self):
        """Config cannot be mutated after construction."""
        cfg = Config(data_dir=DATA_DIR)
        with pytest.raises(ValidationError):
            cfg.email = "x@example.com"  # type: ignore[misc]


class TestRequireAccount:
    """Account settings check before sign-in."""

    def test_missing_all(self):
        """Every missing key is named."""
        with pytest.raises(ConfigError) as exc_info:
            Config(data_dir=DATA_DIR).require_account()
        assert exc_info.value.code == "missing_config"
        assert "email, domain, recipient" in str(exc_info.value)

    def test_complete(self):
        """Complete account settings pass."""
        Config(data_dir=DATA_DIR, email="a@example.com", domain="my.1password.com", recipient="abc").require_account()


class TestBuild:
    """Loading from config.toml."""

    def test_no_file(self, tmp_path: Path):
        """Missing config.toml yields defaults."""
        cfg = Config.build(tmp_path)
        assert cfg.data_dir == tmp_path
        assert cfg.email == ""

    def test_reads_known_keys(self, tmp_path: Path):
        """Known keys with the right types are applied."""
        (tmp_path / "config.toml").write_text(
            'email = "a@example.com"\ndomain = "my.1password.com"\ntwo_factor = true\nclipboard_timeout = 10\n'
        )
        cfg = Config.build(tmp_path)
        assert cfg.email == "a@example.com"
        assert cfg.two_factor is True
        assert cfg.clipboard_timeout == 10

    def test_ignores_wrong_types(self, tmp_path: Path):
        """Values of the wrong type are ignored."""
        (tmp_path / "config.toml").write_text('clipboard_timeout = "ten"\n')
        assert Config.build(tmp_path).clipboard_timeout == 30

    def test_invalid_value(self, tmp_path: Path):
        """Out-of-range values raise ConfigError."""
        (tmp_path / "config.toml").write_text("clipboard_timeout = 0\n")
        with pytest.raises(ConfigError) as exc_info:
            Config.build(tmp_path)
        assert exc_info.value.code == "invalid_config"

    def test_invalid_toml(self, tmp_path: Path):
        """Unparsable TOML raises ConfigError."""
        (tmp_path / "config.toml").write_text("email = \n")
        with pytest.raises(ConfigError):
            Config.build(tmp_path)
