"""Tests for daemon command dispatch: key agent and clipboard restore registry."""

import asyncio
import base64
from pathlib import Path

import pytest
from fakes import FakeClipboard

from mb_opclip.config import Config
from mb_opclip.daemon.server import DaemonServer
from mb_opclip.identity import IdentityFile

PASSPHRASE = "test-passphrase"


@pytest.fixture
def cfg(tmp_path: Path) -> Config:
    """Config with a one-second clipboard timeout."""
    return Config(data_dir=tmp_path, clipboard_timeout=1)


class TestKeyAgent:
    """unlock / identity / lock."""

    def test_locked_by_default(self, cfg: Config) -> None:
        """identity is refused until unlocked."""
        resp = DaemonServer(cfg, FakeClipboard()).dispatch("identity", {})
        assert (resp.ok, resp.error) == (False, "locked")

    def test_unlock_identity_lock(self, cfg: Config) -> None:
        """Unlocked identity is served; lock drops it."""
        pair = IdentityFile(cfg.identity_path).create(PASSPHRASE)
        server = DaemonServer(cfg, FakeClipboard())
        assert server.dispatch("unlock", {"passphrase": PASSPHRASE}).ok
        resp = server.dispatch("identity", {})
        assert base64.b64decode(str(resp.data["identity"])) == pair.private
        assert server.dispatch("lock", {}).ok
        assert not server.is_unlocked

    def test_unlock_without_identity(self, cfg: Config) -> None:
        """Unlock before init reports the identity error code."""
        resp = DaemonServer(cfg, FakeClipboard()).dispatch("unlock", {"passphrase": PASSPHRASE})
        assert resp.error == "not_initialized"

    def test_unlock_missing_param(self, cfg: Config) -> None:
        """unlock requires a passphrase."""
        assert DaemonServer(cfg, FakeClipboard()).dispatch("unlock", {}).error == "invalid_request"


class TestRestoreCommands:
    """schedule_restore / cancel_restore / health."""

    def test_schedule_and_cancel(self, cfg: Config) -> None:
        """Health reports the pending restore until it is cancelled."""
        clipboard = FakeClipboard("secret")
        server = DaemonServer(cfg, clipboard)

        async def scenario() -> None:
            assert server.dispatch("schedule_restore", {"written": "secret", "prior": "before"}).ok
            assert server.dispatch("health", {}).data["restore_pending"] is True
            assert server.dispatch("cancel_restore", {}).data == {"cancelled": True}
            assert server.dispatch("health", {}).data["restore_pending"] is False

        asyncio.run(scenario())
        assert clipboard.content == "secret"

    def test_schedule_fires_after_timeout(self, cfg: Config) -> None:
        """The armed restore uses the configured clipboard timeout."""
        clipboard = FakeClipboard("secret")
        server = DaemonServer(cfg, clipboard)

        async def scenario() -> None:
            server.dispatch("schedule_restore", {"written": "secret", "prior": "before"})
            await asyncio.sleep(0.5)
            assert clipboard.content == "secret"
            await asyncio.sleep(1.0)

        asyncio.run(scenario())
        assert clipboard.content == "before"

    def test_schedule_missing_params(self, cfg: Config) -> None:
        """schedule_restore needs both values."""
        resp = DaemonServer(cfg, FakeClipboard()).dispatch("schedule_restore", {"written": "x"})
        assert resp.error == "invalid_request"

    def test_unknown_command(self, cfg: Config) -> None:
        """Unknown commands are reported, not raised."""
        assert DaemonServer(cfg, FakeClipboard()).dispatch("frobnicate", {}).error == "unknown_command"
