"""Blocking client used by CLI commands to reach the daemon."""

import base64
import binascii
import socket
import sys
from collections.abc import Callable

from mb_opclip.config import Config
from mb_opclip.daemon.protocol import Request, Response, decode_response, encode_request
from mb_opclip.errors import DecryptError

_TIMEOUT = 10.0


class DaemonClient:
    """Synchronous client that talks to the daemon over a Unix socket."""

    def __init__(self, cfg: Config) -> None:
        """Initialize client with configuration.

        Args:
            cfg: Application configuration (provides socket path).

        """
        self._cfg = cfg

    def send(self, command: str, params: dict[str, str] | None = None) -> Response:
        """Send a request to the daemon and return the response."""
        req = Request(command=command, params=params or {})
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as conn:
            conn.settimeout(_TIMEOUT)
            conn.connect(str(self._cfg.daemon_sock_path))
            conn.sendall(encode_request(req))
            with conn.makefile("rb") as reply:
                line = reply.readline()
        return decode_response(line)

    def send_auto_unlock(
        self, command: str, params: dict[str, str] | None = None, *, password_prompt: Callable[[], str]
    ) -> Response:
        """Send a request, auto-unlocking if the identity is locked.

        If the daemon responds with "locked" and stdin is a TTY, prompts for
        the passphrase, unlocks, and retries once. Non-interactive callers get
        the locked error as-is.
        """
        resp = self.send(command, params)
        if resp.ok or resp.error != "locked" or not sys.stdin.isatty():
            return resp
        unlock_resp = self.unlock(password_prompt())
        if not unlock_resp.ok:
            return unlock_resp
        return self.send(command, params)

    # --- Key agent ---

    def health(self) -> Response:
        """Query daemon health status."""
        return self.send("health")

    def unlock(self, passphrase: str) -> Response:
        """Unlock the identity with its passphrase."""
        return self.send("unlock", {"passphrase": passphrase})

    def lock(self) -> Response:
        """Drop the unlocked identity from daemon memory."""
        return self.send("lock")

    def stop(self) -> Response:
        """Stop the daemon."""
        return self.send("stop")

    def identity(self, *, password_prompt: Callable[[], str]) -> bytes:
        """Return the raw private key held by the agent, unlocking it interactively if needed.

        Raises:
            DecryptError: Agent is locked and cannot be unlocked, or replied with garbage.

        """
        resp = self.send_auto_unlock("identity", password_prompt=password_prompt)
        if not resp.ok:
            raise DecryptError(f"Identity unavailable: {resp.message}", code=resp.error or None)
        try:
            return base64.b64decode(str(resp.data["identity"]), validate=True)
        except (KeyError, binascii.Error):
            raise DecryptError("Agent returned an invalid identity.") from None

    # --- Clipboard restore ---

    def schedule_restore(self, written: str, prior: str) -> None:
        """Arm the clipboard restore, replacing any pending one.

        Raises:
            RuntimeError: The daemon refused the request.

        """
        resp = self.send("schedule_restore", {"written": written, "prior": prior})
        if not resp.ok:
            raise RuntimeError(resp.message)

    def cancel_restore(self) -> Response:
        """Cancel the pending clipboard restore, if any."""
        return self.send("cancel_restore")
