"""Asyncio Unix socket server: the daemon loop.

The daemon is the per-user key agent (holds the unlocked identity) and the
registry of the single pending clipboard restore.
"""

import asyncio
import base64
import contextlib
import logging
import os
import signal
from pathlib import Path

from mm_clikit import write_pid_file

from mb_opclip.broker import RestoreRegistry
from mb_opclip.clipboard import Clipboard, SystemClipboard
from mb_opclip.config import Config
from mb_opclip.daemon.protocol import ProtocolError, Response, decode_request, encode_response
from mb_opclip.daemon.process import remove_runtime_files
from mb_opclip.errors import AppError
from mb_opclip.identity import IdentityFile

logger = logging.getLogger(__name__)


class DaemonServer:
    """Background daemon holding the unlocked identity and the clipboard restore timer."""

    def __init__(self, cfg: Config, clipboard: Clipboard | None = None) -> None:
        """Initialize the daemon server.

        Args:
            cfg: Application configuration.
            clipboard: Clipboard used by restores (defaults to the system clipboard).

        """
        self._cfg = cfg
        self._identity_file = IdentityFile(cfg.identity_path)
        self._identity: bytes | None = None
        self._restores = RestoreRegistry(clipboard or SystemClipboard())
        self._server: asyncio.AbstractServer | None = None
        self._inactivity_handle: asyncio.TimerHandle | None = None  # auto-lock timer, reset on every client request
        # Strong references to background tasks to prevent GC
        self._background_tasks: set[asyncio.Task[None]] = set()

    @property
    def is_unlocked(self) -> bool:
        """Whether the identity is held in memory."""
        return self._identity is not None

    async def run(self) -> None:
        """Serve requests until SIGTERM, SIGINT or a stop command."""
        remove_runtime_files(self._cfg)
        write_pid_file(self._cfg.daemon_pid_path)
        server = await self._listen(self._cfg.daemon_sock_path)
        self._server = server

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._schedule_shutdown)
        self._reset_inactivity_timer()

        async with server:
            with contextlib.suppress(asyncio.CancelledError):
                await server.serve_forever()

    async def _listen(self, sock_path: Path) -> asyncio.AbstractServer:
        """Bind the owner-only Unix socket."""
        # socket is created under umask 077, never world-readable
        previous = os.umask(0o077)
        try:
            server = await asyncio.start_unix_server(self._handle_client, path=str(sock_path))
        finally:
            os.umask(previous)
        sock_path.chmod(0o600)
        logger.info("Daemon pid %d listening on %s", os.getpid(), sock_path)
        return server

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Handle a single client connection: read request, dispatch, send response."""
        try:
            line = await reader.readline()
            if not line:
                return
            try:
                req = decode_request(line)
            except ProtocolError as e:
                resp = Response.fail("invalid_request", str(e))
            else:
                logger.debug("Request: %s", req.command)
                resp = self.dispatch(req.command, req.params)
            writer.write(encode_response(resp))
            await writer.drain()
            self._reset_inactivity_timer()
        except Exception:
            logger.exception("Error handling client")
            writer.write(encode_response(Response.fail("internal", "Internal server error.")))
            await writer.drain()
        finally:
            writer.close()
            await writer.wait_closed()

    def dispatch(self, command: str, params: dict[str, str]) -> Response:
        """Route a command to the key agent or the restore registry. Must run on the event loop."""
        try:
            match command:
                case "unlock":
                    if "passphrase" not in params:
                        return Response.fail("invalid_request", "Missing 'passphrase' parameter.")
                    self._identity = self._identity_file.unlock(params["passphrase"])
                    logger.info("Identity unlocked.")
                    return Response.success()
                case "lock":
                    self._lock()
                    return Response.success()
                case "identity":
                    if self._identity is None:
                        return Response.fail("locked", "Identity is locked.")
                    return Response.success({"identity": base64.b64encode(self._identity).decode()})
                case "health":
                    return Response.success({"unlocked": self.is_unlocked, "restore_pending": self._restores.pending is not None})
                case "schedule_restore":
                    if "written" not in params or "prior" not in params:
                        return Response.fail("invalid_request", "Missing 'written' or 'prior' parameter.")
                    self._restores.arm(params["written"], params["prior"], self._cfg.clipboard_timeout)
                    return Response.success()
                case "cancel_restore":
                    return Response.success({"cancelled": self._restores.cancel()})
                case "stop":
                    self._schedule_shutdown()
                    return Response.success()
                case _:
                    return Response.fail("unknown_command", f"Unknown command: {command}")
        except AppError as e:
            return Response.fail(e.code, str(e))

    def _lock(self) -> None:
        """Drop the identity from memory."""
        self._identity = None
        logger.info("Identity locked.")

    def _reset_inactivity_timer(self) -> None:
        """Reset the inactivity auto-lock timer."""
        if self._inactivity_handle is not None:
            self._inactivity_handle.cancel()
            self._inactivity_handle = None

        timeout = self._cfg.inactivity_timeout
        if timeout <= 0:
            return

        loop = asyncio.get_running_loop()
        self._inactivity_handle = loop.call_later(timeout, self._on_inactivity)

    def _on_inactivity(self) -> None:
        """Auto-lock the identity after inactivity timeout."""
        logger.info("Inactivity timeout, locking identity.")
        self._lock()

    def _schedule_shutdown(self) -> None:
        """Schedule a shutdown task with a strong reference to prevent GC."""
        task = asyncio.ensure_future(self._shutdown())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _shutdown(self) -> None:
        """Clean shutdown: restore the clipboard now, lock, stop server, remove socket and PID file."""
        logger.info("Shutting down daemon.")
        if self._inactivity_handle is not None:
            self._inactivity_handle.cancel()
        self._restores.flush()
        self._lock()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
        remove_runtime_files(self._cfg)


def run_server(cfg: Config) -> None:
    """Entry point: create server and run the asyncio event loop."""
    server = DaemonServer(cfg)
    asyncio.run(server.run())
