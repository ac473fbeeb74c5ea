"""Daemon subsystem: key agent and clipboard restore registry, client, and process management."""

from mb_opclip.daemon.client import DaemonClient as DaemonClient
from mb_opclip.daemon.process import ensure_daemon as ensure_daemon
from mb_opclip.daemon.process import is_daemon_running as is_daemon_running
from mb_opclip.daemon.protocol import Response as Response
