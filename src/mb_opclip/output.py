"""Structured output for CLI and JSON modes."""

# ruff: noqa: T201

import json
import sys
from typing import NoReturn

import typer


class Output:
    """Handles all CLI output in JSON or human-readable format."""

    def __init__(self, *, json_mode: bool) -> None:
        """Initialize output handler.

        Args:
            json_mode: If True, output JSON envelopes; otherwise human-readable text.

        """
        self._json_mode = json_mode

    def _success(self, data: dict[str, object], message: str) -> None:
        """Print a success result in JSON or human-readable format."""
        if self._json_mode:
            print(json.dumps({"ok": True, "data": data}))
        else:
            print(message)

    def _lines(self, key: str, items: list[str]) -> None:
        """Print a list, one item per line or as a JSON array under key."""
        if self._json_mode:
            print(json.dumps({"ok": True, "data": {key: items}}))
        else:
            for item in items:
                print(item)

    def print_error_and_exit(self, code: str, message: str) -> NoReturn:
        """Print an error in JSON or human-readable format and exit with code 1.

        Raises:
            typer.Exit: Always, with code 1.

        """
        if self._json_mode:
            print(json.dumps({"ok": False, "error": code, "message": message}))
        else:
            print(f"Error: {message}", file=sys.stderr)
        raise typer.Exit(code=1)

    # --- Setup ---

    def print_init_done(self, recipient: str) -> None:
        """Print identity and account setup confirmation."""
        self._success({"recipient": recipient}, f"Identity created. Recipient: {recipient}")

    def print_forgotten(self) -> None:
        """Print session removal confirmation."""
        self._success({}, "Session forgotten and keys evicted.")

    # --- Items ---

    def print_titles(self, titles: list[str]) -> None:
        """Print item titles."""
        self._lines("titles", titles)

    def print_fields(self, title: str, fields: list[str]) -> None:
        """Print the field names of an item."""
        if self._json_mode:
            print(json.dumps({"ok": True, "data": {"title": title, "fields": fields}}))
        else:
            for field in fields:
                print(field)

    def print_secret_copied(self, label: str) -> None:
        """Print secret copied to clipboard confirmation."""
        self._success({"label": label}, f"Copied '{label}' to clipboard.")

    def print_secret_stdout(self, label: str, value: str) -> None:
        """Print secret value to stdout."""
        if self._json_mode:
            print(json.dumps({"ok": True, "data": {"label": label, "value": value}}))
        else:
            print(value)

    # --- Daemon ---

    def print_locked(self) -> None:
        """Print agent locked confirmation."""
        self._success({}, "Identity locked.")

    def print_unlocked(self) -> None:
        """Print agent unlocked confirmation."""
        self._success({}, "Identity unlocked.")

    def print_stopped(self) -> None:
        """Print daemon stopped confirmation."""
        self._success({}, "Daemon stopped.")

    def print_health(self, *, running: bool, locked: bool, restore_pending: bool) -> None:
        """Print daemon health status."""
        self._success(
            {"running": running, "locked": locked, "restore_pending": restore_pending},
            f"Daemon: {'running' if running else 'stopped'}, identity: {'locked' if locked else 'unlocked'}, "
            f"clipboard restore: {'pending' if restore_pending else 'none'}.",
        )
