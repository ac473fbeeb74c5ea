"""System clipboard access via pbcopy/pbpaste or xclip."""

import platform
import subprocess  # nosec B404
from typing import Protocol

from mb_opclip.errors import AppError, ConfigError

# Clipboard bytes are carried as str; surrogateescape keeps non-UTF-8 content byte-identical.
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class Clipboard(Protocol):
    """Read/write capability over a clipboard."""

    def read(self) -> str:
        """Return the current clipboard content."""
        ...

    def write(self, text: str) -> None:
        """Replace the clipboard content."""
        ...


def _copy_cmd() -> list[str]:
    """Return the platform-specific clipboard copy command."""
    return ["pbcopy"] if platform.system() == "Darwin" else ["xclip", "-selection", "clipboard"]


def _paste_cmd() -> list[str]:
    """Return the platform-specific clipboard paste command."""
    return ["pbpaste"] if platform.system() == "Darwin" else ["xclip", "-selection", "clipboard", "-o"]


def _run(args: list[str], data: bytes | None = None) -> subprocess.CompletedProcess[bytes]:
    """Run a clipboard command, mapping a missing tool to ConfigError."""
    try:
        # S603: args are controlled literals, hardcoded clipboard commands
        return subprocess.run(args, input=data, capture_output=True, check=False)  # noqa: S603  # nosec B603
    except FileNotFoundError:
        raise ConfigError(f"Clipboard tool '{args[0]}' not found on PATH.", "clipboard_missing") from None


class SystemClipboard:
    """Clipboard backed by pbcopy/pbpaste on macOS and xclip elsewhere."""

    def read(self) -> str:
        """Read current clipboard content; an empty selection reads as "".

        Raises:
            ConfigError: The clipboard tool is not installed.

        """
        result = _run(_paste_cmd())
        if result.returncode != 0:
            # xclip exits non-zero when the selection holds no text
            return ""
        return result.stdout.decode(_ENCODING, _ERRORS)

    def write(self, text: str) -> None:
        """Copy text to the system clipboard.

        Raises:
            ConfigError: The clipboard tool is not installed.
            AppError: The clipboard tool failed (code: ``clipboard_failed``).

        """
        args = _copy_cmd()
        result = _run(args, text.encode(_ENCODING, _ERRORS))
        if result.returncode != 0:
            stderr = result.stderr.decode(_ENCODING, "replace").strip()
            raise AppError(f"{args[0]} exited with {result.returncode}: {stderr}", "clipboard_failed")

    def clear(self) -> None:
        """Empty the system clipboard."""
        self.write("")
