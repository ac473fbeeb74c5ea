"""Clipboard hand-off with a guarded, cancellable restore of the prior content."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from mb_opclip.clipboard import Clipboard
from mb_opclip.errors import AppError
from mb_opclip.output import Output

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClipboardGuard:
    """A pending restore: put ``prior`` back only if the clipboard still holds ``written``."""

    written: str
    prior: str
    deadline: float

    def restore(self, clipboard: Clipboard) -> bool:
        """Restore the prior content if the guard holds. Return True if the clipboard was written."""
        if clipboard.read() != self.written:
            return False
        clipboard.write(self.prior)
        return True


class RestoreRegistry:
    """Holds at most one pending clipboard restore on the running event loop.

    Arming replaces the pending restore. A restore that fires after being
    replaced does nothing.
    """

    def __init__(self, clipboard: Clipboard) -> None:
        """Initialize the registry.

        Args:
            clipboard: Clipboard the restores read and write.

        """
        self._clipboard = clipboard
        self._handle: asyncio.TimerHandle | None = None
        self._guard: ClipboardGuard | None = None

    @property
    def pending(self) -> ClipboardGuard | None:
        """The restore that will fire next, if any."""
        return self._guard

    def arm(self, written: str, prior: str, timeout: float) -> ClipboardGuard:
        """Cancel any pending restore and schedule a new one after ``timeout`` seconds.

        When ``prior`` is the value the pending restore guards, the new restore
        inherits the pending one's prior content, so a chain of deliveries
        ends with what the clipboard held before the first one.
        """
        if self._guard is not None and prior == self._guard.written:
            prior = self._guard.prior
        self.cancel()
        loop = asyncio.get_running_loop()
        guard = ClipboardGuard(written=written, prior=prior, deadline=loop.time() + timeout)
        self._guard = guard
        self._handle = loop.call_later(timeout, self._fire, guard)
        logger.debug("Clipboard restore armed for %.0fs", timeout)
        return guard

    def cancel(self) -> bool:
        """Cancel the pending restore. Return True if one was pending."""
        had_pending = self._guard is not None
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._guard = None
        return had_pending

    def flush(self) -> None:
        """Run the pending restore now instead of at its deadline."""
        guard = self._guard
        if self._handle is not None:
            self._handle.cancel()
        if guard is not None:
            self._fire(guard)

    def _fire(self, guard: ClipboardGuard) -> None:
        if guard is not self._guard:
            return
        self._handle = None
        self._guard = None
        try:
            restored = guard.restore(self._clipboard)
        except Exception:
            logger.exception("Failed to restore clipboard")
            return
        logger.info("Clipboard timeout: %s.", "prior content restored" if restored else "clipboard changed, left untouched")


class ClipboardBroker:
    """Delivers a value to stdout or to the clipboard with a scheduled restore."""

    def __init__(self, out: Output, clipboard: Clipboard, schedule_restore: Callable[[str, str], None]) -> None:
        """Initialize the broker.

        Args:
            out: Output layer used for print mode and confirmations.
            clipboard: Clipboard to deliver to.
            schedule_restore: Arms the restore in the per-user registry, given (written, prior).

        """
        self._out = out
        self._clipboard = clipboard
        self._schedule_restore = schedule_restore

    def deliver(self, label: str, value: str, *, print_mode: bool) -> None:
        """Print the value, or copy it and arm the restore of the previous clipboard content.

        Raises:
            ConfigError: The clipboard tool is not installed.
            AppError: The clipboard tool failed (code: ``clipboard_failed``); nothing is armed.
            AppError: The restore could not be armed (code: ``restore_unavailable``); the clipboard is put back first.

        """
        if print_mode:
            self._out.print_secret_stdout(label, value)
            return
        prior = self._clipboard.read()
        self._clipboard.write(value)
        try:
            self._schedule_restore(value, prior)
        except (OSError, RuntimeError, ValueError) as e:
            self._clipboard.write(prior)
            raise AppError(f"Cannot schedule clipboard restore: {e}", "restore_unavailable") from e
        self._out.print_secret_copied(label)
