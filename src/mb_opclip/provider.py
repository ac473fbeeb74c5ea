"""Remote item provider: the 1Password CLI (``op``) driven through subprocess."""

import logging
import subprocess  # nosec B404
from typing import Protocol

from pydantic import ValidationError

from mb_opclip.errors import AuthError, ConfigError, ProviderError
from mb_opclip.models import LISTING_ADAPTER, ItemRecord, ListedItem

logger = logging.getLogger(__name__)


class ItemProvider(Protocol):
    """Operations the core needs from the remote vault."""

    def sign_in(self, domain: str, email: str, secret_key: str, master_password: str, totp: str | None = None) -> str:
        """Authenticate and return a session token."""
        ...

    def list_items(self, session: str) -> list[ListedItem]:
        """Return the full item listing."""
        ...

    def get_item(self, identifier: str, session: str) -> ItemRecord:
        """Return one full item record."""
        ...

    def get_totp(self, identifier: str, session: str) -> str:
        """Return the current one-time code for an item."""
        ...


class OpCli:
    """ItemProvider backed by the ``op`` executable (v1 command surface)."""

    def __init__(self, executable: str = "op", timeout: float = 60.0) -> None:
        """Initialize the provider.

        Args:
            executable: Name or path of the ``op`` binary.
            timeout: Seconds to wait for any single ``op`` invocation.

        """
        self._executable = executable
        self._timeout = timeout

    def sign_in(self, domain: str, email: str, secret_key: str, master_password: str, totp: str | None = None) -> str:
        """Sign in and return the raw session token.

        Raises:
            AuthError: Sign-in rejected (bad credentials, wrong 2FA code, network error).

        """
        stdin = master_password + "\n" + (totp + "\n" if totp else "")
        result = self._run(["signin", domain, email, secret_key, "--raw"], stdin=stdin)
        token = result.stdout.strip()
        if result.returncode != 0 or not token:
            logger.warning("Sign-in failed for %s at %s", email, domain)
            raise AuthError(f"Sign-in to {domain} failed: {_stderr_line(result)}")
        logger.info("Signed in to %s", domain)
        return token

    def list_items(self, session: str) -> list[ListedItem]:
        """Return the item listing.

        Raises:
            ProviderError: ``op`` failed or returned unparsable output.

        """
        stdout = self._run_checked(["list", "items", "--session", session], "list items")
        try:
            return LISTING_ADAPTER.validate_json(stdout)
        except ValidationError as e:
            raise ProviderError(f"Unexpected item listing from op: {e.error_count()} invalid entries.") from None

    def get_item(self, identifier: str, session: str) -> ItemRecord:
        """Return the full record of one item.

        Raises:
            ProviderError: ``op`` failed or returned unparsable output.

        """
        stdout = self._run_checked(["get", "item", identifier, "--session", session], f"get item {identifier}")
        try:
            return ItemRecord.model_validate_json(stdout)
        except ValidationError:
            raise ProviderError(f"Unexpected item record for {identifier} from op.") from None

    def get_totp(self, identifier: str, session: str) -> str:
        """Return the current one-time code of an item.

        Raises:
            ProviderError: ``op`` failed or the item has no one-time code.

        """
        code = self._run_checked(["get", "totp", identifier, "--session", session], f"get totp {identifier}").strip()
        if not code:
            raise ProviderError(f"No one-time code returned for {identifier}.")
        return code

    def _run_checked(self, args: list[str], what: str) -> str:
        result = self._run(args)
        if result.returncode != 0:
            logger.warning("op %s failed with exit code %d", what, result.returncode)
            raise ProviderError(f"op {what} failed: {_stderr_line(result)}")
        return result.stdout

    def _run(self, args: list[str], stdin: str | None = None) -> subprocess.CompletedProcess[str]:
        """Run ``op`` with args, never raising on a non-zero exit.

        Raises:
            ConfigError: The executable is not installed.
            ProviderError: The call timed out.

        """
        logger.debug("Running op %s", args[0] if args[0] == "signin" else " ".join(args[:2]))
        try:
            # S603: args are built from fixed subcommands plus identifiers, never through a shell
            return subprocess.run(  # noqa: S603  # nosec B603
                [self._executable, *args],
                input=stdin,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except FileNotFoundError:
            raise ConfigError(f"'{self._executable}' not found. Install the 1Password CLI.", "op_missing") from None
        except subprocess.TimeoutExpired:
            raise ProviderError(f"op {args[0]} timed out after {self._timeout:g}s.", "provider_timeout") from None


def _stderr_line(result: subprocess.CompletedProcess[str]) -> str:
    """Return the last non-empty stderr line of a failed call, for diagnostics."""
    lines = [line for line in result.stderr.splitlines() if line.strip()]
    return lines[-1].strip() if lines else f"exit code {result.returncode}"
