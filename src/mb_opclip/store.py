"""Encrypted blob-on-disk cache with single-generation backups."""

import contextlib
import logging
import os
import re
import tempfile
import time
from collections.abc import Callable
from pathlib import Path

from cryptography.exceptions import InvalidTag

from mb_opclip.crypto import decode_recipient, open_sealed, seal
from mb_opclip.errors import ConfigError, DecryptError

logger = logging.getLogger(__name__)

# Slash-separated names made of safe path segments, e.g. "index" or "items/abc123".
_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+(?:/[A-Za-z0-9_-]+)*$")

BLOB_SUFFIX = ".sealed"
BACKUP_SUFFIX = ".bak"


class Sealer:
    """Seals to the configured recipient and opens with the identity, fetched lazily."""

    def __init__(self, recipient: str, identity: Callable[[], bytes]) -> None:
        """Initialize the sealer.

        Args:
            recipient: Base64 X25519 public key every blob is sealed to.
            identity: Callable returning the raw private key; called at most once, on first open.

        """
        self._recipient = recipient
        self._identity_source = identity
        self._identity: bytes | None = None

    def seal(self, plaintext: bytes) -> bytes:
        """Seal plaintext to the recipient. Needs no private key.

        Raises:
            ConfigError: Recipient is not a valid public key.

        """
        try:
            public = decode_recipient(self._recipient)
        except ValueError:
            raise ConfigError(f"Invalid recipient key: {self._recipient!r}", "invalid_recipient") from None
        return seal(plaintext, public)

    def open(self, blob: bytes, path: Path | None = None) -> bytes:
        """Open a sealed blob.

        Raises:
            DecryptError: Identity unavailable, wrong identity, or corrupt blob.

        """
        if self._identity is None:
            self._identity = self._identity_source()
        try:
            return open_sealed(blob, self._identity)
        except (InvalidTag, ValueError):
            raise DecryptError("Cannot decrypt blob", path) from None


class EncryptedStore:
    """Generic key → sealed blob store rooted at a directory.

    Plaintext never touches the disk: every blob is sealed before it is written,
    and every write goes through a temp file renamed into place.
    """

    def __init__(self, root: Path, sealer: Sealer) -> None:
        """Initialize the store.

        Args:
            root: Directory holding the blobs.
            sealer: Seal/open capability.

        """
        self._root = root
        self._sealer = sealer

    def path(self, key: str) -> Path:
        """Return the blob path for a key.

        Raises:
            ValueError: Key is not a safe relative name.

        """
        if not _KEY_RE.match(key):
            msg = f"Invalid store key: {key!r}"
            raise ValueError(msg)
        return self._root / f"{key}{BLOB_SUFFIX}"

    def backup_path(self, key: str) -> Path:
        """Return the single-generation backup path for a key."""
        path = self.path(key)
        return path.with_name(path.name + BACKUP_SUFFIX)

    def exists(self, key: str) -> bool:
        """Check whether a blob is stored under key."""
        return self.path(key).is_file()

    def get(self, key: str) -> bytes | None:
        """Return the plaintext stored under key, or None if missing.

        Raises:
            DecryptError: Blob exists but cannot be opened.

        """
        return self._open(self.path(key))

    def get_backup(self, key: str) -> bytes | None:
        """Return the previous generation stored under key, or None if there is none.

        Raises:
            DecryptError: Backup exists but cannot be opened.

        """
        return self._open(self.backup_path(key))

    def put(self, key: str, plaintext: bytes) -> None:
        """Seal plaintext and write it under key, backing up the current blob first."""
        path = self.path(key)
        path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        if path.is_file():
            _atomic_write(self.backup_path(key), path.read_bytes())
        _atomic_write(path, self._sealer.seal(plaintext))
        logger.debug("Stored %s", key)

    def delete(self, key: str) -> bool:
        """Remove the blob and its backup. Return True if the blob existed."""
        existed = self.exists(key)
        for path in (self.path(key), self.backup_path(key)):
            path.unlink(missing_ok=True)
        return existed

    def touch(self, key: str) -> None:
        """Refresh the blob's modification time to now."""
        os.utime(self.path(key))

    def age(self, key: str) -> float | None:
        """Return seconds since the blob was last written or touched, or None if missing."""
        try:
            mtime = self.path(key).stat().st_mtime
        except FileNotFoundError:
            return None
        return max(0.0, time.time() - mtime)

    def _open(self, path: Path) -> bytes | None:
        try:
            blob = path.read_bytes()
        except FileNotFoundError:
            return None
        return self._sealer.open(blob, path)


def _atomic_write(path: Path, data: bytes) -> None:
    """Write data to path via a 0o600 temp file in the same directory and rename."""
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    tmp = Path(tmp_path)
    try:
        try:
            os.write(fd, data)
        finally:
            os.close(fd)
        tmp.replace(path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise
