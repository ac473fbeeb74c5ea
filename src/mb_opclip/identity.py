"""Passphrase-protected identity file holding the X25519 private key."""

import base64
import binascii
import json
import os
from dataclasses import dataclass
from pathlib import Path

from cryptography.exceptions import InvalidTag

from mb_opclip.crypto import (
    SCRYPT_N,
    SCRYPT_P,
    SCRYPT_R,
    SCRYPT_SALT_LENGTH,
    X25519_KEY_LENGTH,
    KeyPair,
    decrypt,
    derive_key,
    encode_recipient,
    encrypt,
    generate_identity,
    public_from_private,
)
from mb_opclip.errors import AppError


@dataclass(frozen=True)
class IdentityData:
    """Decoded contents of the identity file."""

    recipient: str
    salt: bytes
    nonce: bytes
    ciphertext: bytes


class IdentityError(AppError):
    """Identity file creation or unlock failed."""

    default_code = "identity"


class IdentityFile:
    """Reads and writes the passphrase-protected identity."""

    def __init__(self, path: Path) -> None:
        """Initialize with the identity file location.

        Args:
            path: Path to the identity JSON file.

        """
        self._path = path

    @property
    def exists(self) -> bool:
        """Check if the identity file exists."""
        return self._path.exists()

    def create(self, passphrase: str) -> KeyPair:
        """Generate a new identity and write it protected by the passphrase.

        Raises:
            IdentityError: Already exists (code: ``already_initialized``) or empty passphrase (code: ``empty_password``).

        """
        if self.exists:
            raise IdentityError("Identity already exists.", "already_initialized")
        if not passphrase:
            raise IdentityError("Passphrase cannot be empty.", "empty_password")
        self._path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        self._path.parent.chmod(0o700)
        pair = generate_identity()
        salt = os.urandom(SCRYPT_SALT_LENGTH)
        result = encrypt(pair.private, derive_key(passphrase, salt))
        self._write(IdentityData(recipient=pair.recipient, salt=salt, nonce=result.nonce, ciphertext=result.ciphertext))
        return pair

    def unlock(self, passphrase: str) -> bytes:
        """Decrypt and return the raw private key.

        Raises:
            IdentityError: Not initialized (code: ``not_initialized``), wrong passphrase
                (code: ``wrong_password``), or corrupted file (code: ``corrupted``).

        """
        if not self.exists:
            raise IdentityError("Identity is not initialized. Run 'mb-opclip init' first.", "not_initialized")
        data = self._read()
        try:
            private = decrypt(data.ciphertext, derive_key(passphrase, data.salt), data.nonce)
        except InvalidTag:
            raise IdentityError("Wrong passphrase.", "wrong_password") from None
        if len(private) != X25519_KEY_LENGTH or encode_recipient(public_from_private(private)) != data.recipient:
            raise IdentityError("Identity file does not match its recipient; it may be corrupted.", "corrupted")
        return private

    def recipient(self) -> str:
        """Return the public recipient stored alongside the key."""
        return self._read().recipient

    def _read(self) -> IdentityData:
        """Read the identity file and return decoded data.

        Raises:
            IdentityError: File is not valid identity JSON (code: ``corrupted``).

        """
        try:
            raw = json.loads(self._path.read_text())
            return IdentityData(
                recipient=raw["recipient"],
                salt=base64.b64decode(raw["kdf"]["salt"]),
                nonce=base64.b64decode(raw["encryption"]["nonce"]),
                ciphertext=base64.b64decode(raw["encryption"]["ciphertext"]),
            )
        except (json.JSONDecodeError, KeyError, TypeError, binascii.Error):
            raise IdentityError(f"Identity file {self._path} is corrupted.", "corrupted") from None

    def _write(self, data: IdentityData) -> None:
        """Write the identity file atomically with owner-only permissions."""
        payload = {
            "recipient": data.recipient,
            "kdf": {
                "algorithm": "scrypt",
                "salt": base64.b64encode(data.salt).decode(),
                "n": SCRYPT_N,
                "r": SCRYPT_R,
                "p": SCRYPT_P,
            },
            "encryption": {
                "algorithm": "aes-256-gcm",
                "nonce": base64.b64encode(data.nonce).decode(),
                "ciphertext": base64.b64encode(data.ciphertext).decode(),
            },
        }
        tmp_path = self._path.with_suffix(".tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        try:
            os.write(fd, (json.dumps(payload, indent=2) + "\n").encode())
        finally:
            os.close(fd)
        tmp_path.replace(self._path)
