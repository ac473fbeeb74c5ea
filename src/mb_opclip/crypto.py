"""Cryptographic operations: identity keys, sealing to a recipient, passphrase protection."""

import base64
import os
from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey, X25519PublicKey
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

# scrypt KDF parameters (identity passphrase)
SCRYPT_SALT_LENGTH = 16
SCRYPT_KEY_LENGTH = 32
SCRYPT_N = 1_048_576
SCRYPT_R = 8
SCRYPT_P = 1

# AES-256-GCM parameters
AES_GCM_NONCE_LENGTH = 12

# Sealed blob layout: MAGIC || ephemeral public key || nonce || ciphertext
SEAL_MAGIC = b"mboc1"
X25519_KEY_LENGTH = 32
_SEAL_HEADER_LENGTH = len(SEAL_MAGIC) + X25519_KEY_LENGTH + AES_GCM_NONCE_LENGTH
_HKDF_INFO = b"mb-opclip seal v1"


@dataclass(frozen=True)
class EncryptResult:
    """Result of AES-256-GCM encryption."""

    nonce: bytes
    ciphertext: bytes


@dataclass(frozen=True)
class KeyPair:
    """Raw X25519 identity key pair."""

    private: bytes
    public: bytes

    @property
    def recipient(self) -> str:
        """Public key encoded for config.toml."""
        return encode_recipient(self.public)


def derive_key(password: str, salt: bytes) -> bytes:
    """Derive a 32-byte AES key from password and salt using scrypt."""
    kdf = Scrypt(salt=salt, length=SCRYPT_KEY_LENGTH, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return kdf.derive(password.encode())


def encrypt(plaintext: bytes, key: bytes) -> EncryptResult:
    """Encrypt plaintext with AES-256-GCM."""
    nonce = os.urandom(AES_GCM_NONCE_LENGTH)
    ciphertext = AESGCM(key).encrypt(nonce, plaintext, None)
    return EncryptResult(nonce=nonce, ciphertext=ciphertext)


def decrypt(ciphertext: bytes, key: bytes, nonce: bytes) -> bytes:
    """Decrypt ciphertext with AES-256-GCM.

    Raises:
        InvalidTag: Wrong key or tampered ciphertext.

    """
    return AESGCM(key).decrypt(nonce, ciphertext, None)


# --- Identity / recipient ---


def generate_identity() -> KeyPair:
    """Generate a fresh X25519 identity."""
    private_key = X25519PrivateKey.generate()
    return KeyPair(private=private_key.private_bytes_raw(), public=private_key.public_key().public_bytes_raw())


def public_from_private(private: bytes) -> bytes:
    """Return the raw public key matching a raw private key."""
    return X25519PrivateKey.from_private_bytes(private).public_key().public_bytes_raw()


def encode_recipient(public: bytes) -> str:
    """Encode a raw public key as a recipient string."""
    return base64.b64encode(public).decode()


def decode_recipient(recipient: str) -> bytes:
    """Decode a recipient string into a raw public key.

    Raises:
        ValueError: Not valid base64 or wrong key length.

    """
    public = base64.b64decode(recipient, validate=True)
    if len(public) != X25519_KEY_LENGTH:
        msg = f"Recipient must be {X25519_KEY_LENGTH} bytes, got {len(public)}."
        raise ValueError(msg)
    return public


def _wrap_key(shared: bytes, ephemeral_public: bytes, recipient_public: bytes) -> bytes:
    """Derive the per-blob AES key from an X25519 shared secret."""
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=ephemeral_public + recipient_public, info=_HKDF_INFO)
    return hkdf.derive(shared)


# --- Seal / open ---


def seal(plaintext: bytes, recipient_public: bytes) -> bytes:
    """Encrypt plaintext so that only the holder of the recipient's private key can open it."""
    ephemeral = X25519PrivateKey.generate()
    ephemeral_public = ephemeral.public_key().public_bytes_raw()
    shared = ephemeral.exchange(X25519PublicKey.from_public_bytes(recipient_public))
    result = encrypt(plaintext, _wrap_key(shared, ephemeral_public, recipient_public))
    return SEAL_MAGIC + ephemeral_public + result.nonce + result.ciphertext


def open_sealed(blob: bytes, identity: bytes) -> bytes:
    """Open a blob produced by ``seal`` with the recipient's raw private key.

    Raises:
        ValueError: Blob is truncated or not a sealed blob.
        InvalidTag: Wrong identity or tampered blob.

    """
    if len(blob) < _SEAL_HEADER_LENGTH or not blob.startswith(SEAL_MAGIC):
        raise ValueError("Not a sealed blob.")
    offset = len(SEAL_MAGIC)
    ephemeral_public = blob[offset : offset + X25519_KEY_LENGTH]
    nonce = blob[offset + X25519_KEY_LENGTH : _SEAL_HEADER_LENGTH]
    private_key = X25519PrivateKey.from_private_bytes(identity)
    recipient_public = private_key.public_key().public_bytes_raw()
    shared = private_key.exchange(X25519PublicKey.from_public_bytes(ephemeral_public))
    return decrypt(blob[_SEAL_HEADER_LENGTH:], _wrap_key(shared, ephemeral_public, recipient_public), nonce)
