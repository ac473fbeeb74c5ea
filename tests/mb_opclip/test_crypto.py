"""Tests for cryptographic operations."""

import pytest
from cryptography.exceptions import InvalidTag

from mb_opclip.crypto import (
    SCRYPT_KEY_LENGTH,
    SEAL_MAGIC,
    decode_recipient,
    decrypt,
    derive_key,
    encode_recipient,
    encrypt,
    generate_identity,
    open_sealed,
    public_from_private,
    seal,
)

SALT_16 = b"0123456789abcdef"


class TestDeriveKey:
    """Key derivation with scrypt."""

    def test_deterministic_and_sized(self):
        """Same passphrase + salt produces the same 32-byte key."""
        key = derive_key("passphrase", SALT_16)
        assert key == derive_key("passphrase", SALT_16)
        assert len(key) == SCRYPT_KEY_LENGTH


class TestEncryptDecrypt:
    """AES-256-GCM used to protect the identity at rest."""

    def test_wrong_key(self):
        """Wrong key raises InvalidTag."""
        result = encrypt(b"secret", b"k" * 32)
        with pytest.raises(InvalidTag):
            decrypt(result.ciphertext, b"x" * 32, result.nonce)


class TestIdentity:
    """X25519 identities and recipient encoding."""

    def test_public_matches_private(self):
        """Public key can be recomputed from the private key."""
        pair = generate_identity()
        assert public_from_private(pair.private) == pair.public

    def test_recipient_encoding(self):
        """Recipient string decodes back to the raw public key."""
        pair = generate_identity()
        assert decode_recipient(pair.recipient) == pair.public
        assert encode_recipient(pair.public) == pair.recipient

    def test_recipient_wrong_length(self):
        """Recipient of the wrong size is rejected."""
        with pytest.raises(ValueError, match="32 bytes"):
            decode_recipient(encode_recipient(b"short"))

    def test_recipient_not_base64(self):
        """Recipient that is not base64 is rejected."""
        with pytest.raises(ValueError):
            decode_recipient("not base64!")


class TestSealOpen:
    """Sealing to a recipient and opening with the identity."""

    def test_open_with_identity(self):
        """Sealed blob opens with the matching identity."""
        pair = generate_identity()
        blob = seal(b"session-token", pair.public)
        assert blob.startswith(SEAL_MAGIC)
        assert b"session-token" not in blob
        assert open_sealed(blob, pair.private) == b"session-token"

    def test_each_seal_differs(self):
        """Ephemeral keys make every blob unique."""
        pair = generate_identity()
        assert seal(b"same", pair.public) != seal(b"same", pair.public)

    def test_wrong_identity(self):
        """Another identity cannot open the blob."""
        blob = seal(b"secret", generate_identity().public)
        with pytest.raises(InvalidTag):
            open_sealed(blob, generate_identity().private)

    def test_tampered_blob(self):
        """Flipping a ciphertext byte is detected."""
        pair = generate_identity()
        tampered = bytearray(seal(b"secret", pair.public))
        tampered[-1] ^= 0xFF
        with pytest.raises(InvalidTag):
            open_sealed(bytes(tampered), pair.private)

    def test_truncated_blob(self):
        """Blob shorter than the header is rejected."""
        with pytest.raises(ValueError, match="Not a sealed blob"):
            open_sealed(SEAL_MAGIC + b"abc", generate_identity().private)

    def test_foreign_blob(self):
        """Blob without the magic prefix is rejected."""
        with pytest.raises(ValueError, match="Not a sealed blob"):
            open_sealed(b"x" * 100, generate_identity().private)
