"""Shared fixtures."""

from pathlib import Path

import pytest
from fakes import FakeClipboard, FakeProvider

from mb_opclip.crypto import KeyPair, generate_identity
from mb_opclip.store import EncryptedStore, Sealer


@pytest.fixture
def identity() -> KeyPair:
    """Fresh X25519 identity."""
    return generate_identity()


@pytest.fixture
def sealer(identity: KeyPair) -> Sealer:
    """Sealer bound to the test identity, no agent involved."""
    return Sealer(identity.recipient, identity=lambda: identity.private)


@pytest.fixture
def store(tmp_path: Path, sealer: Sealer) -> EncryptedStore:
    """Encrypted store rooted at a temporary cache dir."""
    return EncryptedStore(tmp_path / "cache", sealer)


@pytest.fixture
def provider() -> FakeProvider:
    """Provider with one Login item (GitHub) and one Password item (Wifi)."""
    return FakeProvider()


@pytest.fixture
def clipboard() -> FakeClipboard:
    """Clipboard holding 'before'."""
    return FakeClipboard("before")
