"""Session lifecycle: obtain, reuse and expire the provider session token."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from mb_opclip.errors import DecryptError
from mb_opclip.store import EncryptedStore

logger = logging.getLogger(__name__)

SESSION_TTL = 29 * 60
SESSION_KEY = "session"


@dataclass(frozen=True)
class Session:
    """Session token and the time it was last written or reused."""

    token: str
    last_refreshed_at: float


class SessionManager:
    """Hands out a session token, signing in only when the persisted one is unusable.

    The persisted token is sealed in the store; its mtime is the last refresh
    time, so every reuse slides the expiry window forward.
    """

    def __init__(
        self,
        store: EncryptedStore,
        sign_in: Callable[[], str],
        *,
        evict_keys: Callable[[], None] | None = None,
        ttl: float = SESSION_TTL,
    ) -> None:
        """Initialize the session manager.

        Args:
            store: Encrypted store holding the session blob.
            sign_in: Authentication capability returning a fresh token (raises AuthError).
            evict_keys: Tells the key agent to drop the unlocked identity; used by ``forget``.
            ttl: Seconds a persisted session stays reusable after its last refresh.

        """
        self._store = store
        self._sign_in = sign_in
        self._evict_keys = evict_keys
        self._ttl = ttl
        self._session: Session | None = None

    @property
    def active(self) -> bool:
        """Whether a token is held in-process."""
        return self._session is not None

    def ensure_session(self, *, force_refresh: bool = False) -> str:
        """Return a usable session token.

        Raises:
            AuthError: Sign-in was required and failed.

        """
        if self._session is not None and not force_refresh:
            return self._session.token
        session = None if force_refresh else self._load()
        if session is None:
            session = self._refresh()
        self._session = session
        return session.token

    def load(self) -> Session | None:
        """Return the persisted session if it is present, readable and fresh, without side effects."""
        age = self._store.age(SESSION_KEY)
        if age is None or age >= self._ttl:
            return None
        try:
            raw = self._store.get(SESSION_KEY)
        except DecryptError:
            logger.warning("Persisted session is unreadable; signing in again.")
            return None
        if not raw:
            return None
        return Session(token=raw.decode(), last_refreshed_at=time.time() - age)

    def forget(self) -> None:
        """Delete the persisted session and evict the agent's keys. Never contacts the provider."""
        self._session = None
        self._store.delete(SESSION_KEY)
        if self._evict_keys is not None:
            self._evict_keys()
        logger.info("Session forgotten.")

    def _load(self) -> Session | None:
        session = self.load()
        if session is None:
            return None
        self._store.touch(SESSION_KEY)
        logger.debug("Reusing persisted session.")
        return Session(token=session.token, last_refreshed_at=time.time())

    def _refresh(self) -> Session:
        token = self._sign_in()
        self._store.put(SESSION_KEY, token.encode())
        logger.info("New session stored.")
        return Session(token=token, last_refreshed_at=time.time())
