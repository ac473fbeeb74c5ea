"""Cached vault index and per-item records, fetched on miss or on explicit refresh."""

import logging

from pydantic import ValidationError

from mb_opclip.errors import DecryptError, NotFoundError
from mb_opclip.models import INDEX_ADAPTER, IndexEntry, ItemRecord
from mb_opclip.provider import ItemProvider
from mb_opclip.session import SessionManager
from mb_opclip.store import EncryptedStore

logger = logging.getLogger(__name__)

INDEX_KEY = "index"


def item_key(identifier: str) -> str:
    """Store key of a cached item record."""
    return f"items/{identifier}"


class ItemResolver:
    """Resolves titles to identifiers and keeps item records cached.

    The index and the items are fetched separately, so listing titles never
    pulls full records and a refresh can target either one.
    """

    def __init__(self, store: EncryptedStore, provider: ItemProvider, sessions: SessionManager) -> None:
        """Initialize the resolver.

        Args:
            store: Encrypted cache for the index and item blobs.
            provider: Remote vault operations.
            sessions: Source of session tokens for remote calls.

        """
        self._store = store
        self._provider = provider
        self._sessions = sessions
        self._index: list[IndexEntry] | None = None

    # --- Index ---

    def load_index(self, *, refresh: bool = False) -> list[IndexEntry]:
        """Return the index, fetching it from the provider if missing or when refresh is set.

        Raises:
            DecryptError: Cached index cannot be opened or parsed.
            ProviderError: Listing failed.

        """
        if self._index is not None and not refresh:
            return self._index
        raw = None if refresh else self._store.get(INDEX_KEY)
        if raw is None:
            self._index = self._fetch_index()
        else:
            try:
                self._index = INDEX_ADAPTER.validate_json(raw)
            except ValidationError:
                raise DecryptError("Cached index is corrupted", self._store.path(INDEX_KEY), "corrupted") from None
        return self._index

    def titles(self, *, refresh: bool = False, filter_: str | None = None) -> list[str]:
        """Return the sorted, de-duplicated titles, optionally filtered by substring."""
        titles = sorted({entry.title for entry in self.load_index(refresh=refresh)})
        if filter_:
            titles = [t for t in titles if filter_ in t]
        return titles

    def resolve_title(self, title: str, *, refresh: bool = False) -> IndexEntry:
        """Return the first index entry with the given title, in provider listing order.

        Raises:
            NotFoundError: No item with that title.

        """
        for entry in self.load_index(refresh=refresh):
            if entry.title == title:
                return entry
        raise NotFoundError(f"No item titled '{title}'.", "item_not_found")

    # --- Items ---

    def ensure_item_cached(self, identifier: str, *, refresh: bool = False) -> None:
        """Fetch and store the item record unless it is already cached and refresh is not set."""
        if not refresh and self._store.exists(item_key(identifier)):
            return
        token = self._sessions.ensure_session()
        record = self._provider.get_item(identifier, token)
        self._store.put(item_key(identifier), record.model_dump_json(by_alias=True).encode())
        logger.info("Cached item %s", identifier)

    def load_item(self, identifier: str) -> ItemRecord:
        """Return a cached item record.

        Raises:
            NotFoundError: Item is not cached.
            DecryptError: Cached record cannot be opened or parsed.

        """
        raw = self._store.get(item_key(identifier))
        if raw is None:
            raise NotFoundError(f"Item {identifier} is not cached.", "item_not_cached")
        try:
            return ItemRecord.model_validate_json(raw)
        except ValidationError:
            raise DecryptError("Cached item is corrupted", self._store.path(item_key(identifier)), "corrupted") from None

    def _fetch_index(self) -> list[IndexEntry]:
        token = self._sessions.ensure_session()
        listing = self._provider.list_items(token)
        entries: list[IndexEntry] = []
        seen: set[str] = set()
        for item in listing:
            if item.uuid in seen:
                continue
            seen.add(item.uuid)
            entries.append(IndexEntry(title=item.overview.title, identifier=item.uuid, template=item.template_uuid))
        self._store.put(INDEX_KEY, INDEX_ADAPTER.dump_json(entries))
        logger.info("Fetched index with %d items", len(entries))
        return entries
