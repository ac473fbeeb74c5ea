"""Tests for the index cache and item resolution."""

import pytest
from fakes import LOGIN_RECORD, FakeProvider

from mb_opclip.errors import DecryptError, NotFoundError
from mb_opclip.models import INDEX_ADAPTER
from mb_opclip.resolver import INDEX_KEY, ItemResolver, item_key
from mb_opclip.session import SessionManager
from mb_opclip.store import EncryptedStore


def make_resolver(store: EncryptedStore, provider: FakeProvider) -> ItemResolver:
    """Resolver over the fake provider with a real session manager."""
    return ItemResolver(store, provider, SessionManager(store, provider.sign_in_capability))


class TestIndex:
    """Index fetch-on-miss and refresh."""

    def test_fetch_on_miss(self, store: EncryptedStore, provider: FakeProvider) -> None:
        """Missing index is fetched once with a session and persisted."""
        entry = make_resolver(store, provider).resolve_title("GitHub")
        assert (entry.identifier, entry.template) == ("login-1", "001")
        assert provider.list_calls == 1
        assert provider.sessions_seen == ["token-1"]
        assert store.exists(INDEX_KEY)

    def test_cached_index_needs_no_remote_call(self, store: EncryptedStore, provider: FakeProvider) -> None:
        """A new resolver reads the persisted index without listing or signing in."""
        make_resolver(store, provider).resolve_title("GitHub")
        entry = make_resolver(store, provider).resolve_title("Wifi")
        assert entry.identifier == "pw-1"
        assert provider.list_calls == 1
        assert provider.sign_ins == 1

    def test_refresh_replaces_and_backs_up(self, store: EncryptedStore, provider: FakeProvider) -> None:
        """refresh fetches again and keeps the previous index as backup."""
        make_resolver(store, provider).load_index()
        provider.listing = provider.listing[:1]
        entries = make_resolver(store, provider).load_index(refresh=True)
        assert [e.title for e in entries] == ["GitHub"]
        assert provider.list_calls == 2
        backup = INDEX_ADAPTER.validate_json(store.get_backup(INDEX_KEY) or b"[]")
        assert [e.title for e in backup] == ["GitHub", "Wifi"]

    def test_not_found(self, store: EncryptedStore, provider: FakeProvider) -> None:
        """Unknown title raises NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            make_resolver(store, provider).resolve_title("Nope")
        assert exc_info.value.code == "item_not_found"

    def test_duplicate_titles_first_wins(self, store: EncryptedStore) -> None:
        """With duplicate titles the first listed entry is returned."""
        second = {**LOGIN_RECORD, "uuid": "login-2"}
        provider = FakeProvider(records=[LOGIN_RECORD, second], titles={"login-1": "Mail", "login-2": "Mail"})
        assert make_resolver(store, provider).resolve_title("Mail").identifier == "login-1"

    def test_duplicate_identifiers_collapse(self, store: EncryptedStore, provider: FakeProvider) -> None:
        """The index is keyed by identifier; repeated listing entries are dropped."""
        provider.listing = provider.listing + provider.listing[:1]
        assert len(make_resolver(store, provider).load_index()) == 2

    def test_titles_sorted_and_filtered(self, store: EncryptedStore, provider: FakeProvider) -> None:
        """titles are sorted and can be filtered by substring."""
        resolver = make_resolver(store, provider)
        assert resolver.titles() == ["GitHub", "Wifi"]
        assert resolver.titles(filter_="Wi") == ["Wifi"]

    def test_corrupt_index(self, store: EncryptedStore, provider: FakeProvider) -> None:
        """A cached index that decrypts to garbage is a DecryptError, not silently refetched."""
        store.put(INDEX_KEY, b"not json")
        with pytest.raises(DecryptError):
            make_resolver(store, provider).load_index()
        assert provider.list_calls == 0


class TestItems:
    """Per-item cache."""

    def test_ensure_item_cached_fetches_once(self, store: EncryptedStore, provider: FakeProvider) -> None:
        """Repeated calls without refresh are no-ops."""
        resolver = make_resolver(store, provider)
        resolver.ensure_item_cached("login-1")
        resolver.ensure_item_cached("login-1")
        assert provider.get_calls == ["login-1"]
        assert resolver.load_item("login-1").details.fields[0].value == "alice"

    def test_refresh_refetches(self, store: EncryptedStore, provider: FakeProvider) -> None:
        """refresh fetches the record again."""
        resolver = make_resolver(store, provider)
        resolver.ensure_item_cached("login-1")
        resolver.ensure_item_cached("login-1", refresh=True)
        assert provider.get_calls == ["login-1", "login-1"]
        assert store.get_backup(item_key("login-1")) is not None

    def test_record_round_trips_aliases(self, store: EncryptedStore, provider: FakeProvider) -> None:
        """The cached record keeps section labels and template kind."""
        resolver = make_resolver(store, provider)
        resolver.ensure_item_cached("login-1")
        record = resolver.load_item("login-1")
        assert record.template_uuid == "001"
        assert record.details.sections[0].fields[0].label == "pin"

    def test_load_uncached(self, store: EncryptedStore, provider: FakeProvider) -> None:
        """Loading an item that was never cached raises NotFoundError."""
        with pytest.raises(NotFoundError):
            make_resolver(store, provider).load_item("login-1")
