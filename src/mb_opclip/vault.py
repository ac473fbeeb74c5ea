"""Request pipeline: session, then index and item, then field extraction."""

from mb_opclip.provider import ItemProvider
from mb_opclip.resolver import ItemResolver
from mb_opclip.session import SessionManager
from mb_opclip.templates import extract, list_fields

# Field names handled outside of template extraction.
TOTP_FIELD = "totp"
UUID_FIELD = "uuid"


class Vault:
    """Resolves titles and fields for the CLI."""

    def __init__(self, sessions: SessionManager, resolver: ItemResolver, provider: ItemProvider) -> None:
        """Initialize the vault.

        Args:
            sessions: Session manager ensuring a live session before remote calls.
            resolver: Title and item cache in front of the provider.
            provider: Remote vault operations, used directly for live TOTP codes.

        """
        self._sessions = sessions
        self._resolver = resolver
        self._provider = provider

    def titles(self, *, refresh: bool = False, filter_: str | None = None) -> list[str]:
        """List item titles."""
        return self._resolver.titles(refresh=refresh, filter_=filter_)

    def field(self, title: str, field: str = "password", *, refresh: bool = False) -> str:
        """Return one field of the item with the given title.

        ``totp`` is always fetched live and never touches the item cache.
        ``uuid`` returns the identifier without fetching the item.

        Raises:
            NotFoundError: Unknown title or field.
            UnsupportedTemplateError: Item kind is not recognized.

        """
        entry = self._resolver.resolve_title(title, refresh=refresh)
        if field == UUID_FIELD:
            return entry.identifier
        if field == TOTP_FIELD:
            return self._provider.get_totp(entry.identifier, self._sessions.ensure_session())
        self._resolver.ensure_item_cached(entry.identifier, refresh=refresh)
        return extract(entry.template, self._resolver.load_item(entry.identifier), field)

    def field_names(self, title: str, *, refresh: bool = False) -> list[str]:
        """List the fields available in the item with the given title."""
        entry = self._resolver.resolve_title(title, refresh=refresh)
        self._resolver.ensure_item_cached(entry.identifier, refresh=refresh)
        return list_fields(entry.template, self._resolver.load_item(entry.identifier))
