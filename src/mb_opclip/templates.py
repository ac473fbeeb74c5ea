"""Template-aware field resolution.

Each 1Password template kind lays out its record differently. A ``Template``
subclass knows where its kind keeps the password, which built-in fields it
exposes, and how to list them. Free-form section fields are shared by all kinds.
Adding a kind means adding a subclass and registering it in ``TEMPLATES``.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any, ClassVar

from mb_opclip.errors import NotFoundError, UnsupportedTemplateError
from mb_opclip.models import ItemRecord, SectionField


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


class Template(ABC):
    """Field-resolution rules for one template kind."""

    kind: ClassVar[str]
    name: ClassVar[str]

    @abstractmethod
    def builtin_fields(self) -> list[str]:
        """Names this kind exposes outside of sections, in display order."""

    @abstractmethod
    def builtin(self, record: ItemRecord, name: str) -> str | None:
        """Return a built-in field's value, or None if the kind has no such field."""

    def password(self, record: ItemRecord) -> str:
        """Return the item's password.

        Raises:
            NotFoundError: The record has no password.

        """
        return self.field(record, "password")

    def field(self, record: ItemRecord, name: str) -> str:
        """Return the value of a built-in or labelled section field.

        Raises:
            NotFoundError: No such field in the record.

        """
        value = self.builtin(record, name)
        if value is not None:
            return value
        for field in self.section_fields(record):
            if field.label == name and field.value is not None:
                return _as_text(field.value)
        raise NotFoundError(f"Field '{name}' not found in {self.name} item.", "field_not_found")

    def field_names(self, record: ItemRecord) -> list[str]:
        """List built-in names followed by every section label, in encounter order, without duplicates."""
        names = list(self.builtin_fields())
        for field in self.section_fields(record):
            if field.label and field.label not in names:
                names.append(field.label)
        return names

    @staticmethod
    def section_fields(record: ItemRecord) -> Iterator[SectionField]:
        """Yield section fields in section order, then field order."""
        for section in record.details.sections:
            yield from section.fields


class LoginTemplate(Template):
    """Login items: username and password live in the designated-fields collection."""

    kind = "001"
    name = "Login"

    def builtin_fields(self) -> list[str]:
        return ["username", "password"]

    def builtin(self, record: ItemRecord, name: str) -> str | None:
        if name not in self.builtin_fields():
            return None
        for field in record.details.fields:
            if field.designation == name and field.value is not None:
                return _as_text(field.value)
        return None


class PasswordTemplate(Template):
    """Password items: a direct password attribute and no username."""

    kind = "005"
    name = "Password"

    def builtin_fields(self) -> list[str]:
        return ["password"]

    def builtin(self, record: ItemRecord, name: str) -> str | None:
        if name == "password":
            return record.details.password
        return None


TEMPLATES: dict[str, Template] = {t.kind: t for t in (LoginTemplate(), PasswordTemplate())}


def template_for(kind: str) -> Template:
    """Return the rules for a template kind.

    Raises:
        UnsupportedTemplateError: Kind is not recognized.

    """
    try:
        return TEMPLATES[kind]
    except KeyError:
        raise UnsupportedTemplateError(f"Unsupported item template '{kind}'.") from None


def extract(kind: str, record: ItemRecord, field: str) -> str:
    """Resolve a requested field of a record according to its template kind."""
    template = template_for(kind)
    if field == "password":
        return template.password(record)
    return template.field(record, field)


def list_fields(kind: str, record: ItemRecord) -> list[str]:
    """List the field names available in a record according to its template kind."""
    return template_for(kind).field_names(record)
