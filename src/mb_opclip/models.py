"""Pydantic models for provider listings, cached index entries and item records."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class _ProviderModel(BaseModel):
    """Base for models parsed from provider JSON: unknown keys ignored, aliases or names accepted."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Overview(_ProviderModel):
    """Overview block of a listed item."""

    title: str = ""


class ListedItem(_ProviderModel):
    """One entry of the provider's item listing."""

    uuid: str
    template_uuid: str = Field(default="", alias="templateUuid")
    overview: Overview = Field(default_factory=Overview)


class IndexEntry(BaseModel):
    """Cached title → identifier mapping for one item."""

    model_config = ConfigDict(frozen=True)

    title: str
    identifier: str
    template: str


INDEX_ADAPTER = TypeAdapter(list[IndexEntry])
LISTING_ADAPTER = TypeAdapter(list[ListedItem])


class DesignatedField(_ProviderModel):
    """Built-in field of a login item, tagged by its designation (username, password)."""

    designation: str = ""
    name: str = ""
    value: Any = None


class SectionField(_ProviderModel):
    """Free-form field inside a section, matched by its display label."""

    label: str = Field(default="", alias="t")
    name: str = Field(default="", alias="n")
    value: Any = Field(default=None, alias="v")


class Section(_ProviderModel):
    """Ordered group of labelled fields."""

    title: str = ""
    fields: list[SectionField] = Field(default_factory=list)

    @field_validator("fields", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        """Treat a null field list as empty."""
        return [] if value is None else value


class ItemDetails(_ProviderModel):
    """Template-specific payload of an item."""

    fields: list[DesignatedField] = Field(default_factory=list)
    password: str | None = None
    sections: list[Section] = Field(default_factory=list)

    @field_validator("fields", "sections", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        """Treat null field and section lists as empty."""
        return [] if value is None else value


class ItemRecord(_ProviderModel):
    """Full decrypted record of one item."""

    uuid: str
    template_uuid: str = Field(default="", alias="templateUuid")
    details: ItemDetails = Field(default_factory=ItemDetails)
