"""Typed dataclasses describing the editable site schema.

Field rules form a tagged union: every concrete field class carries a
``kind`` tag matching the ``type`` key used in the schema file, and grouped
fields (a call-to-action's ``label``/``href``, object-shaped array items) are
modelled by :class:`ObjectSchema`.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ


class SchemaError(ValueError):
    """Raised when the site schema is invalid or incomplete."""


@dc.dataclass(slots=True)
class FieldSchema:
    """Rules shared by every editable field."""

    kind: typ.ClassVar[str] = ""

    editable: bool = False
    localized: bool = False
    max_length: int | None = None
    description: str = ""


@dc.dataclass(slots=True)
class StringField(FieldSchema):
    """Single-line text."""

    kind: typ.ClassVar[str] = "string"


@dc.dataclass(slots=True)
class RichTextField(FieldSchema):
    """Formatted multi-line text."""

    kind: typ.ClassVar[str] = "richtext"


@dc.dataclass(slots=True)
class NumberField(FieldSchema):
    """Numeric value."""

    kind: typ.ClassVar[str] = "number"


@dc.dataclass(slots=True)
class BooleanField(FieldSchema):
    """Toggle value."""

    kind: typ.ClassVar[str] = "boolean"


@dc.dataclass(slots=True)
class ImageField(FieldSchema):
    """Image reference (URL or asset path)."""

    kind: typ.ClassVar[str] = "image"


@dc.dataclass(slots=True)
class DateField(FieldSchema):
    """ISO date string."""

    kind: typ.ClassVar[str] = "date"


@dc.dataclass(slots=True)
class ColorField(FieldSchema):
    """CSS colour value."""

    kind: typ.ClassVar[str] = "color"


@dc.dataclass(slots=True)
class SelectField(FieldSchema):
    """Choice constrained to ``options``."""

    kind: typ.ClassVar[str] = "select"

    options: tuple[str, ...] = ()


@dc.dataclass(slots=True)
class ObjectSchema:
    """Map of named field rules (a field group or an object-shaped item)."""

    fields: dict[str, SchemaNode] = dc.field(default_factory=dict)
    description: str = ""

    def get(self, name: str) -> SchemaNode | None:
        """Return the rule for ``name`` or None when undefined."""
        return self.fields.get(name)


@dc.dataclass(slots=True)
class ArrayField(FieldSchema):
    """Repeatable list of primitive or object-shaped items."""

    kind: typ.ClassVar[str] = "array"

    item_schema: FieldSchema | ObjectSchema | None = None
    max_items: int | None = None


SchemaNode: typ.TypeAlias = FieldSchema | ObjectSchema

FIELD_TYPES: dict[str, type[FieldSchema]] = {
    cls.kind: cls
    for cls in (
        StringField,
        RichTextField,
        NumberField,
        BooleanField,
        ImageField,
        DateField,
        ColorField,
        SelectField,
        ArrayField,
    )
}


def generic_item_schema() -> StringField:
    """Return the rule applied to items of arrays without an item schema."""
    return StringField(editable=True)


@dc.dataclass(slots=True)
class SectionTypeConfig:
    """Registry entry describing one kind of section."""

    key: str
    display_name: str
    description: str
    singleton: bool
    region: str
    allowed_regions: list[str]
    schema: ObjectSchema
    default_data: dict[str, typ.Any] | None = None


@dc.dataclass(slots=True)
class PageTypeConfig:
    """Page registry entry listing the section types a page may hold."""

    key: str
    allowed_section_types: list[str] | None = None


@dc.dataclass(slots=True)
class SiteSchema:
    """Site-level field rules alongside the section and page registries."""

    fields: ObjectSchema
    section_types: dict[str, SectionTypeConfig]
    page_types: dict[str, PageTypeConfig] = dc.field(default_factory=dict)
    version: int | None = None

    def section_type(self, name: str | None) -> SectionTypeConfig | None:
        """Return the registry entry for ``name`` or None when unknown."""
        if name is None:
            return None
        return self.section_types.get(name)

    def allowed_section_types(self, page_type: str | None) -> list[str] | None:
        """Return the allowlist for ``page_type``; None means unrestricted."""
        page = self.page_types.get(page_type) if page_type else None
        if page is None:
            return None
        return page.allowed_section_types


__all__ = [
    "FIELD_TYPES",
    "ArrayField",
    "BooleanField",
    "ColorField",
    "DateField",
    "FieldSchema",
    "ImageField",
    "NumberField",
    "ObjectSchema",
    "PageTypeConfig",
    "RichTextField",
    "SchemaError",
    "SchemaNode",
    "SectionTypeConfig",
    "SelectField",
    "SiteSchema",
    "StringField",
    "generic_item_schema",
]
