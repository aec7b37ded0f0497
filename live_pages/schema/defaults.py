"""Derive placeholder values from field rules.

New sections without registry ``defaultData`` and new array items start from
values derived here: strings get a placeholder picked from the field name
(``email`` fields get an address, ``price`` fields a currency marker), numbers
start at ``0``, toggles at ``False`` and object-shaped items are built field
by field.
"""

from __future__ import annotations

import typing as typ

from .models import (
    ArrayField,
    BooleanField,
    FieldSchema,
    NumberField,
    ObjectSchema,
    SelectField,
    StringField,
)

if typ.TYPE_CHECKING:
    from .models import SchemaNode

# Checked in order; the first fragment contained in the field name wins.
_STRING_PLACEHOLDERS: tuple[tuple[str, str], ...] = (
    ("name", "Placeholder Name"),
    ("subtitle", "Placeholder Subtitle"),
    ("title", "Placeholder Title"),
    ("description", "Placeholder description..."),
    ("excerpt", "Placeholder description..."),
    ("price", "$$"),
    ("email", "email@example.com"),
    ("phone", "(555) 000-0000"),
    ("address", "123 Main St"),
    ("date", "2024-01-01"),
    ("company", "Company"),
    ("slug", "placeholder-slug"),
    ("message", "Placeholder message"),
    ("label", "Click me"),
)


def derive_field_default(node: SchemaNode | None, key: str | None = None) -> typ.Any:
    """Return a placeholder value for a single field rule."""
    match node:
        case StringField():
            return _string_placeholder((key or "").lower())
        case NumberField():
            return 0
        case BooleanField():
            return False
        case ArrayField():
            return []
        case SelectField(options=options) if options:
            return options[0]
        case ObjectSchema():
            return derive_item_default(node)
        case FieldSchema():
            return ""
        case _:
            return ""


def derive_item_default(item_schema: SchemaNode | None) -> typ.Any:
    """Return a new array item shaped by ``item_schema``."""
    if isinstance(item_schema, ObjectSchema):
        return {
            name: derive_field_default(child, name)
            for name, child in item_schema.fields.items()
        }
    return derive_field_default(item_schema)


def derive_section_data(schema: ObjectSchema) -> dict[str, typ.Any]:
    """Return default data for a section whose type lacks ``defaultData``.

    Arrays with an item schema are seeded with one derived item so the new
    section renders something editable straight away.
    """
    data: dict[str, typ.Any] = {}
    for key, node in schema.fields.items():
        if isinstance(node, ArrayField):
            seeded = node.item_schema is not None
            data[key] = [derive_item_default(node.item_schema)] if seeded else []
        else:
            data[key] = derive_field_default(node, key)
    return data


def _string_placeholder(key: str) -> str:
    if key == "href":
        return "#"
    for fragment, placeholder in _STRING_PLACEHOLDERS:
        if fragment in key:
            return placeholder
    return ""


__all__ = ["derive_field_default", "derive_item_default", "derive_section_data"]
