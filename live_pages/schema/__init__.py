"""Load, model and resolve the editable site schema.

This subpackage parses the project's ``site-schema.yaml`` file into strongly
typed dataclasses (:class:`SiteSchema`, :class:`SectionTypeConfig`, the
field-rule union rooted at :class:`FieldSchema`) and resolves document paths
to the rule that governs them. The primary entry points are
:func:`load_site_schema` and :class:`SchemaResolver`.

Examples
--------
>>> from pathlib import Path
>>> from live_pages.schema import SchemaResolver, load_site_schema
>>> schema = load_site_schema(Path("config/site-schema.yaml"))  # doctest: +SKIP
>>> resolver = SchemaResolver(schema)  # doctest: +SKIP
>>> resolver.field_schema("site.brand").localized  # doctest: +SKIP
True
"""

from .defaults import derive_field_default, derive_item_default, derive_section_data
from .loader import load_site_schema, parse_site_schema
from .models import (
    ArrayField,
    BooleanField,
    ColorField,
    DateField,
    FieldSchema,
    ImageField,
    NumberField,
    ObjectSchema,
    PageTypeConfig,
    RichTextField,
    SchemaError,
    SchemaNode,
    SectionTypeConfig,
    SelectField,
    SiteSchema,
    StringField,
)
from .resolver import SchemaResolver

__all__ = [
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
    "SchemaResolver",
    "SectionTypeConfig",
    "SelectField",
    "SiteSchema",
    "StringField",
    "derive_field_default",
    "derive_item_default",
    "derive_section_data",
    "load_site_schema",
    "parse_site_schema",
]
