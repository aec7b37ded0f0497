"""Map document paths to the field rules that govern them."""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from .._constants import SECTIONS_PREFIX
from ..paths import is_index, split_path
from .models import ArrayField, ObjectSchema, generic_item_schema

if typ.TYPE_CHECKING:
    from .models import SchemaNode, SectionTypeConfig, SiteSchema


class SectionLike(typ.Protocol):
    """Anything exposing a section's ``id`` and ``type``."""

    id: str
    type: str


class SchemaResolver:
    """Resolve the schema node governing a document path.

    Site-level paths (``site.brand``) are walked against the schema's
    top-level fields. Section paths (``sections.<id>.<rest>``) look the
    section's type up in the live section list and walk that type's schema,
    stepping into an array's item schema whenever a numeric segment follows
    an array field.
    """

    def __init__(self, schema: SiteSchema) -> None:
        self.schema = schema

    def field_schema(
        self, path: str, live_sections: cabc.Iterable[SectionLike] = ()
    ) -> SchemaNode | None:
        """Return the rule governing ``path`` or None when it does not resolve.

        Parameters
        ----------
        path : str
            Dotted document path such as ``sections.services.items.0.price``.
        live_sections : Iterable[SectionLike]
            Current sections; only their ``id`` and ``type`` are consulted.

        Returns
        -------
        SchemaNode or None
            The field rule (or field group) for the path. Unknown section ids,
            unknown section types and unresolved segments yield ``None``.
        """
        segments = split_path(path)
        if not segments:
            return None
        if segments[0] != SECTIONS_PREFIX:
            return _walk(self.schema.fields, segments)
        if len(segments) < 2:
            return None
        section_type = self.section_type_for(segments[1], live_sections)
        if section_type is None:
            return None
        return _walk(section_type.schema, segments[2:])

    def array_schema(
        self, path: str, live_sections: cabc.Iterable[SectionLike] = ()
    ) -> ArrayField | None:
        """Return the array rule addressed by ``path`` or None."""
        node = self.field_schema(path, live_sections)
        return node if isinstance(node, ArrayField) else None

    def section_type_for(
        self, section_id: str, live_sections: cabc.Iterable[SectionLike]
    ) -> SectionTypeConfig | None:
        """Return the registry entry for the live section ``section_id``."""
        for section in live_sections:
            if section.id == section_id:
                return self.schema.section_type(section.type)
        return None


def _walk(node: SchemaNode | None, segments: list[str]) -> SchemaNode | None:
    for segment in segments:
        match node:
            case ArrayField() if is_index(segment):
                node = node.item_schema or generic_item_schema()
            case ObjectSchema():
                node = node.get(segment)
            case _:
                return None
        if node is None:
            return None
    return node


__all__ = ["SchemaResolver", "SectionLike"]
