"""Structural edits on repeatable lists inside section data.

Every mutation reads the array from the live merged section list and writes
the complete new list back through
:meth:`~live_pages.overlay.OverlayStore.update_field`. A full list in the
overlay always means replacement, so pending edits to individual items are
folded into the list that gets written.
"""

from __future__ import annotations

import logging
import typing as typ

from ._constants import SECTIONS_PREFIX
from .paths import split_path
from .schema import derive_item_default

if typ.TYPE_CHECKING:
    from .overlay import OverlayStore
    from .schema import ArrayField

logger = logging.getLogger(__name__)


class ArrayEditor:
    """Add, remove and reorder items of schema-described arrays."""

    def __init__(self, overlay: OverlayStore) -> None:
        self.overlay = overlay

    def add_item(self, path: str) -> bool:
        """Append a derived placeholder item unless ``maxItems`` is reached."""
        current = self._current(path)
        if current is None:
            return False
        schema = self._schema(path)
        if not _has_room(schema, len(current)):
            logger.debug("addItem ignored: %s is full", path)
            return False
        item_schema = schema.item_schema if schema is not None else None
        return self.overlay.update_field(
            path, [*current, derive_item_default(item_schema)]
        )

    def remove_item(self, path: str, index: int) -> bool:
        """Drop the item at ``index``; out-of-range indices are ignored."""
        current = self._current(path)
        if current is None or not 0 <= index < len(current):
            return False
        return self.overlay.update_field(
            path, [item for position, item in enumerate(current) if position != index]
        )

    def move_item(self, path: str, from_index: int, to_index: int) -> bool:
        """Move the item at ``from_index`` so it lands at ``to_index``."""
        current = self._current(path)
        if current is None or from_index == to_index:
            return False
        size = len(current)
        if not (0 <= from_index < size and 0 <= to_index < size):
            return False
        moved = current.pop(from_index)
        current.insert(to_index, moved)
        return self.overlay.update_field(path, current)

    def can_add_item(self, path: str) -> bool:
        """Return False when the array is locked or at its ``maxItems`` cap."""
        current = self._current(path)
        schema = self._schema(path)
        if schema is not None and not schema.editable:
            return False
        return _has_room(schema, len(current or ()))

    def _schema(self, path: str) -> ArrayField | None:
        return self.overlay.resolver.array_schema(
            path, self.overlay.sections.raw_sections() if self.overlay.sections else ()
        )

    def _current(self, path: str) -> list[typ.Any] | None:
        segments = split_path(path)
        if len(segments) < 3 or segments[0] != SECTIONS_PREFIX:
            logger.warning("Array path %r is not section-scoped", path)
            return None
        if self.overlay.get_value(f"{SECTIONS_PREFIX}.{segments[1]}") is None:
            logger.warning("Array path %r names an unknown section", path)
            return None
        value = self.overlay.raw_value(path)
        return list(value) if isinstance(value, list) else []


def _has_room(schema: ArrayField | None, length: int) -> bool:
    if schema is None or schema.max_items is None:
        return True
    return length < schema.max_items


__all__ = ["ArrayEditor"]
