"""Live section list for the page being edited.

The :class:`SectionRegistry` owns the structural truth of a page: which
sections exist and in what order. It is seeded from the base document and
mutated in place by add, remove and move operations. Field edits never touch
the registry; they live in the paired :class:`~live_pages.overlay.OverlayStore`
and are merged into each section's ``data`` at read time.
"""

from __future__ import annotations

import collections.abc as cabc
import copy
import dataclasses as dc
import logging
import time
import typing as typ

from ._constants import CONTEXT_PROPERTIES, DEFAULT_REGION, ORDER_STEP, SECTIONS_PREFIX
from .paths import deep_merge, join_path
from .schema import derive_section_data

if typ.TYPE_CHECKING:
    from .overlay import OverlayStore
    from .schema import SiteSchema

logger = logging.getLogger(__name__)

_SECTION_KEYS = frozenset({"id", "type", "enabled", "region", "order", "data"})


@dc.dataclass(slots=True)
class Section:
    """One content block instance on a page.

    Attributes
    ----------
    id : str
        Unique within the page. Singleton sections use their type as id.
    type : str
        Key into the section-type registry.
    enabled : bool
        Disabled sections are stored but not rendered.
    region : str or None
        Layout region; omitted from output when None.
    order : int or float
        Ascending sort key for rendering.
    data : dict[str, Any]
        Section content.
    context : dict[str, Any]
        Any further keys, such as the ``serviceSlug`` stamp on sub-pages.
    """

    id: str
    type: str
    enabled: bool = True
    region: str | None = None
    order: int | float = 0
    data: dict[str, typ.Any] = dc.field(default_factory=dict)
    context: dict[str, typ.Any] = dc.field(default_factory=dict)

    @classmethod
    def from_mapping(cls, payload: object) -> Section | None:
        """Build a section from raw storage, or None when ``id``/``type`` lack."""
        if not isinstance(payload, cabc.Mapping):
            return None
        section_id = payload.get("id")
        section_type = payload.get("type")
        if not isinstance(section_id, str) or not isinstance(section_type, str):
            return None
        region = payload.get("region")
        order = payload.get("order")
        data = payload.get("data")
        return cls(
            id=section_id,
            type=section_type,
            enabled=payload.get("enabled", True) is not False,
            region=region if isinstance(region, str) else None,
            order=order if isinstance(order, int | float) else 0,
            data=copy.deepcopy(dict(data)) if isinstance(data, cabc.Mapping) else {},
            context={
                key: copy.deepcopy(value)
                for key, value in payload.items()
                if key not in _SECTION_KEYS
            },
        )

    def to_dict(self) -> dict[str, typ.Any]:
        """Return the storage form of this section."""
        payload: dict[str, typ.Any] = {
            "id": self.id,
            "type": self.type,
            "enabled": self.enabled,
        }
        if self.region is not None:
            payload["region"] = self.region
        payload["order"] = self.order
        payload["data"] = copy.deepcopy(self.data)
        payload.update(copy.deepcopy(self.context))
        return payload

    def copy(self) -> Section:
        """Return a deep copy of this section."""
        return copy.deepcopy(self)


@dc.dataclass(slots=True)
class SectionAvailability:
    """Whether a section type can be added to the current page."""

    display_name: str
    description: str
    is_added: bool
    can_add: bool


class SectionRegistry:
    """Ordered, mutable list of sections for one page context.

    Binding to ``overlay`` happens on construction: the overlay resolves
    ``sections.<id>`` paths through this registry, and the registry merges
    each section's pending field edits from the overlay.
    """

    def __init__(
        self,
        schema: SiteSchema,
        overlay: OverlayStore,
        *,
        page_type: str | None = None,
        context_slug: str | None = None,
        sections: cabc.Iterable[object] | None = None,
        clock: cabc.Callable[[], float] = time.time,
    ) -> None:
        self.schema = schema
        self.overlay = overlay
        self.page_type = page_type
        self.context_slug = context_slug
        self.context_property = CONTEXT_PROPERTIES.get(page_type or "")
        self.has_structural_changes = False
        self.revision = 0
        self._clock = clock
        self._sections: list[Section] = []
        overlay.sections = self
        self.reset(sections)

    def reset(self, sections: cabc.Iterable[object] | None = None) -> None:
        """Reseed from ``sections`` or, when None, from the base document."""
        raw = (
            self.overlay.document.page_sections(self.page_type)
            if sections is None
            else sections
        )
        self._sections = [
            section
            for section in (Section.from_mapping(item) for item in raw)
            if section is not None
        ]
        self.has_structural_changes = sections is not None
        self.revision += 1

    def raw_sections(self) -> list[Section]:
        """Return the live sections without overlay edits applied."""
        return list(self._sections)

    def get_sections(self, region: str | None = None) -> list[Section]:
        """Return the live sections with pending field edits merged in.

        Parameters
        ----------
        region : str, optional
            Only return sections placed in this region.

        Returns
        -------
        list[Section]
            Copies in registry order; mutating them does not affect the
            session.
        """
        return [
            self._merged(section)
            for section in self._sections
            if not region or section.region == region
        ]

    def find(self, section_id: str) -> Section | None:
        """Return the merged live section ``section_id`` or None."""
        for section in self._sections:
            if section.id == section_id:
                return self._merged(section)
        return None

    def add_section(
        self,
        section_type: str,
        region: str = DEFAULT_REGION,
        position: int | None = None,
    ) -> Section | None:
        """Create a section of ``section_type`` and insert it.

        Unknown types and ids that already exist on the page (a singleton
        added twice) are ignored and return None. With ``position`` the
        section is inserted there and every section is renumbered to
        ``(index + 1) * 10``; otherwise it is appended with
        ``order = (count + 1) * 10``.
        """
        config = self.schema.section_type(section_type)
        if config is None:
            logger.debug("addSection ignored: unknown section type %s", section_type)
            return None
        section_id = self._new_id(section_type, singleton=config.singleton)
        if self._index_of(section_id) is not None:
            logger.debug("addSection ignored: section %s already exists", section_id)
            return None
        if config.default_data is not None:
            data = copy.deepcopy(config.default_data)
        else:
            data = derive_section_data(config.schema)
        section = Section(
            id=section_id,
            type=section_type,
            region=region,
            order=(len(self._sections) + 1) * ORDER_STEP,
            data=data,
        )
        if self.context_slug and self.context_property:
            section.context[self.context_property] = self.context_slug
        if position is None:
            self._sections.append(section)
        else:
            index = min(max(position, 0), len(self._sections))
            self._sections.insert(index, section)
            self._renumber()
        self._changed()
        logger.debug("addSection %s (%s) in %s", section_id, section_type, region)
        return section.copy()

    def remove_section(self, section_id: str) -> bool:
        """Remove ``section_id`` and purge its pending field edits."""
        index = self._index_of(section_id)
        if index is None:
            return False
        del self._sections[index]
        self.overlay.purge(join_path(SECTIONS_PREFIX, section_id))
        self._changed()
        logger.debug("removeSection %s", section_id)
        return True

    def move_section(self, section_id: str, new_position: int) -> bool:
        """Move ``section_id`` to ``new_position`` and renumber every section."""
        index = self._index_of(section_id)
        if index is None or new_position == index:
            return False
        if not 0 <= new_position < len(self._sections):
            return False
        section = self._sections.pop(index)
        self._sections.insert(new_position, section)
        self._renumber()
        self._changed()
        logger.debug("moveSection %s -> %d", section_id, new_position)
        return True

    def available_sections(self) -> dict[str, SectionAvailability]:
        """Return addability of every section type allowed on the page.

        On context-scoped sub-pages only sections stamped with the current
        context slug count as added.
        """
        relevant = self._sections
        if self.context_slug and self.context_property:
            relevant = [
                section
                for section in self._sections
                if section.context.get(self.context_property) == self.context_slug
            ]
        present = {section.type for section in relevant}
        allowed = self.schema.allowed_section_types(self.page_type)
        available: dict[str, SectionAvailability] = {}
        for key, config in self.schema.section_types.items():
            if allowed is not None and key not in allowed:
                continue
            is_added = key in present
            available[key] = SectionAvailability(
                display_name=config.display_name,
                description=config.description,
                is_added=is_added,
                can_add=not is_added if config.singleton else True,
            )
        return available

    def _new_id(self, section_type: str, *, singleton: bool) -> str:
        base = section_type if singleton else f"{section_type}-{self._suffix()}"
        if self.context_slug and self.context_property:
            base = f"{self.context_slug}-{base}"
        if singleton:
            return base
        candidate, counter = base, 1
        while self._index_of(candidate) is not None:
            candidate = f"{base}-{counter}"
            counter += 1
        return candidate

    def _suffix(self) -> int:
        return int(self._clock() * 1000)

    def _index_of(self, section_id: str) -> int | None:
        for index, section in enumerate(self._sections):
            if section.id == section_id:
                return index
        return None

    def _renumber(self) -> None:
        for index, section in enumerate(self._sections):
            section.order = (index + 1) * ORDER_STEP

    def _merged(self, section: Section) -> Section:
        merged = section.copy()
        edits = self.overlay.section_edits(section.id)
        if isinstance(edits, cabc.Mapping):
            merged.data = deep_merge(section.data, edits)
        return merged

    def _changed(self) -> None:
        self.has_structural_changes = True
        self.revision += 1
        self.overlay.persist()


__all__ = ["Section", "SectionAvailability", "SectionRegistry"]
