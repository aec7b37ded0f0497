"""Edit session façade wiring the document, overlay, sections and publishers.

An :class:`EditSession` is what hosts interact with: it owns one base
document, the overlay of pending field edits, the live section registry and
the array editor, and turns them into a publish snapshot on demand.

Examples
--------
>>> session = EditSession(document, schema, page_type="home")  # doctest: +SKIP
>>> session.update_field("sections.hero.title", "Hi")  # doctest: +SKIP
>>> session.add_section("about")  # doctest: +SKIP
>>> asyncio.run(session.publish())  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import logging
import time
import typing as typ

from ._constants import DEFAULT_PAGE_TYPE, DEFAULT_REGION
from .arrays import ArrayEditor
from .cache import draft_cache_key
from .document import Document
from .locales import with_translation
from .overlay import OverlayStore
from .publish import PublishError, build_publish_payload
from .schema import FieldSchema, SchemaResolver
from .sections import SectionRegistry

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .cache import DraftCache
    from .locales import TranslationStatus
    from .publish import Publisher, PublishResult
    from .schema import SchemaNode, SiteSchema
    from .sections import Section, SectionAvailability

logger = logging.getLogger(__name__)


@dc.dataclass(slots=True)
class PublishSnapshot:
    """Publish payload captured at a point in the session's history."""

    payload: dict[str, typ.Any]
    revision: tuple[int, int]
    site_slug: str | None
    site_id: str | None


class EditSession:
    """One editor's working state for a single page of a site document."""

    def __init__(
        self,
        document: Document,
        schema: SiteSchema,
        *,
        page_type: str = DEFAULT_PAGE_TYPE,
        locale: str | None = None,
        context_slug: str | None = None,
        site_slug: str | None = None,
        site_id: str | None = None,
        cache: DraftCache | None = None,
        publisher: Publisher | None = None,
        clock: cabc.Callable[[], float] = time.time,
    ) -> None:
        """Create a session over ``document``.

        Parameters
        ----------
        document : Document
            Base document; never mutated by the session.
        schema : SiteSchema
            Site-level field rules and the section/page registries.
        page_type : str, optional
            Page being edited. Defaults to ``home``.
        locale : str, optional
            Active locale; falls back to ``_meta.locale``.
        context_slug : str, optional
            Slug of the entity a sub-page (such as ``service-detail``)
            renders; stamped onto sections added there.
        site_slug, site_id : str, optional
            Identify the site towards the publisher and the draft cache.
            Default to ``site.slug`` and ``_meta.siteId`` from the document.
        cache : DraftCache, optional
            Durable draft storage; drafts are not kept when omitted.
        publisher : Publisher, optional
            Default persistence backend for :meth:`publish`.
        clock : Callable[[], float], optional
            Time source for generated section ids.
        """
        self.schema = schema
        self.page_type = page_type
        self.site_slug = site_slug or document.site_slug
        self.site_id = site_id or document.meta.site_id
        self.publisher = publisher
        self.is_editing = False
        self.sidebar_open = False
        self.overlay = OverlayStore(
            document,
            SchemaResolver(schema),
            locale=locale,
            cache=cache,
            cache_key=draft_cache_key(self.site_slug),
        )
        self.sections = SectionRegistry(
            schema,
            self.overlay,
            page_type=page_type,
            context_slug=context_slug,
            clock=clock,
        )
        self.arrays = ArrayEditor(self.overlay)

    @property
    def document(self) -> Document:
        return self.overlay.document

    @property
    def locale(self) -> str:
        return self.overlay.current_locale

    @property
    def revision(self) -> tuple[int, int]:
        """Changes whenever a field edit or structural operation happens."""
        return (self.overlay.revision, self.sections.revision)

    @property
    def has_changes(self) -> bool:
        return self.overlay.has_edits or self.sections.has_structural_changes

    def set_locale(self, locale: str) -> None:
        """Switch the locale that reads resolve to and edits write into."""
        self.overlay.current_locale = locale

    # Field edits

    def get_value(self, path: str) -> typ.Any:
        return self.overlay.get_value(path)

    def update_field(self, path: str, value: typ.Any) -> bool:
        return self.overlay.update_field(path, value)

    def is_field_editable(self, path: str) -> bool:
        return self.overlay.is_field_editable(path)

    def field_schema(self, path: str) -> SchemaNode | None:
        return self.overlay.field_schema(path)

    def translation_status(self, path: str) -> TranslationStatus:
        return self.overlay.translation_status(path)

    def create_translation(self, path: str, locale: str, value: str) -> None:
        """Store ``value`` as the ``locale`` translation of a localized field.

        A plain stored string is promoted to a locale map seeded with the
        default locale first. Fields not marked ``localized`` are left alone.
        """
        node = self.overlay.field_schema(path)
        if not (isinstance(node, FieldSchema) and node.localized):
            return
        values = with_translation(
            self.overlay.raw_value(path), locale, value, self.overlay.default_locale
        )
        self.overlay.update_field(path, values)

    # Section structure

    def get_sections(self, region: str | None = None) -> list[Section]:
        return self.sections.get_sections(region)

    def add_section(
        self,
        section_type: str,
        region: str = DEFAULT_REGION,
        position: int | None = None,
    ) -> Section | None:
        return self.sections.add_section(section_type, region, position)

    def remove_section(self, section_id: str) -> bool:
        return self.sections.remove_section(section_id)

    def move_section(self, section_id: str, new_position: int) -> bool:
        return self.sections.move_section(section_id, new_position)

    def available_sections(self) -> dict[str, SectionAvailability]:
        return self.sections.available_sections()

    # Arrays

    def add_item(self, path: str) -> bool:
        return self.arrays.add_item(path)

    def remove_item(self, path: str, index: int) -> bool:
        return self.arrays.remove_item(path, index)

    def move_item(self, path: str, from_index: int, to_index: int) -> bool:
        return self.arrays.move_item(path, from_index, to_index)

    def can_add_item(self, path: str) -> bool:
        return self.arrays.can_add_item(path)

    # Drafts, discard and publish

    def restore_draft(self) -> bool:
        """Adopt the cached draft for this site, when one exists."""
        if self.overlay.cache is None:
            return False
        if self.overlay.cache.load(self.overlay.cache_key) is None:
            return False
        sections = self.overlay.restore()
        if sections is not None:
            self.sections.reset(sections)
        logger.info("restored draft %s", self.overlay.cache_key)
        return True

    def discard(self) -> None:
        """Drop every pending edit and reseed the sections from the document."""
        self.overlay.discard()
        self.sections.reset()
        logger.info("discarded draft %s", self.overlay.cache_key)

    def build_payload(self) -> dict[str, typ.Any]:
        """Return the document that publishing would persist right now."""
        meta = self.document.data.get("_meta")
        explicit = isinstance(meta, dict) and "availableLocales" in meta
        return build_publish_payload(
            self.document.data,
            self.overlay.snapshot(),
            self.page_type,
            self.locale,
            self.sections.get_sections(),
            default_locale=self.overlay.default_locale,
            known_locales=self.document.meta.available_locales if explicit else (),
        )

    def prepare_publish(self) -> PublishSnapshot:
        """Capture the payload and revision that a publish will send."""
        return PublishSnapshot(
            payload=self.build_payload(),
            revision=self.revision,
            site_slug=self.site_slug,
            site_id=self.site_id,
        )

    def complete_publish(self, snapshot: PublishSnapshot) -> bool:
        """Rebase on a successfully published snapshot.

        Returns False, keeping the overlay and draft, when edits happened
        after the snapshot was taken.
        """
        if snapshot.revision != self.revision:
            logger.info("edits made during publish remain pending")
            return False
        self.overlay.rebase(Document.from_mapping(snapshot.payload))
        self.sections.reset()
        return True

    async def publish(self, publisher: Publisher | None = None) -> PublishResult:
        """Persist the current state through ``publisher``.

        The payload is captured before the first suspension point; edits made
        while the request is in flight stay pending. A failed publish raises
        :class:`~live_pages.publish.PublishError` and leaves the overlay and
        the cached draft untouched.
        """
        backend = publisher or self.publisher
        if backend is None:
            msg = "No publisher configured for this session."
            raise PublishError(msg)
        snapshot = self.prepare_publish()
        result = await asyncio.to_thread(
            backend.publish,
            snapshot.payload,
            site_slug=snapshot.site_slug,
            site_id=snapshot.site_id,
        )
        self.complete_publish(snapshot)
        return result


__all__ = ["EditSession", "PublishSnapshot"]
