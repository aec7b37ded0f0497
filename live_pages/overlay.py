"""Sparse edit overlay layered over an immutable site document.

The :class:`OverlayStore` records only the values a user changed, keyed by
the same dotted paths as the document. Reads merge the overlay over the base
document; section-scoped reads (``sections.<id>...``) go through the live
section list so added, removed and reordered sections show up immediately.
After every write the draft is persisted to a durable cache slot.
"""

from __future__ import annotations

import collections.abc as cabc
import copy
import logging
import typing as typ

from ._constants import SECTIONS_PREFIX
from .cache import decode_overlay, encode_overlay
from .locales import TranslationStatus, resolve_localized_value, with_translation
from .paths import deep_merge, get_path, join_path, patch_path, remove_path, split_path
from .schema import FieldSchema

if typ.TYPE_CHECKING:
    from .cache import DraftCache
    from .document import Document
    from .schema import SchemaNode, SchemaResolver
    from .sections import Section, SectionRegistry

logger = logging.getLogger(__name__)


class OverlayStore:
    """Hold pending field edits for one edit session.

    The store never mutates the base document. It is paired with a
    :class:`~live_pages.sections.SectionRegistry`, which binds itself to the
    store on construction so section-scoped paths can be resolved against
    the live section list.
    """

    def __init__(
        self,
        document: Document,
        resolver: SchemaResolver,
        *,
        locale: str | None = None,
        cache: DraftCache | None = None,
        cache_key: str = "preview-default",
    ) -> None:
        """Create an empty overlay for ``document``.

        Parameters
        ----------
        document : Document
            Immutable base document for the session.
        resolver : SchemaResolver
            Resolves paths to field rules (for ``localized`` handling).
        locale : str, optional
            Active locale; defaults to the document's ``_meta.locale``.
        cache : DraftCache, optional
            Durable cache receiving the draft after each edit. No caching
            happens when omitted.
        cache_key : str, optional
            Slot name used in ``cache``.
        """
        self.document = document
        self.resolver = resolver
        self.current_locale = document.resolve_locale(locale)
        self.cache = cache
        self.cache_key = cache_key
        self.sections: SectionRegistry | None = None
        self.revision = 0
        self._overlay: dict[str, typ.Any] = {}

    @property
    def default_locale(self) -> str:
        """Locale whose text backs untranslated fields."""
        return self.document.meta.default_locale

    @property
    def has_edits(self) -> bool:
        """True when at least one field edit is pending."""
        return bool(self._overlay)

    def snapshot(self) -> dict[str, typ.Any]:
        """Return a deep copy of the overlay tree."""
        return copy.deepcopy(self._overlay)

    def field_schema(self, path: str) -> SchemaNode | None:
        """Return the rule governing ``path`` against the live section list."""
        return self.resolver.field_schema(path, self._raw_sections())

    def is_field_editable(self, path: str) -> bool:
        """Return True when the rule governing ``path`` is marked editable."""
        node = self.field_schema(path)
        return isinstance(node, FieldSchema) and node.editable

    def update_field(self, path: str, value: typ.Any) -> bool:
        """Record ``value`` at ``path`` and persist the draft.

        For fields marked ``localized`` a plain value is stored into the
        field's locale map under the active locale (promoting legacy plain
        strings first); a mapping value is taken as the complete locale map.
        Edits to a single list index are recorded as index-wise patches, so
        sibling items are never lost.

        Returns
        -------
        bool
            False when the edit was ignored: the path names no live section,
            its field rule is not ``editable`` or a string exceeds the rule's
            ``maxLength``.
        """
        segments = split_path(path)
        if not segments:
            return False
        if segments[0] == SECTIONS_PREFIX and (
            len(segments) < 2 or self._live_section(segments[1]) is None
        ):
            logger.debug("updateField ignored: no live section for %s", path)
            return False
        node = self.field_schema(path)
        if isinstance(node, FieldSchema):
            if not node.editable:
                logger.debug("updateField ignored: %s is not editable", path)
                return False
            if not _within_max_length(node, value):
                logger.debug("updateField ignored: %s exceeds maxLength", path)
                return False
            if node.localized and not isinstance(value, cabc.Mapping):
                value = with_translation(
                    self.raw_value(path),
                    self.current_locale,
                    value,
                    self.default_locale,
                )
        self._overlay = patch_path(self._overlay, path, value)
        self.revision += 1
        logger.debug("updateField %s = %r", path, value)
        self.persist()
        return True

    def raw_value(self, path: str) -> typ.Any:
        """Return the stored value at ``path`` with overlay edits applied.

        Localized values come back unresolved (plain string or locale map).
        """
        segments = split_path(path)
        if not segments:
            return None
        if segments[0] == SECTIONS_PREFIX:
            if len(segments) < 2:
                return None
            section = self._live_section(segments[1])
            if section is None:
                return None
            if len(segments) == 2:
                return section.data
            return get_path(section.data, join_path(*segments[2:]))
        edited = get_path(self._overlay, path)
        base = self.document.get(path)
        if edited is None:
            return copy.deepcopy(base)
        return deep_merge(base, edited)

    def get_value(self, path: str) -> typ.Any:
        """Return the effective value at ``path``.

        ``sections.<id>`` returns the whole merged section. Localized fields
        resolve to the active locale's string with default-locale fallback.
        Unresolvable paths return None.
        """
        segments = split_path(path)
        if len(segments) == 2 and segments[0] == SECTIONS_PREFIX:
            return self._live_section(segments[1])
        raw = self.raw_value(path)
        node = self.field_schema(path)
        if isinstance(node, FieldSchema) and node.localized:
            return resolve_localized_value(
                raw, self.current_locale, self.default_locale
            ).value
        return raw

    def translation_status(self, path: str) -> TranslationStatus:
        """Return translation metadata for the field at ``path``."""
        raw = self.raw_value(path)
        node = self.field_schema(path)
        if isinstance(node, FieldSchema) and node.localized:
            return resolve_localized_value(
                raw, self.current_locale, self.default_locale
            )
        text = raw if isinstance(raw, str) else ("" if raw is None else str(raw))
        return TranslationStatus(
            value=text,
            is_translated=True,
            is_fallback=False,
            available_locales=[self.default_locale],
        )

    def section_edits(self, section_id: str) -> typ.Any:
        """Return the overlay subtree recorded for ``section_id`` (or None)."""
        return get_path(self._overlay, join_path(SECTIONS_PREFIX, section_id))

    def purge(self, path: str) -> None:
        """Drop every pending edit under ``path``."""
        pruned = remove_path(self._overlay, path)
        if pruned is self._overlay:
            return
        self._overlay = pruned
        self.revision += 1
        logger.debug("purged overlay entries under %s", path)

    def discard(self) -> None:
        """Clear all pending edits and the durable cache slot."""
        self._overlay = {}
        self.revision += 1
        if self.cache is not None:
            self.cache.remove(self.cache_key)

    def rebase(self, document: Document) -> None:
        """Adopt ``document`` as the new base and drop all pending edits."""
        self.document = document
        self.discard()

    def persist(self) -> None:
        """Write the current draft to the durable cache slot."""
        if self.cache is None:
            return
        draft = {
            "overlay": encode_overlay(self._overlay),
            "sections": [section.to_dict() for section in self._raw_sections()],
        }
        self.cache.save(self.cache_key, draft)

    def restore(self) -> list[dict[str, typ.Any]] | None:
        """Load the cached draft into the overlay.

        Returns
        -------
        list[dict[str, Any]] or None
            The cached live section list for the registry to adopt, or None
            when no draft is cached.
        """
        if self.cache is None:
            return None
        draft = self.cache.load(self.cache_key)
        if draft is None:
            return None
        overlay = decode_overlay(draft.get("overlay") or {})
        self._overlay = overlay if isinstance(overlay, dict) else {}
        self.revision += 1
        sections = draft.get("sections")
        logger.debug("restored draft %s", self.cache_key)
        return sections if isinstance(sections, list) else None

    def _raw_sections(self) -> list[Section]:
        return self.sections.raw_sections() if self.sections is not None else []

    def _live_section(self, section_id: str) -> Section | None:
        if self.sections is None:
            return None
        return self.sections.find(section_id)


def _within_max_length(node: FieldSchema, value: typ.Any) -> bool:
    if node.max_length is None:
        return True
    texts = value.values() if isinstance(value, cabc.Mapping) else (value,)
    return all(
        not isinstance(text, str) or len(text) <= node.max_length for text in texts
    )


__all__ = ["OverlayStore"]
