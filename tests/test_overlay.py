"""Unit tests for the sparse edit overlay."""

from __future__ import annotations

import typing as typ

import pytest

from live_pages.overlay import OverlayStore
from live_pages.schema import SchemaResolver
from live_pages.sections import Section, SectionRegistry

if typ.TYPE_CHECKING:
    from live_pages.cache import MemoryDraftCache
    from live_pages.document import Document
    from live_pages.schema import SiteSchema


def _store(
    schema: SiteSchema,
    document: Document,
    cache: MemoryDraftCache | None = None,
    locale: str | None = None,
) -> OverlayStore:
    overlay = OverlayStore(
        document,
        SchemaResolver(schema),
        locale=locale,
        cache=cache,
        cache_key="preview-acme",
    )
    SectionRegistry(schema, overlay, page_type="home")
    return overlay


@pytest.fixture
def store(
    site_schema: SiteSchema, base_document: Document, draft_cache: MemoryDraftCache
) -> OverlayStore:
    """Return an overlay bound to the home page sections."""
    return _store(site_schema, base_document, draft_cache)


def test_localized_edit_promotes_plain_string(
    site_schema: SiteSchema, base_document: Document
) -> None:
    """Editing a legacy string in another locale should keep the original."""
    overlay = _store(site_schema, base_document, locale="fr")

    overlay.update_field("site.brand", "Acme FR")

    assert overlay.raw_value("site.brand") == {"en": "Acme", "fr": "Acme FR"}, (
        "expected the plain string promoted into a locale map"
    )
    assert overlay.get_value("site.brand") == "Acme FR", "expected French text"
    assert base_document.get("site.brand") == "Acme", "expected base untouched"


def test_unlocalized_edit_stores_value_as_is(store: OverlayStore) -> None:
    """Fields without ``localized`` store the raw value."""
    store.update_field("sections.hero.subtitle", "New subtitle")

    assert store.raw_value("sections.hero.subtitle") == "New subtitle"
    assert store.has_edits, "expected a pending edit"


def test_mapping_value_replaces_locale_map(store: OverlayStore) -> None:
    """A mapping written to a localized field is the complete map."""
    store.update_field("sections.hero.title", {"en": "Hi", "fr": "Salut"})

    assert store.raw_value("sections.hero.title") == {"en": "Hi", "fr": "Salut"}


def test_get_value_resolves_section_locale_maps(
    site_schema: SiteSchema, base_document: Document
) -> None:
    """Localized section fields resolve to the active locale."""
    overlay = _store(site_schema, base_document, locale="fr")

    assert overlay.get_value("sections.services.title") == "Prestations"
    assert overlay.get_value("sections.hero.title") == "Welcome", (
        "expected default-locale fallback for untranslated text"
    )


def test_first_item_edit_keeps_siblings(store: OverlayStore) -> None:
    """Editing item 0 must not drop item 1 or the edited item's other fields."""
    store.update_field("sections.services.items.0.price", "$9")

    items = store.raw_value("sections.services.items")

    assert items == [
        {"name": "Audit", "price": "$9"},
        {"name": "Payroll", "price": "$2"},
    ], f"unexpected items {items!r}"


def test_get_value_returns_merged_section(store: OverlayStore) -> None:
    """``sections.<id>`` should return the whole section with edits merged."""
    store.update_field("sections.hero.subtitle", "Edited")

    section = store.get_value("sections.hero")

    assert isinstance(section, Section), f"expected a Section, got {section!r}"
    assert section.data["subtitle"] == "Edited", "expected the edit merged in"
    assert section.data["title"] == "Welcome", "expected untouched fields kept"
    assert store.get_value("sections.ghost") is None, "expected unknown ids None"


def test_translation_status_for_localized_and_plain_fields(
    site_schema: SiteSchema, base_document: Document
) -> None:
    """Status should reflect fallback for localized fields only."""
    overlay = _store(site_schema, base_document, locale="fr")

    title = overlay.translation_status("sections.hero.title")
    subtitle = overlay.translation_status("sections.hero.subtitle")

    assert title.is_fallback, "expected the hero title to fall back to English"
    assert not title.is_translated, "expected no French hero title"
    assert subtitle.is_translated, "expected unlocalized fields to count as done"
    assert subtitle.value == "Hello there", f"unexpected value {subtitle.value!r}"


def test_edits_persist_and_restore(
    site_schema: SiteSchema, base_document: Document, draft_cache: MemoryDraftCache
) -> None:
    """A fresh store should pick up the cached draft."""
    first = _store(site_schema, base_document, draft_cache)
    first.update_field("sections.services.items.1.name", "Bookkeeping")

    second = _store(site_schema, base_document, draft_cache)
    sections = second.restore()

    assert sections is not None, "expected the cached section list"
    assert [item["id"] for item in sections] == ["hero", "services"]
    second.sections.reset(sections)  # type: ignore[union-attr]
    assert second.raw_value("sections.services.items") == [
        {"name": "Audit", "price": "$1"},
        {"name": {"en": "Bookkeeping"}, "price": "$2"},
    ], "expected the index-wise edit restored"


def test_restore_without_draft(store: OverlayStore) -> None:
    """Nothing cached means nothing restored."""
    assert store.restore() is None


def test_discard_clears_edits_and_cache(
    store: OverlayStore, draft_cache: MemoryDraftCache
) -> None:
    """Discarding should drop pending edits and the cached draft."""
    store.update_field("sections.hero.subtitle", "Edited")
    assert "preview-acme" in draft_cache, "expected the draft to be cached"

    store.discard()

    assert not store.has_edits, "expected no pending edits"
    assert "preview-acme" not in draft_cache, "expected the cache slot removed"
    assert store.get_value("sections.hero.subtitle") == "Hello there"


def test_empty_path_is_ignored(store: OverlayStore) -> None:
    """Writes to an empty path are dropped."""
    store.update_field("", "x")

    assert not store.has_edits, "expected nothing recorded"
    assert store.revision == 0, "expected the revision unchanged"


def test_edits_to_missing_sections_are_ignored(
    store: OverlayStore, draft_cache: MemoryDraftCache
) -> None:
    """Edits addressed to sections not on the page leave no trace."""
    assert not store.update_field("sections.ghost.title", "boo"), (
        "expected the edit to be rejected"
    )
    assert not store.has_edits, "expected nothing recorded"
    assert "preview-acme" not in draft_cache, "expected no draft written"


def test_edit_before_add_does_not_leak_into_new_section(store: OverlayStore) -> None:
    """A section added later starts from its defaults, not earlier writes."""
    store.update_field("sections.about.title", "stale")
    store.sections.add_section("about")  # type: ignore[union-attr]

    assert store.get_value("sections.about.title") == "About Us", (
        "expected the default title"
    )


@pytest.mark.parametrize(
    ("path", "editable"),
    [
        ("site.brand", True),
        ("site.slug", False),
        ("sections.hero.primaryCta.href", False),
        ("sections.services.items.0.price", True),
        ("sections.hero.primaryCta", False),
        ("sections.ghost.title", False),
    ],
)
def test_is_field_editable(store: OverlayStore, path: str, editable: bool) -> None:
    """Only field rules marked ``editable`` accept edits."""
    assert store.is_field_editable(path) is editable, (
        f"unexpected editability for {path}"
    )


def test_non_editable_fields_reject_writes(store: OverlayStore) -> None:
    """Locked fields such as the site slug keep their stored value."""
    assert not store.update_field("site.slug", "hijacked")

    assert store.get_value("site.slug") == "acme", "expected the slug unchanged"
    assert not store.has_edits, "expected nothing recorded"


def test_strings_longer_than_max_length_are_rejected(store: OverlayStore) -> None:
    """Text beyond ``maxLength`` is dropped; text at the limit is stored."""
    assert not store.update_field("sections.hero.title", "x" * 101)
    assert not store.update_field("sections.hero.title", {"en": "ok", "fr": "y" * 101})
    assert store.get_value("sections.hero.title") == "Welcome", (
        "expected the stored title kept"
    )

    assert store.update_field("sections.hero.title", "x" * 100)
    assert store.get_value("sections.hero.title") == "x" * 100
