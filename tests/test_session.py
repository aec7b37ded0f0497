"""Unit tests for the edit session façade."""

from __future__ import annotations

import asyncio
import typing as typ

import pytest

from live_pages.publish import FilePublisher, PublishError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture

    from live_pages.cache import MemoryDraftCache
    from live_pages.session import EditSession

    MakeSession = typ.Callable[..., EditSession]


def test_session_identity_defaults_from_document(make_session: MakeSession) -> None:
    """Slug and id fall back to the document."""
    session = make_session()

    assert session.site_slug == "acme", f"unexpected slug {session.site_slug!r}"
    assert session.site_id == "site_acme", f"unexpected id {session.site_id!r}"
    assert session.overlay.cache_key == "preview-acme", "expected a per-site slot"
    assert not session.has_changes, "expected a clean session"


def test_edit_then_add_then_publish_payload(make_session: MakeSession) -> None:
    """Field and structural edits both reach the payload."""
    session = make_session()

    session.update_field("sections.hero.title", "Hi")
    session.add_section("about")
    payload = session.build_payload()

    sections = payload["pages"]["home"]["sections"]
    assert [s["id"] for s in sections] == ["hero", "services", "about"]
    assert [s["order"] for s in sections] == [10, 20, 30]
    assert sections[0]["data"]["title"] == "Hi", "expected the flattened edit"
    assert sections[1]["data"]["title"] == "Services", "expected English text"
    assert sections[2]["data"] == {
        "title": "About Us",
        "story": "Tell your story here...",
    }, "expected registry defaults"
    assert session.document.get("pages.home.sections.0.data.title") == "Welcome", (
        "expected the base document untouched"
    )


def test_locale_switch_changes_reads_and_writes(make_session: MakeSession) -> None:
    """Reads and writes follow the active locale."""
    session = make_session()
    session.set_locale("fr")

    session.update_field("sections.hero.title", "Salut")

    assert session.get_value("sections.services.title") == "Prestations"
    assert session.overlay.raw_value("sections.hero.title") == {
        "en": "Welcome",
        "fr": "Salut",
    }, "expected the English text kept alongside the translation"
    hero = session.build_payload()["pages"]["home"]["sections"][0]
    assert hero["data"]["title"] == "Salut", "expected the payload in French"


def test_create_translation(make_session: MakeSession) -> None:
    """Translations only apply to localized fields."""
    session = make_session()

    session.create_translation("sections.hero.title", "fr", "Bonjour")
    session.create_translation("sections.hero.subtitle", "fr", "Ignored")

    assert session.overlay.raw_value("sections.hero.title") == {
        "en": "Welcome",
        "fr": "Bonjour",
    }
    assert session.get_value("sections.hero.subtitle") == "Hello there", (
        "expected unlocalized fields to be left alone"
    )
    assert session.translation_status("sections.hero.title").is_translated, (
        "expected the English entry to count as translated"
    )


def test_restore_draft(
    make_session: MakeSession, draft_cache: MemoryDraftCache
) -> None:
    """A new session over the same cache resumes the draft."""
    first = make_session()
    first.update_field("sections.hero.title", "Hi")
    first.add_section("about")

    second = make_session()

    assert second.restore_draft(), "expected a draft to be found"
    assert second.get_value("sections.hero.title") == "Hi"
    assert [s.id for s in second.get_sections()] == ["hero", "services", "about"]
    assert second.has_changes, "expected the restored draft to count as changes"
    assert make_session(site_slug="other").restore_draft() is False, (
        "expected other sites to use their own slot"
    )


def test_discard_restores_document(
    make_session: MakeSession, draft_cache: MemoryDraftCache
) -> None:
    """Discarding drops edits, structure changes and the cached draft."""
    session = make_session()
    session.update_field("sections.hero.title", "Hi")
    session.remove_section("services")

    session.discard()

    assert session.get_value("sections.hero.title") == "Welcome"
    assert [s.id for s in session.get_sections()] == ["hero", "services"]
    assert not session.has_changes, "expected a clean session"
    assert "preview-acme" not in draft_cache, "expected the draft removed"


def test_publish_rebases_on_success(make_session: MakeSession, tmp_path: Path) -> None:
    """A successful publish adopts the payload as the new base."""
    session = make_session()
    session.update_field("sections.hero.title", "Hi")
    session.add_section("about")

    result = asyncio.run(session.publish(FilePublisher(tmp_path)))

    assert result.site_slug == "acme", "expected the document slug"
    assert not session.has_changes, "expected pending edits cleared"
    assert session.document.get("pages.home.sections.0.data.title") == "Hi", (
        "expected the published payload to be the new base"
    )
    assert [s.id for s in session.get_sections()] == ["hero", "services", "about"]


def test_publish_failure_keeps_edits(
    make_session: MakeSession, draft_cache: MemoryDraftCache, mocker: MockerFixture
) -> None:
    """A failed publish leaves the overlay and the cached draft in place."""
    session = make_session()
    session.update_field("sections.hero.title", "Hi")
    publisher = mocker.Mock()
    publisher.publish.side_effect = PublishError("backend down")

    with pytest.raises(PublishError, match="backend down"):
        asyncio.run(session.publish(publisher))

    assert session.get_value("sections.hero.title") == "Hi", "expected edits kept"
    assert "preview-acme" in draft_cache, "expected the draft kept"
    publisher.publish.assert_called_once()
    assert publisher.publish.call_args.kwargs == {
        "site_slug": "acme",
        "site_id": "site_acme",
    }, "expected the site identity passed through"


def test_publish_without_publisher(make_session: MakeSession) -> None:
    """Publishing needs a backend."""
    with pytest.raises(PublishError, match="No publisher"):
        asyncio.run(make_session().publish())


def test_edits_during_publish_stay_pending(make_session: MakeSession) -> None:
    """Edits made after the snapshot survive the publish completion."""
    session = make_session()
    session.update_field("sections.hero.title", "Hi")
    snapshot = session.prepare_publish()

    session.update_field("sections.hero.subtitle", "Later")

    assert not session.complete_publish(snapshot), "expected no rebase"
    assert session.get_value("sections.hero.subtitle") == "Later"
    assert session.get_value("sections.hero.title") == "Hi"


def test_array_delegates(make_session: MakeSession) -> None:
    """Array operations are reachable through the session."""
    session = make_session()

    assert session.add_item("sections.services.items")
    assert not session.can_add_item("sections.services.items")
    assert session.move_item("sections.services.items", 2, 0)
    assert session.remove_item("sections.services.items", 1)
    names = [
        item["name"] for item in session.get_value("sections.services.items")
    ]
    assert names == ["Placeholder Name", "Payroll"], f"unexpected names {names!r}"


def test_field_editability_is_exposed(make_session: MakeSession) -> None:
    """The session reports editability and whether an edit was taken."""
    session = make_session()

    assert session.is_field_editable("sections.hero.title"), "expected editable"
    assert not session.is_field_editable("site.slug"), "expected a locked slug"
    assert not session.update_field("site.slug", "other"), "expected a refusal"
    assert session.update_field("sections.hero.title", "Hi"), "expected success"
    assert session.has_changes, "expected the accepted edit pending"
