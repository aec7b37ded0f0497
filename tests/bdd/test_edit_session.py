"""Behaviour tests for editing a page in place using pytest-bdd.

These scenarios drive an :class:`~live_pages.session.EditSession` the way an
editor would: change a field, add a section, then publish or discard. The
publisher is a :class:`~live_pages.publish.FilePublisher` writing into the
pytest temporary directory, so no network access is involved.

Usage
-----
Run ``pytest tests/bdd/test_edit_session.py -v`` or filter with
``pytest -k edit_session``.
"""

from __future__ import annotations

import asyncio
import json
import typing as typ
from pathlib import Path
from textwrap import dedent

import pytest
from pytest_bdd import given, parsers, scenarios, then, when
from ruamel.yaml import YAML

from live_pages.cache import MemoryDraftCache
from live_pages.document import Document
from live_pages.publish import FilePublisher
from live_pages.schema import SiteSchema, parse_site_schema
from live_pages.session import EditSession

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "edit_session.feature"
)
scenarios(FEATURE_FILE)

HERO_TITLE = "sections.hero.title"

ScenarioState = dict[str, typ.Any]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps.

    Returns
    -------
    ScenarioState
        Mutable dictionary used to exchange state between ``given``, ``when``,
        and ``then`` steps.
    """
    return {}


def _schema() -> SiteSchema:
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    return parse_site_schema(
        loader.load(
            dedent(
                """
                sectionTypes:
                  hero:
                    displayName: Hero Section
                    singleton: true
                    schema:
                      title: {type: string, editable: true, localized: true}
                  about:
                    displayName: About Section
                    singleton: true
                    schema:
                      title: {type: string, editable: true, localized: true}
                      story: {type: richtext, editable: true, localized: true}
                    defaultData:
                      title: About Us
                      story: Tell your story here...
                pages:
                  home:
                    allowedSectionTypes: [hero, about]
                """
            )
        )
    )


@given(parsers.parse('a home page whose hero title is "{title}"'))
def given_home_page(title: str, scenario_state: ScenarioState) -> None:
    """Open an edit session on a home page holding a single hero section.

    Parameters
    ----------
    title : str
        Stored hero title.
    scenario_state : ScenarioState
        Receives the ``session`` for later steps.
    """
    document = Document.from_mapping(
        {
            "_meta": {"locale": "en", "defaultLocale": "en"},
            "site": {"slug": "acme"},
            "pages": {
                "home": {
                    "sections": [
                        {
                            "id": "hero",
                            "type": "hero",
                            "enabled": True,
                            "region": "main",
                            "order": 10,
                            "data": {"title": title},
                        }
                    ]
                }
            },
        }
    )
    scenario_state["session"] = EditSession(
        document, _schema(), cache=MemoryDraftCache()
    )


@when(parsers.parse('I switch to the "{locale}" locale'))
def when_switch_locale(locale: str, scenario_state: ScenarioState) -> None:
    """Make ``locale`` the locale edits are written into."""
    typ.cast("EditSession", scenario_state["session"]).set_locale(locale)


@when(parsers.parse('I change the hero title to "{title}"'))
def when_change_title(title: str, scenario_state: ScenarioState) -> None:
    """Edit the hero title in the active locale."""
    typ.cast("EditSession", scenario_state["session"]).update_field(HERO_TITLE, title)


@when("I add an about section")
def when_add_about(scenario_state: ScenarioState) -> None:
    """Append the about section to the page."""
    session = typ.cast("EditSession", scenario_state["session"])
    assert session.add_section("about") is not None, "expected the about section"


@when("I discard my changes")
def when_discard(scenario_state: ScenarioState) -> None:
    """Throw away every pending edit."""
    typ.cast("EditSession", scenario_state["session"]).discard()


@when("I publish the page")
def when_publish(tmp_path: Path, scenario_state: ScenarioState) -> None:
    """Publish through a file publisher and keep the written payload.

    Parameters
    ----------
    tmp_path : Path
        Root of the ``sites/`` tree the publisher writes into.
    scenario_state : ScenarioState
        Receives ``result`` and the decoded ``payload``.
    """
    session = typ.cast("EditSession", scenario_state["session"])
    result = asyncio.run(session.publish(FilePublisher(tmp_path)))
    scenario_state["result"] = result
    scenario_state["payload"] = json.loads(
        Path(result.location).read_text(encoding="utf-8")
    )


def _published_sections(scenario_state: ScenarioState) -> list[dict[str, typ.Any]]:
    payload = typ.cast("dict[str, typ.Any]", scenario_state["payload"])
    return payload["pages"]["home"]["sections"]


@then(parsers.parse('the published page lists the sections "{ids}"'))
def then_published_ids(ids: str, scenario_state: ScenarioState) -> None:
    """Compare the published section ids with a comma-separated list."""
    expected = [part.strip() for part in ids.split(",")]
    actual = [section["id"] for section in _published_sections(scenario_state)]
    assert actual == expected, f"expected sections {expected}, got {actual}"


@then(parsers.parse('the published section orders are "{orders}"'))
def then_published_orders(orders: str, scenario_state: ScenarioState) -> None:
    """Compare the published section orders with a comma-separated list."""
    expected = [int(part) for part in orders.split(",")]
    actual = [section["order"] for section in _published_sections(scenario_state)]
    assert actual == expected, f"expected orders {expected}, got {actual}"


@then(parsers.parse('the published hero title is "{title}"'))
def then_published_title(title: str, scenario_state: ScenarioState) -> None:
    """The hero title is published as a single string."""
    hero = _published_sections(scenario_state)[0]
    assert hero["data"]["title"] == title, f"unexpected title {hero['data']!r}"


@then("the published about section carries its default data")
def then_about_defaults(scenario_state: ScenarioState) -> None:
    """The about section starts from the registry defaults."""
    about = _published_sections(scenario_state)[-1]
    assert about["data"] == {
        "title": "About Us",
        "story": "Tell your story here...",
    }, f"unexpected about data {about['data']!r}"


@then(parsers.parse('the publisher received the site slug "{slug}"'))
def then_publisher_slug(slug: str, scenario_state: ScenarioState) -> None:
    """The publish call is addressed to the document's site."""
    assert scenario_state["result"].site_slug == slug


@then(parsers.parse('the hero title reads "{title}"'))
def then_title_reads(title: str, scenario_state: ScenarioState) -> None:
    """The session resolves the hero title in the active locale."""
    session = typ.cast("EditSession", scenario_state["session"])
    assert session.get_value(HERO_TITLE) == title


@then(parsers.parse('the page lists the sections "{ids}"'))
def then_page_ids(ids: str, scenario_state: ScenarioState) -> None:
    """Compare the live section ids with a comma-separated list."""
    session = typ.cast("EditSession", scenario_state["session"])
    expected = [part.strip() for part in ids.split(",")]
    assert [section.id for section in session.get_sections()] == expected


@then("no changes are pending")
def then_clean(scenario_state: ScenarioState) -> None:
    """Neither field edits nor structural changes remain."""
    session = typ.cast("EditSession", scenario_state["session"])
    assert not session.has_changes, "expected a clean session"
