"""Shared fixtures: a compact site schema, a two-page document and sessions."""

from __future__ import annotations

import typing as typ
from textwrap import dedent

import pytest
from ruamel.yaml import YAML

from live_pages.cache import MemoryDraftCache
from live_pages.document import Document
from live_pages.schema import SiteSchema, parse_site_schema
from live_pages.session import EditSession

FIXED_CLOCK = 1_700_000_000.0

SCHEMA_YAML = dedent(
    """
    _meta:
      schemaVersion: 1
    site:
      brand: {type: string, editable: true, localized: true, maxLength: 50}
      slug: {type: string, editable: false}
    features:
      blogEnabled: {type: boolean, editable: true}
    sectionTypes:
      hero:
        displayName: Hero Section
        description: Main banner
        singleton: true
        schema:
          title: {type: string, editable: true, localized: true, maxLength: 100}
          subtitle: {type: string, editable: true}
          primaryCta:
            label: {type: string, editable: true, localized: true}
            href: {type: string, editable: false}
      about:
        displayName: About Section
        description: About the business
        singleton: true
        schema:
          title: {type: string, editable: true, localized: true}
          story: {type: richtext, editable: true, localized: true}
        defaultData:
          title: About Us
          story: Tell your story here...
      services:
        displayName: Services Section
        description: Services you offer
        singleton: true
        schema:
          title: {type: string, editable: true, localized: true}
          items:
            type: array
            editable: true
            maxItems: 3
            itemSchema:
              name: {type: string, editable: true, localized: true}
              price: {type: string, editable: true}
              contactEmail: {type: string, editable: true}
              featured: {type: boolean, editable: true}
              rating: {type: number, editable: true}
          tags: {type: array, editable: true}
      banner:
        displayName: Banner
        description: Repeatable promotional strip
        singleton: false
        region: top
        schema:
          headline: {type: string, editable: true, localized: true}
          accent: {type: color, editable: true}
      serviceHero:
        displayName: Service Hero
        description: Service page header
        singleton: true
        schema:
          title: {type: string, editable: true, localized: true}
        defaultData:
          title: Service Name
    pages:
      home:
        allowedSectionTypes: [hero, about, services, banner]
      service-detail:
        allowedSectionTypes: [serviceHero]
    """
).strip()


def document_payload() -> dict[str, typ.Any]:
    """Return a fresh base document with a home page and a service sub-page."""
    return {
        "_meta": {
            "schemaVersion": 1,
            "locale": "en",
            "defaultLocale": "en",
            "availableLocales": ["en", "fr"],
            "siteId": "site_acme",
        },
        "site": {"brand": "Acme", "slug": "acme"},
        "features": {"blogEnabled": False},
        "pages": {
            "home": {
                "sections": [
                    {
                        "id": "hero",
                        "type": "hero",
                        "enabled": True,
                        "region": "main",
                        "order": 10,
                        "data": {
                            "title": "Welcome",
                            "subtitle": "Hello there",
                            "primaryCta": {"label": "Go", "href": "#contact"},
                        },
                    },
                    {
                        "id": "services",
                        "type": "services",
                        "enabled": True,
                        "region": "main",
                        "order": 20,
                        "data": {
                            "title": {"en": "Services", "fr": "Prestations"},
                            "items": [
                                {"name": "Audit", "price": "$1"},
                                {"name": "Payroll", "price": "$2"},
                            ],
                            "tags": ["tax"],
                        },
                    },
                ]
            },
            "service-detail": {
                "sections": [
                    {
                        "id": "web-serviceHero",
                        "type": "serviceHero",
                        "enabled": True,
                        "order": 10,
                        "serviceSlug": "web",
                        "data": {"title": "Web"},
                    }
                ]
            },
        },
    }


@pytest.fixture
def site_schema() -> SiteSchema:
    """Parse the compact test schema."""
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    return parse_site_schema(loader.load(SCHEMA_YAML))


@pytest.fixture
def base_document() -> Document:
    """Return the base document used across the session tests."""
    return Document.from_mapping(document_payload())


@pytest.fixture
def draft_cache() -> MemoryDraftCache:
    """Return an empty in-memory draft cache."""
    return MemoryDraftCache()


@pytest.fixture
def make_session(
    site_schema: SiteSchema, base_document: Document, draft_cache: MemoryDraftCache
) -> typ.Callable[..., EditSession]:
    """Return a factory building sessions with a fixed clock and shared cache."""

    def _make(**kwargs: typ.Any) -> EditSession:
        kwargs.setdefault("cache", draft_cache)
        kwargs.setdefault("clock", lambda: FIXED_CLOCK)
        return EditSession(base_document, site_schema, **kwargs)

    return _make
