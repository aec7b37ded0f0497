r"""Build persistence-ready snapshots and hand them to a persistence backend.

:func:`build_publish_payload` flattens an edit session into one document: the
overlay merged onto the base document, the page's section list replaced by
the live sections, every locale map collapsed to the active locale's string
and the legacy top-level ``sections`` key removed. Publishers deliver that
document: :class:`HttpPublisher` posts it to the site API and
:class:`FilePublisher` writes it under a local ``sites/`` tree.

Example
-------
>>> from live_pages.publish import HttpPublisher
>>> publisher = HttpPublisher(api_base="https://cms.example")  # doctest: +SKIP
>>> publisher.publish(payload, site_slug="acme", site_id=None)  # doctest: +SKIP
PublishResult(site_slug='acme', location='https://cms.example/api/sites/publish', ...)
"""

from __future__ import annotations

import collections.abc as cabc
import copy
import dataclasses as dc
import logging
import typing as typ
from http import HTTPStatus

import msgspec
import requests

from ._constants import DEFAULT_LOCALE, DEFAULT_PAGE_TYPE, PUBLISH_ENDPOINT
from .locales import collapse_locale_values
from .paths import deep_merge, join_path, set_path
from .sections import Section

if typ.TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "http://localhost:8000"


class PublishError(RuntimeError):
    """Raised when a publish snapshot cannot be persisted."""


@dc.dataclass(slots=True)
class PublishResult:
    """Outcome of a successful publish.

    Attributes
    ----------
    site_slug : str | None
        Slug the snapshot was published for.
    location : str
        URL or file path that received the snapshot.
    response : dict[str, Any]
        Body returned by the backend, when it returned JSON.
    """

    site_slug: str | None
    location: str
    response: dict[str, typ.Any] = dc.field(default_factory=dict)


class Publisher(typ.Protocol):
    """Durable storage for published documents."""

    def publish(
        self,
        payload: cabc.Mapping[str, typ.Any],
        *,
        site_slug: str | None = None,
        site_id: str | None = None,
    ) -> PublishResult:
        """Persist ``payload`` or raise :class:`PublishError`."""
        ...


def build_publish_payload(
    base_document: cabc.Mapping[str, typ.Any],
    overlay: cabc.Mapping[str, typ.Any],
    page_type: str | None,
    active_locale: str,
    live_sections: cabc.Iterable[Section | cabc.Mapping[str, typ.Any]],
    *,
    default_locale: str = DEFAULT_LOCALE,
    known_locales: cabc.Collection[str] = (),
) -> dict[str, typ.Any]:
    """Return the document to persist for an edit session.

    Parameters
    ----------
    base_document : Mapping[str, Any]
        The session's immutable base document.
    overlay : Mapping[str, Any]
        Pending field edits, keyed by document path.
    page_type : str | None
        Page whose section list is replaced; ``home`` when None.
    active_locale : str
        Locale every localized value is collapsed to.
    live_sections : Iterable[Section | Mapping[str, Any]]
        Live section list with overlay edits already merged in.
    default_locale : str, optional
        Fallback locale when a value lacks ``active_locale``.
    known_locales : Collection[str], optional
        Locale codes recognised as locale-map keys. When empty any
        ``xx``/``xx-YY`` key qualifies.

    Returns
    -------
    dict[str, Any]
        A fresh document sharing no structure with the inputs.
    """
    payload = deep_merge(base_document, overlay)
    sections = [
        _flatten_section(section, active_locale, default_locale, known_locales)
        for section in live_sections
    ]
    target = join_path("pages", page_type or DEFAULT_PAGE_TYPE, "sections")
    payload = set_path(payload, target, sections)
    payload.pop("sections", None)
    return payload


def _flatten_section(
    section: Section | cabc.Mapping[str, typ.Any],
    locale: str,
    default_locale: str,
    known_locales: cabc.Collection[str],
) -> dict[str, typ.Any]:
    if isinstance(section, Section):
        raw = section.to_dict()
    else:
        raw = copy.deepcopy(dict(section))
    raw["data"] = collapse_locale_values(
        raw.get("data") or {}, locale, default_locale, known_locales
    )
    return raw


class HttpPublisher:
    """Post snapshots to the site API's publish endpoint.

    The client mirrors the request/response handling of the rest of the
    package: a reusable ``requests`` session, an optional bearer token and a
    per-request timeout. Failed requests are not retried.
    """

    default_api_base = DEFAULT_API_BASE

    def __init__(
        self,
        *,
        api_base: str = DEFAULT_API_BASE,
        token: str | None = None,
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialise the publisher.

        Parameters
        ----------
        api_base : str, optional
            Base URL of the site API. Defaults to ``DEFAULT_API_BASE``.
        token : str | None, optional
            Bearer token sent in the ``Authorization`` header when provided.
        session : requests.Session, optional
            Preconfigured session to reuse connections.
        timeout : float, optional
            Per-request timeout in seconds. Defaults to ``30.0``.
        """
        self._api_base = api_base.rstrip("/") or DEFAULT_API_BASE
        self._session = session or requests.Session()
        self.timeout = timeout
        self._headers = {
            "Accept": "application/json",
            "User-Agent": "live-pages/0.1",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    @property
    def url(self) -> str:
        """Absolute URL of the publish endpoint."""
        return f"{self._api_base}{PUBLISH_ENDPOINT}"

    def publish(
        self,
        payload: cabc.Mapping[str, typ.Any],
        *,
        site_slug: str | None = None,
        site_id: str | None = None,
    ) -> PublishResult:
        """Post ``payload`` and return the backend's acknowledgement."""
        body: dict[str, typ.Any] = {"siteData": payload, "publish": True}
        if site_slug:
            body["siteSlug"] = site_slug
        if site_id:
            body["siteId"] = site_id
        try:
            response = self._session.post(
                self.url, json=body, headers=self._headers, timeout=self.timeout
            )
        except requests.RequestException as exc:
            msg = f"Failed to reach publish endpoint '{self.url}': {exc}"
            raise PublishError(msg) from exc

        if response.status_code >= HTTPStatus.BAD_REQUEST:
            snippet = response.text[:200]
            msg = (
                f"Publishing '{site_slug or 'site'}' failed with status "
                f"{response.status_code}: {snippet}"
            )
            raise PublishError(msg)

        try:
            acknowledgement = response.json()
        except ValueError:
            acknowledgement = {}
        logger.info("published %s to %s", site_slug or "site", self.url)
        return PublishResult(
            site_slug=site_slug,
            location=self.url,
            response=acknowledgement if isinstance(acknowledgement, dict) else {},
        )


class FilePublisher:
    """Write snapshots to ``<root>/sites/<slug>/lib/site-data.json``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def path_for(self, site_slug: str) -> Path:
        """Return the data file written for ``site_slug``."""
        return self.root / "sites" / site_slug / "lib" / "site-data.json"

    def publish(
        self,
        payload: cabc.Mapping[str, typ.Any],
        *,
        site_slug: str | None = None,
        site_id: str | None = None,
    ) -> PublishResult:
        if not site_slug:
            msg = "Missing site slug; cannot choose a site data file."
            raise PublishError(msg)
        target = self.path_for(site_slug)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            encoded = msgspec.json.encode(payload)
            target.write_bytes(msgspec.json.format(encoded, indent=2))
        except OSError as exc:
            msg = f"Failed to write site data '{target}': {exc}"
            raise PublishError(msg) from exc
        logger.info("published %s to %s", site_slug, target)
        return PublishResult(site_slug=site_slug, location=str(target))


__all__ = [
    "DEFAULT_API_BASE",
    "FilePublisher",
    "HttpPublisher",
    "PublishError",
    "PublishResult",
    "Publisher",
    "build_publish_payload",
]
