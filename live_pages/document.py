"""Load the site document that an edit session works on.

The document is the root structured value: a ``_meta`` block (schema
version, active and available locales) and a ``pages`` map whose entries hold
ordered section lists. Documents are loaded once per edit session and never
mutated afterwards; all edits live in an overlay.
"""

from __future__ import annotations

import collections.abc as cabc
import copy
import dataclasses as dc
import json
import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ._constants import DEFAULT_LOCALE
from .paths import get_path

if typ.TYPE_CHECKING:
    from pathlib import Path


class DocumentError(ValueError):
    """Raised when a site document is missing or has an invalid shape."""


@dc.dataclass(slots=True)
class DocumentMeta:
    """Locale and versioning metadata read from a document's ``_meta`` block."""

    schema_version: int | None = None
    locale: str = DEFAULT_LOCALE
    default_locale: str = DEFAULT_LOCALE
    available_locales: list[str] = dc.field(
        default_factory=lambda: [DEFAULT_LOCALE]
    )
    site_id: str | None = None

    @classmethod
    def from_mapping(cls, payload: cabc.Mapping[str, typ.Any] | None) -> DocumentMeta:
        """Build metadata from a raw ``_meta`` mapping, applying defaults."""
        if not payload:
            return cls()
        locale = str(payload.get("locale") or DEFAULT_LOCALE)
        default_locale = str(payload.get("defaultLocale") or DEFAULT_LOCALE)
        available = payload.get("availableLocales")
        if isinstance(available, list) and available:
            locales = [str(code) for code in available]
        else:
            locales = list(dict.fromkeys([default_locale, locale]))
        version = payload.get("schemaVersion")
        site_id = payload.get("siteId")
        return cls(
            schema_version=version if isinstance(version, int) else None,
            locale=locale,
            default_locale=default_locale,
            available_locales=locales,
            site_id=str(site_id) if site_id else None,
        )


@dc.dataclass(slots=True)
class Document:
    """Immutable base document for an edit session."""

    data: dict[str, typ.Any]
    meta: DocumentMeta

    @classmethod
    def from_mapping(cls, payload: cabc.Mapping[str, typ.Any]) -> Document:
        """Validate and deep-copy ``payload`` into a document.

        Raises
        ------
        DocumentError
            If ``payload`` is not a mapping, or ``_meta`` / ``pages`` are
            present but not mappings.
        """
        if not isinstance(payload, cabc.Mapping):
            msg = "Site document must be a mapping."
            raise DocumentError(msg)
        meta = payload.get("_meta")
        if meta is not None and not isinstance(meta, cabc.Mapping):
            msg = "Site document '_meta' must be a mapping."
            raise DocumentError(msg)
        pages = payload.get("pages")
        if pages is not None and not isinstance(pages, cabc.Mapping):
            msg = "Site document 'pages' must be a mapping."
            raise DocumentError(msg)
        return cls(
            data=copy.deepcopy(dict(payload)), meta=DocumentMeta.from_mapping(meta)
        )

    def get(self, path: str) -> typ.Any:
        """Return the value at ``path`` (see :func:`live_pages.paths.get_path`)."""
        return get_path(self.data, path)

    def page_sections(self, page_type: str | None) -> list[dict[str, typ.Any]]:
        """Return a copy of the section list stored for ``page_type``.

        Falls back to the legacy top-level ``sections`` list when the page has
        no sections of its own.
        """
        sections = None
        if page_type:
            sections = get_path(self.data, f"pages.{page_type}.sections")
        if not isinstance(sections, list):
            sections = self.data.get("sections")
        if not isinstance(sections, list):
            return []
        return copy.deepcopy(sections)

    def resolve_locale(self, explicit: str | None = None) -> str:
        """Return the active locale: explicit choice, then ``_meta``, then default."""
        return explicit or self.meta.locale or DEFAULT_LOCALE

    @property
    def site_slug(self) -> str | None:
        """Slug of the site the document belongs to, when recorded."""
        slug = get_path(self.data, "site.slug")
        return slug if isinstance(slug, str) and slug else None


def load_document(path: Path) -> Document:
    """Load a site document from JSON or YAML.

    Parameters
    ----------
    path : Path
        Document file; ``.json`` files are parsed as JSON, anything else as
        YAML 1.2.

    Returns
    -------
    Document
        The validated document.

    Raises
    ------
    DocumentError
        If the file is missing, cannot be parsed, or lacks the ``_meta`` and
        ``pages`` mappings every site document carries.
    """
    if not path.exists():
        msg = f"Site document '{path}' not found."
        raise DocumentError(msg)
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix == ".json":
            loaded = json.loads(text)
        else:
            loader = YAML(typ="safe")
            loader.version = (1, 2)
            loaded = loader.load(text)
    except (ValueError, YAMLError) as exc:
        msg = f"Failed to parse site document '{path}': {exc}"
        raise DocumentError(msg) from exc
    if not isinstance(loaded, dict) or "_meta" not in loaded or "pages" not in loaded:
        msg = f"Invalid site document shape in '{path}': expected '_meta' and 'pages'."
        raise DocumentError(msg)
    return Document.from_mapping(loaded)


__all__ = ["Document", "DocumentError", "DocumentMeta", "load_document"]
