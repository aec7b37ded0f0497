"""In-place editing engine for schema-described site documents.

This package layers pending edits over an immutable site document, keeps the
live section layout of a page, resolves localized values, and flattens the
result into a publish-ready snapshot.

Exports
-------
- ``EditSession``: façade wiring the overlay, sections and array editor.
- ``load_document`` / ``load_site_schema``: read the inputs of a session.
- ``app``: Cyclopts application behind the ``live-pages`` command.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from live_pages import EditSession, load_document, load_site_schema
>>> session = EditSession(
...     load_document(Path("site-data.json")),
...     load_site_schema(Path("config/site-schema.yaml")),
... )  # doctest: +SKIP
>>> session.update_field("sections.hero.title", "Hi")  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main
from .document import Document, load_document
from .publish import FilePublisher, HttpPublisher, PublishError, build_publish_payload
from .schema import load_site_schema
from .session import EditSession

__all__ = [
    "Document",
    "EditSession",
    "FilePublisher",
    "HttpPublisher",
    "PublishError",
    "app",
    "build_publish_payload",
    "load_document",
    "load_site_schema",
    "main",
]
