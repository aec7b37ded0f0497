"""Cyclopts CLI entrypoint for editing site documents outside the browser.

The ``live-pages`` console script runs scripted edits through an edit session
and either writes the resulting publish payload to disk or posts it to the
site API. Drafts are cached between runs, so ``live-pages sections`` shows
the pending section layout and ``live-pages discard`` drops it.

Examples
--------
Apply an edit script and write the payload locally:

>>> from live_pages.cli import app
>>> app.run(
...     [
...         "apply",
...         "--document", "site-data.json",
...         "--edits", "edits.yaml",
...         "--output", "dist/site-data.json",
...     ]
... )  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import typing as typ
from pathlib import Path

import cyclopts
import msgspec
from cyclopts import App, Parameter

from ._constants import DEFAULT_PAGE_TYPE
from .cache import FileDraftCache, draft_cache_key
from .document import load_document
from .edits import apply_edit_script, load_edit_script
from .publish import HttpPublisher
from .schema import load_site_schema
from .session import EditSession
from .settings import DEFAULT_CONFIG_PATH, resolve_settings

if typ.TYPE_CHECKING:
    from .settings import EditorSettings

DEFAULT_SCHEMA = Path("config/site-schema.yaml")

app = App(name="live-pages", config=cyclopts.config.Env("LIVE_PAGES_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _open_session(
    document: Path,
    schema: Path,
    settings: EditorSettings,
    *,
    page: str,
    locale: str | None,
    context_slug: str | None,
) -> EditSession:
    session = EditSession(
        load_document(document),
        load_site_schema(schema),
        page_type=page,
        locale=locale,
        context_slug=context_slug,
        site_slug=settings.site_slug,
        site_id=settings.site_id,
        cache=FileDraftCache(settings.cache_dir),
    )
    if session.restore_draft():
        print(f"resumed draft {session.overlay.cache_key}")
    return session


@app.command(help="Apply a YAML edit script and write or publish the result.")
def apply(
    *,
    document: typ.Annotated[Path, Parameter(help="Path to the site document")],
    edits: typ.Annotated[Path, Parameter(help="Path to the YAML edit script")],
    schema: typ.Annotated[
        Path, Parameter(help="Path to the site schema")
    ] = DEFAULT_SCHEMA,
    page: typ.Annotated[str, Parameter(help="Page type to edit")] = DEFAULT_PAGE_TYPE,
    locale: typ.Annotated[
        str | None, Parameter(help="Active locale (defaults to _meta.locale)")
    ] = None,
    context_slug: typ.Annotated[
        str | None, Parameter(help="Entity slug for sub-pages such as services")
    ] = None,
    output: typ.Annotated[
        Path | None, Parameter(help="Write the publish payload to this file")
    ] = None,
    publish: typ.Annotated[
        bool, Parameter(help="Post the payload to the site API")
    ] = False,
    site_slug: typ.Annotated[
        str | None, Parameter(help="Site slug (falls back to config and site.slug)")
    ] = None,
    api_base: typ.Annotated[
        str | None, Parameter(help="Base URL of the site API")
    ] = None,
    api_token: typ.Annotated[
        str | None, Parameter(help="Bearer token for the site API")
    ] = None,
    config: typ.Annotated[
        Path, Parameter(help="Path to the settings file")
    ] = DEFAULT_CONFIG_PATH,
    save: typ.Annotated[
        bool, Parameter(help="Store the resolved settings in the settings file")
    ] = False,
) -> None:
    """Run an edit script through an edit session.

    Parameters
    ----------
    document : Path
        Site document (JSON or YAML) holding ``_meta`` and ``pages``.
    edits : Path
        YAML list of edit steps (see :mod:`live_pages.edits`).
    schema : Path, optional
        Site schema file; defaults to ``config/site-schema.yaml``.
    page : str, optional
        Page type whose sections are edited; defaults to ``home``.
    locale : str or None, optional
        Locale edits are written into and the payload is collapsed to.
    context_slug : str or None, optional
        Slug stamped onto sections added on context-scoped sub-pages.
    output : Path or None, optional
        File receiving the payload as indented JSON.
    publish : bool, optional
        Post the payload to ``{api_base}/api/sites/publish``.
    site_slug, api_base, api_token : str or None, optional
        Override the matching settings from the environment or
        ``config.toml``.
    config : Path, optional
        Settings file location.
    save : bool, optional
        Write the merged settings back to ``config`` before editing.

    Raises
    ------
    ValueError
        If neither ``--output`` nor ``--publish`` is given.
    """
    if output is None and not publish:
        msg = "Nothing to do: pass --output, --publish, or both."
        raise ValueError(msg)
    settings = resolve_settings(
        config_path=config,
        api_base=api_base,
        api_token=api_token,
        site_slug=site_slug,
        save=save,
    )
    session = _open_session(
        document,
        schema,
        settings,
        page=page,
        locale=locale,
        context_slug=context_slug,
    )
    applied = apply_edit_script(session, load_edit_script(edits))
    print(f"applied {applied} edit(s)")

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        encoded = msgspec.json.encode(session.build_payload())
        output.write_bytes(msgspec.json.format(encoded, indent=2))
        print(f"wrote {_format_path(output)}")
    if publish:
        publisher = HttpPublisher(
            api_base=settings.api_base,
            token=settings.api_token,
            timeout=settings.timeout,
        )
        result = asyncio.run(session.publish(publisher))
        print(f"published {result.site_slug or 'site'} to {result.location}")


@app.command(help="List the live sections of a page, including cached drafts.")
def sections(
    *,
    document: typ.Annotated[Path, Parameter(help="Path to the site document")],
    schema: typ.Annotated[
        Path, Parameter(help="Path to the site schema")
    ] = DEFAULT_SCHEMA,
    page: typ.Annotated[str, Parameter(help="Page type to list")] = DEFAULT_PAGE_TYPE,
    region: typ.Annotated[
        str | None, Parameter(help="Only list sections in this region")
    ] = None,
    site_slug: typ.Annotated[
        str | None, Parameter(help="Site slug used to find the cached draft")
    ] = None,
    config: typ.Annotated[
        Path, Parameter(help="Path to the settings file")
    ] = DEFAULT_CONFIG_PATH,
) -> None:
    """Print one line per live section: order, id, type and region."""
    settings = resolve_settings(config_path=config, site_slug=site_slug)
    session = _open_session(
        document, schema, settings, page=page, locale=None, context_slug=None
    )
    for section in session.get_sections(region):
        state = "" if section.enabled else " (disabled)"
        print(
            f"{section.order:>4} {section.id} [{section.type}] "
            f"{section.region or '-'}{state}"
        )


@app.command(help="Drop the cached draft for a site.")
def discard(
    *,
    site_slug: typ.Annotated[
        str | None, Parameter(help="Site slug whose draft is dropped")
    ] = None,
    config: typ.Annotated[
        Path, Parameter(help="Path to the settings file")
    ] = DEFAULT_CONFIG_PATH,
) -> None:
    """Remove the cached draft for ``site_slug`` (or the default slot)."""
    settings = resolve_settings(config_path=config, site_slug=site_slug)
    key = draft_cache_key(settings.site_slug)
    FileDraftCache(settings.cache_dir).remove(key)
    print(f"discarded {key}")


def main() -> None:
    """Invoke the Cyclopts application behind the ``live-pages`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
