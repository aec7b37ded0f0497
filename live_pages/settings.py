"""Editor settings resolved from CLI options, environment and ``config.toml``.

Settings live in ``~/.config/live-pages/config.toml`` (override the location
with ``LIVE_PAGES_CONFIG_FILE``)::

    [publish]
    api_base = "https://cms.example"
    api_token = "..."
    site_slug = "techflow"
    site_id = "site_123"
    timeout = 30.0

    [cache]
    directory = "~/.cache/live-pages"

Each value is taken from the first source that provides it: an explicit
argument, the matching ``LIVE_PAGES_*`` environment variable, the config
file, then the built-in default.
"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ
from pathlib import Path

import tomlkit
import tomlkit.exceptions

from .publish import DEFAULT_API_BASE

DEFAULT_CONFIG_PATH = Path(
    os.getenv(
        "LIVE_PAGES_CONFIG_FILE",
        Path.home() / ".config" / "live-pages" / "config.toml",
    )
)
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "live-pages"
DEFAULT_TIMEOUT = 30.0


class SettingsError(ValueError):
    """Raised when the settings file cannot be parsed or holds bad values."""


@dc.dataclass(slots=True)
class EditorSettings:
    """Resolved settings for publishing and draft caching."""

    api_base: str = DEFAULT_API_BASE
    api_token: str | None = None
    site_slug: str | None = None
    site_id: str | None = None
    cache_dir: Path = DEFAULT_CACHE_DIR
    timeout: float = DEFAULT_TIMEOUT


def _read_document(path: Path) -> tomlkit.TOMLDocument | None:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    try:
        return tomlkit.parse(text)
    except tomlkit.exceptions.ParseError as exc:
        msg = f"Unable to parse settings TOML at {path}: {exc}"
        raise SettingsError(msg) from exc


def _as_dict(table: typ.Any) -> dict[str, typ.Any]:
    return {k: v for k, v in table.items()} if table else {}


def load_settings(path: Path = DEFAULT_CONFIG_PATH) -> EditorSettings:
    """Return the settings stored in ``path``; a missing file yields defaults."""
    doc = _read_document(path)
    if doc is None:
        return EditorSettings()
    publish = _as_dict(doc.get("publish"))
    cache = _as_dict(doc.get("cache"))
    timeout = publish.get("timeout", DEFAULT_TIMEOUT)
    if isinstance(timeout, bool) or not isinstance(timeout, int | float):
        msg = f"'publish.timeout' in {path} must be a number"
        raise SettingsError(msg)
    directory = cache.get("directory")
    return EditorSettings(
        api_base=str(publish.get("api_base") or DEFAULT_API_BASE),
        api_token=_optional_str(publish.get("api_token")),
        site_slug=_optional_str(publish.get("site_slug")),
        site_id=_optional_str(publish.get("site_id")),
        cache_dir=Path(str(directory)).expanduser() if directory else DEFAULT_CACHE_DIR,
        timeout=float(timeout),
    )


def resolve_settings(
    *,
    config_path: Path = DEFAULT_CONFIG_PATH,
    api_base: str | None = None,
    api_token: str | None = None,
    site_slug: str | None = None,
    site_id: str | None = None,
    cache_dir: Path | None = None,
    save: bool = False,
) -> EditorSettings:
    """Merge CLI arguments, ``LIVE_PAGES_*`` variables and ``config.toml``.

    With ``save`` the merged settings are written back to ``config_path``.
    """
    stored = load_settings(config_path)
    env_cache_dir = os.getenv("LIVE_PAGES_CACHE_DIR")
    resolved = EditorSettings(
        api_base=api_base or os.getenv("LIVE_PAGES_API_BASE") or stored.api_base,
        api_token=api_token or os.getenv("LIVE_PAGES_API_TOKEN") or stored.api_token,
        site_slug=site_slug or os.getenv("LIVE_PAGES_SITE_SLUG") or stored.site_slug,
        site_id=site_id or os.getenv("LIVE_PAGES_SITE_ID") or stored.site_id,
        cache_dir=cache_dir
        or (Path(env_cache_dir).expanduser() if env_cache_dir else stored.cache_dir),
        timeout=stored.timeout,
    )
    if save:
        save_settings(resolved, path=config_path)
    return resolved


def save_settings(
    settings: EditorSettings, *, path: Path = DEFAULT_CONFIG_PATH
) -> None:
    """Write ``settings`` into ``path``, keeping comments and other tables."""
    path.parent.mkdir(parents=True, exist_ok=True)
    doc = _read_document(path) or tomlkit.document()

    publish_table = doc.get("publish")
    if not isinstance(publish_table, tomlkit.items.Table):
        publish_table = tomlkit.table()

    def _set(key: str, value: typ.Any) -> None:
        if value is None:
            publish_table.pop(key, None)
        else:
            publish_table[key] = value

    _set("api_base", settings.api_base)
    _set("api_token", settings.api_token)
    _set("site_slug", settings.site_slug)
    _set("site_id", settings.site_id)
    _set("timeout", settings.timeout)
    doc["publish"] = publish_table

    cache_table = doc.get("cache")
    if not isinstance(cache_table, tomlkit.items.Table):
        cache_table = tomlkit.table()
    cache_table["directory"] = str(settings.cache_dir)
    doc["cache"] = cache_table

    path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    if settings.api_token:
        os.chmod(path, 0o600)


def _optional_str(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


__all__ = [
    "DEFAULT_CACHE_DIR",
    "DEFAULT_CONFIG_PATH",
    "EditorSettings",
    "SettingsError",
    "load_settings",
    "resolve_settings",
    "save_settings",
]
