"""Durable local cache for in-progress edit drafts.

Every field edit and structural change writes the session's draft (the
overlay tree plus the live section list) to a keyed cache slot so an
interrupted session can be restored. Drafts are stored as JSON encoded with
``msgspec``; :class:`~live_pages.paths.ArrayPatch` nodes are written as
``{"$patch": {"<index>": value}}`` so their index-wise intent survives the
round trip.

Examples
--------
>>> from live_pages.cache import MemoryDraftCache, draft_cache_key
>>> cache = MemoryDraftCache()
>>> cache.save(draft_cache_key("acme"), {"overlay": {}, "sections": []})
>>> cache.load("preview-acme")
{'overlay': {}, 'sections': []}
"""

from __future__ import annotations

import collections.abc as cabc
import logging
import typing as typ

import msgspec

from ._constants import DRAFT_CACHE_KEY_TEMPLATE
from .paths import ArrayPatch, is_index

if typ.TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_PATCH_MARKER = "$patch"


def draft_cache_key(site_slug: str | None) -> str:
    """Return the cache slot name for ``site_slug``."""
    return DRAFT_CACHE_KEY_TEMPLATE.format(key=site_slug or "default")


class DraftCache(typ.Protocol):
    """Keyed storage for edit drafts."""

    def load(self, key: str) -> dict[str, typ.Any] | None:
        """Return the draft stored under ``key`` or None."""
        ...

    def save(self, key: str, draft: cabc.Mapping[str, typ.Any]) -> None:
        """Store ``draft`` under ``key``, replacing any previous draft."""
        ...

    def remove(self, key: str) -> None:
        """Drop the draft stored under ``key``; missing keys are ignored."""
        ...


class MemoryDraftCache:
    """In-process draft cache holding encoded JSON, for tests and embedding."""

    def __init__(self) -> None:
        self._slots: dict[str, bytes] = {}

    def load(self, key: str) -> dict[str, typ.Any] | None:
        raw = self._slots.get(key)
        if raw is None:
            return None
        return msgspec.json.decode(raw)

    def save(self, key: str, draft: cabc.Mapping[str, typ.Any]) -> None:
        self._slots[key] = msgspec.json.encode(draft)

    def remove(self, key: str) -> None:
        self._slots.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._slots


class FileDraftCache:
    """Draft cache writing one JSON file per slot under ``directory``."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, key: str) -> Path:
        """Return the file backing the slot ``key``."""
        safe = key.replace("/", "_").replace("\\", "_")
        return self.directory / f"{safe}.json"

    def load(self, key: str) -> dict[str, typ.Any] | None:
        path = self.path_for(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        try:
            draft = msgspec.json.decode(raw)
        except msgspec.DecodeError:
            logger.warning("Ignoring unreadable draft cache file %s", path)
            return None
        if not isinstance(draft, dict):
            logger.warning("Ignoring draft cache file %s: not a mapping", path)
            return None
        return draft

    def save(self, key: str, draft: cabc.Mapping[str, typ.Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self.path_for(key).write_bytes(msgspec.json.encode(draft))

    def remove(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


def encode_overlay(node: typ.Any) -> typ.Any:
    """Return a JSON-safe copy of an overlay tree."""
    match node:
        case ArrayPatch(items=items):
            return {
                _PATCH_MARKER: {
                    str(index): encode_overlay(value) for index, value in items.items()
                }
            }
        case cabc.Mapping():
            return {str(key): encode_overlay(value) for key, value in node.items()}
        case list() | tuple():
            return [encode_overlay(item) for item in node]
        case _:
            return node


def decode_overlay(node: typ.Any) -> typ.Any:
    """Rebuild an overlay tree written by :func:`encode_overlay`."""
    match node:
        case {"$patch": cabc.Mapping() as items} if len(node) == 1:
            return ArrayPatch(
                {
                    int(index): decode_overlay(value)
                    for index, value in items.items()
                    if is_index(str(index))
                }
            )
        case cabc.Mapping():
            return {key: decode_overlay(value) for key, value in node.items()}
        case list():
            return [decode_overlay(item) for item in node]
        case _:
            return node


__all__ = [
    "DraftCache",
    "FileDraftCache",
    "MemoryDraftCache",
    "decode_overlay",
    "draft_cache_key",
    "encode_overlay",
]
