"""Dotted-path access, immutable writes and overlay merging for site documents.

Paths follow the ``segment ('.' segment)*`` grammar: a segment is either an
object key or a non-negative integer addressing a list index. Section-scoped
paths start with ``sections.<sectionId>``; any other leading key addresses a
site-level field (for example ``site.brand``).

Overlays keep array intent explicit. A plain ``list`` stored in an overlay is
always a full replacement (written by structural array operations), while an
:class:`ArrayPatch` is always an index-wise patch (written by single-field
edits). Merges never guess intent from the shape of a list.

Examples
--------
>>> set_path([], "2", "x", base=["a", "b", "c"])
['a', 'b', 'x']
>>> doc = {"site": {"brand": "Acme"}}
>>> get_path(set_path(doc, "site.brand", "Beta"), "site.brand")
'Beta'
>>> overlay = patch_path({}, "items.1.name", "Second")
>>> deep_merge({"items": [{"name": "A"}, {"name": "B"}]}, overlay)
{'items': [{'name': 'A'}, {'name': 'Second'}]}
"""

from __future__ import annotations

import collections.abc as cabc
import copy
import dataclasses as dc
import typing as typ


def split_path(path: object) -> list[str]:
    """Return the segments of ``path`` or an empty list for unusable input."""
    if not isinstance(path, str) or not path:
        return []
    return path.split(".")


def join_path(*segments: object) -> str:
    """Join non-empty segments into a dotted path."""
    return ".".join(str(segment) for segment in segments if segment != "")


def is_index(segment: str) -> bool:
    """Return True when ``segment`` addresses a list index."""
    return segment.isascii() and segment.isdigit()


@dc.dataclass(slots=True)
class ArrayPatch:
    """Sparse, index-wise patch for a list.

    Attributes
    ----------
    items : dict[int, Any]
        Replacement or partial values keyed by list index. Mapping values are
        merged into the existing cell; everything else replaces it.
    """

    items: dict[int, typ.Any] = dc.field(default_factory=dict)

    def get(self, index: int, default: typ.Any = None) -> typ.Any:
        """Return the patched value at ``index`` or ``default``."""
        return self.items.get(index, default)

    def with_item(self, index: int, value: typ.Any) -> ArrayPatch:
        """Return a new patch with ``value`` recorded at ``index``."""
        items = dict(self.items)
        items[index] = value
        return ArrayPatch(items)

    def apply(self, target: cabc.Sequence[typ.Any] | None) -> list[typ.Any]:
        """Return a new list holding ``target`` with this patch applied."""
        result = [copy.deepcopy(item) for item in target or ()]
        if self.items:
            missing = max(self.items) + 1 - len(result)
            result.extend([None] * max(missing, 0))
        for index, value in sorted(self.items.items()):
            result[index] = deep_merge(result[index], value)
        return result


def get_path(root: typ.Any, path: str) -> typ.Any:
    """Return the value stored at ``path`` or ``None`` when any segment misses.

    Lists are indexed by numeric segments and :class:`ArrayPatch` nodes are
    read through, so overlay trees can be queried with the same paths as
    documents. This function never raises.
    """
    segments = split_path(path)
    if not segments:
        return None
    current = root
    for segment in segments:
        match current:
            case cabc.Mapping():
                current = current.get(segment)
            case list() | tuple():
                if not is_index(segment) or int(segment) >= len(current):
                    return None
                current = current[int(segment)]
            case ArrayPatch():
                if not is_index(segment):
                    return None
                current = current.get(int(segment))
            case _:
                return None
        if current is None:
            return None
    return current


def set_path(
    root: typ.Any, path: str, value: typ.Any, base: typ.Any = None
) -> typ.Any:
    """Return a new structure with ``value`` written at ``path``.

    Parameters
    ----------
    root : Any
        Structure to copy along ``path``; it is never mutated.
    path : str
        Dotted path; numeric segments address list indices.
    value : Any
        Value to store at the final segment.
    base : Any, optional
        Reference structure used to fill list cells that ``root`` lacks.

    Returns
    -------
    Any
        The updated copy of ``root`` (``root`` itself for an empty path).

    Notes
    -----
    Every list built along the path has length
    ``max(len(existing), len(base), index + 1)``. Cells other than the one
    being written come from ``existing`` when present, else from ``base``,
    else stay ``None``, so editing index 2 of a one-item list keeps the
    items that only exist in ``base``.
    """
    segments = split_path(path)
    if not segments:
        return root
    return _set(root, segments, value, base)


def _set(
    current: typ.Any, segments: list[str], value: typ.Any, base: typ.Any
) -> typ.Any:
    head, rest = segments[0], segments[1:]
    if is_index(head):
        index = int(head)
        existing = current if isinstance(current, list) else []
        fallback = base if isinstance(base, list) else []
        length = max(len(existing), len(fallback), index + 1)
        result: list[typ.Any] = []
        for position in range(length):
            own = existing[position] if position < len(existing) else None
            inherited = fallback[position] if position < len(fallback) else None
            if position == index:
                result.append(_set(own, rest, value, inherited) if rest else value)
            elif own is not None:
                result.append(own)
            else:
                result.append(inherited)
        return result

    mapping = dict(current) if isinstance(current, cabc.Mapping) else {}
    if rest:
        nested_base = base.get(head) if isinstance(base, cabc.Mapping) else None
        mapping[head] = _set(mapping.get(head), rest, value, nested_base)
    else:
        mapping[head] = value
    return mapping


def patch_path(overlay: typ.Any, path: str, value: typ.Any) -> typ.Any:
    """Return a new overlay tree recording ``value`` at ``path``.

    Numeric segments create :class:`ArrayPatch` nodes so a single-field edit
    only touches its own index. When the overlay already holds a dense
    replacement list at that point, the write updates a copy of that list
    instead, keeping the replacement complete.
    """
    segments = split_path(path)
    if not segments:
        return overlay
    return _patch(overlay, segments, value)


def _patch(current: typ.Any, segments: list[str], value: typ.Any) -> typ.Any:
    head, rest = segments[0], segments[1:]
    if is_index(head):
        if isinstance(current, list):
            return set_path(current, ".".join(segments), value)
        index = int(head)
        patch = current if isinstance(current, ArrayPatch) else ArrayPatch()
        child = _patch(patch.get(index), rest, value) if rest else value
        return patch.with_item(index, child)

    mapping = dict(current) if isinstance(current, cabc.Mapping) else {}
    mapping[head] = _patch(mapping.get(head), rest, value) if rest else value
    return mapping


def remove_path(root: typ.Any, path: str) -> typ.Any:
    """Return a copy of ``root`` without the mapping key addressed by ``path``.

    Parent mappings left empty by the removal are pruned. Paths that do not
    resolve return ``root`` unchanged.
    """
    segments = split_path(path)
    if not segments or get_path(root, path) is None:
        return root
    return _remove(root, segments)


def _remove(current: typ.Any, segments: list[str]) -> typ.Any:
    if not isinstance(current, cabc.Mapping):
        return current
    head, rest = segments[0], segments[1:]
    mapping = dict(current)
    if not rest:
        mapping.pop(head, None)
        return mapping
    child = _remove(mapping.get(head), rest)
    if isinstance(child, cabc.Mapping) and not child:
        mapping.pop(head, None)
    else:
        mapping[head] = child
    return mapping


def deep_merge(target: typ.Any, source: typ.Any) -> typ.Any:
    """Return ``source`` merged onto ``target`` without touching either.

    Mappings merge key by key, recursively. A list source replaces the target
    outright; an :class:`ArrayPatch` source patches the target list index by
    index. Any other source value replaces the target. The result never
    shares mutable structure with the inputs.
    """
    match source:
        case ArrayPatch():
            return source.apply(target if isinstance(target, list) else None)
        case list() | tuple():
            return [deep_merge(None, item) for item in source]
        case cabc.Mapping():
            base = target if isinstance(target, cabc.Mapping) else {}
            result = {key: copy.deepcopy(value) for key, value in base.items()}
            for key, value in source.items():
                result[key] = deep_merge(base.get(key), value)
            return result
        case _:
            return copy.deepcopy(source)


__all__ = [
    "ArrayPatch",
    "deep_merge",
    "get_path",
    "is_index",
    "join_path",
    "patch_path",
    "remove_path",
    "set_path",
    "split_path",
]
