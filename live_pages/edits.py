"""Replay scripted edits against an edit session.

Edit scripts are YAML lists of operations, one mapping per step::

    - op: update
      path: sections.hero.title
      value: Hi
    - op: translate
      path: site.brand
      locale: fr
      value: Acme FR
    - op: add_section
      type: about
      position: 1
    - op: move_item
      path: sections.services.items
      from: 0
      to: 2

Supported operations are ``update``, ``translate``, ``add_section``,
``remove_section``, ``move_section``, ``add_item``, ``remove_item`` and
``move_item``. Operations that resolve to nothing (an unknown section, a full
array) are skipped the same way interactive edits are.
"""

from __future__ import annotations

import collections.abc as cabc
import logging
import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ._constants import DEFAULT_REGION

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .session import EditSession

logger = logging.getLogger(__name__)


class EditScriptError(ValueError):
    """Raised when an edit script is unreadable or holds a malformed step."""


def load_edit_script(path: Path) -> list[dict[str, typ.Any]]:
    """Return the steps stored in the YAML edit script at ``path``."""
    if not path.exists():
        msg = f"Edit script '{path}' not found."
        raise EditScriptError(msg)
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load(path.read_text(encoding="utf-8"))
    except YAMLError as exc:
        msg = f"Failed to parse edit script '{path}': {exc}"
        raise EditScriptError(msg) from exc
    if loaded is None:
        return []
    if not isinstance(loaded, list) or not all(
        isinstance(step, cabc.Mapping) for step in loaded
    ):
        msg = f"Edit script '{path}' must be a list of mappings."
        raise EditScriptError(msg)
    return [dict(step) for step in loaded]


def apply_edit_script(
    session: EditSession, steps: cabc.Iterable[cabc.Mapping[str, typ.Any]]
) -> int:
    """Apply ``steps`` in order and return how many changed the session."""
    applied = 0
    for number, step in enumerate(steps, start=1):
        if _apply_step(session, dict(step), number):
            applied += 1
        else:
            logger.debug("edit step %d had no effect: %r", number, dict(step))
    return applied


def _apply_step(session: EditSession, step: dict[str, typ.Any], number: int) -> bool:
    match step:
        case {"op": "update", "path": str(path), "value": value}:
            return session.update_field(path, value)
        case {
            "op": "translate",
            "path": str(path),
            "locale": str(locale),
            "value": value,
        }:
            before = session.revision
            session.create_translation(path, locale, str(value))
            return session.revision != before
        case {"op": "add_section", "type": str(section_type)}:
            region = step.get("region", DEFAULT_REGION)
            position = step.get("position")
            if position is not None and not isinstance(position, int):
                _malformed(number, step)
            return session.add_section(section_type, str(region), position) is not None
        case {"op": "remove_section", "id": str(section_id)}:
            return session.remove_section(section_id)
        case {"op": "move_section", "id": str(section_id), "position": int(position)}:
            return session.move_section(section_id, position)
        case {"op": "add_item", "path": str(path)}:
            return session.add_item(path)
        case {"op": "remove_item", "path": str(path), "index": int(index)}:
            return session.remove_item(path, index)
        case {"op": "move_item", "path": str(path), "from": int(start), "to": int(end)}:
            return session.move_item(path, start, end)
        case _:
            _malformed(number, step)


def _malformed(number: int, step: cabc.Mapping[str, typ.Any]) -> typ.NoReturn:
    msg = f"Edit step {number} is malformed or has an unknown op: {dict(step)!r}"
    raise EditScriptError(msg)


__all__ = ["EditScriptError", "apply_edit_script", "load_edit_script"]
