"""Load the site schema YAML into typed dataclasses."""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from ruamel.yaml import YAML

from .models import (
    FIELD_TYPES,
    ArrayField,
    FieldSchema,
    ObjectSchema,
    PageTypeConfig,
    SchemaError,
    SchemaNode,
    SectionTypeConfig,
    SelectField,
    SiteSchema,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

_RESERVED_KEYS = frozenset({"_meta", "sectionTypes", "pages"})


def load_site_schema(path: Path) -> SiteSchema:
    """Load the YAML schema describing editable fields and section types.

    Parameters
    ----------
    path : Path
        Filesystem path to the schema file (for example,
        ``config/site-schema.yaml``).

    Returns
    -------
    SiteSchema
        Parsed schema with site-level field rules, the section-type registry
        and the page registry.

    Raises
    ------
    FileNotFoundError
        If the schema file does not exist at ``path``.
    SchemaError
        If the top-level structure is not a mapping, no section types are
        defined, or a field rule is malformed.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from live_pages.schema import load_site_schema
    >>> schema = load_site_schema(Path("config/site-schema.yaml"))
    >>> schema.section_types["hero"].singleton
    True
    """
    if not path.exists():
        msg = f"Schema file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level schema structure must be a mapping."
        raise SchemaError(msg)
    return parse_site_schema(loaded)


def parse_site_schema(raw: cabc.Mapping[str, typ.Any]) -> SiteSchema:
    """Build a :class:`SiteSchema` from an already-loaded mapping."""
    meta = raw.get("_meta") or {}
    section_types_raw = raw.get("sectionTypes") or {}
    if not isinstance(section_types_raw, cabc.Mapping) or not section_types_raw:
        msg = "No section types defined in schema."
        raise SchemaError(msg)

    fields: dict[str, SchemaNode] = {}
    for key, payload in raw.items():
        if key in _RESERVED_KEYS:
            continue
        fields[key] = _parse_node(payload, where=key)

    section_types: dict[str, SectionTypeConfig] = {}
    for key, payload in section_types_raw.items():
        match payload:
            case cabc.Mapping():
                section_types[key] = _build_section_type(key, payload)
            case _:
                msg = f"Section type '{key}' must be a mapping."
                raise SchemaError(msg)

    page_types: dict[str, PageTypeConfig] = {}
    for key, payload in (raw.get("pages") or {}).items():
        if not isinstance(payload, cabc.Mapping):
            continue
        allowed = payload.get("allowedSectionTypes")
        page_types[key] = PageTypeConfig(
            key=key,
            allowed_section_types=[str(name) for name in allowed]
            if isinstance(allowed, list)
            else None,
        )

    version = meta.get("schemaVersion") if isinstance(meta, cabc.Mapping) else None
    return SiteSchema(
        fields=ObjectSchema(fields=fields),
        section_types=section_types,
        page_types=page_types,
        version=_optional_int(version),
    )


def _build_section_type(
    key: str, payload: cabc.Mapping[str, typ.Any]
) -> SectionTypeConfig:
    """Build a section-type registry entry from its schema payload."""
    schema_raw = payload.get("schema") or {}
    schema = _parse_node(schema_raw, where=f"sectionTypes.{key}.schema")
    if not isinstance(schema, ObjectSchema):
        msg = f"Section type '{key}' schema must map field names to rules."
        raise SchemaError(msg)

    region = str(payload.get("region") or "main")
    allowed_regions = payload.get("allowedRegions") or [region]
    default_data = payload.get("defaultData")
    if default_data is not None and not isinstance(default_data, cabc.Mapping):
        msg = f"Section type '{key}' defaultData must be a mapping."
        raise SchemaError(msg)

    return SectionTypeConfig(
        key=key,
        display_name=str(payload.get("displayName") or key),
        description=str(payload.get("description") or ""),
        singleton=bool(payload.get("singleton", False)),
        region=region,
        allowed_regions=[str(name) for name in allowed_regions],
        schema=schema,
        default_data=dict(default_data) if default_data is not None else None,
    )


def _parse_node(payload: object, *, where: str) -> SchemaNode:
    """Parse a field rule or a map of named field rules."""
    if not isinstance(payload, cabc.Mapping):
        msg = f"Schema node at '{where}' must be a mapping."
        raise SchemaError(msg)
    # A nested field may itself be called "type", so only a string tag counts.
    if isinstance(payload.get("type"), str):
        return _parse_field(payload, where=where)
    return ObjectSchema(
        fields={
            str(name): _parse_node(child, where=f"{where}.{name}")
            for name, child in payload.items()
        }
    )


def _parse_field(payload: cabc.Mapping[str, typ.Any], *, where: str) -> FieldSchema:
    kind = payload["type"]
    field_cls = FIELD_TYPES.get(kind)
    if field_cls is None:
        known = ", ".join(sorted(FIELD_TYPES))
        msg = f"Unknown field type '{kind}' at '{where}'. Known types: {known}"
        raise SchemaError(msg)

    common: dict[str, typ.Any] = {
        "editable": bool(payload.get("editable", False)),
        "localized": bool(payload.get("localized", False)),
        "max_length": _optional_int(payload.get("maxLength")),
        "description": str(payload.get("description") or ""),
    }
    if field_cls is ArrayField:
        item_raw = payload.get("itemSchema")
        item_schema = (
            _parse_node(item_raw, where=f"{where}.itemSchema")
            if item_raw is not None
            else None
        )
        return ArrayField(
            **common,
            item_schema=item_schema,
            max_items=_optional_int(payload.get("maxItems")),
        )
    if field_cls is SelectField:
        options = payload.get("options") or ()
        return SelectField(**common, options=tuple(str(option) for option in options))
    return field_cls(**common)


def _optional_int(value: object) -> int | None:
    """Return ``value`` as an int, or None when absent or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


__all__ = ["load_site_schema", "parse_site_schema"]
