"""Resolve per-locale field values and collapse them for publishing.

Localized fields may be stored two ways: a plain string (legacy content that
predates translation, equivalent to ``{default_locale: text}``) or a map of
locale code to string. :func:`as_locale_value` classifies raw storage into
the :class:`PlainValue` / :class:`LocaleMap` variants; everything else in this
module works from those.

Examples
--------
>>> status = resolve_localized_value({"en": "Hello"}, "fr")
>>> status.value, status.is_translated, status.is_fallback
('Hello', False, True)
>>> with_translation("Hello", "fr", "Bonjour")
{'en': 'Hello', 'fr': 'Bonjour'}
>>> collapse_locale_values({"title": {"en": "A", "fr": "B"}}, "fr")
{'title': 'B'}
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import re
import typing as typ

from ._constants import DEFAULT_LOCALE

_LOCALE_CODE = re.compile(r"^[a-z]{2,3}(?:[-_][A-Za-z]{2,4})?$")


@dc.dataclass(slots=True, frozen=True)
class PlainValue:
    """Unlocalized storage: a single string for the default locale."""

    text: str


@dc.dataclass(slots=True)
class LocaleMap:
    """Localized storage: locale code to translated string."""

    values: dict[str, str]


LocaleValue: typ.TypeAlias = PlainValue | LocaleMap


@dc.dataclass(slots=True)
class TranslationStatus:
    """Effective value of a field in one locale plus translation metadata.

    Attributes
    ----------
    value : str
        Text to display for the requested locale.
    is_translated : bool
        True when the stored value has an entry for the requested locale.
    is_fallback : bool
        True when ``value`` was taken from the default locale instead.
    available_locales : list[str]
        Locales that currently have stored text.
    """

    value: str
    is_translated: bool
    is_fallback: bool
    available_locales: list[str]


def as_locale_value(raw: object) -> LocaleValue | None:
    """Classify raw storage; non-string entries of a map are dropped."""
    match raw:
        case str():
            return PlainValue(raw)
        case cabc.Mapping():
            return LocaleMap(
                {str(code): text for code, text in raw.items() if isinstance(text, str)}
            )
        case _:
            return None


def resolve_localized_value(
    raw: object, locale: str, default_locale: str = DEFAULT_LOCALE
) -> TranslationStatus:
    """Return the effective value of ``raw`` for ``locale``.

    A plain string counts as translated only for the default locale. A map
    falls back from ``locale`` to ``default_locale`` and finally to an empty
    string. Malformed values resolve to an empty, untranslated result rather
    than raising.
    """
    match as_locale_value(raw):
        case PlainValue(text=text):
            translated = locale == default_locale
            return TranslationStatus(
                value=text,
                is_translated=translated,
                is_fallback=not translated,
                available_locales=[default_locale],
            )
        case LocaleMap(values=values):
            value = values.get(locale)
            if value is None:
                value = values.get(default_locale, "")
            translated = locale in values
            return TranslationStatus(
                value=value,
                is_translated=translated,
                is_fallback=not translated and default_locale in values,
                available_locales=list(values),
            )
        case _:
            return TranslationStatus(
                value="", is_translated=False, is_fallback=False, available_locales=[]
            )


def promote(raw: object, default_locale: str = DEFAULT_LOCALE) -> dict[str, str]:
    """Return ``raw`` as a locale map, seeding the default locale from a string."""
    match as_locale_value(raw):
        case PlainValue(text=text):
            return {default_locale: text}
        case LocaleMap(values=values):
            return dict(values)
        case _:
            return {}


def with_translation(
    raw: object, locale: str, value: str, default_locale: str = DEFAULT_LOCALE
) -> dict[str, str]:
    """Return the locale map of ``raw`` with ``value`` stored for ``locale``."""
    values = promote(raw, default_locale)
    values[locale] = value
    return values


def is_locale_code(key: str, known_locales: cabc.Collection[str] = ()) -> bool:
    """Return True when ``key`` is a declared locale or looks like one."""
    return key in known_locales or bool(_LOCALE_CODE.match(key))


def is_locale_map(
    data: cabc.Mapping[str, typ.Any],
    locale: str,
    default_locale: str = DEFAULT_LOCALE,
    known_locales: cabc.Collection[str] = (),
) -> bool:
    """Return True when ``data`` looks like stored translations of one field."""
    if not data or (locale not in data and default_locale not in data):
        return False
    return all(
        isinstance(text, str) and is_locale_code(str(code), known_locales)
        for code, text in data.items()
    )


def collapse_locale_values(
    data: typ.Any,
    locale: str,
    default_locale: str = DEFAULT_LOCALE,
    known_locales: cabc.Collection[str] = (),
) -> typ.Any:
    """Recursively replace every locale map in ``data`` with one string.

    Each map becomes ``map[locale]``, else ``map[default_locale]``, else an
    empty string; every other value is returned unchanged (containers are
    rebuilt, never mutated).
    """
    match data:
        case list() | tuple():
            return [
                collapse_locale_values(item, locale, default_locale, known_locales)
                for item in data
            ]
        case cabc.Mapping():
            if is_locale_map(data, locale, default_locale, known_locales):
                value = data.get(locale)
                if value is None:
                    value = data.get(default_locale)
                return value if value is not None else ""
            return {
                key: collapse_locale_values(
                    value, locale, default_locale, known_locales
                )
                for key, value in data.items()
            }
        case _:
            return data


__all__ = [
    "LocaleMap",
    "LocaleValue",
    "PlainValue",
    "TranslationStatus",
    "as_locale_value",
    "collapse_locale_values",
    "is_locale_code",
    "is_locale_map",
    "promote",
    "resolve_localized_value",
    "with_translation",
]
