"""Template helpers available to every prompt.

Each helper is installed in the Jinja2 environment as both a filter
(``{{ topic | uppercase }}``) and a global (``{{ uppercase(topic) }}``).
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date as _date
from datetime import datetime
from types import MappingProxyType
from typing import Any

from babel import Locale, UnknownLocaleError
from babel.dates import format_skeleton
from jinja2 import Undefined


def _text(value: Any) -> str:
    if value is None or isinstance(value, Undefined):
        return ""
    return str(value)


def uppercase(value: Any) -> str:
    return _text(value).upper()


def lowercase(value: Any) -> str:
    return _text(value).lower()


def join(value: Any, delimiter: Any = ", ") -> str:
    if not isinstance(value, (list, tuple)):
        return _text(value)
    return str(delimiter).join(_text(item) for item in value)


def indent(value: Any, spaces: Any = 2) -> str:
    try:
        width = max(int(spaces), 0)
    except (TypeError, ValueError):
        width = 0
    padding = " " * width
    return "\n".join(f"{padding}{line}" for line in _text(value).split("\n"))


def nl2br(value: Any) -> str:
    return _text(value).replace("\n", "<br />")


def coerce_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, _date):
        return datetime(value.year, value.month, value.day)
    text = _text(value).strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


# Year, month and day in the locale's own numeric order
DATE_SKELETON = "yMd"


def _parse_locale(locale: Any) -> Locale | None:
    tag = _text(locale).strip().replace("-", "_")
    if not tag:
        return None
    try:
        return Locale.parse(tag)
    except (UnknownLocaleError, ValueError, TypeError):
        return None


def date(value: Any, locale: Any = "en-US", fmt: str | None = None) -> str:
    """Format a date for a locale, or with an explicit strftime format.

    Unknown locales fall back to ISO-8601.
    """
    moment = coerce_datetime(value)
    if moment is None:
        return ""
    if fmt:
        return moment.strftime(fmt)
    parsed = _parse_locale(locale)
    if parsed is None:
        return moment.isoformat()
    return format_skeleton(DATE_SKELETON, moment, locale=parsed)


DEFAULT_HELPERS: MappingProxyType[str, Callable[..., str]] = MappingProxyType(
    {
        "uppercase": uppercase,
        "lowercase": lowercase,
        "join": join,
        "indent": indent,
        "nl2br": nl2br,
        "date": date,
    }
)
