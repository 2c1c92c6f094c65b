"""One-shot rendering and clipboard-driven prompt hints.

Quick render skips the parameter form: declared defaults are used, and text
from the clipboard fills the first text-like parameter when it has no value.
The hint functions decide which prompts look like they want a URL or a file,
so a shell can narrow the listing to match what is on the clipboard.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any
from urllib.parse import urlsplit

from promptshelf.library.models import Record
from promptshelf.library.schema import ClipboardType, ParameterSpec
from promptshelf.render.parameters import normalize_and_validate_parameters, parameter_defaults
from promptshelf.render.renderer import (
    MissingMetadataError,
    PromptRenderer,
    RenderedPrompt,
    get_default_renderer,
)

logger = logging.getLogger(__name__)

URL_KEYWORDS = ("url", "link")
FILE_KEYWORDS = ("file", "upload", "attachment", "document")
_PREFILL_TYPES = ("string", "text")
_SCHEME_URL = re.compile(r"^https?://", re.IGNORECASE)
_WWW_URL = re.compile(r"^www\.\S+$", re.IGNORECASE)


class ClipboardCategory(str, Enum):
    EMPTY = "empty"
    TEXT = "text"
    URL = "url"
    FILE = "file"


def quick_render(
    record: Record,
    *,
    context: Mapping[str, Any] | None = None,
    clipboard_text: str | None = None,
    renderer: PromptRenderer | None = None,
) -> RenderedPrompt:
    """Render with defaults and clipboard prefill, raising on bad input."""
    if not record.is_valid:
        raise MissingMetadataError(f"Prompt metadata incomplete: {record.id}")

    values: dict[str, Any] = parameter_defaults(record)
    parameters = record.parameters
    clipboard_text = (clipboard_text or "").strip()
    if clipboard_text and parameters:
        first = parameters[0]
        existing = values.get(first.name)
        if first.type in _PREFILL_TYPES and (not isinstance(existing, str) or not existing.strip()):
            values[first.name] = clipboard_text
            logger.debug("Prefilled %s.%s from clipboard", record.id, first.name)

    report = normalize_and_validate_parameters(record, values)
    report.raise_for_errors()
    return (renderer or get_default_renderer()).render(record, report.values, context)


def prompt_prefers_clipboard_type(record: Record, kind: ClipboardType) -> bool:
    if record.front_matter is None:
        return False
    return kind in record.front_matter.preferred_clipboard_types


def parameter_hints(spec: ParameterSpec) -> list[str]:
    """Lower-cased name, label and pattern of a parameter."""
    hints = [spec.name, spec.label or ""]
    if spec.regex:
        hints.append(spec.regex)
    return [hint.lower() for hint in hints if hint]


def _any_parameter_hint(record: Record, keywords: Sequence[str]) -> bool:
    return any(
        keyword in hint
        for spec in record.parameters
        for hint in parameter_hints(spec)
        for keyword in keywords
    )


def prompt_requests_url(record: Record) -> bool:
    if prompt_prefers_clipboard_type(record, "url"):
        return True
    return _any_parameter_hint(record, URL_KEYWORDS)


def prompt_requests_file(record: Record) -> bool:
    if prompt_prefers_clipboard_type(record, "file"):
        return True
    if record.front_matter is not None and record.front_matter.requires_file:
        return True
    return _any_parameter_hint(record, FILE_KEYWORDS)


def is_likely_url(value: str) -> bool:
    text = value.strip()
    if not text:
        return False
    if _SCHEME_URL.match(text) or _WWW_URL.match(text):
        return True
    if any(ch.isspace() for ch in text):
        return False
    try:
        host = urlsplit(text if "://" in text else f"https://{text}").hostname
    except ValueError:
        return False
    return bool(host and "." in host)


def classify_clipboard(text: str | None = None, file: str | None = None) -> ClipboardCategory:
    if file and file.strip():
        return ClipboardCategory.FILE
    if text and text.strip():
        return ClipboardCategory.URL if is_likely_url(text) else ClipboardCategory.TEXT
    return ClipboardCategory.EMPTY


def filter_for_clipboard(records: Sequence[Record], category: ClipboardCategory) -> list[Record]:
    """Narrow records to those wanting the clipboard's kind of content.

    Falls back to every record when nothing matches.
    """
    if category is ClipboardCategory.URL:
        matched = [record for record in records if prompt_requests_url(record)]
    elif category is ClipboardCategory.FILE:
        matched = [record for record in records if prompt_requests_file(record)]
    else:
        matched = []
    return matched or list(records)
