"""Ambient render context.

The shell captures clipboard text, the current selection, the frontmost
application and the time; this module turns those captured values into the
opaque ``context`` mapping templates see, and summarizes it for display and
logs. Nothing here reads the OS itself.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from promptshelf.config import ContextConfig
from promptshelf.render.helpers import coerce_datetime

NO_CONTEXT = "No context captured"
SUMMARY_SEPARATOR = " • "
LOG_VALUE_MAX_LENGTH = 200


@dataclass(frozen=True)
class ContextPreferences:
    clipboard: bool = True
    selection: bool = False
    application: bool = False
    date: bool = True

    @classmethod
    def from_config(cls, config: ContextConfig) -> ContextPreferences:
        return cls(
            clipboard=config.clipboard,
            selection=config.selection,
            application=config.application,
            date=config.date,
        )


def _present(value: str | None) -> bool:
    return bool(value and value.strip())


def build_context(
    preferences: ContextPreferences,
    *,
    clipboard: str | None = None,
    selection: str | None = None,
    application: Mapping[str, Any] | str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Assemble the context mapping from captured values the preferences allow."""
    context: dict[str, Any] = {}
    if preferences.clipboard and _present(clipboard):
        context["clipboard"] = clipboard
    if preferences.selection and _present(selection):
        context["selection"] = selection
    if preferences.application and application:
        if isinstance(application, str):
            application = {"name": application}
        name = str(application.get("name") or "").strip()
        if name:
            context["application"] = {"name": name, "bundle_id": application.get("bundle_id")}
    if preferences.date:
        moment = now or datetime.now(timezone.utc)
        context["date"] = moment.isoformat()
    return context


def _format_date(value: Any) -> str:
    moment = coerce_datetime(value)
    if moment is None:
        return str(value)
    return moment.strftime("%Y-%m-%d %H:%M")


def summarize_context(context: Mapping[str, Any]) -> str:
    """One-line description of what was captured."""
    parts: list[str] = []
    if context.get("clipboard"):
        parts.append(f"Clipboard ({len(context['clipboard'])} chars)")
    if context.get("selection"):
        parts.append(f"Selection ({len(context['selection'])} chars)")
    application = context.get("application")
    if application:
        name = application.get("name") if isinstance(application, Mapping) else application
        parts.append(f"App: {name}")
    if context.get("date"):
        parts.append(f"Date: {_format_date(context['date'])}")
    return SUMMARY_SEPARATOR.join(parts) if parts else NO_CONTEXT


def sanitize_context_for_log(
    context: Mapping[str, Any], max_length: int = LOG_VALUE_MAX_LENGTH
) -> dict[str, Any]:
    """Copy of context with long strings truncated."""
    sanitized: dict[str, Any] = {}
    for key, value in context.items():
        if isinstance(value, str) and len(value) > max_length:
            sanitized[key] = f"{value[:max_length]}…"
        else:
            sanitized[key] = value
    return sanitized
