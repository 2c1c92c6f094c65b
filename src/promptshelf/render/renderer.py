"""Render a prompt Record's template into final plain text."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import ChainableUndefined, Environment

from promptshelf.library.models import Record
from promptshelf.render.context import sanitize_context_for_log, summarize_context
from promptshelf.render.helpers import DEFAULT_HELPERS

logger = logging.getLogger(__name__)

_TRAILING_SPACE = re.compile(r"[ \t]+$", re.MULTILINE)
_FENCE_TRAILING = re.compile(r"(```[^\n]*?)[ \t]+$", re.MULTILINE)


class MissingMetadataError(ValueError):
    """The record has no valid front matter and cannot be rendered."""


class TemplateRenderError(RuntimeError):
    """The template failed to compile or render."""


@dataclass(frozen=True)
class RenderMetadata:
    title: str
    description: str | None
    tags: list[str] = field(default_factory=list)
    source_path: Path | None = None


@dataclass(frozen=True)
class RenderedPrompt:
    output: str
    raw: str
    metadata: RenderMetadata


def post_process_output(text: str) -> str:
    """Normalize newlines, strip trailing blanks and tidy code fences."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _TRAILING_SPACE.sub("", text)
    text = _FENCE_TRAILING.sub(r"\1", text)
    return text.rstrip()


class PromptRenderer:
    """Jinja2-backed renderer with an injected, read-only helper registry."""

    def __init__(
        self,
        helpers: Mapping[str, Callable[..., Any]] = DEFAULT_HELPERS,
        *,
        debug_log: bool = False,
    ) -> None:
        self.helpers = helpers
        self.debug_log = debug_log
        self.env = Environment(  # nosec B701 - plain text prompts, not HTML
            autoescape=False,
            undefined=ChainableUndefined,
            keep_trailing_newline=True,
        )
        for name, helper in helpers.items():
            self.env.filters[name] = helper
            self.env.globals[name] = helper

    def build_scope(
        self,
        record: Record,
        parameters: Mapping[str, Any],
        context: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Parameters at the root, with reserved keys taking precedence."""
        front_matter = record.front_matter
        scope: dict[str, Any] = dict(parameters)
        scope.update(
            parameters=dict(parameters),
            context=dict(context or {}),
            metadata=front_matter.model_dump(exclude_none=True) if front_matter else {},
            tags=list(record.tags),
        )
        return scope

    def render(
        self,
        record: Record,
        parameters: Mapping[str, Any] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> RenderedPrompt:
        front_matter = record.front_matter
        if front_matter is None or record.validation_issues:
            raise MissingMetadataError(
                f"Prompt {record.id} is missing valid front matter and cannot be rendered"
            )

        scope = self.build_scope(record, parameters or {}, context)
        if self.debug_log:
            logger.debug(
                "Rendering %s (%s) with context %s",
                record.id,
                summarize_context(scope["context"]),
                sanitize_context_for_log(scope["context"]),
            )

        try:
            raw = self.env.from_string(record.content).render(scope)
        except Exception as e:
            raise TemplateRenderError(f"Failed to render {record.id}: {e}") from e

        return RenderedPrompt(
            output=post_process_output(raw),
            raw=raw,
            metadata=RenderMetadata(
                title=front_matter.title,
                description=front_matter.description,
                tags=list(record.tags),
                source_path=record.file_path,
            ),
        )


_default_renderer: PromptRenderer | None = None


def get_default_renderer() -> PromptRenderer:
    global _default_renderer
    if _default_renderer is None:
        _default_renderer = PromptRenderer()
    return _default_renderer


def render_prompt(
    record: Record,
    parameters: Mapping[str, Any] | None = None,
    context: Mapping[str, Any] | None = None,
) -> RenderedPrompt:
    """Render with the shared default renderer."""
    return get_default_renderer().render(record, parameters, context)
