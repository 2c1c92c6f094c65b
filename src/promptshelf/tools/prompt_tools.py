"""Agent tools over a prompt index.

These functions are designed to be exposed as tools to an AI agent, letting
it browse the prompt library and render a prompt with its own inputs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from promptshelf.library.attachments import AttachmentError, resolve_attachment_paths
from promptshelf.render.parameters import (
    InvalidParametersError,
    MissingParametersError,
    normalize_and_validate_parameters,
)
from promptshelf.render.quick import classify_clipboard, filter_for_clipboard, quick_render
from promptshelf.render.renderer import (
    MissingMetadataError,
    TemplateRenderError,
    get_default_renderer,
)

if TYPE_CHECKING:
    from promptshelf.library.index import PromptIndex
    from promptshelf.library.models import Record
    from promptshelf.render.renderer import PromptRenderer


def describe_record(record: Record) -> str:
    """One listing line: id, title, tags and a metadata marker."""
    line = f"- {record.id}: {record.title}"
    if record.tags:
        line += f" [{', '.join(record.tags)}]"
    if not record.is_valid:
        line += " (needs metadata)"
    return line


def with_attachments(record: Record, output: str) -> str:
    """Append the resolved attachment list to rendered output, if any."""
    paths = resolve_attachment_paths(record)
    if not paths:
        return output
    listing = "\n".join(f"- {path}" for path in paths)
    return f"{output}\n\nAttachments:\n{listing}"


def get_prompt_tools(index: PromptIndex, renderer: PromptRenderer | None = None) -> dict[str, callable]:
    """Return a dict of tool_name -> callable for prompt operations.

    These can be registered as MCP tools or called directly.
    """
    renderer = renderer or get_default_renderer()

    def list_prompts(clipboard_text: str | None = None) -> str:
        """List every prompt, most recently modified first.

        With clipboard_text, prompts that ask for that kind of content (a URL,
        say) are listed alone when there are any.
        """
        records = index.get_all()
        if clipboard_text:
            records = filter_for_clipboard(records, classify_clipboard(clipboard_text))
        if not records:
            return "(no prompts found)"
        return "\n".join(describe_record(record) for record in records)

    def search_prompts(query: str, limit: int = 10) -> str:
        """Fuzzy search prompts by title, description, tags, path and body."""
        results = index.search(query, limit)
        if not results:
            return f"(no prompts match '{query}')"
        return "\n".join(
            f"{describe_record(result.record)} (score {result.score:.3f})" for result in results
        )

    def render_prompt(
        prompt_id: str,
        parameters: dict[str, Any] | None = None,
        context: dict[str, Any] | None = None,
    ) -> str:
        """Render a prompt by id with the given parameter values."""
        record = index.get(prompt_id)
        if record is None:
            return f"Unknown prompt: {prompt_id}"
        if not record.is_valid:
            return f"Prompt {prompt_id} needs metadata and cannot be rendered"

        report = normalize_and_validate_parameters(record, parameters or {})
        if report.missing:
            names = ", ".join(spec.display_name for spec in report.missing)
            return f"Missing required parameter(s): {names}"
        if report.invalid:
            return "Invalid parameter(s): " + "; ".join(issue.message for issue in report.invalid)

        try:
            rendered = renderer.render(record, report.values, context)
            return with_attachments(record, rendered.output)
        except (MissingMetadataError, TemplateRenderError) as e:
            return f"Render failed: {e}"
        except AttachmentError as e:
            return str(e)

    def quick_render_prompt(
        prompt_id: str,
        clipboard_text: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> str:
        """Render a prompt from its defaults, filling the first text input from clipboard_text."""
        record = index.get(prompt_id)
        if record is None:
            return f"Unknown prompt: {prompt_id}"
        if not record.is_valid:
            return f"Prompt {prompt_id} needs metadata and cannot be rendered"

        try:
            rendered = quick_render(
                record, context=context, clipboard_text=clipboard_text, renderer=renderer
            )
            return with_attachments(record, rendered.output)
        except MissingParametersError as e:
            return str(e)
        except InvalidParametersError as e:
            return f"Invalid parameter(s): {e}"
        except (MissingMetadataError, TemplateRenderError) as e:
            return f"Render failed: {e}"
        except AttachmentError as e:
            return str(e)

    return {
        "list_prompts": list_prompts,
        "search_prompts": search_prompts,
        "render_prompt": render_prompt,
        "quick_render_prompt": quick_render_prompt,
    }
