"""Tests for quick render and clipboard hints."""

from __future__ import annotations

import pytest

from promptshelf.library.schema import ParameterSpec
from promptshelf.render.parameters import InvalidParametersError, MissingParametersError
from promptshelf.render.quick import (
    ClipboardCategory,
    classify_clipboard,
    filter_for_clipboard,
    is_likely_url,
    parameter_hints,
    prompt_prefers_clipboard_type,
    prompt_requests_file,
    prompt_requests_url,
    quick_render,
)
from promptshelf.render.renderer import MissingMetadataError


def meta(*parameters: dict, **extra) -> dict:
    return {"schema_version": 1, "title": "T", "parameters": list(parameters), **extra}


class TestQuickRender:
    def test_uses_defaults(self, make_record):
        record = make_record(
            content="Tone: {{ tone }}",
            front_matter=meta({"name": "tone", "type": "string", "default": "formal"}),
        )
        assert quick_render(record).output == "Tone: formal"

    def test_clipboard_fills_first_blank_text_parameter(self, make_record):
        record = make_record(
            content="Summarize: {{ text }} ({{ style }})",
            front_matter=meta(
                {"name": "text", "type": "text", "required": True},
                {"name": "style", "type": "string", "default": "brief"},
            ),
        )
        result = quick_render(record, clipboard_text="  pasted words \n")
        assert result.output == "Summarize: pasted words (brief)"

    def test_clipboard_does_not_override_default(self, make_record):
        record = make_record(
            content="{{ text }}",
            front_matter=meta({"name": "text", "type": "string", "default": "keep"}),
        )
        assert quick_render(record, clipboard_text="other").output == "keep"

    def test_clipboard_ignored_for_non_text_first_parameter(self, make_record):
        record = make_record(
            content="{{ count }}",
            front_matter=meta({"name": "count", "type": "number", "required": True}),
        )
        with pytest.raises(MissingParametersError):
            quick_render(record, clipboard_text="12")

    def test_invalid_clipboard_value(self, make_record):
        record = make_record(
            content="{{ url }}",
            front_matter=meta({"name": "url", "type": "string", "regex": "^https?://"}),
        )
        with pytest.raises(InvalidParametersError):
            quick_render(record, clipboard_text="not a link")

    def test_requires_valid_metadata(self, make_record):
        with pytest.raises(MissingMetadataError):
            quick_render(make_record(content="x"))

    def test_context_passed_through(self, make_record):
        record = make_record(content="{{ context.selection }}", front_matter=meta())
        assert quick_render(record, context={"selection": "chosen"}).output == "chosen"


class TestHints:
    def test_parameter_hints(self):
        spec = ParameterSpec(name="PageURL", type="string", label="Page Link", regex="^HTTP")
        assert parameter_hints(spec) == ["pageurl", "page link", "^http"]

    def test_prefers_clipboard_type(self, make_record):
        record = make_record(front_matter=meta(preferred_clipboard_types=["url"]))
        assert prompt_prefers_clipboard_type(record, "url")
        assert not prompt_prefers_clipboard_type(record, "file")
        assert not prompt_prefers_clipboard_type(make_record(), "url")

    def test_requests_url(self, make_record):
        assert prompt_requests_url(make_record(front_matter=meta({"name": "link", "type": "string"})))
        assert prompt_requests_url(make_record(front_matter=meta(preferred_clipboard_types=["url"])))
        assert not prompt_requests_url(make_record(front_matter=meta({"name": "topic", "type": "string"})))

    def test_requests_file(self, make_record):
        assert prompt_requests_file(make_record(front_matter=meta(requires_file=True)))
        assert prompt_requests_file(
            make_record(front_matter=meta({"name": "x", "type": "string", "label": "Upload"}))
        )
        assert prompt_requests_file(make_record(front_matter=meta(preferred_clipboard_types=["file"])))
        assert not prompt_requests_file(make_record(front_matter=meta()))
        assert not prompt_requests_file(make_record())


class TestClipboard:
    @pytest.mark.parametrize(
        "text", ["https://example.com/a", "www.example.com", "example.org/path", "HTTP://X"]
    )
    def test_likely_urls(self, text):
        assert is_likely_url(text)

    @pytest.mark.parametrize("text", ["", "hello", "hello world.com now", "version 1.2"])
    def test_not_urls(self, text):
        assert not is_likely_url(text)

    def test_classify(self):
        assert classify_clipboard(file="/tmp/a.pdf") is ClipboardCategory.FILE
        assert classify_clipboard("https://example.com") is ClipboardCategory.URL
        assert classify_clipboard("plain words") is ClipboardCategory.TEXT
        assert classify_clipboard("  ") is ClipboardCategory.EMPTY

    def test_filter_for_clipboard(self, make_record):
        url_prompt = make_record("u.md", front_matter=meta({"name": "url", "type": "string"}))
        plain = make_record("p.md", front_matter=meta())
        records = [plain, url_prompt]

        assert filter_for_clipboard(records, ClipboardCategory.URL) == [url_prompt]
        assert filter_for_clipboard(records, ClipboardCategory.FILE) == records
        assert filter_for_clipboard(records, ClipboardCategory.TEXT) == records
