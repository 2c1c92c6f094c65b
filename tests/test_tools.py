"""Tests for the agent prompt tools."""

from __future__ import annotations

from pathlib import Path

import pytest

from promptshelf.library.index import PromptIndex
from promptshelf.tools.prompt_tools import get_prompt_tools

SUMMARY_META = """schema_version: 1
title: Summarize article
parameters:
  - name: text
    type: text
    required: true
  - name: ticket
    type: string
    regex: "^[A-Z]+-\\\\d+$"
"""


async def open_index(root: Path, write_prompt) -> PromptIndex:
    write_prompt("writing/summary.md", "Summarize: {{ text }} {{ ticket }}", SUMMARY_META)
    write_prompt("drafts/untitled.md", "No metadata yet")
    index = PromptIndex(root, watch=False)
    await index.initialize()
    return index


class TestPromptTools:
    @pytest.mark.asyncio
    async def test_tool_names(self, tmp_path: Path, write_prompt):
        index = await open_index(tmp_path, write_prompt)
        assert set(get_prompt_tools(index)) == {
            "list_prompts",
            "search_prompts",
            "render_prompt",
            "quick_render_prompt",
        }

    @pytest.mark.asyncio
    async def test_list_prompts(self, tmp_path: Path, write_prompt):
        index = await open_index(tmp_path, write_prompt)
        listing = get_prompt_tools(index)["list_prompts"]()
        assert "writing/summary.md: Summarize article [writing]" in listing
        assert "drafts/untitled.md: drafts/untitled.md [drafts] (needs metadata)" in listing

    @pytest.mark.asyncio
    async def test_search_prompts(self, tmp_path: Path, write_prompt):
        index = await open_index(tmp_path, write_prompt)
        search = get_prompt_tools(index)["search_prompts"]
        assert "writing/summary.md" in search("summarize")
        assert search("zzzzqqq") == "(no prompts match 'zzzzqqq')"

    @pytest.mark.asyncio
    async def test_render_prompt(self, tmp_path: Path, write_prompt):
        index = await open_index(tmp_path, write_prompt)
        render = get_prompt_tools(index)["render_prompt"]
        assert render("writing/summary.md", {"text": "hello", "ticket": "AB-1"}) == "Summarize: hello AB-1"

    @pytest.mark.asyncio
    async def test_render_errors_are_messages(self, tmp_path: Path, write_prompt):
        index = await open_index(tmp_path, write_prompt)
        render = get_prompt_tools(index)["render_prompt"]
        assert render("missing.md") == "Unknown prompt: missing.md"
        assert "needs metadata" in render("drafts/untitled.md")
        assert render("writing/summary.md") == "Missing required parameter(s): text"
        assert render("writing/summary.md", {"text": "x", "ticket": "bad"}).startswith("Invalid parameter(s)")

    @pytest.mark.asyncio
    async def test_list_prompts_for_url_clipboard(self, tmp_path: Path, write_prompt):
        write_prompt(
            "web/fetch.md",
            "Fetch {{ url }}",
            "schema_version: 1\ntitle: Fetch\nparameters:\n  - name: url\n    type: string",
        )
        index = await open_index(tmp_path, write_prompt)
        list_prompts = get_prompt_tools(index)["list_prompts"]

        assert list_prompts("https://example.com/post") == "- web/fetch.md: Fetch [web]"
        assert "writing/summary.md" in list_prompts("plain words")

    @pytest.mark.asyncio
    async def test_quick_render_prompt(self, tmp_path: Path, write_prompt):
        index = await open_index(tmp_path, write_prompt)
        quick = get_prompt_tools(index)["quick_render_prompt"]

        assert quick("writing/summary.md", "pasted") == "Summarize: pasted"
        assert quick("writing/summary.md") == "Missing required parameter(s): text"
        assert quick("missing.md") == "Unknown prompt: missing.md"
        assert "needs metadata" in quick("drafts/untitled.md")

    @pytest.mark.asyncio
    async def test_render_lists_attachments(self, tmp_path: Path, write_prompt):
        write_prompt("files/style.txt", "Be brief")
        write_prompt(
            "mail.md",
            "Reply",
            "schema_version: 1\ntitle: Mail\nfiles_to_paste:\n  - files/style.txt",
        )
        write_prompt(
            "broken.md",
            "Reply",
            "schema_version: 1\ntitle: Broken\nfiles_to_paste:\n  - ../secret.txt",
        )
        index = await open_index(tmp_path, write_prompt)
        render = get_prompt_tools(index)["render_prompt"]

        assert render("mail.md") == f"Reply\n\nAttachments:\n- {tmp_path / 'files' / 'style.txt'}"
        assert render("broken.md") == (
            "Attachment path '../secret.txt' must stay within the prompts directory"
        )
