"""Tests for the command-line entry point."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from promptshelf.__main__ import main

META = """schema_version: 1
title: Greeting
parameters:
  - name: name
    type: string
    required: true
"""


@pytest.fixture
def library(tmp_path: Path, write_prompt, monkeypatch) -> Path:
    write_prompt("social/greeting.md", "Hello {{ name }}!", META)
    write_prompt("loose.md", "no metadata")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("PROMPTSHELF_PROMPTS_PATH", str(tmp_path))
    return tmp_path


def run(monkeypatch, *args: str) -> None:
    monkeypatch.setattr(sys, "argv", ["promptshelf", *args])
    main()


class TestCommands:
    def test_list(self, library: Path, monkeypatch, capsys):
        run(monkeypatch, "list")
        out = capsys.readouterr().out
        assert "social/greeting.md: Greeting [social]" in out
        assert "loose.md: loose.md (needs metadata)" in out

    def test_search(self, library: Path, monkeypatch, capsys):
        run(monkeypatch, "search", "greeting", "--limit", "1")
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 1
        assert "social/greeting.md" in lines[0]

    def test_render(self, library: Path, monkeypatch, capsys):
        run(monkeypatch, "render", "social/greeting.md", "name=Ada")
        assert capsys.readouterr().out == "Hello Ada!\n"

    def test_render_missing_parameter(self, library: Path, monkeypatch, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run(monkeypatch, "render", "social/greeting.md")
        assert exc_info.value.code == 1
        assert "Missing required parameter(s): name" in capsys.readouterr().err

    def test_unconfigured_root(self, tmp_path: Path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        monkeypatch.delenv("PROMPTSHELF_PROMPTS_PATH", raising=False)
        with pytest.raises(SystemExit):
            run(monkeypatch, "list")
        assert "index unavailable: No prompts root configured" in capsys.readouterr().err

    def test_unknown_command(self, library: Path, monkeypatch):
        with pytest.raises(SystemExit):
            run(monkeypatch, "bogus")

    def test_render_form_field_ids(self, library: Path, monkeypatch, capsys):
        run(monkeypatch, "render", "social/greeting.md", "param-name=Grace")
        assert capsys.readouterr().out == "Hello Grace!\n"

    def test_quick_render_from_clipboard(self, library: Path, monkeypatch, capsys):
        run(monkeypatch, "render", "social/greeting.md", "--quick", "--clipboard", "Lin")
        assert capsys.readouterr().out == "Hello Lin!\n"

    def test_quick_render_rejects_assignments(self, library: Path, monkeypatch, capsys):
        with pytest.raises(SystemExit):
            run(monkeypatch, "render", "social/greeting.md", "--quick", "name=Ada")
        assert "takes no name=value pairs" in capsys.readouterr().err

    def test_list_for_url_clipboard(self, library: Path, write_prompt, monkeypatch, capsys):
        write_prompt(
            "web/fetch.md",
            "{{ link }}",
            "schema_version: 1\ntitle: Fetch\nparameters:\n  - name: link\n    type: string",
        )
        run(monkeypatch, "list", "--clipboard", "https://example.com")
        assert capsys.readouterr().out == "- web/fetch.md: Fetch [web]\n"

    def test_render_prints_attachments(self, library: Path, write_prompt, monkeypatch, capsys):
        write_prompt("files/sig.txt", "Regards")
        write_prompt(
            "mail.md",
            "Reply",
            "schema_version: 1\ntitle: Mail\nfiles_to_paste: [files/sig.txt]",
        )
        run(monkeypatch, "render", "mail.md")
        expected = library.resolve() / "files" / "sig.txt"
        assert capsys.readouterr().out == f"Reply\n\nAttachments:\n- {expected}\n"
