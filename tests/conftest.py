from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from promptshelf.library.models import Record
from promptshelf.library.schema import FrontMatter, ValidationIssue


@pytest.fixture
def write_prompt(tmp_path: Path):
    """Write a prompt document under tmp_path and return its path."""

    def _write(relative: str, body: str = "Body", front_matter: str | None = None) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        text = body if front_matter is None else f"---\n{front_matter}\n---\n{body}"
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_record():
    """Build a Record in memory without touching disk."""

    def _make(
        relative_path: str = "example.md",
        content: str = "",
        front_matter: dict | None = None,
        tags: list[str] | None = None,
        modified_at: datetime | None = None,
        issues: list[ValidationIssue] | None = None,
    ) -> Record:
        fm = FrontMatter.model_validate(front_matter) if front_matter is not None else None
        return Record(
            id=relative_path,
            file_path=Path("/prompts") / relative_path,
            relative_path=relative_path,
            root_path=Path("/prompts"),
            content=content,
            excerpt=content[:260],
            tags=tags or [],
            modified_at=modified_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
            front_matter=fm,
            validation_issues=issues or [],
        )

    return _make
