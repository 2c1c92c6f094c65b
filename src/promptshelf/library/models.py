"""Core promptshelf data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from promptshelf.library.schema import FrontMatter, ParameterSpec, ValidationIssue


@dataclass(frozen=True)
class Record:
    """One indexed prompt document.

    Records are never mutated in place; every change on disk produces a new
    Record for the same path.
    """

    id: str
    file_path: Path
    relative_path: str
    root_path: Path
    content: str
    excerpt: str
    tags: list[str]
    modified_at: datetime
    front_matter: FrontMatter | None = None
    validation_issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """True when the document may be offered for rendering."""
        return self.front_matter is not None and not self.validation_issues

    @property
    def title(self) -> str:
        if self.front_matter is not None:
            return self.front_matter.title
        return self.relative_path

    @property
    def parameters(self) -> list[ParameterSpec]:
        if self.front_matter is None:
            return []
        return list(self.front_matter.parameters)

    @property
    def has_parameters(self) -> bool:
        return bool(self.parameters)


@dataclass(frozen=True)
class SearchResult:
    """A record paired with its ranking score (lower is better)."""

    record: Record
    score: float
