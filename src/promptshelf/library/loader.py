"""Load one prompt document into a Record."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import frontmatter

from promptshelf.library.models import Record
from promptshelf.library.schema import (
    MISSING_FRONT_MATTER,
    FrontMatter,
    Invalid,
    ValidationIssue,
    validate_front_matter,
)
from promptshelf.library.tags import derive_tags

logger = logging.getLogger(__name__)

VALID_EXTENSIONS = frozenset({".md", ".markdown", ".mdx", ".txt", ".yaml", ".yml"})
EXCERPT_MAX_LENGTH = 260


def has_valid_extension(path: str | Path) -> bool:
    return Path(path).suffix.lower() in VALID_EXTENSIONS


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Return (metadata, body) for a document.

    Metadata is empty when the document has no front matter block. Parse
    errors propagate to the caller.
    """
    post = frontmatter.loads(text.lstrip("\ufeff"))
    return dict(post.metadata), post.content


def build_excerpt(content: str, max_length: int = EXCERPT_MAX_LENGTH) -> str:
    """Collapse whitespace and truncate with an ellipsis."""
    clean = " ".join(content.split())
    if len(clean) <= max_length:
        return clean
    return f"{clean[: max_length - 1]}…"


def load_document(path: Path, root: Path) -> Record | None:
    """Read one file into a Record.

    Invalid or missing metadata still yields a Record (with issues) so the
    document stays visible. Read and parse failures are logged and yield None.
    """
    try:
        stat = path.stat()
        if not path.is_file() or not has_valid_extension(path):
            return None
        raw = path.read_text(encoding="utf-8")
        data, body = split_front_matter(raw)
    except Exception as e:
        logger.error("Failed to load prompt file %s: %s", path, e)
        return None

    front_matter: FrontMatter | None = None
    issues: list[ValidationIssue] = []
    if data:
        result = validate_front_matter(data)
        if isinstance(result, Invalid):
            issues = list(result.issues)
            logger.debug("Prompt %s has %d metadata issue(s)", path, len(issues))
        else:
            front_matter = result.front_matter
    else:
        issues = [ValidationIssue(MISSING_FRONT_MATTER)]

    relative_path = path.relative_to(root).as_posix()
    return Record(
        id=relative_path,
        file_path=path,
        relative_path=relative_path,
        root_path=root,
        content=body,
        excerpt=build_excerpt(body),
        tags=derive_tags(relative_path, front_matter.tags if front_matter else None),
        modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        front_matter=front_matter,
        validation_issues=issues,
    )
