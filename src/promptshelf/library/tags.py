"""Tag derivation from folder layout and declared metadata."""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import PurePath, PurePosixPath

_NON_ALNUM_RUN = re.compile(r"[^a-zA-Z0-9]+")


def segment_tag(segment: str) -> str | None:
    """Normalize one folder name into a tag, or None if nothing is left."""
    normalized = _NON_ALNUM_RUN.sub("-", segment).strip("-").lower()
    return normalized or None


def derive_tags(relative_path: str | PurePath, declared: Iterable[str] | None = None) -> list[str]:
    """Union of folder-derived tags and declared tags, lower-cased and unique."""
    posix = PurePosixPath(str(relative_path).replace("\\", "/"))
    folder_tags = [segment_tag(part) for part in posix.parts[:-1] if part not in ("/", ".")]

    unique: dict[str, None] = {}
    for tag in [*folder_tags, *(declared or [])]:
        if not tag:
            continue
        normalized = str(tag).strip().lower()
        if normalized:
            unique[normalized] = None
    return list(unique)
