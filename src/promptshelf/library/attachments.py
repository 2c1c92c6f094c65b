"""Resolve the files a prompt asks to paste alongside its text."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from promptshelf.library.models import Record

logger = logging.getLogger(__name__)


class AttachmentError(ValueError):
    """An attachment entry escapes the root or does not name a regular file."""

    def __init__(self, message: str, entry: str):
        super().__init__(message)
        self.entry = entry


def resolve_attachment_paths(record: Record) -> list[Path]:
    """Absolute paths for ``files_to_paste``, in declared order.

    Relative entries resolve against the record's prompts root. Blank and
    repeated entries are skipped. Raises AttachmentError on the first entry
    that leaves the root, is missing, or is not a regular file.
    """
    entries = record.front_matter.files_to_paste if record.front_matter else []
    if not entries:
        return []

    root = Path(os.path.abspath(record.root_path))
    seen: set[Path] = set()
    resolved: list[Path] = []
    for entry in entries:
        trimmed = (entry or "").strip()
        if not trimmed:
            continue

        candidate = Path(os.path.abspath(root / Path(trimmed).expanduser()))
        if candidate != root and root not in candidate.parents:
            raise AttachmentError(
                f"Attachment path '{trimmed}' must stay within the prompts directory", trimmed
            )
        if candidate in seen:
            continue
        if not candidate.exists():
            raise AttachmentError(f"Attachment file not found: {trimmed}", trimmed)
        if not candidate.is_file():
            raise AttachmentError(f"Attachment must be a file: {trimmed}", trimmed)

        seen.add(candidate)
        resolved.append(candidate)

    logger.debug("Resolved %d attachment(s) for %s", len(resolved), record.id)
    return resolved
