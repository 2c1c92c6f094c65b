"""Recursive, concurrent directory crawl feeding the document loader."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path

from promptshelf.library.loader import has_valid_extension, load_document
from promptshelf.library.models import Record

logger = logging.getLogger(__name__)

IGNORED_DIR_NAMES = frozenset({"node_modules"})

Loader = Callable[[Path, Path], "Record | None"]


class CrawlError(Exception):
    """A directory under the prompts root could not be read."""

    def __init__(self, message: str, path: str | Path | None = None):
        self.path = str(path) if path else None
        super().__init__(f"{message}" + (f": {path}" if path else ""))


def is_ignored_dir(name: str) -> bool:
    return name.startswith(".") or name in IGNORED_DIR_NAMES


def _scan(directory: Path) -> list[tuple[Path, bool, bool]]:
    """List (path, is_dir, is_file) for one directory without following symlinks."""
    with os.scandir(directory) as entries:
        return [
            (Path(entry.path), entry.is_dir(follow_symlinks=False), entry.is_file(follow_symlinks=False))
            for entry in entries
        ]


def run_in_thread(func, *args, **kwargs):
    loop = asyncio.get_running_loop()
    return loop.run_in_executor(None, lambda: func(*args, **kwargs))


async def crawl(root: Path, loader: Loader = load_document) -> dict[Path, Record]:
    """Load every eligible document under root.

    Siblings are processed concurrently. The result is only returned once the
    whole tree has been visited; an unreadable directory aborts the crawl.
    """
    records: dict[Path, Record] = {}

    async def visit_file(path: Path) -> None:
        record = await run_in_thread(loader, path, root)
        if record is not None:
            records[path] = record

    async def visit_dir(directory: Path) -> None:
        try:
            entries = await run_in_thread(_scan, directory)
        except OSError as e:
            raise CrawlError("Failed to read directory", directory) from e

        tasks = []
        for path, is_dir, is_file in entries:
            if is_dir:
                if not is_ignored_dir(path.name):
                    tasks.append(visit_dir(path))
            elif is_file and has_valid_extension(path):
                tasks.append(visit_file(path))
        if tasks:
            await asyncio.gather(*tasks)

    await visit_dir(root)
    logger.info("Crawled %s: %d prompt file(s)", root, len(records))
    return records


def iter_eligible_files(root: Path) -> Iterator[Path]:
    """Synchronously walk root with the crawl's filters.

    Unreadable subdirectories are skipped here; only the root itself must be
    readable.
    """
    stack = [root]
    while stack:
        directory = stack.pop()
        try:
            entries = _scan(directory)
        except OSError:
            if directory == root:
                raise
            logger.debug("Skipping unreadable directory %s", directory)
            continue
        for path, is_dir, is_file in entries:
            if is_dir:
                if not is_ignored_dir(path.name):
                    stack.append(path)
            elif is_file and has_valid_extension(path):
                yield path
