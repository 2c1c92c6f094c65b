"""Polling change watcher for a prompts root.

Snapshots (mtime, size) of every eligible file on a fixed interval and emits
typed change events onto a queue. A new or changed file is only announced
once its signature has held still for the stabilization delay, so documents
are never read mid-write.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from promptshelf.library.crawler import iter_eligible_files, run_in_thread

logger = logging.getLogger(__name__)

Signature = tuple[int, int]


class ChangeKind(str, Enum):
    ADDED = "add"
    CHANGED = "change"
    REMOVED = "unlink"


@dataclass(frozen=True)
class ChangeEvent:
    kind: ChangeKind
    path: Path


@dataclass
class _Pending:
    signature: Signature
    since: float


def snapshot(root: Path) -> dict[Path, Signature]:
    """Current signatures of every eligible file under root."""
    signatures: dict[Path, Signature] = {}
    for path in iter_eligible_files(root):
        try:
            stat = path.stat()
        except FileNotFoundError:
            continue
        signatures[path] = (stat.st_mtime_ns, stat.st_size)
    return signatures


class PollingWatcher:
    """Watch a prompts root and publish ChangeEvents to a queue."""

    def __init__(
        self,
        root: Path,
        queue: asyncio.Queue[ChangeEvent],
        *,
        poll_interval: float = 0.1,
        stabilization_delay: float = 0.2,
    ) -> None:
        self.root = root
        self.queue = queue
        self.poll_interval = poll_interval
        self.stabilization_delay = stabilization_delay
        self._known: dict[Path, Signature] = {}
        self._pending: dict[Path, _Pending] = {}
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def prime(self) -> None:
        """Record the baseline so already-present files emit no events."""
        try:
            self._known = snapshot(self.root)
        except OSError as e:
            logger.error("Prompt watcher could not snapshot %s: %s", self.root, e)
            self._known = {}
        self._pending.clear()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info("Watching %s (poll=%.2fs)", self.root, self.poll_interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Stopped watching %s", self.root)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                await self.poll()
            except Exception as e:
                logger.error("Prompt watcher error: %s", e)

    async def poll(self) -> list[ChangeEvent]:
        """Compare the filesystem with the last known state and emit events."""
        current = await run_in_thread(snapshot, self.root)
        now = time.monotonic()
        events: list[ChangeEvent] = []

        for path in [p for p in self._known if p not in current]:
            del self._known[path]
            events.append(ChangeEvent(ChangeKind.REMOVED, path))
        for path in [p for p in self._pending if p not in current]:
            del self._pending[path]

        for path, signature in current.items():
            if self._known.get(path) == signature:
                self._pending.pop(path, None)
                continue
            pending = self._pending.get(path)
            if pending is None or pending.signature != signature:
                self._pending[path] = _Pending(signature, now)
                continue
            if now - pending.since < self.stabilization_delay:
                continue
            kind = ChangeKind.CHANGED if path in self._known else ChangeKind.ADDED
            self._known[path] = signature
            del self._pending[path]
            events.append(ChangeEvent(kind, path))

        for event in events:
            logger.debug("Prompt watcher event: %s %s", event.kind.value, event.path)
            self.queue.put_nowait(event)
        return events
