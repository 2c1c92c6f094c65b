"""Live, searchable index of a prompts root.

The index owns every Record for its root. A full crawl builds the initial
state; after that a PollingWatcher feeds change events through a queue to a
single consumer task, so mutations are applied one at a time and each one is
followed by exactly one rebuild and one round of listener notifications.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import timedelta
from enum import Enum
from pathlib import Path

from promptshelf.config import ConfigurationError, PromptshelfConfig
from promptshelf.library.crawler import Loader, crawl, run_in_thread
from promptshelf.library.loader import load_document
from promptshelf.library.models import Record, SearchResult
from promptshelf.library.search import SearchOptions, SearchStructure
from promptshelf.library.watcher import ChangeEvent, ChangeKind, PollingWatcher

logger = logging.getLogger(__name__)

Listener = Callable[[list[Record]], None]


class IndexState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    REFRESHING = "refreshing"
    DISPOSED = "disposed"


class IndexDisposedError(RuntimeError):
    """Raised when a disposed index is used."""


def sort_records(records) -> list[Record]:
    """Most recently modified first, ties broken by relative path."""
    ordered = sorted(records, key=lambda r: r.relative_path)
    ordered.sort(key=lambda r: r.modified_at, reverse=True)
    return ordered


class PromptIndex:
    """In-memory record store plus search structure for one prompts root."""

    def __init__(
        self,
        root: Path,
        *,
        watch: bool = True,
        poll_interval: float = 0.1,
        stabilization_delay: float = 0.2,
        search_options: SearchOptions | None = None,
        loader: Loader = load_document,
    ) -> None:
        self.root = Path(root)
        self.search_options = search_options or SearchOptions()
        self._loader = loader
        self._state = IndexState.UNINITIALIZED
        self._records: dict[Path, Record] = {}
        self._ordered: list[Record] = []
        self._search = SearchStructure([], self.search_options)
        self._listeners: list[Listener] = []
        self._init_lock = asyncio.Lock()
        self._mutation_lock = asyncio.Lock()
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        self._consumer: asyncio.Task | None = None
        self._watcher: PollingWatcher | None = None
        if watch:
            self._watcher = PollingWatcher(
                self.root,
                self._queue,
                poll_interval=poll_interval,
                stabilization_delay=stabilization_delay,
            )

    @property
    def state(self) -> IndexState:
        return self._state

    @property
    def watcher(self) -> PollingWatcher | None:
        return self._watcher

    def __len__(self) -> int:
        return len(self._records)

    def _check_disposed(self) -> None:
        if self._state is IndexState.DISPOSED:
            raise IndexDisposedError(f"Prompt index for {self.root} has been disposed")

    # ── Lifecycle ────────────────────────────────────────────

    async def initialize(self) -> None:
        """Crawl the root once and start watching it. Safe to call repeatedly."""
        self._check_disposed()
        if self._state in (IndexState.READY, IndexState.REFRESHING):
            return

        async with self._init_lock:
            self._check_disposed()
            if self._state in (IndexState.READY, IndexState.REFRESHING):
                return

            self._state = IndexState.INITIALIZING
            # Baseline first so files written during the crawl still raise events
            if self._watcher is not None:
                await run_in_thread(self._watcher.prime)
            try:
                records = await crawl(self.root, self._loader)
            except Exception:
                if self._state is IndexState.INITIALIZING:
                    self._state = IndexState.UNINITIALIZED
                raise

            if self._state is IndexState.DISPOSED:
                return

            async with self._mutation_lock:
                self._records = records
                self._rebuild()
            self._state = IndexState.READY

            if self._watcher is not None:
                self._consumer = asyncio.create_task(self._consume())
                self._watcher.start()
            logger.info("Prompt index ready for %s (%d records)", self.root, len(records))

        self._notify()

    async def refresh(self) -> None:
        """Re-crawl the whole root and swap the result in on success."""
        self._check_disposed()
        if self._state is IndexState.UNINITIALIZED:
            await self.initialize()
            return
        await self.initialize()

        async with self._mutation_lock:
            self._check_disposed()
            self._state = IndexState.REFRESHING
            try:
                records = await crawl(self.root, self._loader)
            finally:
                if self._state is IndexState.REFRESHING:
                    self._state = IndexState.READY
            if self._state is IndexState.DISPOSED:
                return
            self._records = records
            self._rebuild()
        logger.info("Prompt index refreshed for %s (%d records)", self.root, len(records))
        self._notify()

    async def dispose(self) -> None:
        """Stop watching and release everything. Further use raises."""
        if self._state is IndexState.DISPOSED:
            return
        self._state = IndexState.DISPOSED

        if self._watcher is not None:
            await self._watcher.stop()
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None

        self._records = {}
        self._ordered = []
        self._search = SearchStructure([], self.search_options)
        self._listeners.clear()
        logger.info("Prompt index disposed for %s", self.root)

    # ── Change events ────────────────────────────────────────

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.apply_event(event)
            except Exception:
                logger.exception("Failed to apply %s for %s", event.kind.value, event.path)
            finally:
                self._queue.task_done()

    async def apply_event(self, event: ChangeEvent) -> bool:
        """Apply one change to the record store.

        Returns True when the store changed (and listeners were notified).
        """
        if self._state is IndexState.DISPOSED:
            return False

        async with self._mutation_lock:
            if event.kind is ChangeKind.REMOVED:
                if self._records.pop(event.path, None) is None:
                    return False
                logger.info("Prompt removed: %s", event.path)
            else:
                record = await run_in_thread(self._loader, event.path, self.root)
                if self._state is IndexState.DISPOSED:
                    return False
                if record is None:
                    # Unreadable now, so the old version must not linger
                    if self._records.pop(event.path, None) is None:
                        return False
                    logger.info("Prompt dropped after failed reload: %s", event.path)
                else:
                    action = "added" if event.kind is ChangeKind.ADDED else "updated"
                    self._records[event.path] = record
                    logger.info("Prompt %s: %s", action, record.id)
            self._rebuild()

        self._notify()
        return True

    # ── Queries ──────────────────────────────────────────────

    def _rebuild(self) -> None:
        self._ordered = sort_records(self._records.values())
        self._search = SearchStructure(self._ordered, self.search_options)

    def get_all(self) -> list[Record]:
        self._check_disposed()
        return list(self._ordered)

    def get(self, record_id: str) -> Record | None:
        self._check_disposed()
        for record in self._ordered:
            if record.id == record_id:
                return record
        return None

    def search(self, query: str, limit: int = 50) -> list[SearchResult]:
        self._check_disposed()
        return self._search.search(query or "", limit)

    # ── Listeners ────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._check_disposed()
        self._listeners.append(listener)
        subscribed = True

        def unsubscribe() -> None:
            nonlocal subscribed
            if not subscribed:
                return
            subscribed = False
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    def _notify(self) -> None:
        if self._state is IndexState.DISPOSED:
            return
        snapshot = list(self._ordered)
        for listener in list(self._listeners):
            try:
                listener(list(snapshot))
            except Exception:
                logger.exception("Prompt index listener failed")


class IndexRegistry:
    """At most one live PromptIndex per resolved prompts root."""

    def __init__(
        self,
        *,
        watch: bool = True,
        poll_interval: float = 0.1,
        stabilization_delay: float = 0.2,
        search_options: SearchOptions | None = None,
    ) -> None:
        self.watch = watch
        self.poll_interval = poll_interval
        self.stabilization_delay = stabilization_delay
        self.search_options = search_options or SearchOptions()
        self._indices: dict[Path, PromptIndex] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: PromptshelfConfig) -> IndexRegistry:
        return cls(
            watch=config.watch.enabled,
            poll_interval=config.watch.poll_interval,
            stabilization_delay=config.watch.stabilization_delay,
            search_options=SearchOptions(
                threshold=config.search.threshold,
                min_match_length=config.search.min_match_length,
                recency_window=timedelta(days=config.search.recency_window_days),
                recency_weight=config.search.recency_weight,
            ),
        )

    @staticmethod
    def _key(root: str | Path | None) -> Path:
        if root is None or not str(root).strip():
            raise ConfigurationError("No prompts root configured")
        return Path(root).expanduser().resolve()

    def __contains__(self, root: str | Path) -> bool:
        return self._key(root) in self._indices

    def __len__(self) -> int:
        return len(self._indices)

    async def get(self, root: str | Path | None) -> PromptIndex:
        """Return the shared, initialized index for root."""
        key = self._key(root)
        async with self._lock:
            index = self._indices.get(key)
            # Disposed directly by its owner, so start over
            if index is None or index.state is IndexState.DISPOSED:
                index = PromptIndex(
                    key,
                    watch=self.watch,
                    poll_interval=self.poll_interval,
                    stabilization_delay=self.stabilization_delay,
                    search_options=self.search_options,
                )
                self._indices[key] = index
        await index.initialize()
        return index

    async def dispose(self, root: str | Path) -> None:
        index = self._indices.pop(self._key(root), None)
        if index is not None:
            await index.dispose()

    async def dispose_all(self) -> None:
        indices = list(self._indices.values())
        self._indices.clear()
        for index in indices:
            await index.dispose()
