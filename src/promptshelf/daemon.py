"""Watch daemon: keep a prompts root indexed until told to stop.

Usage: python -m promptshelf watch

Manages:
- Index lifecycle through an IndexRegistry
- Update logging for every change the watcher applies
- Graceful shutdown (SIGTERM/SIGINT)
"""

from __future__ import annotations

import asyncio
import logging
import signal

from promptshelf.config import PromptshelfConfig, load_config
from promptshelf.library.index import IndexRegistry, PromptIndex
from promptshelf.library.models import Record

logger = logging.getLogger(__name__)


class PromptshelfDaemon:
    """Always-on index for one prompts root."""

    def __init__(self, config: PromptshelfConfig | None = None) -> None:
        self.config = config or load_config()
        self.registry = IndexRegistry.from_config(self.config)
        self.index: PromptIndex | None = None
        self.updates = 0
        self._shutdown_event = asyncio.Event()

    # ── Signal handling ──────────────────────────────────────

    def _setup_signals(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._handle_signal, sig)

    def _remove_signals(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)

    def _handle_signal(self, sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down...", sig.name)
        self._shutdown_event.set()

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    # ── Index updates ────────────────────────────────────────

    def _on_update(self, records: list[Record]) -> None:
        self.updates += 1
        needs_metadata = sum(1 for record in records if not record.is_valid)
        logger.info(
            "Prompt index updated: %d prompt(s), %d need metadata",
            len(records),
            needs_metadata,
        )

    # ── Main run loop ────────────────────────────────────────

    async def run(self, install_signals: bool = True) -> None:
        root = self.config.require_prompts_path()
        if install_signals:
            self._setup_signals()

        logger.info("Promptshelf daemon starting (root=%s)", root)
        try:
            self.index = await self.registry.get(root)
            unsubscribe = self.index.subscribe(self._on_update)
            logger.info("Indexed %d prompt(s) from %s", len(self.index), root)
            try:
                await self._shutdown_event.wait()
            finally:
                unsubscribe()
        except asyncio.CancelledError:
            pass
        finally:
            await self.registry.dispose_all()
            if install_signals:
                self._remove_signals()
            logger.info("Promptshelf daemon stopped.")
