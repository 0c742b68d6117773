"""Ownership of the live store handle and its ready/building/error status."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from sdkdocs.index.indexer import IndexBuilder, IndexStats
from sdkdocs.index.search import QueryService
from sdkdocs.index.storage import DocStore

LOGGER = logging.getLogger(__name__)

READY = "ready"
BUILDING = "building"
ERROR = "error"


@dataclass(slots=True, frozen=True)
class IndexStatus:
    state: str
    error: Optional[str] = None
    stats: Optional[Dict[str, Any]] = None

    @property
    def ready(self) -> bool:
        return self.state == READY

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.state, "error": self.error, "stats": self.stats}


class IndexState:
    """Holds the store that serves reads and swaps in freshly built ones.

    Readers grab a ``QueryService`` through ``queries()``; a build never
    touches the store they hold. A finished build is installed in a single
    assignment, after which the previous store is closed. If a build fails
    while an older store exists, that store keeps serving and the failure is
    reported through ``status().error``.
    """

    def __init__(self, db_path: Path, builder: IndexBuilder) -> None:
        self.db_path = Path(db_path)
        self.builder = builder
        self._lock = threading.Lock()
        self._store: Optional[DocStore] = None
        self._state = BUILDING
        self._error: Optional[str] = None
        self._stats: Optional[Dict[str, Any]] = None
        self._task: Optional[asyncio.Task] = None

    def status(self) -> IndexStatus:
        with self._lock:
            return IndexStatus(self._state, self._error, self._stats)

    def queries(self) -> Optional[QueryService]:
        """Query service over the current store, or ``None`` when not ready."""
        with self._lock:
            if self._state != READY or self._store is None:
                return None
            return QueryService(self._store)

    def open_existing(self) -> bool:
        """Open a previously built index if one exists on disk."""
        if not self.db_path.exists():
            return False
        try:
            self.install(DocStore(self.db_path, readonly=True))
        except Exception as exc:
            LOGGER.error("Failed to open database %s: %s", self.db_path, exc)
            self.mark_failed(exc)
            return False
        return True

    def install(self, store: DocStore, stats: Optional[IndexStats] = None) -> None:
        with self._lock:
            previous, self._store = self._store, store
            self._state = READY
            self._error = None
            if stats is not None:
                self._stats = stats.to_dict()
        if previous is not None and previous is not store:
            previous.close()

    def mark_building(self) -> None:
        with self._lock:
            self._state = BUILDING
            self._error = None

    def mark_failed(self, exc: BaseException) -> None:
        message = str(exc) or exc.__class__.__name__
        with self._lock:
            self._error = message
            self._state = READY if self._store is not None else ERROR

    def close(self) -> None:
        with self._lock:
            store, self._store = self._store, None
        if store is not None:
            store.close()

    def rebuild(self) -> IndexStats:
        """Run a full build synchronously and install the result."""
        self.mark_building()
        try:
            stats = self.builder.build(self.db_path)
            store = DocStore(self.db_path, readonly=True)
        except Exception as exc:
            LOGGER.error("Index build failed: %s", exc)
            self.mark_failed(exc)
            raise
        self.install(store, stats)
        return stats

    @property
    def building(self) -> bool:
        return self._task is not None and not self._task.done()

    def start_background_build(self) -> asyncio.Task:
        """Schedule a full build on the running loop without blocking it.

        The parsing work runs in a worker thread; installing the new store
        happens back on the loop so no request is mid-read when the old store
        is closed.
        """
        if self.building:
            return self._task  # type: ignore[return-value]
        self.mark_building()
        self._task = asyncio.get_running_loop().create_task(self._build_in_background())
        return self._task

    async def _build_in_background(self) -> Optional[IndexStats]:
        try:
            stats = await asyncio.to_thread(self.builder.build, self.db_path)
            store = DocStore(self.db_path, readonly=True)
        except Exception as exc:
            LOGGER.exception("Index build failed: %s", exc)
            self.mark_failed(exc)
            return None
        self.install(store, stats)
        LOGGER.info("Index ready.")
        return stats

    async def stop_background_build(self) -> None:
        """Cancel a pending background build so it never installs a store.

        The worker thread may still finish writing its file, but the result
        is not opened.
        """
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            LOGGER.info("Background index build cancelled")
