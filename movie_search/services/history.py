import asyncio
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Deque, List, Optional, Set

from ..errors import HistoryRecordingError
from ..models.movie import SearchHistoryEntry

logger = logging.getLogger(__name__)


class HistoryRecorder:
    """
    Keeps the most recent successful searches in memory.

    ``notify`` schedules the write on the running loop and returns at once;
    the caller never awaits it and never sees its failures.
    """

    def __init__(self, limit: int = 50):
        self.limit = limit
        self._entries: Deque[dict] = deque(maxlen=limit)
        self._pending: Set[asyncio.Task] = set()

    async def record(self, query: str, results: int, client_address: Optional[str] = None):
        if not query:
            raise HistoryRecordingError("Search history entries need a query")
        self._entries.appendleft({
            "query": query,
            "timestamp": datetime.now(timezone.utc),
            "results": results,
            "client_address": client_address,
        })

    def notify(self, query: str, results: int, client_address: Optional[str] = None) -> asyncio.Task:
        task = asyncio.create_task(self.record(query, results, client_address))
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task):
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Failed to record search history: {exc!r}")

    def recent(self, limit: Optional[int] = None) -> List[SearchHistoryEntry]:
        entries = list(self._entries)[: limit or self.limit]
        return [
            SearchHistoryEntry(query=e["query"], timestamp=e["timestamp"], results=e["results"])
            for e in entries
        ]

    async def drain(self):
        """
        Wait for pending writes, used at shutdown
        """
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
