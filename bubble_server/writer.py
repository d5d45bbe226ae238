"""
Debounced persistence writer.

One asyncio task drains a bounded queue of "key changed" notifications. Each
key gets its own quiet window: a write happens once ``window`` seconds pass
without a further change to that key, so a burst of mutations collapses into
a single write of the latest state.
"""
from __future__ import annotations

import asyncio
import typing as t

from bubble_server.logger import get_logger

logger = get_logger(__name__)

FlushCallback = t.Callable[[str], t.Awaitable[None]]

_STOP = object()


class DebouncedWriter:
    """Coalesces change notifications per key and flushes them after a quiet window."""

    def __init__(self, flush: FlushCallback, window: float = 1.0, maxsize: int = 64) -> None:
        """
        Args:
            flush: Coroutine function writing the current state of one key
            window: Quiet period in seconds before a changed key is written
            maxsize: Bound of the notification queue
        """
        self._flush = flush
        self.window = window
        self._maxsize = maxsize
        self._queue: t.Optional[asyncio.Queue] = None
        self._task: t.Optional[asyncio.Task] = None
        # Keys changed while the task was not running or the queue was full
        self._overflow: set[str] = set()
        self._deadlines: dict[str, float] = {}
        self._stopping = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> set[str]:
        """Keys changed but not yet written."""
        return set(self._deadlines) | self._overflow

    def start(self) -> None:
        """Start the writer task on the running event loop."""
        if self.running:
            return
        self._stopping = False
        self._queue = asyncio.Queue(maxsize=self._maxsize)
        self._task = asyncio.get_running_loop().create_task(self._run(), name="bubble-writer")
        logger.debug(f"Writer started (window={self.window}s, queue={self._maxsize})")

    def notify(self, key: str) -> None:
        """Record that ``key`` changed. Never blocks and never raises."""
        if not self.running or self._stopping:
            self._overflow.add(key)
            return
        try:
            self._queue.put_nowait(key)
        except asyncio.QueueFull:
            self._overflow.add(key)

    async def flush(self) -> None:
        """Write every pending key now, without waiting for its window."""
        keys = self.pending
        self._deadlines.clear()
        self._overflow.clear()
        if self._queue is not None:
            while not self._queue.empty():
                item = self._queue.get_nowait()
                if item is _STOP:
                    # close() is waiting on the task; put the sentinel back
                    self._queue.put_nowait(item)
                    break
                keys.add(item)
        for key in sorted(keys):
            await self._write(key)

    async def close(self) -> None:
        """Stop the task, writing everything still pending."""
        if self.running:
            self._stopping = True
            await self._queue.put(_STOP)
            await self._task
        self._task = None
        await self.flush()
        logger.debug("Writer closed")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        for key in self._overflow:
            self._deadlines[key] = loop.time() + self.window
        self._overflow.clear()
        while True:
            timeout = None
            if self._deadlines:
                timeout = max(0.0, min(self._deadlines.values()) - loop.time())
            try:
                item = await asyncio.wait_for(self._queue.get(), timeout)
            except asyncio.TimeoutError:
                item = None

            if item is _STOP:
                return

            now = loop.time()
            if item is not None:
                self._deadlines[item] = now + self.window
            if self._overflow:
                for key in self._overflow:
                    self._deadlines[key] = now + self.window
                self._overflow.clear()

            due = sorted(key for key, deadline in self._deadlines.items() if deadline <= now)
            for key in due:
                self._deadlines.pop(key, None)
                await self._write(key)

    async def _write(self, key: str) -> None:
        try:
            await self._flush(key)
        except Exception as e:
            # The flush callback reports its own failures; keep the task alive
            logger.error(f"Unhandled error flushing '{key}': {e}", exc_info=True)
