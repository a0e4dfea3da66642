"""Background producer that feeds search results through a bounded buffer."""

import asyncio
import logging
from contextlib import aclosing
from typing import AsyncGenerator, Optional

from splunkjobs.models import SearchResult
from splunkjobs.pagination import PAGE_SIZE

logger = logging.getLogger(__name__)

BUFFERED_PAGES = 4

_END_OF_STREAM = object()


class ResultStream:
    """
    Lazy, cancellable sequence of search results.

    A background task pulls records from the source (normally
    paginate_preview) into a bounded asyncio.Queue, so fetching the next
    page overlaps with the caller's processing. When the buffer is full the
    producer waits for the consumer.

    The producer only starts when the ``async with`` block is entered, and
    leaving the block cancels it, so a consumer that breaks out early never
    leaves a task behind. Iterating outside the block raises RuntimeError.
    The producer marks the end of the buffer exactly once however it stops
    (source exhausted, failure or aclose()), so iteration always terminates.
    The remote job is left alone.

    Example:
        async with client.stream(job.id) as results:
            async for record in results:
                if record["status"] == "500":
                    break
    """

    def __init__(
        self,
        source: AsyncGenerator[SearchResult, None],
        buffer_size: int = PAGE_SIZE * BUFFERED_PAGES,
    ):
        """
        Args:
            source: Async generator of records, consumed by the producer task
            buffer_size: Maximum number of records held between producer and consumer
        """
        self._source = source
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=buffer_size)
        self._task: Optional[asyncio.Task] = None
        self._producer_done = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _start(self) -> None:
        if self._task is None and not self._closed:
            self._task = asyncio.create_task(self._produce())

    async def _produce(self) -> None:
        try:
            async with aclosing(self._source) as records:
                async for record in records:
                    await self._queue.put(record)
        finally:
            self._producer_done = True
            # A full buffer means the consumer is not waiting; it will see
            # _producer_done once it has drained what is there.
            if not self._queue.full():
                self._queue.put_nowait(_END_OF_STREAM)

    async def __aenter__(self) -> "ResultStream":
        self._start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def __aiter__(self) -> "ResultStream":
        return self

    async def __anext__(self) -> SearchResult:
        if self._closed:
            raise StopAsyncIteration
        if self._task is None:
            raise RuntimeError("iterate ResultStream inside 'async with'")

        if self._queue.empty() and self._producer_done:
            await self._finish()
            raise StopAsyncIteration

        record = await self._queue.get()
        if record is _END_OF_STREAM:
            await self._finish()
            raise StopAsyncIteration
        return record

    async def _finish(self) -> None:
        self._closed = True
        task = self._task
        if task is not None and not task.cancelled():
            # Re-raises anything unexpected that killed the producer
            await task

    async def aclose(self) -> None:
        """Stop the producer and end iteration. Safe to call more than once."""
        self._closed = True
        task = self._task
        if task is None:
            await self._source.aclose()
            return

        if not task.done():
            task.cancel()
            await asyncio.wait({task})
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Result producer failed before close: %s", task.exception())
