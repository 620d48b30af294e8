"""
Stage Handoff

Unbuffered channel between two pipeline stages. send() returns only after the
receiving stage has finished with the item, so a slow sink holds back the source.
"""

import asyncio
from typing import AsyncIterator, Generic, TypeVar

T = TypeVar("T")

_END = object()


class Handoff(Generic[T]):
    """
    Single-producer, single-consumer rendezvous channel.

    Example usage:
        handoff: Handoff[str] = Handoff("lines")

        # producer
        await handoff.send(line)
        await handoff.close()

        # consumer
        async for line in handoff:
            process(line)
    """

    def __init__(self, name: str = "handoff"):
        self.name = name
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._closed = False

    async def send(self, item: T) -> None:
        """Hand an item over and wait until the receiver is done with it"""
        if self._closed:
            raise RuntimeError(f"Handoff '{self.name}' is closed")
        await self._queue.put(item)
        await self._queue.join()

    async def close(self) -> None:
        """Signal end of stream to the receiver"""
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_END)

    async def __aiter__(self) -> AsyncIterator[T]:
        while True:
            item = await self._queue.get()
            try:
                if item is _END:
                    return
                yield item
            finally:
                self._queue.task_done()
