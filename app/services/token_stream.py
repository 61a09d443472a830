from __future__ import annotations

import asyncio
from typing import AsyncIterator, Awaitable, Callable

from app.errors import UpstreamProviderError

FragmentCallback = Callable[[str], Awaitable[None]]


class _StreamEnd:
    def __repr__(self) -> str:
        return "STREAM_END"


# Explicit completion marker; never confused with a text fragment.
STREAM_END = _StreamEnd()


class _StreamFailure:
    def __init__(self, error: BaseException):
        self.error = error


class TokenChannel:
    """Cooperative single-producer, single-consumer channel of answer fragments.

    The producer calls ``send`` for each fragment in order and finishes with
    ``close`` (or ``fail``). The consumer iterates until the end marker.
    """

    def __init__(self, provider: str = "llm"):
        self.provider = provider
        self._queue: asyncio.Queue[str | _StreamEnd | _StreamFailure] = asyncio.Queue()
        self._closed = False
        self._producer: asyncio.Task | None = None

    async def send(self, fragment: str) -> None:
        if self._closed:
            raise RuntimeError("Cannot send on a closed token channel")
        await self._queue.put(fragment)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._queue.put(STREAM_END)

    async def fail(self, error: BaseException) -> None:
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_StreamFailure(error))

    def attach_producer(self, task: asyncio.Task) -> None:
        self._producer = task

    def cancel(self) -> None:
        """Stop the producer; a no-op once it has finished."""
        if self._producer is not None and not self._producer.done():
            self._producer.cancel()

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            item = await self._queue.get()
            if item is STREAM_END:
                break
            if isinstance(item, _StreamFailure):
                error = item.error
                if isinstance(error, UpstreamProviderError):
                    raise error
                raise UpstreamProviderError(self.provider, str(error)) from error
            yield item
        if self._producer is not None:
            await self._producer


async def accumulate(channel: TokenChannel, on_fragment: FragmentCallback | None = None) -> str:
    """Drain ``channel`` into one string, forwarding each fragment if asked."""
    parts: list[str] = []
    try:
        async for fragment in channel:
            parts.append(fragment)
            if on_fragment is not None:
                await on_fragment(fragment)
    finally:
        channel.cancel()
    return "".join(parts)
