"""Line splitters — async readers for the child's stdout/stderr."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

logger = logging.getLogger("testie.process.monitor")

# Queue items: a line, None at end-of-stream, or the exception that ended it.
QueueItem = bytes | BaseException | None

_CHUNK_SIZE = 64 * 1024


class StreamReadError(RuntimeError):
    """Reading one of the child's output streams failed."""

    def __init__(self, stream_name: str, cause: BaseException) -> None:
        super().__init__(f"error reading {stream_name}: {cause}")
        self.stream_name = stream_name


async def split_lines(stream: asyncio.StreamReader, queue: asyncio.Queue[QueueItem]) -> None:
    """Push every newline-terminated line of *stream* onto *queue*.

    Bytes left over at end-of-input are pushed as a final, unterminated line.
    ``None`` marks end-of-stream. A read error is pushed as-is and re-raised.
    Lines of any length are accepted; there is no ``readline()`` buffer limit.
    """
    pending = bytearray()
    try:
        while True:
            chunk = await stream.read(_CHUNK_SIZE)
            if not chunk:
                break
            pending += chunk
            start = 0
            while True:
                idx = pending.find(b"\n", start)
                if idx < 0:
                    break
                await queue.put(bytes(pending[start : idx + 1]))
                start = idx + 1
            del pending[:start]
    except Exception as exc:
        await queue.put(exc)
        raise
    if pending:
        await queue.put(bytes(pending))
    await queue.put(None)


class OutputMonitor:
    """Runs one line splitter per named stream, each with its own queue.

    Parameters
    ----------
    streams:
        Mapping of stream name (``"stdout"``, ``"stderr"``) to reader.
    """

    def __init__(self, streams: dict[str, asyncio.StreamReader]) -> None:
        self._streams = streams
        self.queues: dict[str, asyncio.Queue[QueueItem]] = {
            name: asyncio.Queue() for name in streams
        }
        self._tasks: list[asyncio.Task[None]] = []

    def start(self) -> None:
        """Start the splitter tasks."""
        for name, stream in self._streams.items():
            self._tasks.append(
                asyncio.create_task(split_lines(stream, self.queues[name]), name=f"split-{name}")
            )

    async def stop(self) -> None:
        """Cancel splitters that are still running."""
        for task in self._tasks:
            if not task.done():
                task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await task

    async def lines(self) -> AsyncIterator[tuple[str, bytes]]:
        """Yield ``(stream_name, line)`` from whichever queue has data first.

        Finishes once every stream has reported end-of-stream. Raises
        :class:`StreamReadError` as soon as any stream fails.
        """
        getters: dict[str, asyncio.Task[QueueItem]] = {
            name: asyncio.create_task(q.get()) for name, q in self.queues.items()
        }
        try:
            while getters:
                done, _ = await asyncio.wait(
                    getters.values(), return_when=asyncio.FIRST_COMPLETED
                )
                for name in [n for n, t in getters.items() if t in done]:
                    item = getters.pop(name).result()
                    if item is None:
                        logger.debug("%s reached end of stream", name)
                        continue
                    if isinstance(item, BaseException):
                        raise StreamReadError(name, item) from item
                    yield name, item
                    getters[name] = asyncio.create_task(self.queues[name].get())
        finally:
            for task in getters.values():
                task.cancel()
