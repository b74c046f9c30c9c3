"""Async record stream backed by a bounded, keep-newest buffer."""
import asyncio
import logging
from collections import deque
from typing import AsyncIterator, Deque, Optional

import httpx

from ..errors import InvalidFormatError, M3UParserError, NetworkError, StreamInterruptedError
from ..models.playlist_item import PlaylistItem
from .assembler import EntryAssembler
from .classifier import ContentClassifying
from .lexer import M3ULexer

logger = logging.getLogger(__name__)


class ItemStream:
    """Async iterator over items parsed by a background producer task.

    The producer reads lines, tokenizes them and pushes each resolved item
    into a buffer holding at most ``buffer_size`` items. When the buffer is
    full the oldest item is evicted: a consumer slower than the producer
    can miss items. ``dropped_count`` reports how many were lost.

    Use ``async with`` (or call ``aclose``) to stop early; the producer is
    cancelled and the file handle or connection is released.

    Errors end the stream: a failed fetch raises NetworkError, a non-empty
    source without an #EXTM3U header raises InvalidFormatError after the
    last item, and any other failure (I/O, a broken line source, a raising
    classifier) raises StreamInterruptedError with the cause chained.
    """

    def __init__(
        self,
        lines: AsyncIterator[str],
        classifier: ContentClassifying,
        buffer_size: int = 100,
        source: str = "",
    ):
        if buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")

        self.source = source
        self.buffer_size = buffer_size
        self.dropped_count = 0
        self.lines_read = 0

        self._lines = lines
        self._lexer = M3ULexer()
        self._assembler = EntryAssembler(classifier)
        self._buffer: Deque[PlaylistItem] = deque(maxlen=buffer_size)
        self._ready = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._done = False
        self._error: Optional[BaseException] = None
        self._source_closed = False

    def __aiter__(self) -> "ItemStream":
        return self

    async def __anext__(self) -> PlaylistItem:
        if self._task is None and not self._done:
            self._task = asyncio.get_running_loop().create_task(self._produce())

        while True:
            if self._buffer:
                return self._buffer.popleft()

            if self._done:
                if self._error is not None:
                    error, self._error = self._error, None
                    raise error
                raise StopAsyncIteration

            self._ready.clear()
            await self._ready.wait()

    async def __aenter__(self) -> "ItemStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop the producer and release the underlying source."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        self._done = True
        self._buffer.clear()
        self._ready.set()
        await self._close_source()

    @property
    def closed(self) -> bool:
        return self._done

    async def _produce(self) -> None:
        try:
            async for line in self._lines:
                self.lines_read += 1
                token = self._lexer.tokenize_line(line)
                item = self._assembler.feed(token, self.lines_read)
                if item is not None:
                    self._push(item)
                    # Let the consumer run between items
                    await asyncio.sleep(0)

            self._assembler.finish()
            if not self._assembler.saw_header and self.lines_read > 0:
                raise InvalidFormatError()

        except M3UParserError as e:
            self._error = e
        except httpx.HTTPError as e:
            if self.lines_read == 0:
                self._error = NetworkError(e)
            else:
                self._error = StreamInterruptedError()
            self._error.__cause__ = e
        except OSError as e:
            self._error = StreamInterruptedError()
            self._error.__cause__ = e
        except Exception as e:
            logger.exception("Stream %s failed", self.source or "<bytes>")
            self._error = StreamInterruptedError(f"Stream was interrupted during parsing: {e}")
            self._error.__cause__ = e
        finally:
            self._done = True
            self._ready.set()

        await self._close_source()
        logger.debug(
            "Stream %s finished: %d lines, %d dropped",
            self.source or "<bytes>", self.lines_read, self.dropped_count,
        )

    def _push(self, item: PlaylistItem) -> None:
        if len(self._buffer) == self.buffer_size:
            self.dropped_count += 1
            if self.dropped_count == 1:
                logger.warning(
                    "Consumer is behind; dropping oldest buffered items (buffer size %d) from %s",
                    self.buffer_size, self.source or "<bytes>",
                )
        self._buffer.append(item)
        self._ready.set()

    async def _close_source(self) -> None:
        if self._source_closed:
            return
        self._source_closed = True
        aclose = getattr(self._lines, "aclose", None)
        if aclose is not None:
            await aclose()
