"""M3U/EXTM3U playlist parser with statistics and streaming support."""
import asyncio
import logging
import os
import time
from typing import Callable, List, Optional, Tuple, Union
from urllib.parse import urlparse

import aiofiles
import httpx

from ..config import ParserConfig
from ..errors import InvalidURLError, NetworkError, PlaylistNotFoundError
from ..models.parse_result import ParseResult, Severity, WarningType
from ..models.playlist import Playlist
from ..models.playlist_item import PlaylistItem
from .assembler import EntryAssembler
from .classifier import ContentClassifier, ContentClassifying
from .item_stream import ItemStream
from .lexer import M3ULexer, parse_stream_url
from .line_reader import bytes_chunks, build_client, decode_document, decode_lines, file_chunks, url_chunks

logger = logging.getLogger(__name__)

Content = Union[str, bytes]


class M3UParser:
    """Parser for M3U and M3U8 playlists.

    Three ways in, same items out:

    - ``parse`` / ``parse_from_file`` / ``parse_from_url`` return a Playlist.
    - ``parse_with_statistics`` and its file/URL variants also return
      counters and warnings about orphaned entries, duplicate URLs, etc.
    - ``stream_from_file`` / ``stream_from_url`` / ``stream_from_bytes``
      yield items as they are parsed (see ItemStream for buffering).

    The classifier is configuration: swap it between parses, not during one.
    """

    def __init__(
        self,
        classifier: Optional[ContentClassifying] = None,
        config: Optional[ParserConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._classifier = classifier or ContentClassifier()
        self.config = config or ParserConfig()
        self._transport = transport
        self._lexer = M3ULexer()

    @property
    def classifier(self) -> ContentClassifying:
        return self._classifier

    def set_classifier(self, classifier: ContentClassifying) -> None:
        self._classifier = classifier

    # Whole document

    def parse(self, content: Content, name: str = "", source: str = "") -> Playlist:
        """Parse playlist text (or raw bytes) into a Playlist. Warnings are discarded."""
        text, _ = self._decode(content)
        items, _, _ = self._assemble(text, track_statistics=False)
        return Playlist(items=items, name=name, source=source)

    def parse_bytes(self, data: bytes, name: str = "", source: str = "") -> Playlist:
        return self.parse(data, name=name, source=source)

    async def parse_from_file(self, file_path: str) -> Playlist:
        """Parse an M3U playlist from a local file."""
        data = await self._read_file(file_path)
        return self.parse(data, name=self._name_from_path(file_path), source=file_path)

    async def parse_from_url(
        self,
        url: str,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> Playlist:
        """Parse an M3U playlist from a URL with retry logic."""
        data = await self._fetch(url, progress_callback)
        return self.parse(data, name=self._extract_playlist_name(url), source=url)

    # Statistics

    def parse_with_statistics(self, content: Content, name: str = "", source: str = "") -> ParseResult:
        """Parse and collect statistics and warnings. Never fails on malformed entries."""
        started = time.perf_counter()
        text, fallbacks = self._decode(content)
        items, assembler, total_lines = self._assemble(text, track_statistics=True)

        for line_number, encoding in fallbacks:
            assembler.add_warning(
                line_number, Severity.INFO, WarningType.ENCODING_ISSUE,
                f"Line is not valid UTF-8; decoded as {encoding}",
            )

        elapsed = time.perf_counter() - started
        result = ParseResult(
            playlist=Playlist(items=items, name=name, source=source),
            statistics=assembler.statistics(parse_time=elapsed, total_lines=total_lines),
            warnings=list(assembler.warnings),
        )
        logger.debug(
            "Parsed %d items from %d lines in %.3fs (%d warnings)",
            len(items), total_lines, elapsed, len(result.warnings),
        )
        return result

    async def parse_file_with_statistics(self, file_path: str) -> ParseResult:
        data = await self._read_file(file_path)
        return self.parse_with_statistics(data, name=self._name_from_path(file_path), source=file_path)

    async def parse_url_with_statistics(
        self,
        url: str,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> ParseResult:
        data = await self._fetch(url, progress_callback)
        return self.parse_with_statistics(data, name=self._extract_playlist_name(url), source=url)

    # Streaming

    def stream_from_file(self, file_path: str) -> ItemStream:
        """Stream items from a local file as they are parsed.

        Iterate inside ``async with``: leaving a bare ``async for`` with
        ``break`` keeps the producer reading to the end of the file.
        """
        if not os.path.isfile(file_path):
            raise PlaylistNotFoundError(file_path)

        lines = decode_lines(file_chunks(file_path, self.config.chunk_size), self.config.fallback_encodings)
        return self._stream(lines, file_path)

    def stream_from_bytes(self, data: bytes) -> ItemStream:
        """Stream items from raw bytes. Use ``async with`` to stop early."""
        lines = decode_lines(bytes_chunks(data, self.config.chunk_size), self.config.fallback_encodings)
        return self._stream(lines, "")

    def stream_from_url(self, url: str) -> ItemStream:
        """Stream items while the playlist downloads. No retries.

        Iterate inside ``async with`` so that breaking out closes the
        connection; a bare ``async for`` keeps downloading to the end.
        """
        self._check_url(url)
        chunks = url_chunks(url, self.config, self._transport)
        return self._stream(decode_lines(chunks, self.config.fallback_encodings), url)

    def _stream(self, lines, source: str) -> ItemStream:
        return ItemStream(
            lines,
            self._classifier,
            buffer_size=self.config.stream_buffer_size,
            source=source,
        )

    # Internals

    def _decode(self, content: Content) -> Tuple[str, List[Tuple[int, str]]]:
        if isinstance(content, (bytes, bytearray)):
            return decode_document(bytes(content), self.config.fallback_encodings)
        return content, []

    def _assemble(self, text: str, track_statistics: bool) -> Tuple[List[PlaylistItem], EntryAssembler, int]:
        assembler = EntryAssembler(self._classifier, track_statistics=track_statistics)
        tokens = self._lexer.tokenize(text)
        items = []

        for line_number, token in enumerate(tokens, 1):
            item = assembler.feed(token, line_number)
            if item is not None:
                items.append(item)

        assembler.finish()
        return items, assembler, len(tokens)

    async def _read_file(self, file_path: str) -> bytes:
        try:
            async with aiofiles.open(file_path, "rb") as f:
                return await f.read()
        except FileNotFoundError as e:
            raise PlaylistNotFoundError(file_path) from e

    async def _fetch(
        self,
        url: str,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> bytes:
        """Download the playlist body, retrying timeouts and transport errors."""
        self._check_url(url)
        last_error: Optional[Exception] = None
        max_retries = max(1, self.config.max_retries)

        for attempt in range(max_retries):
            try:
                async with build_client(self.config, self._transport) as client:
                    # Stream the response for large files
                    async with client.stream("GET", url) as response:
                        response.raise_for_status()

                        total_size = int(response.headers.get("content-length", 0))
                        downloaded = 0
                        chunks = []

                        async for chunk in response.aiter_bytes(chunk_size=self.config.chunk_size):
                            chunks.append(chunk)
                            downloaded += len(chunk)

                            if progress_callback and total_size > 0:
                                progress_callback(downloaded, total_size)

                        return b"".join(chunks)

            except httpx.HTTPStatusError as e:
                # Don't retry on HTTP errors
                raise NetworkError(e) from e
            except (httpx.TimeoutException, httpx.TransportError) as e:
                last_error = e
                logger.info("Fetching %s failed (attempt %d/%d): %s", url, attempt + 1, max_retries, e)

            if attempt < max_retries - 1:
                await asyncio.sleep(self.config.retry_delay)

        raise NetworkError(last_error) from last_error

    @staticmethod
    def _check_url(url: str) -> None:
        parsed = parse_stream_url(url)
        if parsed is None or parsed.scheme.lower() not in ("http", "https"):
            raise InvalidURLError(url)

    @staticmethod
    def _name_from_path(file_path: str) -> str:
        return os.path.splitext(os.path.basename(file_path))[0]

    @staticmethod
    def _extract_playlist_name(url: str) -> str:
        """Extract playlist name from URL."""
        parsed = urlparse(url)
        path = parsed.path

        if path:
            name = os.path.splitext(os.path.basename(path))[0]
            if name and name != "get" and len(name) > 2:
                return name

        return parsed.netloc or "Playlist"
