"""Per-line byte decoding and async line sources for playlist parses."""
import logging
from typing import AsyncIterator, Iterable, List, Optional, Tuple

import aiofiles
import httpx

from ..config import ParserConfig
from ..errors import EncodingError

logger = logging.getLogger(__name__)


def decode_bytes(data: bytes, fallback_encodings: Iterable[str] = ("cp1252", "latin-1")) -> Tuple[str, str]:
    """Decode playlist bytes: UTF-8 (BOM stripped) first, then each fallback.

    Returns (text, encoding used). Raises EncodingError if nothing decodes.
    """
    try:
        return data.decode("utf-8-sig"), "utf-8"
    except UnicodeDecodeError:
        pass

    for encoding in fallback_encodings:
        try:
            text = data.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            continue
        logger.debug("Decoded playlist with fallback encoding %s", encoding)
        return text, encoding

    raise EncodingError()


def split_byte_document(data: bytes) -> List[bytes]:
    """Split raw playlist bytes on CRLF, CR and LF."""
    return data.replace(b"\r\n", b"\n").replace(b"\r", b"\n").split(b"\n")


def decode_document(
    data: bytes,
    fallback_encodings: Iterable[str] = ("cp1252", "latin-1"),
) -> Tuple[str, List[Tuple[int, str]]]:
    """Decode a whole document line by line, exactly as the streaming path does.

    Returns the text joined with "\\n" and a (line number, encoding) pair
    for every line that needed a fallback encoding.
    """
    fallback_encodings = tuple(fallback_encodings)
    lines = []
    fallbacks = []

    for line_number, raw in enumerate(split_byte_document(data), 1):
        text, encoding = decode_bytes(raw, fallback_encodings)
        if encoding != "utf-8":
            fallbacks.append((line_number, encoding))
        lines.append(text)

    return "\n".join(lines), fallbacks


def build_client(config: ParserConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """HTTP client with extended timeout for large playlists."""
    limits = httpx.Limits(
        max_keepalive_connections=5,
        max_connections=10,
    )
    timeout = httpx.Timeout(config.timeout, connect=config.connect_timeout)

    return httpx.AsyncClient(
        timeout=timeout,
        limits=limits,
        follow_redirects=config.follow_redirects,
        headers={"User-Agent": config.user_agent},
        transport=transport,
    )


async def file_chunks(path: str, chunk_size: int = 65536) -> AsyncIterator[bytes]:
    async with aiofiles.open(path, "rb") as f:
        while True:
            chunk = await f.read(chunk_size)
            if not chunk:
                break
            yield chunk


async def bytes_chunks(data: bytes, chunk_size: int = 65536) -> AsyncIterator[bytes]:
    for start in range(0, len(data), chunk_size):
        yield data[start:start + chunk_size]


async def url_chunks(
    url: str,
    config: ParserConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[bytes]:
    """Stream the response body; the connection closes when the generator does."""
    async with build_client(config, transport) as client:
        async with client.stream("GET", url) as response:
            response.raise_for_status()
            async for chunk in response.aiter_bytes(chunk_size=config.chunk_size):
                yield chunk


async def split_byte_lines(chunks: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    """Re-chunk a byte stream into lines. CRLF, CR and LF all end a line."""
    pending = b""

    try:
        async for chunk in chunks:
            if not chunk:
                continue
            pending += chunk

            # A trailing CR may be the first half of a CRLF split across chunks
            carry = b""
            if pending.endswith(b"\r"):
                pending, carry = pending[:-1], b"\r"

            parts = pending.replace(b"\r\n", b"\n").replace(b"\r", b"\n").split(b"\n")
            pending = parts.pop() + carry
            for part in parts:
                yield part
    finally:
        await chunks.aclose()

    if pending.endswith(b"\r"):
        pending = pending[:-1]
        yield pending
    elif pending:
        yield pending


async def decode_lines(
    chunks: AsyncIterator[bytes],
    fallback_encodings: Iterable[str] = ("cp1252", "latin-1"),
) -> AsyncIterator[str]:
    """Split chunks into lines and decode each one with the encoding cascade."""
    fallback_encodings = tuple(fallback_encodings)
    lines = split_byte_lines(chunks)
    try:
        async for raw in lines:
            text, _ = decode_bytes(raw, fallback_encodings)
            yield text
    finally:
        await lines.aclose()
