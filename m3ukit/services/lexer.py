"""Character-scanning lexer for M3U/EXTM3U playlists.

Each line becomes exactly one token. No regular expressions are used;
the attribute and duration parsers walk the line character by character.

Supported directives: #EXTM3U, #EXTINF, #EXTGRP, #EXT-X-SESSION-DATA.
"""
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlsplit

from ..models.token import (
    Comment,
    ExtGrp,
    ExtInf,
    Header,
    SessionData,
    StreamURL,
    Token,
    Unknown,
)

EXTINF_PREFIX = "#EXTINF:"
EXTGRP_PREFIX = "#EXTGRP:"
SESSION_DATA_PREFIX = "#EXT-X-SESSION-DATA:"

# Characters that can never appear unescaped in a stream URL line
_INVALID_URL_CHARS = frozenset('"<>\\^`{}')


def split_lines(content: str) -> List[str]:
    """Split on CRLF, CR and LF. A trailing newline leaves a final empty line."""
    return content.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def parse_int(text: Optional[str]) -> Optional[int]:
    """Lenient integer parse: optional sign then decimal digits, otherwise None."""
    if text is None:
        return None
    text = text.strip()
    digits = text[1:] if text[:1] in ("-", "+") else text
    if not digits or not digits.isdecimal():
        return None
    return int(text)


def parse_stream_url(text: str) -> Optional[StreamURL]:
    """Return a StreamURL if text is a URL with a non-empty scheme."""
    if not text or any(ch.isspace() or ord(ch) < 32 or ch in _INVALID_URL_CHARS for ch in text):
        return None
    try:
        parts = urlsplit(text)
    except ValueError:
        return None
    if not parts.scheme:
        return None
    return StreamURL(url=text, scheme=parts.scheme)


def _has_prefix(text: str, prefix: str) -> bool:
    return text[:len(prefix)].upper() == prefix


class M3ULexer:
    """Stateless line tokenizer. Safe to share between threads and tasks."""

    def tokenize_line(self, line: str) -> Token:
        """Tokenize a single playlist line."""
        trimmed = line.strip()

        if not trimmed:
            return Unknown("")

        upper = trimmed.upper()
        if upper == "#EXTM3U" or upper.startswith("#EXTM3U "):
            # Header attributes (url-tvg, x-tvg-url) are not kept
            return Header()

        if _has_prefix(trimmed, EXTINF_PREFIX):
            return self._parse_extinf(trimmed[len(EXTINF_PREFIX):])

        if _has_prefix(trimmed, EXTGRP_PREFIX):
            return ExtGrp(name=trimmed[len(EXTGRP_PREFIX):].strip())

        if _has_prefix(trimmed, SESSION_DATA_PREFIX):
            attributes = self._parse_attributes(trimmed[len(SESSION_DATA_PREFIX):], comma_separated=True)
            return SessionData(data_id=attributes.get("data-id", ""), value=attributes.get("value"))

        if trimmed.startswith("#"):
            return Comment(trimmed)

        stream_url = parse_stream_url(trimmed)
        if stream_url is not None:
            return stream_url

        return Unknown(trimmed)

    def tokenize(self, content: str) -> List[Token]:
        """Tokenize a whole document, one token per line."""
        return [self.tokenize_line(line) for line in split_lines(content)]

    # EXTINF

    def _parse_extinf(self, content: str) -> ExtInf:
        comma_index = self._find_last_unquoted_comma(content)

        if comma_index is None:
            # No title separator; the whole content may be a bare duration
            duration = parse_int(content)
            return ExtInf(duration=duration if duration is not None else -1)

        metadata = content[:comma_index]
        title = content[comma_index + 1:].strip()

        duration, attribute_start = self._parse_duration(metadata)
        attributes: Dict[str, str] = {}
        if attribute_start < len(metadata):
            attributes = self._parse_attributes(metadata[attribute_start:])

        return ExtInf(duration=duration, attributes=attributes, title=title)

    @staticmethod
    def _find_last_unquoted_comma(text: str) -> Optional[int]:
        in_quotes = False
        last_comma = None

        for index, ch in enumerate(text):
            if ch == '"':
                in_quotes = not in_quotes
            elif ch == "," and not in_quotes:
                last_comma = index

        return last_comma

    @staticmethod
    def _parse_duration(metadata: str) -> Tuple[int, int]:
        """Read an optional '-' and digits. Returns (duration, index after trailing whitespace)."""
        index = 0
        end = len(metadata)

        while index < end and metadata[index].isspace():
            index += 1

        start = index
        if index < end and metadata[index] == "-":
            index += 1
        while index < end and metadata[index].isdecimal():
            index += 1

        duration = parse_int(metadata[start:index])

        while index < end and metadata[index].isspace():
            index += 1

        return (duration if duration is not None else -1), index

    @staticmethod
    def _parse_attributes(text: str, comma_separated: bool = False) -> Dict[str, str]:
        """Parse key=value / key="value" pairs. Keys are lowercased; empty pairs dropped.

        EXTINF attributes are whitespace separated, EXT-X-SESSION-DATA
        attributes are comma separated.
        """
        attributes: Dict[str, str] = {}
        index = 0
        end = len(text)

        def is_separator(ch: str) -> bool:
            return ch.isspace() or (comma_separated and ch == ",")

        while index < end:
            while index < end and is_separator(text[index]):
                index += 1
            if index >= end:
                break

            key_start = index
            while index < end and text[index] != "=" and not is_separator(text[index]):
                index += 1

            if index >= end or text[index] != "=":
                # Bare word without '=': skip to the next separator
                if comma_separated:
                    while index < end and text[index] != ",":
                        index += 1
                else:
                    while index < end and not text[index].isspace():
                        index += 1
                continue

            key = text[key_start:index].lower()
            index += 1  # '='
            if index >= end:
                break

            if text[index] == '"':
                index += 1
                value_start = index
                while index < end and text[index] != '"':
                    index += 1
                value = text[value_start:index]
                if index < end:
                    index += 1  # closing quote
            else:
                value_start = index
                while index < end and not is_separator(text[index]):
                    index += 1
                value = text[value_start:index]

            if key and value:
                attributes[key] = value

        return attributes


_default_lexer = M3ULexer()


def tokenize_line(line: str) -> Token:
    return _default_lexer.tokenize_line(line)


def tokenize(content: str) -> List[Token]:
    return _default_lexer.tokenize(content)
