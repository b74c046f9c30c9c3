"""Errors raised by m3ukit.

Only document-level failures are raised. Problems with single lines
(bad EXTINF syntax, orphaned metadata, duplicate URLs) never raise;
they are reported as warnings by the statistics parse.
"""
from typing import Optional


class M3UParserError(Exception):
    """Base class for all playlist parsing errors."""


class InvalidFormatError(M3UParserError):
    def __init__(self, message: str = "Invalid M3U format. File must start with #EXTM3U header."):
        super().__init__(message)


class InvalidURLError(M3UParserError, ValueError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid URL: {url}")


class PlaylistNotFoundError(M3UParserError, FileNotFoundError):
    def __init__(self, path: Optional[str] = None):
        self.path = path
        message = "The specified file was not found."
        if path:
            message = f"The specified file was not found: {path}"
        super().__init__(message)


class EncodingError(M3UParserError):
    def __init__(self, message: str = "Unable to decode file. Unsupported or invalid encoding."):
        super().__init__(message)


class StreamInterruptedError(M3UParserError):
    def __init__(self, message: str = "Stream was interrupted during parsing."):
        super().__init__(message)


class NetworkError(M3UParserError):
    """Wraps the transport exception that made a playlist fetch fail."""

    def __init__(self, original: Exception):
        self.original = original
        super().__init__(f"Network error: {original}")
