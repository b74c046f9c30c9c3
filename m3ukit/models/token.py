"""Tokens produced by the M3U lexer, one per playlist line."""
from dataclasses import dataclass, field
from typing import Dict, Optional, Union


@dataclass(frozen=True)
class Header:
    """The #EXTM3U header line."""


@dataclass(frozen=True)
class ExtInf:
    """An #EXTINF line with duration, attributes and the display title.

    A duration of -1 means unspecified (live). Attribute keys are lowercase.
    """

    duration: int = -1
    attributes: Dict[str, str] = field(default_factory=dict)
    title: str = ""


@dataclass(frozen=True)
class ExtGrp:
    """An #EXTGRP group directive."""

    name: str


@dataclass(frozen=True)
class SessionData:
    """An #EXT-X-SESSION-DATA line."""

    data_id: str
    value: Optional[str] = None


@dataclass(frozen=True)
class StreamURL:
    """A stream URL line with a non-empty scheme."""

    url: str
    scheme: str


@dataclass(frozen=True)
class Comment:
    """Any other line starting with '#'."""

    text: str


@dataclass(frozen=True)
class Unknown:
    """A line that is neither a directive nor a valid URL. Blank lines give Unknown("")."""

    text: str = ""


Token = Union[Header, ExtInf, ExtGrp, SessionData, StreamURL, Comment, Unknown]
