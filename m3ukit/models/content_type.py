"""Content type model for playlist items."""
from dataclasses import dataclass
from typing import Literal, Optional


@dataclass(frozen=True)
class ContentType:
    """Kind of content an item points to: a live channel, a movie or a series episode.

    Only series carry season/episode numbers, and either may be unknown (None).
    Two series values are equal only when both numbers match.
    """

    kind: Literal["live", "movie", "series"]
    season: Optional[int] = None
    episode: Optional[int] = None

    @property
    def is_live(self) -> bool:
        return self.kind == "live"

    @property
    def is_movie(self) -> bool:
        return self.kind == "movie"

    @property
    def is_series(self) -> bool:
        return self.kind == "series"

    def __str__(self) -> str:
        if self.kind != "series":
            return self.kind
        if self.season is not None and self.episode is not None:
            return f"series:s{self.season}e{self.episode}"
        if self.season is not None:
            return f"series:s{self.season}"
        if self.episode is not None:
            return f"series:e{self.episode}"
        return "series"

    def to_dict(self) -> dict:
        """Convert content type to dictionary for serialization."""
        return {"kind": self.kind, "season": self.season, "episode": self.episode}

    @classmethod
    def from_dict(cls, data: dict) -> "ContentType":
        """Create content type from dictionary."""
        kind = data.get("kind", "live")
        if kind == "series":
            return series(data.get("season"), data.get("episode"))
        if kind == "movie":
            return MOVIE
        return LIVE


LIVE = ContentType("live")
MOVIE = ContentType("movie")


def series(season: Optional[int] = None, episode: Optional[int] = None) -> ContentType:
    """Build a series content type with optional season/episode numbers."""
    return ContentType("series", season, episode)
