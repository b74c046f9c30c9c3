"""Playlist model for M3U playlists."""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from .playlist_item import PlaylistItem

if TYPE_CHECKING:
    from .quality import QualityStatistics, Resolution
    from ..services.deduplication import ChannelNormalizing, DeduplicationStatistics, Strategy


SEASON_EPISODE_TOKEN = re.compile(r's\d{1,2}e\d{1,2}', re.IGNORECASE)


@dataclass(frozen=True)
class EpisodeInfo:
    """One episode row of a series."""

    item: PlaylistItem
    season: Optional[int]
    episode: Optional[int]


@dataclass
class SeriesInfo:
    """A unique series with its episodes in playlist order."""

    name: str
    group: Optional[str]
    episodes: List[EpisodeInfo] = field(default_factory=list)

    @property
    def season_count(self) -> int:
        return len({ep.season for ep in self.episodes if ep.season is not None})

    @property
    def episode_count(self) -> int:
        return len(self.episodes)


def extract_series_name(name: str) -> str:
    """Series name is the text before the S01E01 token; the full name if there is none."""
    match = SEASON_EPISODE_TOKEN.search(name)
    if not match:
        return name
    return name[:match.start()].strip().strip('-').strip()


@dataclass
class Playlist:
    """Represents a parsed M3U playlist.

    Items keep source order. The content-type views (channels, movies, series)
    are recomputed on every access and never own the items.
    """

    items: List[PlaylistItem] = field(default_factory=list)
    name: str = ""
    source: str = ""  # URL or file path
    metadata: dict = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def channels(self) -> List[PlaylistItem]:
        """Live TV items."""
        return [item for item in self.items if item.content_type.is_live]

    @property
    def movies(self) -> List[PlaylistItem]:
        return [item for item in self.items if item.content_type.is_movie]

    @property
    def series(self) -> List[PlaylistItem]:
        """Every series episode row (not unique series, see series_grouped)."""
        return [item for item in self.items if item.content_type.is_series]

    @property
    def groups(self) -> List[str]:
        """Get all unique group names from items."""
        return sorted({item.group for item in self.items if item.group is not None})

    @property
    def grouped_by_category(self) -> Dict[str, List[PlaylistItem]]:
        grouped: Dict[str, List[PlaylistItem]] = {}
        for item in self.items:
            grouped.setdefault(item.group if item.group is not None else "Uncategorized", []).append(item)
        return grouped

    def get_items_by_group(self, group: str) -> List[PlaylistItem]:
        """Get items filtered by group."""
        return [item for item in self.items if item.group == group]

    def search(self, query: str) -> List[PlaylistItem]:
        """Search items by name."""
        query = query.lower()
        return [item for item in self.items if query in item.name.lower()]

    # Series grouping

    @property
    def series_grouped(self) -> List[SeriesInfo]:
        """Series episodes grouped into unique series, largest first."""
        series_map: Dict[Tuple[str, str], SeriesInfo] = {}

        for item in self.series:
            series_name = extract_series_name(item.name)
            key = (series_name, item.group or "")
            if key not in series_map:
                series_map[key] = SeriesInfo(name=series_name, group=item.group)
            series_map[key].episodes.append(
                EpisodeInfo(item=item, season=item.season, episode=item.episode)
            )

        return sorted(series_map.values(), key=lambda info: info.episode_count, reverse=True)

    @property
    def unique_series_count(self) -> int:
        return len(self.series_grouped)

    @property
    def total_episode_count(self) -> int:
        return sum(info.episode_count for info in self.series_grouped)

    # Quality

    def sorted_by_quality(self) -> List[PlaylistItem]:
        """Items by quality score, best first."""
        return sorted(self.items, key=lambda item: item.quality_score, reverse=True)

    def quality_ranked_items(self, query: str) -> List[PlaylistItem]:
        """Items whose name contains query (case-insensitive), best quality first."""
        return sorted(self.search(query), key=lambda item: item.quality_score, reverse=True)

    def best_quality_item(self, query: str) -> Optional[PlaylistItem]:
        ranked = self.quality_ranked_items(query)
        return ranked[0] if ranked else None

    def items_with_min_resolution(self, min_resolution: "Resolution") -> List[PlaylistItem]:
        return [
            item for item in self.items
            if item.resolution is not None and item.resolution >= min_resolution
        ]

    def items_with_min_quality_score(self, min_score: int) -> List[PlaylistItem]:
        return [item for item in self.items if item.quality_score >= min_score]

    @property
    def quality_statistics(self) -> "QualityStatistics":
        from ..services.quality_analyzer import compute_quality_statistics
        return compute_quality_statistics(self.items)

    # Deduplication

    def deduplicated(
        self,
        normalizer: Optional["ChannelNormalizing"] = None,
        strategy: Optional["Strategy"] = None,
    ) -> "Playlist":
        """New playlist keeping the highest quality item of each duplicate group."""
        from ..services.deduplication import deduplicate
        return Playlist(
            items=deduplicate(self.items, normalizer=normalizer, strategy=strategy),
            name=self.name,
            source=self.source,
            metadata=dict(self.metadata),
        )

    def find_duplicates(
        self,
        normalizer: Optional["ChannelNormalizing"] = None,
        strategy: Optional["Strategy"] = None,
    ) -> List[List[PlaylistItem]]:
        from ..services.deduplication import find_duplicates
        return find_duplicates(self.items, normalizer=normalizer, strategy=strategy)

    def deduplication_statistics(
        self,
        normalizer: Optional["ChannelNormalizing"] = None,
        strategy: Optional["Strategy"] = None,
    ) -> "DeduplicationStatistics":
        from ..services.deduplication import deduplication_statistics
        return deduplication_statistics(self.items, normalizer=normalizer, strategy=strategy)

    # Serialization

    def to_dict(self) -> dict:
        """Convert playlist to dictionary for serialization."""
        return {
            "name": self.name,
            "source": self.source,
            "items": [item.to_dict() for item in self.items],
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Playlist":
        """Create playlist from dictionary."""
        return cls(
            items=[PlaylistItem.from_dict(item) for item in data.get("items", [])],
            name=data.get("name", ""),
            source=data.get("source", ""),
            metadata=dict(data.get("metadata") or {}),
        )
