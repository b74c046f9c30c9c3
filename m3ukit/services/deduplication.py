"""Duplicate channel detection.

Items are grouped by a normalized key (see Strategy). Items with the exact
same stream URL always land in the same group, whatever the strategy, so
"the same stream listed twice under different names" is still a duplicate.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Protocol, Sequence, Union

from ..models.content_type import ContentType
from ..models.playlist_item import PlaylistItem
from .title_normalizer import TitleNormalizer, default_normalizer
from .url_utils import deduplication_hash


class Strategy(str, Enum):
    TVG_ID = "tvg_id"  # EPG id, falling back to title
    TITLE = "title"
    URL = "url"  # stream URL without credentials
    COMPOSITE = "composite"  # EPG id + title + group + content type
    TVG_ID_WITH_FALLBACK = "tvg_id_with_fallback"  # EPG id, else title + group


class ChannelNormalizing(Protocol):
    def normalized_key(self, item: PlaylistItem) -> str:
        ...


@dataclass(frozen=True)
class DeduplicationKey:
    """The parts the composite strategy compares."""

    tvg_id: Optional[str]
    normalized_title: str
    group: Optional[str]
    content_type: ContentType

    @property
    def composite_key(self) -> str:
        parts = []
        if self.tvg_id:
            parts.append(f"id:{self.tvg_id}")
        parts.append(f"t:{self.normalized_title}")
        if self.group is not None:
            parts.append(f"g:{self.group}")
        parts.append(f"c:{self.content_type}")
        return "|".join(parts)

    @classmethod
    def from_item(cls, item: PlaylistItem, normalizer: Optional[TitleNormalizer] = None) -> "DeduplicationKey":
        normalizer = normalizer or default_normalizer()
        return cls(
            tvg_id=item.epg_id.lower() if item.epg_id else None,
            normalized_title=normalizer.normalize(normalizer.sanitize(item.name)),
            group=normalizer.normalize(item.group) if item.group is not None else None,
            content_type=item.content_type,
        )


@dataclass(frozen=True)
class DeduplicationStatistics:
    original_count: int
    deduplicated_count: int

    @property
    def duplicates_removed(self) -> int:
        return self.original_count - self.deduplicated_count

    @property
    def duplicate_percentage(self) -> float:
        if self.original_count == 0:
            return 0.0
        return self.duplicates_removed / self.original_count * 100

    @property
    def unique_count(self) -> int:
        return self.deduplicated_count


class ChannelNormalizer:
    """Builds a duplicate-detection key for an item according to a strategy."""

    def __init__(self, strategy: Union[Strategy, str] = Strategy.COMPOSITE, title_normalizer: Optional[TitleNormalizer] = None):
        self.strategy = Strategy(strategy)
        self.title_normalizer = title_normalizer or default_normalizer()

    def normalized_key(self, item: PlaylistItem) -> str:
        if self.strategy == Strategy.TVG_ID:
            if item.epg_id:
                return f"tvg:{item.epg_id.lower()}"
            return self._title_key(item)

        if self.strategy == Strategy.TITLE:
            return self._title_key(item)

        if self.strategy == Strategy.URL:
            return f"url:{deduplication_hash(item.url)}"

        if self.strategy == Strategy.TVG_ID_WITH_FALLBACK:
            if item.epg_id:
                return f"tvg:{item.epg_id.lower()}"
            group = self.title_normalizer.normalize(item.group) if item.group is not None else ""
            return f"fallback:{self._normalized_title(item)}|{group}"

        return DeduplicationKey.from_item(item, self.title_normalizer).composite_key

    def _normalized_title(self, item: PlaylistItem) -> str:
        return self.title_normalizer.normalize(self.title_normalizer.sanitize(item.name))

    def _title_key(self, item: PlaylistItem) -> str:
        return f"title:{self._normalized_title(item)}"


def _resolve(normalizer: Optional[ChannelNormalizing], strategy: Optional[Union[Strategy, str]]) -> ChannelNormalizing:
    if normalizer is not None:
        return normalizer
    return ChannelNormalizer(strategy if strategy is not None else Strategy.COMPOSITE)


def group_items(
    items: Sequence[PlaylistItem],
    normalizer: Optional[ChannelNormalizing] = None,
    strategy: Optional[Union[Strategy, str]] = None,
) -> List[List[PlaylistItem]]:
    """Partition items into duplicate groups, in order of each group's first item.

    Two items share a group when their keys match or their URLs are identical
    (transitively).
    """
    normalizer = _resolve(normalizer, strategy)
    parent = list(range(len(items)))

    def find(index: int) -> int:
        while parent[index] != index:
            parent[index] = parent[parent[index]]
            index = parent[index]
        return index

    def union(a: int, b: int) -> None:
        root_a, root_b = find(a), find(b)
        if root_a != root_b:
            # The earlier item stays the root
            parent[max(root_a, root_b)] = min(root_a, root_b)

    first_by_key: Dict[str, int] = {}
    first_by_url: Dict[str, int] = {}
    for index, item in enumerate(items):
        key = normalizer.normalized_key(item)
        if key in first_by_key:
            union(first_by_key[key], index)
        else:
            first_by_key[key] = index

        if item.url in first_by_url:
            union(first_by_url[item.url], index)
        else:
            first_by_url[item.url] = index

    groups: Dict[int, List[PlaylistItem]] = {}
    for index, item in enumerate(items):
        groups.setdefault(find(index), []).append(item)
    return [groups[root] for root in sorted(groups)]


def _best(group: List[PlaylistItem]) -> PlaylistItem:
    # max() keeps the first of equal scores
    return max(group, key=lambda item: item.quality_score)


def deduplicate(
    items: Sequence[PlaylistItem],
    normalizer: Optional[ChannelNormalizing] = None,
    strategy: Optional[Union[Strategy, str]] = None,
) -> List[PlaylistItem]:
    """One item per duplicate group: the highest quality one, at the group's first position."""
    return [_best(group) for group in group_items(items, normalizer, strategy)]


def find_duplicates(
    items: Sequence[PlaylistItem],
    normalizer: Optional[ChannelNormalizing] = None,
    strategy: Optional[Union[Strategy, str]] = None,
) -> List[List[PlaylistItem]]:
    """Groups with more than one item, best quality first, largest groups first."""
    duplicates = [
        sorted(group, key=lambda item: item.quality_score, reverse=True)
        for group in group_items(items, normalizer, strategy)
        if len(group) > 1
    ]
    return sorted(duplicates, key=len, reverse=True)


def deduplication_statistics(
    items: Sequence[PlaylistItem],
    normalizer: Optional[ChannelNormalizing] = None,
    strategy: Optional[Union[Strategy, str]] = None,
) -> DeduplicationStatistics:
    return DeduplicationStatistics(
        original_count=len(items),
        deduplicated_count=len(group_items(items, normalizer, strategy)),
    )
