"""Tests for Playlist views, series grouping and serialization."""
import pytest

from m3ukit.models.content_type import LIVE, MOVIE, series
from m3ukit.models.playlist import Playlist, extract_series_name
from m3ukit.models.playlist_item import PlaylistItem


def make_item(name, group=None, content_type=LIVE, url=None):
    return PlaylistItem(
        name=name,
        url=url or f"http://example.com/{name.replace(' ', '_')}",
        group=group,
        content_type=content_type,
    )


@pytest.fixture
def playlist():
    return Playlist(
        items=[
            make_item("BBC One", "UK"),
            make_item("The Matrix (1999)", "Movies", MOVIE),
            make_item("Breaking Bad S01E01", "Series", series(1, 1)),
            make_item("CNN", "News"),
            make_item("Breaking Bad S01E02", "Series", series(1, 2)),
            make_item("Dark S01E01", "Series", series(1, 1)),
            make_item("Breaking Bad S02E01", "Series", series(2, 1)),
            make_item("Local TV"),
        ],
        name="Test",
        source="/tmp/test.m3u",
    )


class TestViews:
    """Content-type views and groups"""

    def test_content_views(self, playlist):
        assert [item.name for item in playlist.channels] == ["BBC One", "CNN", "Local TV"]
        assert [item.name for item in playlist.movies] == ["The Matrix (1999)"]
        assert len(playlist.series) == 4

    def test_views_partition_items(self, playlist):
        assert len(playlist.channels) + len(playlist.movies) + len(playlist.series) == len(playlist)

    def test_groups_sorted(self, playlist):
        assert playlist.groups == ["Movies", "News", "Series", "UK"]

    def test_grouped_by_category(self, playlist):
        grouped = playlist.grouped_by_category
        assert [item.name for item in grouped["Uncategorized"]] == ["Local TV"]
        assert len(grouped["Series"]) == 4

    def test_get_items_by_group(self, playlist):
        assert [item.name for item in playlist.get_items_by_group("News")] == ["CNN"]

    def test_search_is_case_insensitive(self, playlist):
        assert [item.name for item in playlist.search("breaking")] == [
            "Breaking Bad S01E01", "Breaking Bad S01E02", "Breaking Bad S02E01",
        ]

    def test_iteration_keeps_source_order(self, playlist):
        assert [item.name for item in playlist][:2] == ["BBC One", "The Matrix (1999)"]


class TestSeriesGrouping:
    """Unique-series aggregates"""

    def test_grouped_largest_first(self, playlist):
        grouped = playlist.series_grouped

        assert [info.name for info in grouped] == ["Breaking Bad", "Dark"]
        assert grouped[0].episode_count == 3
        assert grouped[0].season_count == 2
        assert grouped[0].group == "Series"

    def test_episodes_in_playlist_order(self, playlist):
        episodes = playlist.series_grouped[0].episodes
        assert [(ep.season, ep.episode) for ep in episodes] == [(1, 1), (1, 2), (2, 1)]

    def test_counts(self, playlist):
        assert playlist.unique_series_count == 2
        assert playlist.total_episode_count == 4

    def test_same_name_in_other_group_is_separate(self):
        playlist = Playlist(items=[
            make_item("Show S01E01", "A", series(1, 1)),
            make_item("Show S01E02", "B", series(1, 2)),
        ])
        assert [(info.name, info.group) for info in playlist.series_grouped] == [("Show", "A"), ("Show", "B")]

    def test_ties_keep_first_seen_order(self):
        playlist = Playlist(items=[
            make_item("Zeta S01E01", "S", series(1, 1)),
            make_item("Alpha S01E01", "S", series(1, 1)),
        ])
        assert [info.name for info in playlist.series_grouped] == ["Zeta", "Alpha"]

    def test_extract_series_name(self):
        assert extract_series_name("Breaking Bad - S01E05") == "Breaking Bad"
        assert extract_series_name("show s2e3 extra") == "show"
        assert extract_series_name("Kurtlar Vadisi Bölüm 5") == "Kurtlar Vadisi Bölüm 5"

    def test_no_series(self):
        assert Playlist(items=[make_item("BBC One")]).series_grouped == []


class TestSerialization:
    """to_dict / from_dict"""

    def test_round_trip(self, playlist):
        restored = Playlist.from_dict(playlist.to_dict())

        assert restored.name == "Test"
        assert restored.source == "/tmp/test.m3u"
        assert [item.id for item in restored] == [item.id for item in playlist]
        assert [item.content_type for item in restored] == [item.content_type for item in playlist]

    def test_item_round_trip_keeps_provider_fields(self):
        item = PlaylistItem(
            name="Archive", url="http://x/a", content_type=series(None, 3),
            attributes={"catchup": "default"}, catchup="default", catchup_days=7, recording=True,
        )
        assert PlaylistItem.from_dict(item.to_dict()) == item

    def test_items_get_unique_ids(self):
        assert make_item("A").id != make_item("A").id
