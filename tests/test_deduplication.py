"""Tests for duplicate detection and removal."""
import pytest

from m3ukit.models.content_type import LIVE, series
from m3ukit.models.playlist import Playlist
from m3ukit.models.playlist_item import PlaylistItem
from m3ukit.services import ChannelNormalizer, DeduplicationKey, Strategy
from m3ukit.services.deduplication import deduplicate, deduplication_statistics, find_duplicates, group_items


def make_item(name, url, group=None, epg_id=None, content_type=LIVE):
    return PlaylistItem(name=name, url=url, group=group, epg_id=epg_id, content_type=content_type)


class TestKeys:
    """Normalized keys per strategy"""

    def test_composite_key(self):
        item = make_item("UK: BBC One HD", "http://x/1", group="UK", epg_id="BBC1")
        key = DeduplicationKey.from_item(item)

        assert key.composite_key == "id:bbc1|t:bbc one|g:uk|c:live"

    def test_composite_key_without_id_and_group(self):
        item = make_item("Dark S01E01", "http://x/1", content_type=series(1, 1))
        assert DeduplicationKey.from_item(item).composite_key == "t:dark s01e01|c:series:s1e1"

    def test_tvg_id_falls_back_to_title(self):
        normalizer = ChannelNormalizer(Strategy.TVG_ID)
        assert normalizer.normalized_key(make_item("CNN", "http://x/1", epg_id="CNN.us")) == "tvg:cnn.us"
        assert normalizer.normalized_key(make_item("CNN HD", "http://x/1")) == "title:cnn"

    def test_url_key_ignores_credentials(self):
        normalizer = ChannelNormalizer(Strategy.URL)
        a = make_item("A", "http://x/live/1?username=a&password=b")
        b = make_item("B", "http://x/live/1?username=c&password=d")
        assert normalizer.normalized_key(a) == normalizer.normalized_key(b)

    def test_strategy_from_string(self):
        assert ChannelNormalizer("title").strategy == Strategy.TITLE
        with pytest.raises(ValueError):
            ChannelNormalizer("nonsense")


class TestDeduplicate:
    """Keeping the best item of each group"""

    def test_keeps_best_quality_at_first_position(self):
        items = [
            make_item("BBC One", "http://x/1"),
            make_item("CNN", "http://x/2"),
            make_item("BBC One HD", "http://x/3"),
        ]
        assert [item.name for item in deduplicate(items)] == ["BBC One HD", "CNN"]

    def test_ties_keep_first(self):
        items = [make_item("CNN", "http://x/1"), make_item("cnn", "http://x/2")]
        assert [item.url for item in deduplicate(items)] == ["http://x/1"]

    def test_composite_separates_groups(self):
        items = [make_item("CNN", "http://x/1", group="News"), make_item("CNN", "http://x/2", group="US")]
        assert len(deduplicate(items)) == 2
        assert len(deduplicate(items, strategy=Strategy.TITLE)) == 1

    def test_tvg_id_merges_different_names(self):
        items = [
            make_item("BBC One", "http://x/1", epg_id="bbc1.uk"),
            make_item("BBC 1 London", "http://x/2", epg_id="BBC1.UK"),
        ]
        assert len(deduplicate(items, strategy="tvg_id")) == 1
        assert len(deduplicate(items, strategy=Strategy.TITLE)) == 2

    def test_fallback_uses_group(self):
        items = [make_item("CNN", "http://x/1", group="News"), make_item("CNN", "http://x/2", group="US")]
        assert len(deduplicate(items, strategy=Strategy.TVG_ID_WITH_FALLBACK)) == 2
        assert len(deduplicate(items, strategy=Strategy.TVG_ID)) == 1

    def test_same_url_always_merges(self):
        items = [make_item("Channel A", "http://x/same"), make_item("Channel B", "http://x/same")]
        assert len(deduplicate(items, strategy=Strategy.TITLE)) == 1

    def test_groups_are_transitive(self):
        items = [
            make_item("CNN", "http://x/1"),
            make_item("CNN", "http://x/2"),
            make_item("Other Name", "http://x/2"),
        ]
        assert [len(group) for group in group_items(items, strategy=Strategy.TITLE)] == [3]

    def test_custom_normalizer(self):
        class OneBucket:
            def normalized_key(self, item):
                return "all"

        items = [make_item("A", "http://x/1"), make_item("B", "http://x/2")]
        assert len(deduplicate(items, normalizer=OneBucket())) == 1


class TestReports:
    """Duplicate groups and statistics"""

    @pytest.fixture
    def items(self):
        return [
            make_item("BBC One", "http://x/1"),
            make_item("CNN", "http://x/2"),
            make_item("BBC One HD", "http://x/3"),
            make_item("BBC One FHD", "http://x/4"),
            make_item("CNN HD", "http://x/5"),
            make_item("Local", "http://x/6"),
        ]

    def test_find_duplicates(self, items):
        groups = find_duplicates(items)

        assert [[item.name for item in group] for group in groups] == [
            ["BBC One FHD", "BBC One HD", "BBC One"],
            ["CNN HD", "CNN"],
        ]

    def test_statistics(self, items):
        stats = deduplication_statistics(items)

        assert stats.original_count == 6
        assert stats.unique_count == 3
        assert stats.duplicates_removed == 3
        assert stats.duplicate_percentage == pytest.approx(50.0)

    def test_empty_statistics(self):
        stats = deduplication_statistics([])
        assert stats.duplicates_removed == 0
        assert stats.duplicate_percentage == 0.0

    def test_playlist_methods(self, items):
        playlist = Playlist(items=items, name="All")
        deduped = playlist.deduplicated()

        assert deduped.name == "All"
        assert [item.name for item in deduped] == ["BBC One FHD", "CNN HD", "Local"]
        assert len(playlist) == 6
        assert len(playlist.find_duplicates()) == 2
        assert playlist.deduplication_statistics(strategy=Strategy.URL).duplicates_removed == 0
