"""Tests for title normalizing and sanitizing."""
import pytest

from m3ukit.models.playlist_item import PlaylistItem
from m3ukit.services import TitleNormalizer


@pytest.fixture
def normalizer():
    return TitleNormalizer()


class TestNormalize:
    """Comparison form"""

    def test_turkish_letters(self, normalizer):
        assert normalizer.normalize_turkish("Çağrı Şişli Ömür İğde") == "Cagri Sisli Omur Igde"

    def test_normalize(self, normalizer):
        assert normalizer.normalize("  Kurtlar   Vadisi  ") == "kurtlar vadisi"
        assert normalizer.normalize("ŞAHİN Gözü") == "sahin gozu"

    def test_dotted_capital_i(self, normalizer):
        assert normalizer.normalize("İstanbul") == "istanbul"


@pytest.mark.parametrize("title, expected", [
    ("TR: Show Name [VIP] (2020) HD", "Show Name"),
    ("UK | BBC One FHD", "BBC One"),
    ("US:CNN", "CNN"),
    ("Channel | Backup", "Channel"),
    ("Movie 1080p HEVC", "Movie"),
    ("Sky Sports+", "Sky Sports+"),
    ("HD", "HD"),
    ("Plain", "Plain"),
])
def test_sanitize(normalizer, title, expected):
    assert normalizer.sanitize(title) == expected


def test_item_titles():
    item = PlaylistItem(name="TR: Çukur [VIP] HD", url="http://x/a")
    assert item.clean_title == "Çukur"
    assert item.normalized_title == "tr: cukur [vip] hd"
