"""Title cleanup for display and comparison."""
import re
from typing import Protocol

BRACKETED = re.compile(r'\[.*?\]')
PARENTHESIZED = re.compile(r'\(.*?\)')
WHITESPACE = re.compile(r'\s+')

TURKISH_FOLD = str.maketrans("çÇğĞıİöÖşŞüÜ", "cCgGiIoOsSuU")

COUNTRY_PREFIXES = ("TR", "UK", "US", "DE", "FR", "ES", "IT", "NL", "VIP", "HEVC", "FHD", "HD", "SD", "4K", "UHD")
# "TR:", "TR :", "TR|", "TR |" and so on
COMMON_PREFIXES = tuple(
    f"{code}{separator}"
    for code in COUNTRY_PREFIXES
    for separator in (":", " :", "|", " |")
)

QUALITY_TAGS = frozenset(tag.upper() for tag in (
    "HD", "FHD", "UHD", "4K", "8K",
    "SD", "LQ", "HQ",
    "HEVC", "H264", "H.264", "H265", "H.265",
    "1080p", "1080i", "720p", "720i", "480p", "480i",
    "2160p", "4320p",
    "HDR", "HDR10", "HDR10+", "Dolby Vision",
    "Atmos", "DTS", "AAC", "AC3",
    "+", "PLUS",
))


class TitleNormalizing(Protocol):
    def normalize(self, title: str) -> str:
        ...

    def sanitize(self, title: str) -> str:
        ...


class TitleNormalizer:
    """Turkish-aware title folding and sanitizing."""

    def normalize_turkish(self, text: str) -> str:
        """Replace Turkish letters with their ASCII counterparts (ç->c, İ->I, ...)."""
        return text.translate(TURKISH_FOLD)

    def normalize(self, title: str) -> str:
        """Comparison form: Turkish folded, lowercase, single spaces."""
        result = self.normalize_turkish(title).lower()
        return WHITESPACE.sub(" ", result).strip()

    def sanitize(self, title: str) -> str:
        """Display form: "TR: Show Name [VIP] (2020) HD" -> "Show Name"."""
        result = self._remove_common_prefix(title)
        result = self._remove_bracketed_content(result)
        result = self._remove_trailing_quality_tags(result)
        return WHITESPACE.sub(" ", result).strip()

    @staticmethod
    def _remove_common_prefix(text: str) -> str:
        upper = text.upper()
        for prefix in COMMON_PREFIXES:
            if upper.startswith(prefix):
                return text[len(prefix):].strip()
        return text

    @staticmethod
    def _remove_bracketed_content(text: str) -> str:
        result = BRACKETED.sub("", text)
        result = PARENTHESIZED.sub("", result)
        # Drop pipe-separated suffixes
        return result.split("|", 1)[0]

    @staticmethod
    def _remove_trailing_quality_tags(text: str) -> str:
        result = text.strip()
        while " " in result:
            head, last_word = result.rsplit(" ", 1)
            if last_word.upper() not in QUALITY_TAGS:
                break
            result = head.strip()
        return result


_default_normalizer = TitleNormalizer()


def default_normalizer() -> TitleNormalizer:
    return _default_normalizer
