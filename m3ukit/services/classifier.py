"""Heuristic content classifier for IPTV playlist entries.

Decides whether an entry is a live channel, a movie or a series episode
from its display name and group label. Rules are evaluated in a fixed
order and the first rule that decides wins:

 1. live-category group prefix (``▱``)          -> live
 2. ``S01E01`` anywhere in the name             -> series(season, episode)
 3. series keyword in the group (dizi, serie, сериал, ...)
 4. movie/quality/brand keyword in the group blocks steps 5-8 unless 3 matched
 5. season/episode words in 11 languages
 6. CJK 第N季 / 第N集 numbering
 7. ``Ep. N`` / ``Ep N``
 8. series keyword in the group without numbers -> series(None, None)
 9. movie keyword in the group                  -> movie
10. sequel markers (Shrek 2, Part II, Rocky III) -> movie
11. ``[4K]`` tag                                  -> movie
12. a year (1950-2030) and no live markers       -> movie
13. language tag plus a year                     -> movie
14. otherwise                                    -> live
"""
import re
from typing import Dict, Iterable, Optional, Protocol, Tuple

from ..models.content_type import ContentType, LIVE, MOVIE, series

SeasonEpisode = Tuple[Optional[int], Optional[int]]

LIVE_GROUP_PREFIX = "▱"
YEAR_RANGE = (1950, 2030)


class ContentClassifying(Protocol):
    """Anything that can turn entry metadata into a content type."""

    def classify(self, name: str, group: Optional[str], attributes: Dict[str, str]) -> ContentType:
        ...


def is_likely_year(number: int) -> bool:
    return YEAR_RANGE[0] <= number <= YEAR_RANGE[1]


def _valid_number(number: Optional[int]) -> bool:
    """Season/episode candidates must be positive and must not look like a year."""
    return number is not None and number > 0 and not is_likely_year(number)


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def extract_first_number(text: str) -> Optional[int]:
    """First run of decimal digits in text."""
    digits = ""
    for ch in text:
        if ch.isdecimal():
            digits += ch
        elif digits:
            break
    return int(digits) if digits else None


def extract_last_number(text: str) -> Optional[int]:
    """Last run of decimal digits in text."""
    digits = ""
    for ch in reversed(text):
        if ch.isdecimal():
            digits = ch + digits
        elif digits:
            break
    return int(digits) if digits else None


def has_year_pattern(text: str) -> bool:
    """True if text holds a run of exactly four digits between 1950 and 2030."""
    index = 0
    end = len(text)

    while index < end:
        num_end = index
        while num_end < end and text[num_end].isdecimal():
            num_end += 1

        if num_end - index == 4 and is_likely_year(int(text[index:num_end])):
            return True

        index = num_end if num_end > index else index + 1

    return False


class ContentClassifier:
    """Default multi-language classifier (EN, TR, AR, FR, DE, HI, JA, PT, RU, ZH, ES)."""

    SERIES_GROUP_KEYWORDS = (
        # English
        "series", "tv show", "tv series",
        # Turkish
        "dizi", "diziler",
        # Arabic
        "مسلسل", "مسلسلات",
        # French
        "série", "séries",
        # German
        "serie", "serien", "fernsehserie",
        # Hindi
        "सीरीज़", "धारावाहिक",
        # Japanese
        "ドラマ", "シリーズ", "連続ドラマ",
        # Portuguese
        "novela",
        # Russian
        "сериал", "сериалы",
        # Chinese
        "剧集", "电视剧", "连续剧",
        # Spanish
        "telenovela",
    )

    MOVIE_GROUP_KEYWORDS = (
        # English
        "movie", "movies", "film", "films", "vod", "cinema",
        # Turkish
        "sinema", "vizyon", "bluray", "altyazili", "dublaj", "imdb",
        # Arabic
        "فيلم", "أفلام", "سينما",
        # French
        "cinéma",
        # German
        "kino", "filme",
        # Hindi
        "फ़िल्म", "फिल्में", "सिनेमा",
        # Japanese
        "映画", "ムービー",
        # Portuguese
        "filmes",
        # Russian
        "фильм", "фильмы", "кино",
        # Chinese
        "电影", "影片",
        # Spanish
        "película", "películas", "cine",
        # Quality / collection
        "4k", "fhd", "uhd", "2160p", "1080p",
        "top", "best", "world", "classics", "collection",
        "bollywood", "marvel", "dc", "disney", "pixar",
    )

    # Groups whose entries never go through the weak series heuristics
    NON_SERIES_GROUP_KEYWORDS = (
        # English
        "movie", "film", "cinema", "concert", "documentary",
        # Turkish
        "sinema", "vizyon", "tiyatro", "stand-up", "kabare", "belgesel", "konser", "müzik", "cocuk",
        # Arabic
        "فيلم", "سينما", "وثائقي",
        # French
        "cinéma", "documentaire",
        # German
        "kino", "dokumentation", "konzert",
        # Japanese
        "映画", "ドキュメンタリー",
        # Portuguese
        "documentário", "concerto",
        # Russian
        "фильм", "кино", "документальный",
        # Chinese
        "电影", "纪录片",
        # Spanish
        "película", "cine", "documental",
        # Quality
        "4k", "fhd", "uhd", "hd", "2160p", "1080p", "720p",
        "bluray", "blu-ray", "blu ray",
        # Collections / catalogs
        "world", "top", "imdb", "best", "classics", "classic",
        "collection", "koleksiyon", "top 250",
        # Regional / format
        "altyazili", "altyazılı", "dublaj", "yabanci", "yabancı",
        "yerli", "türk", "turkish", "diamant",
        # Movie genres / brands
        "bollywood", "marvel", "dc", "disney", "pixar",
        "klasik", "nostalji", "yeşilçam", "yesilcam",
    )

    SEASON_KEYWORDS = (
        "season",      # English
        "sezon",       # Turkish
        "موسم",        # Arabic
        "saison",      # French
        "staffel",     # German
        "सीज़न",        # Hindi
        "シーズン",     # Japanese
        "temporada",   # Portuguese, Spanish
        "сезон",       # Russian
    )

    EPISODE_KEYWORDS = (
        "episode",                  # English, French, German
        "bölüm", "bolum",           # Turkish
        "حلقة",                     # Arabic
        "épisode",                  # French
        "folge",                    # German
        "एपिसोड",                   # Hindi
        "エピソード",                 # Japanese
        "episódio", "episodio",     # Portuguese, Spanish
        "серия", "эпизод",          # Russian
        "capítulo", "capitulo",     # Spanish
    )

    # "Bölüm" also means "part", see _find_word_pattern
    PART_AMBIGUOUS_KEYWORDS = ("bölüm", "bolum")

    CJK_SEASON_SUFFIXES = ("季", "期")
    CJK_EPISODE_SUFFIXES = ("集", "話", "话")

    EPISODE_ONLY_MARKERS = (" ep.", " ep ", "-ep.", "-ep ")

    # Series keywords that veto a sequel-based movie decision
    SEQUEL_SERIES_VETO = (
        "series", "dizi", "tv show", "episode", "مسلسل", "série", "serie",
        "सीरीज़", "ドラマ", "сериал", "剧集", "telenovela",
    )

    SEQUEL_PATTERNS = (
        # Shrek 3, Iron Man 3 (2013), Fast & Furious 7
        re.compile(r'(?:^|\s)([2-9])(?:\s|$|\()'),
        # Part 2, Part II, Pt. 2, Chapter 3
        re.compile(r'(?:part|pt\.?|chapter)[\s:]+(?:[IVX]+|\d+)', re.IGNORECASE),
        # Rocky II, Rocky III
        re.compile(r'(?:^|\s)(II|III|IV|V|VI|VII|VIII|IX|X)(?:\s|$|\(|:)'),
        # Title 2: The Sequel
        re.compile(r'(?:[2-9]|II|III|IV|V|VI|VII|VIII|IX|X):\s*(?:The|El|Le|Der|Das)'),
    )

    LIVE_INDICATORS = (
        " hd", " fhd", " uhd", " 4k", " sd",
        "|hd", "|fhd", "|uhd", "|4k", "|sd",
        "[hd]", "[fhd]", "[uhd]", "[4k]", "[sd]",
        "hevc", "h265", "h264",
    )

    # Checked case-sensitively against the original name
    UNICODE_LIVE_INDICATORS = (
        "°",        # alternate source marker
        "ᴬⱽᴿᵁᴾᴬ",   # AVRUPA (Europe feed)
        "ᴿᴬᵂ",      # RAW
        "ᵁᴴᴰ",      # UHD
        "ᴴᴰ",       # HD
    )

    LANGUAGE_TAGS = ("(tr)", "(en)", "(de)", "(fr)", "(es)", "(it)", "(ru)", "[tr]", "[en]")

    def classify(
        self,
        name: str,
        group: Optional[str] = None,
        attributes: Optional[Dict[str, str]] = None,
    ) -> ContentType:
        """Classify an entry. Never raises; falls back to live."""
        name = name or ""
        name_lower = name.lower()
        original_group = group or ""
        group_lower = original_group.lower()

        if self.has_live_group_prefix(original_group):
            return LIVE

        strong = self._find_season_episode_pattern(name_lower)
        if strong is not None:
            return series(*strong)

        in_series_group = _contains_any(group_lower, self.SERIES_GROUP_KEYWORDS)
        blocked = not in_series_group and _contains_any(group_lower, self.NON_SERIES_GROUP_KEYWORDS)

        if not blocked:
            detected = self._detect_weak_series(name_lower, in_series_group)
            if detected is not None:
                return series(*detected)

        if self._is_movie(name_lower, group_lower, name):
            return MOVIE

        return LIVE

    def has_live_group_prefix(self, group: str) -> bool:
        return group.startswith(LIVE_GROUP_PREFIX)

    # Series detection

    def _detect_weak_series(self, name: str, in_series_group: bool) -> Optional[SeasonEpisode]:
        match = self._find_word_pattern(name)
        if match is not None:
            return match

        match = self._find_cjk_pattern(name)
        if match is not None:
            return match

        episode = self._find_episode_only_pattern(name)
        if episode is not None:
            return None, episode

        if in_series_group:
            return None, None

        return None

    def _find_season_episode_pattern(self, name: str) -> Optional[SeasonEpisode]:
        """Scan for s<digits>e<digits> in a lowercased name."""
        index = 0
        end = len(name)

        while index < end:
            if name[index] == "s":
                season_end = index + 1
                while season_end < end and name[season_end].isdecimal():
                    season_end += 1

                if season_end > index + 1 and season_end < end and name[season_end] == "e":
                    episode_end = season_end + 1
                    while episode_end < end and name[episode_end].isdecimal():
                        episode_end += 1

                    if episode_end > season_end + 1:
                        season = int(name[index + 1:season_end])
                        episode = int(name[season_end + 1:episode_end])
                        if not is_likely_year(season) and not is_likely_year(episode):
                            return (
                                season if season > 0 else None,
                                episode if episode > 0 else None,
                            )
            index += 1

        return None

    def _keyword_number(self, name: str, keyword: str) -> Optional[int]:
        """Number after the first occurrence of keyword, else the number before it."""
        position = name.find(keyword)
        if position < 0:
            return None

        after = extract_first_number(name[position + len(keyword):])
        if _valid_number(after):
            return after

        before = extract_last_number(name[:position])
        if _valid_number(before):
            return before

        return None

    def _find_word_pattern(self, name: str) -> Optional[SeasonEpisode]:
        season = None
        for keyword in self.SEASON_KEYWORDS:
            season = self._keyword_number(name, keyword)
            if season is not None:
                break

        episode = None
        episode_keyword = None
        for keyword in self.EPISODE_KEYWORDS:
            position = name.find(keyword)
            if position < 0:
                continue

            # "Episode IV" is a movie subtitle, not an episode number
            if keyword == "episode":
                rest = name[position + len(keyword):].strip()
                if rest[:1] in ("i", "v", "x", "l"):
                    continue

            episode = self._keyword_number(name, keyword)
            if episode is not None:
                episode_keyword = keyword
                break

        if season is None and episode is None:
            return None

        # "John Wick: Bölüm 4 (2023)" is part 4 of a movie
        if (
            season is None
            and episode_keyword in self.PART_AMBIGUOUS_KEYWORDS
            and has_year_pattern(name)
        ):
            return None

        return season, episode

    def _find_cjk_pattern(self, name: str) -> Optional[SeasonEpisode]:
        season = self._find_cjk_number(name, self.CJK_SEASON_SUFFIXES)
        episode = self._find_cjk_number(name, self.CJK_EPISODE_SUFFIXES)

        if season is None and episode is None:
            return None
        return season, episode

    @staticmethod
    def _find_cjk_number(name: str, suffixes: Tuple[str, ...]) -> Optional[int]:
        """First 第<digits><suffix>, trying suffixes in order."""
        for suffix in suffixes:
            start = name.find("第")
            while start >= 0:
                index = start + 1
                while index < len(name) and name[index].isdecimal():
                    index += 1

                if index > start + 1 and index < len(name) and name[index] == suffix:
                    number = int(name[start + 1:index])
                    if _valid_number(number):
                        return number

                start = name.find("第", start + 1)

        return None

    def _find_episode_only_pattern(self, name: str) -> Optional[int]:
        for marker in self.EPISODE_ONLY_MARKERS:
            position = name.find(marker)
            if position >= 0:
                episode = extract_first_number(name[position + len(marker):])
                if _valid_number(episode):
                    return episode

        if name.startswith(("ep.", "ep ")):
            episode = extract_first_number(name[3:])
            if _valid_number(episode):
                return episode

        return None

    # Movie detection

    def _is_movie(self, name: str, group: str, original_name: str) -> bool:
        if _contains_any(group, self.MOVIE_GROUP_KEYWORDS):
            return True

        live_markers = self.has_live_indicators(name, original_name)

        if self.is_movie_sequel(original_name) and not live_markers:
            # An explicit series group wins over a sequel-looking title
            return not _contains_any(group, self.SEQUEL_SERIES_VETO)

        if "[4K]" in original_name or "[4k]" in original_name:
            return True

        if has_year_pattern(name) and not live_markers:
            return True

        if has_year_pattern(name) and _contains_any(name, self.LANGUAGE_TAGS):
            return True

        return False

    def is_movie_sequel(self, title: str) -> bool:
        return any(pattern.search(title) for pattern in self.SEQUEL_PATTERNS)

    def has_live_indicators(self, name: str, original_name: str) -> bool:
        """Resolution/codec suffixes in the lowercased name, or stylized live glyphs."""
        return (
            _contains_any(name, self.LIVE_INDICATORS)
            or _contains_any(original_name, self.UNICODE_LIVE_INDICATORS)
        )


_default_classifier = ContentClassifier()


def classify(name: str, group: Optional[str] = None, attributes: Optional[Dict[str, str]] = None) -> ContentType:
    """Classify with the default rule chain."""
    return _default_classifier.classify(name, group, attributes or {})
