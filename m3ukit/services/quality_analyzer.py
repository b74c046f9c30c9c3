"""Stream quality detection and scoring."""
import re
from typing import Iterable, Optional, Protocol
from urllib.parse import urlsplit

from ..models.quality import Codec, QualityInfo, QualityStatistics, Resolution, StreamProtocol

# Standalone "hd"/"sd" (not part of fhd, uhd, hdr...)
HD_TOKEN = re.compile(r'(?:^|[\s\[\]|(),._-])hd(?:$|[\s\[\]|(),._-])')
SD_TOKEN = re.compile(r'(?:^|[\s\[\]|(),._-])sd(?:$|[\s\[\]|(),._-])')

RESOLUTION_POINTS = {
    Resolution.FOUR_K: 40,
    Resolution.UHD: 35,
    Resolution.FHD: 30,
    Resolution.HD: 20,
    Resolution.SD: 10,
}

CODEC_POINTS = {
    Codec.H265: 20,
    Codec.H264: 10,
}

PROTOCOL_POINTS = {
    StreamProtocol.HLS: 15,
    StreamProtocol.HTTPS: 10,
    StreamProtocol.HTTP: 5,
}

BASE_SCORE = 25
MAX_SCORE = 100


class QualityAnalyzing(Protocol):
    def analyze(self, name: str, url: str) -> QualityInfo:
        ...


class QualityAnalyzer:
    """Detects resolution and codec from the item name and protocol from its URL."""

    def analyze(self, name: str, url: str) -> QualityInfo:
        resolution = self.detect_resolution(name)
        codec = self.detect_codec(name)
        stream_protocol = self.detect_protocol(url)

        return QualityInfo(
            resolution=resolution,
            codec=codec,
            stream_protocol=stream_protocol,
            score=self.calculate_score(resolution, codec, stream_protocol),
            is_explicit=resolution is not None or codec is not None,
        )

    def detect_resolution(self, name: str) -> Optional[Resolution]:
        lowered = name.lower()

        # Most specific first
        if "4k" in lowered:
            return Resolution.FOUR_K

        if "uhd" in lowered or "2160p" in lowered or "ᵁᴴᴰ" in name:
            return Resolution.UHD

        if any(tag in lowered for tag in ("fhd", "1080p", "full hd", "fullhd")):
            return Resolution.FHD

        if "720p" in lowered or "ᴴᴰ" in name or HD_TOKEN.search(lowered):
            return Resolution.HD

        if "480p" in lowered or SD_TOKEN.search(lowered):
            return Resolution.SD

        return None

    def detect_codec(self, name: str) -> Optional[Codec]:
        lowered = name.lower()

        if any(tag in lowered for tag in ("hevc", "h.265", "h265", "x265")):
            return Codec.H265

        if any(tag in lowered for tag in ("h.264", "h264", "avc", "x264")):
            return Codec.H264

        return None

    def detect_protocol(self, url: str) -> StreamProtocol:
        lowered = url.lower()

        if ".m3u8" in lowered:
            return StreamProtocol.HLS

        if urlsplit(lowered).scheme == "https":
            return StreamProtocol.HTTPS

        return StreamProtocol.HTTP

    def calculate_score(
        self,
        resolution: Optional[Resolution],
        codec: Optional[Codec],
        stream_protocol: StreamProtocol,
    ) -> int:
        score = BASE_SCORE
        if resolution is not None:
            score += RESOLUTION_POINTS[resolution]
        if codec is not None:
            score += CODEC_POINTS[codec]
        score += PROTOCOL_POINTS[stream_protocol]
        return min(score, MAX_SCORE)


_default_analyzer = QualityAnalyzer()


def default_analyzer() -> QualityAnalyzer:
    return _default_analyzer


def compute_quality_statistics(items: Iterable, analyzer: Optional[QualityAnalyzing] = None) -> QualityStatistics:
    """Resolution/codec/protocol distribution and score range across items."""
    analyzer = analyzer or _default_analyzer
    stats = QualityStatistics()
    total_score = 0
    scores = []

    for item in items:
        quality = analyzer.analyze(item.name, item.url)

        if quality.resolution is not None:
            stats.resolution_distribution[quality.resolution] = stats.resolution_distribution.get(quality.resolution, 0) + 1
        if quality.codec is not None:
            stats.codec_distribution[quality.codec] = stats.codec_distribution.get(quality.codec, 0) + 1
        stats.protocol_distribution[quality.stream_protocol] = stats.protocol_distribution.get(quality.stream_protocol, 0) + 1

        total_score += quality.score
        scores.append(quality.score)
        if quality.is_explicit:
            stats.explicit_quality_count += 1

    stats.total_items = len(scores)
    if scores:
        stats.average_score = total_score / len(scores)
        stats.max_score = max(scores)
        stats.min_score = min(scores)

    return stats
