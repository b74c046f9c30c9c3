"""Stream quality models."""
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, Optional


class Resolution(IntEnum):
    """Video resolution tiers, ordered from lowest to highest."""

    SD = 0
    HD = 1
    FHD = 2
    UHD = 3
    FOUR_K = 4

    def __str__(self) -> str:
        return {0: "SD", 1: "HD", 2: "FHD", 3: "UHD", 4: "4K"}[self.value]


class Codec(IntEnum):
    """Video codecs, ordered by efficiency."""

    H264 = 1
    H265 = 2


class StreamProtocol(Enum):
    HTTP = "http"
    HTTPS = "https"
    HLS = "hls"


@dataclass(frozen=True)
class QualityInfo:
    """Quality details detected for a single stream."""

    resolution: Optional[Resolution]
    codec: Optional[Codec]
    stream_protocol: StreamProtocol
    score: int
    is_explicit: bool  # resolution or codec was found in the name


@dataclass
class QualityStatistics:
    """Quality distribution across a playlist."""

    resolution_distribution: Dict[Resolution, int] = field(default_factory=dict)
    codec_distribution: Dict[Codec, int] = field(default_factory=dict)
    protocol_distribution: Dict[StreamProtocol, int] = field(default_factory=dict)
    average_score: float = 0.0
    max_score: int = 0
    min_score: int = 0
    explicit_quality_count: int = 0
    total_items: int = 0
