"""Playlist item model for IPTV entries."""
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, TYPE_CHECKING

from .content_type import ContentType, LIVE

if TYPE_CHECKING:
    from .quality import Codec, QualityInfo, Resolution


@dataclass(frozen=True)
class PlaylistItem:
    """A single resolved playlist entry (metadata line plus its stream URL)."""

    name: str
    url: str
    group: Optional[str] = None
    logo: Optional[str] = None
    epg_id: Optional[str] = None
    content_type: ContentType = LIVE
    duration: Optional[int] = None  # None for live streams
    attributes: Dict[str, str] = field(default_factory=dict)
    # Provider-specific fields (XUI / Xtream Codes panels)
    xui_id: Optional[str] = None
    timeshift: Optional[int] = None
    catchup: Optional[str] = None
    catchup_source: Optional[str] = None
    catchup_days: Optional[int] = None
    catchup_correction: Optional[int] = None
    recording: Optional[bool] = None  # True or None, never False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __hash__(self):
        return hash(self.id)

    @property
    def season(self) -> Optional[int]:
        return self.content_type.season

    @property
    def episode(self) -> Optional[int]:
        return self.content_type.episode

    @property
    def quality_info(self) -> "QualityInfo":
        """Resolution, codec, protocol and score derived from the name and URL."""
        from ..services.quality_analyzer import default_analyzer
        return default_analyzer().analyze(self.name, self.url)

    @property
    def quality_score(self) -> int:
        return self.quality_info.score

    @property
    def resolution(self) -> Optional["Resolution"]:
        return self.quality_info.resolution

    @property
    def codec(self) -> Optional["Codec"]:
        return self.quality_info.codec

    @property
    def clean_title(self) -> str:
        """Title with country/quality prefixes, bracketed tags and quality suffixes removed."""
        from ..services.title_normalizer import default_normalizer
        return default_normalizer().sanitize(self.name)

    @property
    def normalized_title(self) -> str:
        """Title folded for comparison (Turkish letters to ASCII, lowercase, single spaces)."""
        from ..services.title_normalizer import default_normalizer
        return default_normalizer().normalize(self.name)

    def to_dict(self) -> dict:
        """Convert item to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "group": self.group,
            "logo": self.logo,
            "epg_id": self.epg_id,
            "content_type": self.content_type.to_dict(),
            "duration": self.duration,
            "attributes": dict(self.attributes),
            "xui_id": self.xui_id,
            "timeshift": self.timeshift,
            "catchup": self.catchup,
            "catchup_source": self.catchup_source,
            "catchup_days": self.catchup_days,
            "catchup_correction": self.catchup_correction,
            "recording": self.recording,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlaylistItem":
        """Create item from dictionary."""
        extra = {}
        if data.get("id"):
            extra["id"] = data["id"]

        return cls(
            name=data.get("name", "Unknown"),
            url=data.get("url", ""),
            group=data.get("group"),
            logo=data.get("logo"),
            epg_id=data.get("epg_id"),
            content_type=ContentType.from_dict(data.get("content_type") or {}),
            duration=data.get("duration"),
            attributes=dict(data.get("attributes") or {}),
            xui_id=data.get("xui_id"),
            timeshift=data.get("timeshift"),
            catchup=data.get("catchup"),
            catchup_source=data.get("catchup_source"),
            catchup_days=data.get("catchup_days"),
            catchup_correction=data.get("catchup_correction"),
            recording=data.get("recording"),
            **extra,
        )
