"""Token state machine that pairs #EXTINF metadata with stream URLs.

The same assembler drives the whole-document parse, the statistics parse
and the streaming parse, so all three produce identical items.
"""
from typing import List, Optional, Set

from ..models.parse_result import ParseStatistics, ParseWarning, Severity, WarningType
from ..models.playlist_item import PlaylistItem
from ..models.token import Comment, ExtGrp, ExtInf, Header, StreamURL, Token, Unknown
from .classifier import ContentClassifying
from .lexer import parse_int, parse_stream_url


def _truncate(text: str, limit: int = 80) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def parse_recording_flag(value: Optional[str]) -> Optional[bool]:
    """tvg-rec is True for "1" or "true"; anything else (including "0") is None."""
    if value is None:
        return None
    if value == "1" or value.lower() == "true":
        return True
    return None


class EntryAssembler:
    """Feeds tokens one at a time and emits a PlaylistItem per resolved entry.

    With track_statistics the assembler also records warnings and counters.
    Not safe for concurrent use: one assembler belongs to one parse.
    """

    def __init__(self, classifier: ContentClassifying, track_statistics: bool = False):
        self.classifier = classifier
        self.track_statistics = track_statistics

        self.pending_extinf: Optional[ExtInf] = None
        self.pending_extinf_line = 0
        self.pending_group: Optional[str] = None
        self.saw_header = False
        self.line_count = 0

        self.seen_urls: Set[str] = set()
        self.warnings: List[ParseWarning] = []
        self.success_count = 0
        self.orphaned_count = 0
        self.duplicate_count = 0
        self.invalid_url_count = 0

    def feed(self, token: Token, line_number: int) -> Optional[PlaylistItem]:
        """Advance the state machine. Returns an item when a URL resolves pending metadata."""
        self.line_count = max(self.line_count, line_number)

        if isinstance(token, Header):
            self.saw_header = True
            return None

        if isinstance(token, ExtInf):
            if self.pending_extinf is not None:
                self._report_orphan()
            self.pending_extinf = token
            self.pending_extinf_line = line_number
            if self.track_statistics and not token.title:
                self.add_warning(
                    line_number, Severity.INFO, WarningType.MALFORMED_METADATA,
                    "EXTINF line has no title",
                )
            return None

        if isinstance(token, ExtGrp):
            self.pending_group = token.name
            return None

        if isinstance(token, StreamURL):
            item = None
            if self.pending_extinf is not None:
                item = self.build_item(self.pending_extinf, token, self.pending_group)
                self.success_count += 1
                if self.track_statistics:
                    self._check_item(item, line_number)
            self.pending_extinf = None
            self.pending_group = None
            return item

        if self.track_statistics:
            if isinstance(token, Unknown) and token.text and self.pending_extinf is not None:
                self.invalid_url_count += 1
                self.add_warning(
                    line_number, Severity.WARNING, WarningType.INVALID_URL,
                    f"Expected a stream URL, got: {_truncate(token.text)}",
                    raw_content=token.text,
                )
            elif isinstance(token, Comment) and token.text.upper().startswith("#EXT"):
                self.add_warning(
                    line_number, Severity.INFO, WarningType.UNKNOWN_DIRECTIVE,
                    f"Unknown directive: {_truncate(token.text)}",
                    raw_content=token.text,
                )

        # Session data, comments and blank lines carry no entry state
        return None

    def finish(self) -> None:
        """Close the document. Metadata still pending is reported as orphaned."""
        if self.pending_extinf is not None:
            self._report_orphan()
            self.pending_extinf = None
        self.pending_group = None

    def build_item(self, extinf: ExtInf, url: StreamURL, group_override: Optional[str]) -> PlaylistItem:
        attributes = extinf.attributes
        group = group_override if group_override is not None else attributes.get("group-title")
        content_type = self.classifier.classify(extinf.title, group, attributes)

        logo = attributes.get("tvg-logo")
        if logo is not None and parse_stream_url(logo) is None:
            logo = None

        return PlaylistItem(
            name=extinf.title,
            url=url.url,
            group=group,
            logo=logo,
            epg_id=attributes.get("tvg-id"),
            content_type=content_type,
            duration=None if extinf.duration == -1 else extinf.duration,
            attributes=dict(attributes),
            xui_id=attributes.get("xui-id"),
            timeshift=parse_int(attributes.get("timeshift")),
            catchup=attributes.get("catchup"),
            catchup_source=attributes.get("catchup-source"),
            catchup_days=parse_int(attributes.get("catchup-days")),
            catchup_correction=parse_int(attributes.get("catchup-correction")),
            recording=parse_recording_flag(attributes.get("tvg-rec")),
        )

    def add_warning(
        self,
        line_number: int,
        severity: Severity,
        warning_type: WarningType,
        message: str,
        raw_content: Optional[str] = None,
    ) -> None:
        if self.track_statistics:
            self.warnings.append(ParseWarning(line_number, severity, warning_type, message, raw_content))

    def statistics(self, parse_time: float = 0.0, total_lines: Optional[int] = None) -> ParseStatistics:
        return ParseStatistics(
            total_lines=self.line_count if total_lines is None else total_lines,
            success_count=self.success_count,
            failure_count=self.orphaned_count,
            warning_count=len(self.warnings),
            parse_time=parse_time,
            orphaned_extinf_count=self.orphaned_count,
            duplicate_url_count=self.duplicate_count,
            invalid_url_count=self.invalid_url_count,
        )

    def _report_orphan(self) -> None:
        self.orphaned_count += 1
        extinf = self.pending_extinf
        self.add_warning(
            self.pending_extinf_line, Severity.WARNING, WarningType.ORPHANED_METADATA,
            f"EXTINF without a following URL: {_truncate(extinf.title) or '(untitled)'}",
        )

    def _check_item(self, item: PlaylistItem, line_number: int) -> None:
        if item.url in self.seen_urls:
            self.duplicate_count += 1
            self.add_warning(
                line_number, Severity.INFO, WarningType.DUPLICATE_ENTRY,
                f"Duplicate URL for '{_truncate(item.name)}'",
                raw_content=item.url,
            )
        self.seen_urls.add(item.url)

        raw_logo = item.attributes.get("tvg-logo")
        if raw_logo is not None and item.logo is None:
            self.add_warning(
                self.pending_extinf_line, Severity.INFO, WarningType.MALFORMED_METADATA,
                f"tvg-logo is not a URL: {_truncate(raw_logo)}",
                raw_content=raw_logo,
            )
