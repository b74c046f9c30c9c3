"""Parse statistics, warnings and the combined parse result."""
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import List, Optional

from .playlist import Playlist


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class WarningType(str, Enum):
    ORPHANED_METADATA = "orphaned-metadata"
    INVALID_URL = "invalid-url"
    MISSING_ATTRIBUTE = "missing-attribute"
    DUPLICATE_ENTRY = "duplicate-entry"
    MALFORMED_METADATA = "malformed-metadata"
    UNKNOWN_DIRECTIVE = "unknown-directive"
    ENCODING_ISSUE = "encoding-issue"


@dataclass(frozen=True)
class ParseWarning:
    """A non-fatal problem found while parsing, tied to a source line."""

    line_number: int
    severity: Severity
    type: WarningType
    message: str
    raw_content: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] Line {self.line_number}: {self.message}"


@dataclass
class ParseStatistics:
    """Counters collected during a statistics-mode parse."""

    total_lines: int = 0
    success_count: int = 0
    failure_count: int = 0
    warning_count: int = 0
    parse_time: float = 0.0
    orphaned_extinf_count: int = 0
    duplicate_url_count: int = 0
    invalid_url_count: int = 0

    @property
    def success_rate(self) -> float:
        """successes / (successes + failures), or 1.0 when nothing was attempted."""
        total = self.success_count + self.failure_count
        if total == 0:
            return 1.0
        return self.success_count / total

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ParseStatistics":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class ParseResult:
    """A playlist together with the statistics and warnings of its parse."""

    playlist: Playlist
    statistics: ParseStatistics
    warnings: List[ParseWarning] = field(default_factory=list)

    def warnings_by_severity(self, severity: Severity) -> List[ParseWarning]:
        return [w for w in self.warnings if w.severity == severity]

    def warnings_by_type(self, warning_type: WarningType) -> List[ParseWarning]:
        return [w for w in self.warnings if w.type == warning_type]

    @property
    def is_clean(self) -> bool:
        """True when no error-severity warning was produced."""
        return all(w.severity != Severity.ERROR for w in self.warnings)

    @property
    def error_count(self) -> int:
        return len(self.warnings_by_severity(Severity.ERROR))
