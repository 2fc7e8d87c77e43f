from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class FetchResult:
    """
    Output of the fetch phase.
    Represents the decoded network response in MEMORY; it is handed to the
    extractor and then discarded.
    """
    url: str
    final_url: str
    html: str
    http_status: int
    content_type: str
    fetch_duration_ms: int
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class OutcomeStatus(Enum):
    OK = "ok"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class AnalysisOutcome:
    """
    Per-URL result of a batch run.
    A fetch failure yields SKIPPED with the error recorded, never an abort.
    """
    url: str
    status: OutcomeStatus
    score: Optional[Any] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    fetch_duration_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = {"url": self.url, "status": self.status.value}
        if self.score is not None:
            data["score"] = self.score.to_dict()
        if self.error:
            data["error"] = self.error
            data["error_kind"] = self.error_kind
        return data


@dataclass(frozen=True)
class SitemapEntry:
    url: str
    lastmod: Optional[datetime] = None
    priority: Optional[float] = None


@dataclass(frozen=True)
class DiscoveryResult:
    """
    Post URLs found for a blog root.
    source is "sitemap" or "manual"; error explains an empty result.
    """
    entries: Tuple[SitemapEntry, ...]
    total_found: int
    source: str
    error: Optional[str] = None


@dataclass(frozen=True)
class BlogAnalysis:
    """
    Result of a blog-level run: the aggregated post sample plus the
    composite score computed on the first fetched post and the insights.
    """
    root: str
    source: str
    insights: Any
    score: Any
    sample_url: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "root": self.root,
            "source": self.source,
            "sample_url": self.sample_url,
            "score": self.score.to_dict(),
            "blog": self.insights.to_dict(),
        }
        if self.error:
            data["error"] = self.error
        return data
