from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class BlogPost:
    """
    One post of a blog sample.
    A post that could not be fetched stays in the sample with fetched=False.
    """
    url: str
    published_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    fetched: bool = True
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "modified_at": self.modified_at.isoformat() if self.modified_at else None,
            "fetched": self.fetched,
            "error": self.error,
        }


@dataclass(frozen=True)
class PublishingFrequency:
    posts_per_month: float
    span_months: float
    total_posts_with_dates: int
    total_posts: int = 0
    posts_without_dates: int = 0
    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None
    trend: str = "unknown"  # increasing | decreasing | stable | irregular | unknown
    insufficient_sample: bool = False
    sample_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "posts_per_month": round(self.posts_per_month, 3),
            "span_months": round(self.span_months, 3),
            "total_posts_with_dates": self.total_posts_with_dates,
            "total_posts": self.total_posts,
            "posts_without_dates": self.posts_without_dates,
            "earliest": self.earliest.isoformat() if self.earliest else None,
            "latest": self.latest.isoformat() if self.latest else None,
            "trend": self.trend,
            "insufficient_sample": self.insufficient_sample,
            "sample_reason": self.sample_reason,
        }


@dataclass(frozen=True)
class BlogInsights:
    """Derived from a full post set by aggregate(); rebuilt, never updated in place."""
    posts: Tuple[BlogPost, ...]
    publishing_frequency: PublishingFrequency

    def to_dict(self) -> Dict[str, Any]:
        return {
            "posts": [p.to_dict() for p in self.posts],
            "publishing_frequency": self.publishing_frequency.to_dict(),
        }
