"""
FILE DESCRIPTION: Publishing frequency statistics for a blog sample.
KEY FUNCTIONS/CLASSES: aggregate, publishing_trend
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from crawler.core import setup_logger
from blog.models import BlogInsights, BlogPost, PublishingFrequency
from extraction.dates import months_between

logger = setup_logger("crawler.blog")

MIN_DATED_POSTS = 2
INCREASING_RATIO = 1.3
DECREASING_RATIO = 0.7
IRREGULAR_DELTA = 2.0


def _half_rate(dates: Sequence) -> float:
    # Spans shorter than a month count as one month
    return len(dates) / max(1.0, months_between(dates[0], dates[-1]))


def publishing_trend(dates: Sequence) -> str:
    """
    Compares the posting rate of the older half of the sample with the newer
    half. Expects dates sorted oldest first.
    """
    if len(dates) < MIN_DATED_POSTS:
        return "unknown"

    midpoint = len(dates) // 2
    first_rate = _half_rate(dates[:midpoint])
    second_rate = _half_rate(dates[midpoint:])

    if second_rate > first_rate * INCREASING_RATIO:
        return "increasing"
    if second_rate < first_rate * DECREASING_RATIO:
        return "decreasing"
    if abs(second_rate - first_rate) > IRREGULAR_DELTA:
        return "irregular"
    return "stable"


def aggregate(posts: Iterable[BlogPost]) -> BlogInsights:
    """
    FLOW: Collects known published dates -> Computes calendar span between
    earliest and latest -> Divides dated posts by span (never by zero) ->
    Classifies the trend -> Returns a fresh BlogInsights.
    """
    posts: Tuple[BlogPost, ...] = tuple(posts)
    dates: List = sorted(p.published_at for p in posts if p.published_at is not None)
    dated = len(dates)

    earliest = dates[0] if dates else None
    latest = dates[-1] if dates else None
    span = months_between(earliest, latest) if dated >= MIN_DATED_POSTS else 0.0

    reason: Optional[str] = None
    if dated < MIN_DATED_POSTS:
        reason = "insufficientSample"
    elif span <= 0:
        reason = "zeroSpan"

    if reason:
        logger.info(f"Publishing frequency unavailable ({reason}): {dated} dated of {len(posts)} posts")
        posts_per_month = 0.0
        trend = "unknown"
    else:
        posts_per_month = dated / span
        trend = publishing_trend(dates)

    frequency = PublishingFrequency(
        posts_per_month=posts_per_month,
        span_months=span,
        total_posts_with_dates=dated,
        total_posts=len(posts),
        posts_without_dates=len(posts) - dated,
        earliest=earliest,
        latest=latest,
        trend=trend,
        insufficient_sample=reason is not None,
        sample_reason=reason,
    )
    return BlogInsights(posts=posts, publishing_frequency=frequency)
