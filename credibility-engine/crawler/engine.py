"""
FILE DESCRIPTION: End-to-end credibility analysis pipeline.
KEY FUNCTIONS/CLASSES: CredibilityAnalyzer, post_dates_from_page, date_from_url
"""

import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from blog.aggregator import aggregate
from blog.models import BlogPost
from crawler.core import BLOG_POST_LIMIT, MAX_CONCURRENT_FETCHES, setup_logger
from crawler.discovery import BlogDiscovery
from crawler.errors import AnalysisError, NetworkError
from crawler.fetcher import LinkUtility, PageFetcher
from crawler.metrics import AnalysisMetrics
from crawler.models import AnalysisOutcome, BlogAnalysis, OutcomeStatus, SitemapEntry
from detection.engine import DETECTORS, DetectionEngine
from detection.models import DetectorInput
from extraction.dates import first_date, parse_date
from extraction.engine import DomExtractor
from extraction.models import PageData
from scoring.engine import CredibilityScorer

logger = setup_logger("crawler.engine")

URL_DATE_PATTERN = re.compile(r"/(?P<year>(?:19|20)\d{2})/(?P<month>\d{1,2})(?:/(?P<day>\d{1,2}))?/")

PUBLISHED_META_TAGS = ("article:published_time", "DC.date", "date")
MODIFIED_META_TAGS = ("article:modified_time", "last-modified")


def date_from_url(url: str) -> Optional[datetime]:
    """/2024/03/15/slug -> 2024-03-15 (UTC); /2024/03/slug -> 2024-03-01."""
    match = URL_DATE_PATTERN.search(url)
    if not match:
        return None
    try:
        return datetime(int(match.group("year")), int(match.group("month")), int(match.group("day") or 1),
                        tzinfo=timezone.utc)
    except ValueError:
        return None


def _first_valid(values) -> Optional[datetime]:
    for value in values:
        parsed = parse_date(value)
        if parsed is not None:
            return parsed
    return None


def post_dates_from_page(page: PageData) -> Tuple[Optional[datetime], Optional[datetime]]:
    """(published_at, modified_at) from JSON-LD first, then meta tags."""
    published = _first_valid(obj.get("datePublished") for obj in page.json_ld_blocks)
    if published is None:
        published = _first_valid(page.meta_tags.get(name) for name in PUBLISHED_META_TAGS)

    modified_dates = []
    for obj in page.json_ld_blocks:
        found = first_date(obj, ("dateModified", "dateUpdated"))
        if found is not None:
            modified_dates.append(found[0])
    modified = max(modified_dates) if modified_dates else None
    if modified is None:
        modified = _first_valid(page.meta_tags.get(name) for name in MODIFIED_META_TAGS)
    return published, modified


class CredibilityAnalyzer:
    """
    FLOW: URL -> PageFetcher -> DomExtractor -> DetectionEngine (concurrent)
    -> CredibilityScorer -> AnalysisOutcome.
    Batches and blog samples fan out over a bounded thread pool; one failed
    fetch becomes a skipped item and never aborts the run.
    """

    def __init__(self, fetcher: Optional[PageFetcher] = None, extractor: Optional[DomExtractor] = None,
                 detection: Optional[DetectionEngine] = None, scorer: Optional[CredibilityScorer] = None,
                 discovery: Optional[BlogDiscovery] = None, metrics: Optional[AnalysisMetrics] = None,
                 max_concurrent: int = MAX_CONCURRENT_FETCHES):
        self.fetcher = fetcher or PageFetcher()
        self.extractor = extractor or DomExtractor()
        self.detection = detection or DetectionEngine()
        self.scorer = scorer or CredibilityScorer()
        self.discovery = discovery or BlogDiscovery(self.fetcher)
        self.metrics = metrics or AnalysisMetrics()
        self.max_concurrent = max(1, max_concurrent)
        self.name = "CredibilityAnalyzer"

        page_ids = {s.detector_id for s in DETECTORS if s.input is DetectorInput.PAGE}
        # Single pages carry no blog sample, so blog detectors are not part of their denominator
        self.page_detection = DetectionEngine(
            detectors=[s for s in self.detection.detectors if s.detector_id in page_ids],
            patterns=self.detection.patterns,
            max_workers=self.detection.max_workers,
            clock=self.detection.clock,
        )
        self.page_scorer = CredibilityScorer({k: w for k, w in self.scorer.weights.items() if k in page_ids},
                                             categories=self.scorer.categories)

    def log(self, level, msg):
        getattr(logger, level)(msg, extra={'context': self.name})

    # === SINGLE PAGE ===

    def fetch_page(self, url: str) -> Tuple[PageData, int]:
        result = self.fetcher.fetch(url)
        page = self.extractor.parse(result.html, result.final_url or result.url)
        return page, result.fetch_duration_ms

    def analyze_url(self, url: str) -> AnalysisOutcome:
        try:
            page, fetch_ms = self.fetch_page(url)
        except NetworkError as e:
            self.log("warning", f"Skipped {url}: {e}")
            outcome = AnalysisOutcome(url=url, status=OutcomeStatus.SKIPPED, error=str(e), error_kind=e.kind)
            self.metrics.record(outcome)
            return outcome

        evidences = self.page_detection.run(page)
        score = self.page_scorer.score(evidences)
        self.log("info", f"{url}: {score.overall:.1f}/{score.max_score:.0f} ({score.status.value})")

        outcome = AnalysisOutcome(url=url, status=OutcomeStatus.OK, score=score, fetch_duration_ms=fetch_ms)
        self.metrics.record(outcome)
        return outcome

    def _analyze_isolated(self, url: str) -> AnalysisOutcome:
        try:
            return self.analyze_url(url)
        except Exception as e:
            self.log("error", f"Analysis failed for {url}: {type(e).__name__}: {e}")
            outcome = AnalysisOutcome(url=url, status=OutcomeStatus.SKIPPED, error=str(e), error_kind="internal")
            self.metrics.record(outcome)
            return outcome

    def analyze_batch(self, urls: Sequence[str]) -> List[AnalysisOutcome]:
        """Analyzes every URL with at most max_concurrent fetches in flight; output order = input order."""
        urls = list(urls)
        self.log("info", f"Batch of {len(urls)} URLs with {self.max_concurrent} workers")
        with ThreadPoolExecutor(max_workers=self.max_concurrent, thread_name_prefix="Worker") as executor:
            outcomes = list(executor.map(self._analyze_isolated, urls))

        skipped = sum(1 for o in outcomes if o.status is OutcomeStatus.SKIPPED)
        self.log("info", f"Batch finished: {len(outcomes) - skipped} ok, {skipped} skipped")
        return outcomes

    # === BLOG ===

    def _fetch_post(self, entry: SitemapEntry) -> Tuple[BlogPost, Optional[PageData]]:
        try:
            page, fetch_ms = self.fetch_page(entry.url)
        except NetworkError as e:
            self.log("warning", f"Post fetch failed {entry.url}: {e}")
            self.metrics.record(AnalysisOutcome(url=entry.url, status=OutcomeStatus.SKIPPED, error=str(e), error_kind=e.kind))
            return BlogPost(
                url=entry.url,
                published_at=date_from_url(entry.url) or entry.lastmod,
                fetched=False,
                error=str(e),
            ), None

        self.metrics.record(AnalysisOutcome(url=entry.url, status=OutcomeStatus.OK, fetch_duration_ms=fetch_ms))
        published, modified = post_dates_from_page(page)
        published = date_from_url(entry.url) or published or entry.lastmod
        return BlogPost(url=entry.url, published_at=published, modified_at=modified), page

    def analyze_blog(self, root: Optional[str] = None, urls: Optional[Sequence[str]] = None,
                     limit: int = BLOG_POST_LIMIT) -> BlogAnalysis:
        """
        Discovers posts (sitemap for a root, or the given URLs), fetches them
        concurrently, aggregates publishing statistics and scores the first
        fetched post together with the blog insights.
        """
        if urls:
            discovered = self.discovery.manual(urls)
            if not root and discovered.entries:
                root = LinkUtility.site_root(discovered.entries[0].url)
        elif root:
            discovered = self.discovery.discover(root, limit=limit)
        else:
            raise AnalysisError("analyze_blog needs a blog root or a list of post URLs")

        entries = discovered.entries
        self.log("info", f"Analyzing {len(entries)} posts ({discovered.source})")

        with ThreadPoolExecutor(max_workers=self.max_concurrent, thread_name_prefix="Worker") as executor:
            results = list(executor.map(self._fetch_post, entries))

        posts = [post for post, _ in results]
        sample = next(((post, page) for post, page in results if page is not None), None)
        insights = aggregate(posts)

        sample_page = sample[1] if sample else None
        if sample is None:
            self.log("warning", "No blog post could be fetched; page detectors report pageUnavailable")

        evidences = self.detection.run(sample_page, insights)
        score = self.scorer.score(evidences)

        return BlogAnalysis(
            root=root or "",
            source=discovered.source,
            insights=insights,
            score=score,
            sample_url=sample[0].url if sample else None,
            error=discovered.error,
        )
