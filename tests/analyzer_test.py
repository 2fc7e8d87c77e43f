"""
End-to-end analyzer runs with a mocked fetcher: batch isolation and blog samples.
"""

import json
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from crawler.engine import CredibilityAnalyzer, date_from_url, post_dates_from_page
from crawler.errors import AnalysisError, FetchError
from crawler.metrics import AnalysisMetrics
from crawler.models import FetchResult, OutcomeStatus
from detection.engine import DETECTORS, DetectionEngine, default_weights
from detection.models import DetectorInput
from detection.patterns import load_pattern_set
from extraction.engine import DomExtractor
from scoring.engine import CredibilityScorer

NOW = datetime(2025, 6, 15, tzinfo=timezone.utc)
PAGE_DETECTOR_IDS = [spec.detector_id for spec in DETECTORS if spec.input is DetectorInput.PAGE]


def article(published=None, modified=None, body="<p>In my experience, our patients respond well.</p>"):
    schema = {"@type": "Article"}
    if published:
        schema["datePublished"] = published
    if modified:
        schema["dateModified"] = modified
    return (f'<html><head><script type="application/ld+json">{json.dumps(schema)}</script></head>'
            f"<body>{body}</body></html>")


def mock_fetcher(pages, failures=()):
    def fetch(url, accept_xml=False):
        if url in failures:
            raise FetchError(url, "timed out after 15s", kind="timeout")
        return FetchResult(url=url, final_url=url, html=pages.get(url, article()), http_status=200,
                           content_type="text/html", fetch_duration_ms=12)

    fetcher = MagicMock()
    fetcher.fetch.side_effect = fetch
    return fetcher


def make_analyzer(fetcher, **kwargs):
    return CredibilityAnalyzer(
        fetcher=fetcher,
        detection=DetectionEngine(patterns=load_pattern_set(enabled=[]), clock=lambda: NOW),
        scorer=CredibilityScorer(default_weights()),
        metrics=AnalysisMetrics(),
        **kwargs,
    )


class TestAnalyzeBatch(unittest.TestCase):
    def test_one_failure_does_not_abort_the_batch(self):
        urls = [f"https://example.com/blog/post-{i}" for i in range(10)]
        analyzer = make_analyzer(mock_fetcher({}, failures={urls[4]}), max_concurrent=3)

        outcomes = analyzer.analyze_batch(urls)

        self.assertEqual([o.url for o in outcomes], urls)
        statuses = [o.status for o in outcomes]
        self.assertEqual(statuses.count(OutcomeStatus.OK), 9)
        self.assertEqual(outcomes[4].status, OutcomeStatus.SKIPPED)
        self.assertEqual(outcomes[4].error_kind, "timeout")
        self.assertIsNone(outcomes[4].score)

        _, counts = analyzer.metrics.snapshot()
        self.assertEqual(counts, {"ok": 9, "skipped": 1})
        self.assertIn("Skipped:     1", analyzer.metrics.format_summary())

    def test_single_page_scores_page_detectors_only(self):
        analyzer = make_analyzer(mock_fetcher({}))

        outcome = analyzer.analyze_url("https://example.com/blog/post")

        self.assertEqual(outcome.status, OutcomeStatus.OK)
        self.assertEqual(list(outcome.score.breakdown), PAGE_DETECTOR_IDS)
        self.assertNotIn("E6", outcome.score.breakdown)
        # 17 experience + 16 expertise + 4 authoritativeness + 16 trustworthiness
        self.assertAlmostEqual(outcome.score.max_score, 53.0)
        self.assertAlmostEqual(outcome.score.categories["experience"].max_score, 17.0)
        self.assertTrue(outcome.score.breakdown["E1"].matched)

    def test_unexpected_error_becomes_internal_skip(self):
        extractor = MagicMock(spec=DomExtractor)
        extractor.parse.side_effect = RuntimeError("parser exploded")
        analyzer = make_analyzer(mock_fetcher({}), extractor=extractor)

        outcomes = analyzer.analyze_batch(["https://example.com/a", "https://example.com/b"])

        self.assertTrue(all(o.status is OutcomeStatus.SKIPPED for o in outcomes))
        self.assertEqual(outcomes[0].error_kind, "internal")
        self.assertIn("parser exploded", outcomes[0].error)

    def test_outcome_to_dict(self):
        analyzer = make_analyzer(mock_fetcher({}, failures={"https://example.com/x"}))
        data = analyzer.analyze_url("https://example.com/x").to_dict()
        self.assertEqual(data["status"], "skipped")
        self.assertEqual(data["error_kind"], "timeout")
        self.assertNotIn("score", data)


class TestAnalyzeBlog(unittest.TestCase):
    def setUp(self):
        self.urls = [
            "https://example.com/2024/03/15/first",
            "https://example.com/blog/second",
            "https://example.com/blog/broken",
        ]
        self.fetcher = mock_fetcher({
            self.urls[0]: article(published="2024-03-20", modified="2025-05-01"),
            self.urls[1]: article(published="2024-05-15", modified="2025-06-01"),
        }, failures={self.urls[2]})

    def test_manual_urls(self):
        analyzer = make_analyzer(self.fetcher)

        result = analyzer.analyze_blog(urls=self.urls)

        self.assertEqual(result.source, "manual")
        self.assertEqual(result.root, "https://example.com")
        self.assertEqual(result.sample_url, self.urls[0])

        posts = result.insights.posts
        self.assertEqual([p.url for p in posts], self.urls)
        self.assertEqual(posts[0].published_at, datetime(2024, 3, 15, tzinfo=timezone.utc))
        self.assertFalse(posts[2].fetched)
        self.assertIn("timed out", posts[2].error)

        freq = result.insights.publishing_frequency
        self.assertEqual(freq.total_posts, 3)
        self.assertEqual(freq.total_posts_with_dates, 2)
        self.assertAlmostEqual(freq.posts_per_month, 1.0)

        breakdown = result.score.breakdown
        self.assertEqual(list(breakdown), [spec.detector_id for spec in DETECTORS])
        self.assertEqual(breakdown["E7"].metadata["analyzed_posts"], 2)
        self.assertEqual(breakdown["E7"].confidence, 1.0)
        self.assertAlmostEqual(result.score.max_score, 61.0)
        self.assertAlmostEqual(result.score.categories["experience"].max_score, 25.0)

    def test_every_post_failing(self):
        analyzer = make_analyzer(mock_fetcher({}, failures=set(self.urls)))

        result = analyzer.analyze_blog(urls=self.urls)

        self.assertIsNone(result.sample_url)
        self.assertEqual(result.score.breakdown["E1"].reason, "pageUnavailable")
        self.assertEqual(result.score.breakdown["E7"].reason, "noPostsAnalyzed")

    def test_needs_root_or_urls(self):
        with self.assertRaises(AnalysisError):
            make_analyzer(self.fetcher).analyze_blog()

    def test_to_dict(self):
        data = make_analyzer(self.fetcher).analyze_blog(urls=self.urls).to_dict()
        self.assertEqual(set(data), {"root", "source", "sample_url", "score", "blog"})
        self.assertEqual(len(data["blog"]["posts"]), 3)


class TestPostDates(unittest.TestCase):
    def test_date_from_url(self):
        self.assertEqual(date_from_url("https://example.com/2024/03/15/slug"), datetime(2024, 3, 15, tzinfo=timezone.utc))
        self.assertEqual(date_from_url("https://example.com/2024/03/slug"), datetime(2024, 3, 1, tzinfo=timezone.utc))
        self.assertIsNone(date_from_url("https://example.com/2024/13/slug"))
        self.assertIsNone(date_from_url("https://example.com/blog/slug"))

    def test_post_dates_prefer_schema_then_meta(self):
        page = DomExtractor().parse(
            '<html><head><meta property="article:published_time" content="2023-01-01">'
            '<meta property="article:modified_time" content="2023-02-01">'
            '<script type="application/ld+json">{"@type": "Article", "datePublished": "2024-01-10"}</script>'
            "</head><body></body></html>",
            "https://example.com/blog/x",
        )
        published, modified = post_dates_from_page(page)
        self.assertEqual(published, datetime(2024, 1, 10, tzinfo=timezone.utc))
        self.assertEqual(modified, datetime(2023, 2, 1, tzinfo=timezone.utc))


    def test_unparseable_modified_falls_through_to_updated(self):
        page = DomExtractor().parse(
            '<html><head><script type="application/ld+json">'
            '{"@type": "Article", "dateModified": "n/a", "dateUpdated": "2024-08-01"}'
            "</script></head><body></body></html>",
            "https://example.com/blog/x",
        )
        _, modified = post_dates_from_page(page)
        self.assertEqual(modified, datetime(2024, 8, 1, tzinfo=timezone.utc))


if __name__ == "__main__":
    unittest.main()
