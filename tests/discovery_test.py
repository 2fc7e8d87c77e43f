"""
Sitemap-based blog post discovery with a mocked fetcher.
"""

import unittest
from unittest.mock import MagicMock

from crawler.discovery import BlogDiscovery, is_blog_post, parse_sitemap
from crawler.errors import FetchError
from crawler.models import FetchResult

SITEMAP_INDEX = """<?xml version="1.0" encoding="UTF-8"?>
<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <sitemap><loc>https://example.com/post-sitemap.xml</loc></sitemap>
</sitemapindex>"""

POST_SITEMAP = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://example.com/blog/post-one</loc><lastmod>2024-03-01</lastmod><priority>0.5</priority></url>
  <url><loc>https://example.com/blog/post-two</loc><lastmod>2024-05-01T10:00:00+00:00</lastmod></url>
  <url><loc>https://example.com/blog/post-three</loc><priority>0.9</priority></url>
  <url><loc>https://example.com/about</loc></url>
  <url><loc>https://example.com/wp-content/uploads/a.png</loc></url>
  <url><loc>https://other.com/blog/foreign</loc><lastmod>2025-01-01</lastmod></url>
</urlset>"""


def sitemap_fetcher(documents):
    def fetch(url, accept_xml=False):
        if url not in documents:
            raise FetchError(url, "http error: 404", kind="http_status", status=404)
        return FetchResult(url=url, final_url=url, html=documents[url], http_status=200,
                           content_type="application/xml", fetch_duration_ms=5)

    fetcher = MagicMock()
    fetcher.fetch.side_effect = fetch
    return fetcher


class TestBlogDiscovery(unittest.TestCase):
    def setUp(self):
        self.fetcher = sitemap_fetcher({
            "https://example.com/sitemap.xml": SITEMAP_INDEX,
            "https://example.com/post-sitemap.xml": POST_SITEMAP,
        })
        self.discovery = BlogDiscovery(self.fetcher)

    def test_follows_index_and_filters_posts(self):
        result = self.discovery.discover("example.com", limit=10)

        urls = [e.url for e in result.entries]
        self.assertEqual(urls, [
            "https://example.com/blog/post-two",
            "https://example.com/blog/post-one",
            "https://example.com/blog/post-three",
        ])
        self.assertEqual(result.total_found, 3)
        self.assertEqual(result.source, "sitemap")
        self.assertIsNone(result.error)

    def test_limit_truncates_after_sorting(self):
        result = self.discovery.discover("https://example.com/", limit=2)

        self.assertEqual([e.url for e in result.entries],
                         ["https://example.com/blog/post-two", "https://example.com/blog/post-one"])
        self.assertEqual(result.total_found, 3)

    def test_each_sitemap_is_fetched_once(self):
        self.discovery.discover("example.com")

        fetched = [c.args[0] for c in self.fetcher.fetch.call_args_list]
        self.assertEqual(fetched.count("https://example.com/post-sitemap.xml"), 1)
        for call in self.fetcher.fetch.call_args_list:
            self.assertTrue(call.kwargs.get("accept_xml"))

    def test_no_sitemap(self):
        result = BlogDiscovery(sitemap_fetcher({})).discover("example.com")

        self.assertEqual(result.entries, ())
        self.assertEqual(result.error, "no sitemap found")

    def test_sitemap_without_posts(self):
        fetcher = sitemap_fetcher({
            "https://example.com/sitemap.xml":
                '<urlset><url><loc>https://example.com/about</loc></url></urlset>',
        })
        result = BlogDiscovery(fetcher).discover("example.com")

        self.assertEqual(result.entries, ())
        self.assertEqual(result.error, "no blog posts found in sitemap")

    def test_manual_urls(self):
        result = BlogDiscovery.manual([" https://example.com/a ", "", "https://example.com/b"])

        self.assertEqual([e.url for e in result.entries], ["https://example.com/a", "https://example.com/b"])
        self.assertEqual(result.source, "manual")
        self.assertEqual(result.total_found, 2)


class TestSitemapParsing(unittest.TestCase):
    def test_urlset_entries(self):
        entries, nested = parse_sitemap(POST_SITEMAP)

        self.assertEqual(nested, [])
        self.assertEqual(len(entries), 6)
        self.assertEqual(entries[0].priority, 0.5)
        self.assertEqual(entries[0].lastmod.isoformat(), "2024-03-01T00:00:00+00:00")
        self.assertIsNone(entries[2].lastmod)

    def test_index_entries(self):
        entries, nested = parse_sitemap(SITEMAP_INDEX)
        self.assertEqual(entries, [])
        self.assertEqual(nested, ["https://example.com/post-sitemap.xml"])

    def test_garbage(self):
        self.assertEqual(parse_sitemap("not xml at all"), ([], []))


class TestIsBlogPost(unittest.TestCase):
    def test_post_paths(self):
        self.assertTrue(is_blog_post("https://example.com/blog/hydration-tips"))
        self.assertTrue(is_blog_post("https://example.com/2024/03/hydration"))
        self.assertTrue(is_blog_post("https://example.com/hydration-tips"))

    def test_excluded_paths(self):
        self.assertFalse(is_blog_post("https://example.com/about"))
        self.assertFalse(is_blog_post("https://example.com/privacy/"))
        self.assertFalse(is_blog_post("https://example.com/wp-content/uploads/a.png"))
        self.assertFalse(is_blog_post("https://example.com/post-sitemap.xml"))
        self.assertFalse(is_blog_post("https://example.com/"))


if __name__ == "__main__":
    unittest.main()
