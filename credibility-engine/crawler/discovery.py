"""
FILE DESCRIPTION: Blog post discovery from sitemaps.
KEY FUNCTIONS/CLASSES: BlogDiscovery, is_blog_post, parse_sitemap
"""

import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from crawler.core import BLOG_POST_LIMIT, setup_logger
from crawler.errors import NetworkError
from crawler.fetcher import LinkUtility, PageFetcher
from crawler.models import DiscoveryResult, SitemapEntry
from extraction.dates import parse_date

logger = setup_logger("crawler.discovery")

SITEMAP_PATHS = (
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/blog-sitemap.xml",
    "/post-sitemap.xml",
    "/sitemap-posts.xml",
)

BLOG_PATH_PATTERNS = [
    re.compile(r"/(blog|article|articles|post|posts|news|insights|learn|resources)/", re.I),
    re.compile(r"/\d{4}/\d{1,2}/"),
    re.compile(r"/[a-z0-9-]+/?$", re.I),
]

EXCLUDE_PATH_PATTERNS = [
    re.compile(r"/(about|contact|privacy|terms|cookie|legal|faq|help|support|pricing|features)/?$", re.I),
    re.compile(r"/(wp-content|wp-includes|wp-admin)", re.I),
    re.compile(r"\.(jpg|jpeg|png|gif|svg|pdf|zip|css|js|xml)$", re.I),
]

# Nested sitemap indexes are followed this many levels deep
MAX_INDEX_DEPTH = 2

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def is_blog_post(url: str) -> bool:
    path = urlparse(url).path or "/"
    if any(p.search(path) for p in EXCLUDE_PATH_PATTERNS):
        return False
    return any(p.search(path) for p in BLOG_PATH_PATTERNS)


def parse_sitemap(xml: str) -> Tuple[List[SitemapEntry], List[str]]:
    """
    Returns (url entries, nested sitemap locations) for a <urlset> or
    <sitemapindex> document.
    """
    soup = BeautifulSoup(xml or "", "xml")
    entries: List[SitemapEntry] = []
    nested: List[str] = []

    for node in soup.find_all("sitemap"):
        loc = node.find("loc")
        if loc and loc.get_text(strip=True):
            nested.append(loc.get_text(strip=True))

    for node in soup.find_all("url"):
        loc = node.find("loc")
        if not loc or not loc.get_text(strip=True):
            continue
        lastmod = node.find("lastmod")
        priority = node.find("priority")
        try:
            priority_value = float(priority.get_text(strip=True)) if priority else None
        except ValueError:
            priority_value = None
        entries.append(SitemapEntry(
            url=loc.get_text(strip=True),
            lastmod=parse_date(lastmod.get_text(strip=True)) if lastmod else None,
            priority=priority_value,
        ))
    return entries, nested


def _sort_key(entry: SitemapEntry):
    return (entry.lastmod is not None, entry.lastmod or _OLDEST, entry.priority or 0.0)


class BlogDiscovery:
    """
    FLOW: Normalizes the blog root -> Fetches each well-known sitemap path ->
    Follows nested sitemap indexes -> Keeps same-site blog post URLs ->
    Sorts newest lastmod first -> Truncates to the limit.
    """

    def __init__(self, fetcher: Optional[PageFetcher] = None):
        self.fetcher = fetcher or PageFetcher()
        self.name = "BlogDiscovery"

    def log(self, level, msg):
        getattr(logger, level)(msg, extra={'context': self.name})

    def _fetch_sitemap(self, url: str, depth: int, seen: set) -> List[SitemapEntry]:
        if url in seen:
            return []
        seen.add(url)
        try:
            result = self.fetcher.fetch(url, accept_xml=True)
        except NetworkError as e:
            self.log("debug", f"Sitemap unavailable {url}: {e}")
            return []

        entries, nested = parse_sitemap(result.html)
        if entries or nested:
            self.log("info", f"Found {len(entries)} URLs and {len(nested)} nested sitemaps in {url}")
        if depth < MAX_INDEX_DEPTH:
            for location in nested:
                entries.extend(self._fetch_sitemap(location, depth + 1, seen))
        return entries

    def discover(self, root: str, limit: int = BLOG_POST_LIMIT) -> DiscoveryResult:
        base = LinkUtility.site_root(root)
        site = LinkUtility.registered_domain(base)
        self.log("info", f"Discovering blog posts for {base}")

        seen_sitemaps: set = set()
        found: List[SitemapEntry] = []
        for path in SITEMAP_PATHS:
            found.extend(self._fetch_sitemap(base + path, 0, seen_sitemaps))

        if not found:
            return DiscoveryResult(entries=(), total_found=0, source="sitemap",
                                   error="no sitemap found")

        unique = {}
        for entry in found:
            if LinkUtility.registered_domain(entry.url) != site or not is_blog_post(entry.url):
                continue
            current = unique.get(entry.url)
            if current is None or _sort_key(entry) > _sort_key(current):
                unique[entry.url] = entry

        self.log("info", f"Found {len(unique)} blog posts out of {len(found)} sitemap URLs")
        if not unique:
            return DiscoveryResult(entries=(), total_found=len(found), source="sitemap",
                                   error="no blog posts found in sitemap")

        ordered = sorted(unique.values(), key=_sort_key, reverse=True)
        return DiscoveryResult(entries=tuple(ordered[:max(0, limit)]), total_found=len(unique), source="sitemap")

    @staticmethod
    def manual(urls: Iterable[str]) -> DiscoveryResult:
        entries = tuple(SitemapEntry(url=u.strip()) for u in urls if u and u.strip())
        return DiscoveryResult(entries=entries, total_found=len(entries), source="manual")
