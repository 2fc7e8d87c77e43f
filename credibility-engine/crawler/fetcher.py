"""
FILE DESCRIPTION: Network fetching for the credibility pipeline.
KEY FUNCTIONS/CLASSES: LinkUtility, PageFetcher
"""

import time
from urllib.parse import urlparse, urlunparse

import requests
import tldextract
from bs4.dammit import EncodingDetector

from crawler.core import USER_AGENT, REQUEST_TIMEOUT, MAX_RETRIES, RETRY_DELAY, setup_logger
from crawler.errors import FetchError, NetworkError
from crawler.models import FetchResult

logger = setup_logger("crawler.fetcher")

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")
RETRYABLE_STATUSES = (429, 503)

# Bundled public suffix snapshot only; no list download at runtime
_domain_extract = tldextract.TLDExtract(suffix_list_urls=())


# === LINK UTILITY ===

class LinkUtility:

    @staticmethod
    def normalize_url(url: str) -> str:
        """
        Normalization for FETCHING.
        Adds https:// when the scheme is missing and trims the trailing slash
        (the root path is kept as "/").
        """
        if not url:
            return ""

        url = url.strip()
        if "://" not in url:
            url = "https://" + url

        parsed = urlparse(url)
        netloc = parsed.netloc.lower()
        path = (parsed.path or "/").rstrip("/") or "/"

        return urlunparse((parsed.scheme or "https", netloc, path, "", parsed.query, ""))

    @staticmethod
    def site_root(url: str) -> str:
        """Returns scheme://netloc for a URL or bare domain."""
        normalized = LinkUtility.normalize_url(url)
        if not normalized:
            raise ValueError(f"Invalid domain: {url!r}")
        parsed = urlparse(normalized)
        return f"{parsed.scheme}://{parsed.netloc}"

    @staticmethod
    def registered_domain(url: str) -> str:
        """example.co.uk for https://blog.example.co.uk/x"""
        ext = _domain_extract(url)
        if ext.domain and ext.suffix:
            return f"{ext.domain}.{ext.suffix}"
        return urlparse(url).netloc.lower()


# === PAGE FETCHER ===

class PageFetcher:
    """
    FLOW: Executes HTTP request with browser-like headers ->
    Retries 429/503 and transient connection errors with exponential backoff ->
    Returns FetchResult or raises NetworkError / FetchError.
    """

    def __init__(self, timeout=REQUEST_TIMEOUT, max_retries=MAX_RETRIES, retry_delay=RETRY_DELAY, user_agent=USER_AGENT):
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.user_agent = user_agent

    def _headers(self, accept_xml=False):
        accept = "application/xml,text/xml;q=0.9,*/*;q=0.8" if accept_xml else \
            "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8"
        return {
            "User-Agent": self.user_agent,
            "Accept": accept,
            "Accept-Language": "en-US,en;q=0.9,de;q=0.8",
            "Upgrade-Insecure-Requests": "1",
            "Cache-Control": "max-age=0",
        }

    def fetch(self, url, accept_xml=False) -> FetchResult:
        """
        Fetch a single URL.
        Timeouts, non-2xx statuses and non-HTML payloads raise FetchError;
        other transport failures raise NetworkError.
        """
        url = LinkUtility.normalize_url(url)
        delay = self.retry_delay

        for attempt in range(self.max_retries + 1):
            start_time = time.time()
            try:
                r = requests.get(url, timeout=self.timeout, headers=self._headers(accept_xml), allow_redirects=True)
            except requests.exceptions.Timeout as e:
                logger.warning(f"Timeout after {self.timeout}s for {url}")
                raise FetchError(url, f"timed out after {self.timeout}s", kind="timeout") from e
            except requests.exceptions.ConnectionError as e:
                if attempt < self.max_retries:
                    logger.warning(f"[RETRY {attempt+1}/{self.max_retries}] Connection Error for {url}: {e}. Waiting {delay}s...")
                    time.sleep(delay)
                    delay *= 2
                    continue
                raise NetworkError(url, str(e), kind="connection") from e
            except requests.exceptions.RequestException as e:
                raise NetworkError(url, str(e), kind="request") from e

            fetch_time_ms = int((time.time() - start_time) * 1000)
            content_type = r.headers.get("Content-Type", "").lower()

            if r.status_code in RETRYABLE_STATUSES and attempt < self.max_retries:
                logger.warning(f"[RETRY {attempt+1}/{self.max_retries}] {r.status_code} Error for {url}. Waiting {delay}s...")
                time.sleep(delay)
                delay *= 2
                continue

            if not (200 <= r.status_code < 300):
                raise FetchError(url, f"http error: {r.status_code}", kind="http_status", status=r.status_code)

            if accept_xml:
                if "html" in content_type and "xml" not in content_type:
                    raise FetchError(url, f"ignored content type: {content_type}", kind="content_type", status=r.status_code)
            elif content_type and not any(t in content_type for t in HTML_CONTENT_TYPES):
                raise FetchError(url, f"ignored content type: {content_type}", kind="content_type", status=r.status_code)

            if "charset=" not in content_type:
                # No charset in the header: the document declaration wins, then byte sniffing
                r.encoding = EncodingDetector.find_declared_encoding(r.content, is_html=True) or r.apparent_encoding

            logger.debug(f"Fetched {url} ({r.status_code}, {len(r.content)} bytes, {fetch_time_ms}ms)")
            return FetchResult(
                url=url,
                final_url=r.url or url,
                html=r.text,
                http_status=r.status_code,
                content_type=content_type,
                fetch_duration_ms=fetch_time_ms,
            )

        raise FetchError(url, "no fetch attempt made (max_retries < 0)", kind="request")
