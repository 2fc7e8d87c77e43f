import json
import re
from typing import Any, Dict, Iterable, List, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from crawler.core import setup_logger
from crawler.errors import ParseError
from crawler.fetcher import LinkUtility
from extraction.models import (
    DATE_META_TAGS,
    Author,
    Headings,
    ImageStats,
    JsonLdError,
    PageData,
    TimeElement,
)

logger = setup_logger("crawler.extraction")

INVISIBLE_TAGS = ["script", "style", "noscript", "template"]
SNIPPET_LENGTH = 120

# dc.date, DC.DATE and DC.date are one tag
_CANONICAL_META_KEYS = {name.lower(): name for name in DATE_META_TAGS}

BYLINE_PATTERNS = (
    re.compile(r"\bwritten by\s+([A-Z][a-z]+\s+[A-Z][a-z]+)"),
    re.compile(r"\bauthor:\s+([A-Z][a-z]+\s+[A-Z][a-z]+)", re.IGNORECASE),
    re.compile(r"\b[Bb]y\s+([A-Z][a-z]+\s+[A-Z][a-z]+)"),
)


def flatten_json_ld(payload: Any) -> List[Dict[str, Any]]:
    """
    Turns one decoded JSON-LD payload into its typed objects.
    Handles a single object, a top-level array and "@graph" containers
    (recursively, so an array of graphs also works).
    """
    objects: List[Dict[str, Any]] = []
    if isinstance(payload, list):
        for item in payload:
            objects.extend(flatten_json_ld(item))
    elif isinstance(payload, dict):
        graph = payload.get("@graph")
        if isinstance(graph, list):
            objects.extend(flatten_json_ld(graph))
            if payload.get("@type"):
                objects.append({k: v for k, v in payload.items() if k != "@graph"})
        else:
            objects.append(payload)
    return objects


def _clean(text: str) -> str:
    return " ".join(text.split())


class DomExtractor:
    """
    FLOW: Parses HTML with BeautifulSoup (lxml) -> Collects meta tags and
    JSON-LD blocks (each block isolated) -> Strips invisible elements ->
    Collects visible text, <time> elements, headings, images, authors and outbound links ->
    Returns an immutable PageData.
    """

    def __init__(self, parser: str = "lxml"):
        self.parser = parser

    def parse(self, html: str, url: str) -> PageData:
        soup = BeautifulSoup(html or "", self.parser)

        meta_tags = self._extract_meta(soup)
        blocks, errors = self._extract_json_ld(soup, url)
        time_elements = tuple(
            TimeElement(datetime=(t.get("datetime") or None), text=_clean(t.get_text(" ")))
            for t in soup.find_all("time")
        )
        title_tag = soup.find("title")
        title = _clean(title_tag.get_text(" ")) if title_tag else ""

        for tag in soup.find_all(INVISIBLE_TAGS):
            tag.decompose()

        body = soup.body or soup
        visible_text = _clean(body.get_text(" "))
        headings = Headings(
            h1=tuple(_clean(h.get_text(" ")) for h in soup.find_all("h1")),
            h2=tuple(_clean(h.get_text(" ")) for h in soup.find_all("h2")),
            h3=tuple(_clean(h.get_text(" ")) for h in soup.find_all("h3")),
        )
        if not title and headings.h1:
            title = headings.h1[0]

        images = soup.find_all("img")
        image_stats = ImageStats(
            total=len(images),
            with_alt=sum(1 for img in images if (img.get("alt") or "").strip()),
        )

        return PageData(
            url=url,
            html=html or "",
            meta_tags=meta_tags,
            json_ld_blocks=tuple(blocks),
            json_ld_errors=tuple(errors),
            visible_text=visible_text,
            time_elements=time_elements,
            title=title,
            headings=headings,
            authors=tuple(self._extract_authors(blocks, meta_tags, visible_text)),
            images=image_stats,
            outbound_links=tuple(self._extract_outbound_links(body, url)),
        )

    def _extract_meta(self, soup) -> Dict[str, str]:
        """name / property / http-equiv -> content. First occurrence wins; date tag names are case-folded."""
        meta: Dict[str, str] = {}
        for tag in soup.find_all("meta"):
            key = tag.get("name") or tag.get("property") or tag.get("http-equiv") or tag.get("itemprop")
            content = tag.get("content")
            if not key or content is None:
                continue
            key = key.strip()
            key = _CANONICAL_META_KEYS.get(key.lower(), key)
            meta.setdefault(key, content.strip())
        return meta

    def _extract_outbound_links(self, root, url: str) -> List[str]:
        """Absolute http(s) links to another registered domain, deduplicated in document order."""
        own_domain = LinkUtility.registered_domain(url) if url else ""
        links: List[str] = []
        seen = set()
        for anchor in root.find_all("a", href=True):
            href = urljoin(url, anchor["href"].strip())
            parsed = urlparse(href)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                continue
            if LinkUtility.registered_domain(href) == own_domain:
                continue
            href = href.split("#", 1)[0]
            if href not in seen:
                seen.add(href)
                links.append(href)
        return links

    def _extract_json_ld(self, soup, url: str) -> Tuple[List[Dict[str, Any]], List[JsonLdError]]:
        blocks: List[Dict[str, Any]] = []
        errors: List[JsonLdError] = []

        scripts = soup.find_all("script", attrs={"type": re.compile(r"^\s*application/ld\+json", re.I)})
        for index, script in enumerate(scripts):
            raw = script.string if script.string is not None else script.get_text()
            try:
                blocks.extend(self._decode_block(index, raw))
            except ParseError as e:
                logger.warning(f"{url}: {e}", extra={"context": "extractor"})
                errors.append(JsonLdError(index=e.index, message=str(e), snippet=e.snippet))
        return blocks, errors

    @staticmethod
    def _decode_block(index: int, raw: str) -> List[Dict[str, Any]]:
        text = (raw or "").strip()
        # CMS templates sometimes wrap the payload in an HTML comment or CDATA
        text = re.sub(r"^(<!--|/\*\s*<!\[CDATA\[\s*\*/)|(-->|/\*\s*\]\]>\s*\*/)$", "", text).strip()
        if not text:
            raise ParseError(index, "empty block")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(index, e.msg, snippet=text[:SNIPPET_LENGTH]) from e
        if not isinstance(payload, (dict, list)):
            raise ParseError(index, f"unexpected payload type {type(payload).__name__}", snippet=text[:SNIPPET_LENGTH])
        return flatten_json_ld(payload)

    def _extract_authors(self, blocks: Iterable[Dict[str, Any]], meta_tags: Dict[str, str], text: str) -> List[Author]:
        authors: List[Author] = []
        seen = set()

        def add(author: Author):
            key = author.name.lower()
            if author.name and key not in seen:
                seen.add(key)
                authors.append(author)

        for block in blocks:
            raw = block.get("author")
            for entry in raw if isinstance(raw, list) else [raw]:
                if isinstance(entry, str) and entry.strip():
                    add(Author(name=entry.strip(), source="schema"))
                elif isinstance(entry, dict) and isinstance(entry.get("name"), str) and entry["name"].strip():
                    add(Author(
                        name=entry["name"].strip(),
                        source="schema",
                        credentials=entry.get("jobTitle") or entry.get("description"),
                        url=entry.get("url") if isinstance(entry.get("url"), str) else None,
                    ))

        meta_author = (meta_tags.get("author") or "").strip()
        if meta_author:
            add(Author(name=meta_author, source="meta"))

        for pattern in BYLINE_PATTERNS:
            match = pattern.search(text)
            if match:
                add(Author(name=match.group(1), source="content"))
                break

        return authors
