from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

DATE_META_TAGS = (
    "article:modified_time",
    "article:published_time",
    "DC.date",
    "last-modified",
)


@dataclass(frozen=True)
class TimeElement:
    datetime: Optional[str]
    text: str


@dataclass(frozen=True)
class JsonLdError:
    """Parse-error entry for one malformed <script type="application/ld+json"> block."""
    index: int
    message: str
    snippet: str = ""


@dataclass(frozen=True)
class Author:
    name: str
    source: str  # 'schema' | 'meta' | 'content'
    credentials: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class Headings:
    h1: Tuple[str, ...] = ()
    h2: Tuple[str, ...] = ()
    h3: Tuple[str, ...] = ()

    def all(self) -> Tuple[str, ...]:
        return self.h1 + self.h2 + self.h3


@dataclass(frozen=True)
class ImageStats:
    total: int = 0
    with_alt: int = 0


@dataclass(frozen=True)
class PageData:
    """
    Output of the extraction phase.
    The single source of truth detectors read from. Immutable once built:
    meta_tags is a read-only mapping and every sequence is a tuple.
    """
    url: str
    html: str
    meta_tags: Mapping[str, str] = field(default_factory=dict)
    json_ld_blocks: Tuple[Dict[str, Any], ...] = ()
    json_ld_errors: Tuple[JsonLdError, ...] = ()
    visible_text: str = ""
    time_elements: Tuple[TimeElement, ...] = ()
    title: str = ""
    headings: Headings = field(default_factory=Headings)
    authors: Tuple[Author, ...] = ()
    images: ImageStats = field(default_factory=ImageStats)
    outbound_links: Tuple[str, ...] = ()

    def __post_init__(self):
        if not isinstance(self.meta_tags, MappingProxyType):
            object.__setattr__(self, "meta_tags", MappingProxyType(dict(self.meta_tags)))
        for name in ("json_ld_blocks", "json_ld_errors", "time_elements", "authors", "outbound_links"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

    def date_meta(self) -> Dict[str, str]:
        """The date-bearing meta tags present on the page, in priority order."""
        return {name: self.meta_tags[name] for name in DATE_META_TAGS if self.meta_tags.get(name)}
