"""
FILE DESCRIPTION: Source-authority tiers for outbound citations.
KEY FUNCTIONS/CLASSES: CitationTier, classify_citation, citation_quality
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Sequence, Tuple
from urllib.parse import urlparse


class CitationTier(IntEnum):
    PEER_REVIEWED = 1
    GOVERNMENT_EDU = 2
    REPUTABLE_NEWS = 3
    OTHER = 4


# Research databases, journals, health authorities and research institutions
TIER_1_DOMAINS = (
    "pubmed.ncbi.nlm.nih.gov", "ncbi.nlm.nih.gov", "scholar.google.com", "researchgate.net",
    "sciencedirect.com", "springer.com", "wiley.com", "nature.com", "science.org", "cell.com",
    "thelancet.com", "bmj.com", "jamanetwork.com", "nejm.org", "doi.org",
    "nih.gov", "cdc.gov", "who.int", "fda.gov", "mayo.edu", "clevelandclinic.org", "hopkinsmedicine.org",
    "mit.edu", "stanford.edu", "harvard.edu", "oxford.ac.uk", "cambridge.org",
)

# Host suffixes
TIER_2_SUFFIXES = (".gov", ".edu", ".ac.uk", ".edu.au", ".gov.uk", ".gv.at", ".bund.de")

TIER_3_DOMAINS = (
    "apnews.com", "reuters.com", "bloomberg.com", "afp.com",
    "nytimes.com", "wsj.com", "washingtonpost.com", "ft.com", "theguardian.com", "bbc.com", "bbc.co.uk",
    "npr.org", "pbs.org", "cnn.com", "cbsnews.com", "nbcnews.com", "abcnews.go.com",
    "forbes.com", "fortune.com", "economist.com", "businessinsider.com",
    "scientificamerican.com", "newscientist.com", "wired.com", "arstechnica.com", "techcrunch.com",
)

TIER_WEIGHTS = {
    CitationTier.PEER_REVIEWED: 3.0,
    CitationTier.GOVERNMENT_EDU: 2.0,
    CitationTier.REPUTABLE_NEWS: 1.5,
    CitationTier.OTHER: 1.0,
}

# Five peer-reviewed citations reach a quality score of 100
FULL_QUALITY_WEIGHT = 15.0
TOP_SOURCES = 5


def _host(url: str) -> str:
    host = urlparse(url if "://" in url else f"https://{url}").netloc.lower()
    return host[4:] if host.startswith("www.") else host


def _on_domain(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def classify_citation(url: str) -> CitationTier:
    host = _host(url)
    if any(_on_domain(host, d) for d in TIER_1_DOMAINS):
        return CitationTier.PEER_REVIEWED
    if any(host.endswith(s) for s in TIER_2_SUFFIXES):
        return CitationTier.GOVERNMENT_EDU
    if any(_on_domain(host, d) for d in TIER_3_DOMAINS):
        return CitationTier.REPUTABLE_NEWS
    return CitationTier.OTHER


@dataclass(frozen=True)
class CitationQuality:
    total: int
    quality_score: int
    breakdown: Dict[str, int] = field(default_factory=dict)
    top_sources: Tuple[str, ...] = ()


def citation_quality(urls: Sequence[str]) -> CitationQuality:
    """Weighted tier mix on a 0-100 scale."""
    counts = {tier: 0 for tier in CitationTier}
    sources = []
    for url in urls:
        counts[classify_citation(url)] += 1
        host = _host(url)
        if host not in sources:
            sources.append(host)

    weighted = sum(TIER_WEIGHTS[tier] * n for tier, n in counts.items())
    score = min(100, round(weighted / FULL_QUALITY_WEIGHT * 100)) if urls else 0
    return CitationQuality(
        total=len(urls),
        quality_score=score,
        breakdown={f"tier{tier.value}": n for tier, n in counts.items()},
        top_sources=tuple(sources[:TOP_SOURCES]),
    )
