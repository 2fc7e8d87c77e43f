"""
FILE DESCRIPTION: Expertise signal detectors (X1-X4).
KEY FUNCTIONS/CLASSES: detect_named_authors_with_credentials, detect_ymyl_reviewer_presence,
detect_credential_verification_links, detect_citation_quality

Page detectors only; reputation lookups against external services are out of scope.
"""

import re
from typing import Any, Dict, List

from detection.citations import CitationTier, citation_quality
from detection.models import DetectionContext, Evidence
from detection.patterns import find_reviewer_attribution, is_generic_name, is_ymyl, normalize_text
from detection.signals import as_list, entity_name, schema_objects, scored
from extraction.models import PageData

X1_MAX = 5
X2_MAX = 4
X3_MAX = 3
X4_MAX = 4

AUTHOR_CREDENTIALS = re.compile(
    r"\b(MD|PhD|RN|MPH|DDS|JD|MBA|MSc|BSc|Dr\.|Prof\.|PharmD|RD|CNE|COI|PA-C|MCMSc|MSN|DO|NP|APRN)(?!\w)",
    re.IGNORECASE,
)
REVIEWER_CREDENTIALS = re.compile(r"\b(MD|PhD|RN|MPH|DDS|PharmD|RD|CNE|COI)\b", re.IGNORECASE)
YMYL_CREDENTIALS = re.compile(r"\b(MD|PhD|RN|MPH|DDS|CFA|CFP)\b")
REVIEWER_LABEL = re.compile(r"\b(?i:(medical|clinical|expert) reviewer):\s*(?P<name>[A-Z][\w.'-]+(?:\s+[A-Z][\w.'-]+)*)")

VERIFICATION_HOSTS = ("linkedin.com", "twitter.com", "researchgate.net", "scholar.google.com", "orcid.org")
VERIFICATION_HINTS = (".edu", "hospital", "medical", "license", "board")


def _reviewers(obj: Dict[str, Any]) -> List[Any]:
    return as_list(obj.get("reviewedBy")) + as_list(obj.get("medicalReviewer"))


def detect_named_authors_with_credentials(page: PageData, ctx: DetectionContext) -> Evidence:
    """
    X1: who wrote and who reviewed, and how verifiable they are.
    Person schema (+1.5, +1 credentials, +0.5 image, +1 profile link),
    reviewedBy/medicalReviewer entries (+1.5, +1 credentials, +0.5 image, +0.5 url),
    byline authors (+0.5, +1 degree in the name, +0.5 credentials, +1 profile url).
    """
    score = 0.0
    names: List[str] = []

    for person in schema_objects(page, "Person"):
        name = entity_name(person)
        if not name:
            continue
        names.append(name)
        score += 1.5
        if person.get("jobTitle") or person.get("description"):
            score += 1
        if person.get("image"):
            score += 0.5
        if person.get("url") or person.get("sameAs"):
            score += 1

    reviewers = []
    for obj in page.json_ld_blocks:
        for entry in _reviewers(obj):
            name = entity_name(entry)
            if not name or is_generic_name(name, ctx.patterns):
                continue
            details = entry if isinstance(entry, dict) else {}
            reviewers.append(name)
            score += 1.5
            if details.get("jobTitle") or details.get("description") or REVIEWER_CREDENTIALS.search(name):
                score += 1
            if details.get("image"):
                score += 0.5
            if details.get("url"):
                score += 0.5

    credentialed = 0
    for author in page.authors:
        score += 0.5
        if AUTHOR_CREDENTIALS.search(author.name):
            score += 1
            credentialed += 1
        if author.credentials:
            score += 0.5
            credentialed += 1
        if author.url:
            score += 1

    raw = names + reviewers + [a.name for a in page.authors if a.name not in names]
    return scored(
        "X1", score, X1_MAX,
        raw_match=", ".join(raw) or None,
        schema_people=names,
        reviewers=reviewers,
        authors=len(page.authors),
        credential_signals=credentialed,
    )


def detect_ymyl_reviewer_presence(page: PageData, ctx: DetectionContext) -> Evidence:
    """
    X2: health and money pages need a named reviewer.
    Pages on other topics score the full points.
    """
    text = normalize_text(page.visible_text)
    if not is_ymyl(text, ctx.patterns):
        return scored("X2", X2_MAX, X2_MAX, ymyl=False)

    score = 0.0
    found: List[str] = []

    attribution = find_reviewer_attribution(text, ctx.patterns)
    if attribution:
        score += 2
        found.append(attribution.raw_match)

    label = REVIEWER_LABEL.search(text)
    if label:
        score += 2
        found.append(label.group(0))

    schema_reviewer = next(
        (name for obj in page.json_ld_blocks for name in map(entity_name, _reviewers(obj)) if name), None)
    if schema_reviewer:
        score += 2
        found.append(f"reviewedBy {schema_reviewer}")

    credential = YMYL_CREDENTIALS.search(text)
    if credential:
        score += 1

    return scored(
        "X2", score, X2_MAX,
        raw_match=", ".join(found) or None,
        ymyl=True,
        credential=credential.group(0) if credential else None,
    )


def detect_credential_verification_links(page: PageData, ctx: DetectionContext) -> Evidence:
    """X3: Person sameAs links to professional profiles, universities, hospitals or license boards (+1 each)."""
    links: List[str] = []
    for person in schema_objects(page, "Person"):
        for link in as_list(person.get("sameAs")):
            if not isinstance(link, str):
                continue
            lowered = link.lower()
            if any(h in lowered for h in VERIFICATION_HOSTS + VERIFICATION_HINTS) and link not in links:
                links.append(link)

    return scored("X3", float(len(links)), X3_MAX, raw_match=", ".join(links[:3]) or None, links=links)


def detect_citation_quality(page: PageData, ctx: DetectionContext) -> Evidence:
    """X4: outbound citations weighted by source tier (peer-reviewed > gov/edu > news > other)."""
    quality = citation_quality(page.outbound_links)
    if quality.total == 0:
        return Evidence.unmatched("X4", "noCitations", max_score=X4_MAX)

    if quality.quality_score >= 80 and quality.total >= 5:
        score = 4
    elif quality.quality_score >= 60 or quality.total >= 4:
        score = 3
    elif quality.quality_score >= 40 or quality.total >= 3:
        score = 2
    else:
        score = 1

    return scored(
        "X4", score, X4_MAX,
        raw_match=f"{quality.total} citations (quality score: {quality.quality_score}/100)",
        citations=quality.total,
        quality_score=quality.quality_score,
        breakdown=quality.breakdown,
        peer_reviewed=quality.breakdown[f"tier{CitationTier.PEER_REVIEWED.value}"],
        top_sources=list(quality.top_sources),
    )
