"""
FILE DESCRIPTION: Experience signal detectors (E1-E7).
KEY FUNCTIONS/CLASSES: detect_first_person_narratives, detect_author_perspective,
detect_original_assets, detect_freshness, detect_experience_markup,
detect_publishing_consistency, detect_content_freshness_rate

Every detector is a pure function of (input, DetectionContext) -> Evidence.
Page detectors read PageData, blog detectors read BlogInsights.
"""

import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from blog.models import BlogInsights
from detection.models import DetectionContext, Evidence
from detection.patterns import find_reviewer_attribution, is_generic_name, normalize_text
from detection.signals import scored, schema_types
from extraction.dates import add_months, first_date, parse_date
from extraction.models import DATE_META_TAGS, PageData

E1_MAX = 4
E2_MAX = 3
E3_MAX = 3
E4_MAX = 5
E5_MAX = 2
E6_MAX = 4
E7_MAX = 4

STRONG_WEIGHT = 1.5
MEDIUM_WEIGHT = 1.0
SNIPPET_LIMIT = 3

PERSPECTIVE_HEADING_POINTS = 1.5
MAX_PERSPECTIVE_HEADINGS = 2
TEXT_REVIEWER_POINTS = 1.0
SCHEMA_REVIEWER_POINTS = 1.5
COLLABORATION_POINTS = 1.0

VERTICAL_SCHEMA_TYPES = (
    "MedicalWebPage",
    "HealthTopicContent",
    "Recipe",
    "HowTo",
    "Course",
    "Review",
    "Product",
)
SCHEMA_TYPE_POINTS = 1.0
SECTION_HEADING_POINTS = 0.5

FRESH_WINDOW_MONTHS = 12
SCHEMA_DATE_FIELDS = ("dateModified", "dateUpdated", "datePublished")


# === PAGE DETECTORS ===

def detect_first_person_narratives(page: PageData, ctx: DetectionContext) -> Evidence:
    """E1: first-person phrases in an experience context; strong phrases weigh 1.5x."""
    text = normalize_text(page.visible_text).lower()
    snippets: List[str] = []

    def count(patterns) -> int:
        total = 0
        for pattern in patterns:
            for match in pattern.finditer(text):
                total += 1
                if len(snippets) < SNIPPET_LIMIT:
                    snippets.append(match.group(0))
        return total

    strong = count(ctx.patterns.strong_experience)
    medium = count(ctx.patterns.medium_experience)
    weighted = strong * STRONG_WEIGHT + medium * MEDIUM_WEIGHT

    if weighted >= 12:
        score = 4
    elif weighted >= 7:
        score = 3
    elif weighted >= 3:
        score = 2
    elif weighted >= 1:
        score = 1
    else:
        score = 0

    return scored(
        "E1", score, E1_MAX,
        raw_match=", ".join(snippets) or None,
        strong_matches=strong,
        medium_matches=medium,
        weighted_matches=weighted,
    )


def _schema_reviewers(page: PageData, ctx: DetectionContext) -> List[str]:
    names = []
    for obj in page.json_ld_blocks:
        for key in ("reviewedBy", "medicalReviewer"):
            value = obj.get(key)
            for entry in value if isinstance(value, list) else [value]:
                if isinstance(entry, dict):
                    entry = entry.get("name")
                if isinstance(entry, str) and entry.strip() and not is_generic_name(entry.strip(), ctx.patterns):
                    names.append(entry.strip())
    return names


def detect_author_perspective(page: PageData, ctx: DetectionContext) -> Evidence:
    """
    E2: perspective blocks and reviewer attribution.
    Pathways: perspective headings (+1.5 each, two at most), reviewer named in
    text (+1.0), schema reviewedBy/medicalReviewer (+1.5, only without a text
    reviewer), two or more authors (+1.0, only without any reviewer).
    """
    score = 0.0
    pathways: List[str] = []
    raw_match: Optional[str] = None

    perspective_headings = [
        heading for heading in page.headings.all()
        if any(p.search(normalize_text(heading)) for p in ctx.patterns.perspective_headings)
    ][:MAX_PERSPECTIVE_HEADINGS]
    if perspective_headings:
        score += PERSPECTIVE_HEADING_POINTS * len(perspective_headings)
        pathways.append("perspectiveHeading")

    reviewer = find_reviewer_attribution(page.visible_text, ctx.patterns)
    schema_reviewers: List[str] = []
    if reviewer:
        score += TEXT_REVIEWER_POINTS
        pathways.append("textReviewer")
        raw_match = reviewer.raw_match
    else:
        schema_reviewers = _schema_reviewers(page, ctx)
        if schema_reviewers:
            score += SCHEMA_REVIEWER_POINTS
            pathways.append("schemaReviewer")
            raw_match = f"reviewedBy {schema_reviewers[0]}"

    if not reviewer and not schema_reviewers and len(page.authors) >= 2:
        score += COLLABORATION_POINTS
        pathways.append("collaborativeAuthorship")

    if raw_match is None and perspective_headings:
        raw_match = perspective_headings[0]

    metadata: Dict[str, Any] = {"pathways": pathways}
    if perspective_headings:
        metadata["headings"] = perspective_headings
    if reviewer:
        metadata["reviewer"] = reviewer.name
        metadata["locale"] = reviewer.locale
    elif schema_reviewers:
        metadata["reviewer"] = schema_reviewers[0]
    return scored("E2", score, E2_MAX, raw_match=raw_match, **metadata)


def detect_original_assets(page: PageData, ctx: DetectionContext) -> Evidence:
    """
    E3: references to brand-owned assets (figures, own research, case studies,
    before/after, tutorials, team/facility). Each pathway scores once.
    Image counts alone earn nothing; stock photos carry alt text too.
    """
    text = normalize_text(page.visible_text)
    score = 0.0
    found: Dict[str, str] = {}
    for pathway in ctx.patterns.originality:
        if pathway.name in found:
            continue
        for pattern in pathway.patterns:
            match = pattern.search(text)
            if match:
                found[pathway.name] = match.group(0)
                score += pathway.weight
                break

    return scored(
        "E3", round(score, 2), E3_MAX,
        raw_match=", ".join(found.values()) or None,
        pathways=list(found),
        images_total=page.images.total,
        images_with_alt=page.images.with_alt,
    )


def _newest_schema_date(page: PageData):
    newest = None
    for obj in page.json_ld_blocks:
        found = first_date(obj, SCHEMA_DATE_FIELDS)
        if found is not None and (newest is None or found[0] > newest[0]):
            newest = (found[0], f"jsonld:{found[1]}")
    return newest


def _newest_of(values: Iterable[Tuple[Any, str]]):
    newest = None
    for raw, source in values:
        candidate = parse_date(raw)
        if candidate is not None and (newest is None or candidate > newest[0]):
            newest = (candidate, source)
    return newest


def detect_freshness(page: PageData, ctx: DetectionContext) -> Evidence:
    """
    E4: age of the newest content date. JSON-LD dateModified/datePublished
    first, then date meta tags, then <time datetime>. Dates in the future
    count as fresh.
    """
    found = (
        _newest_schema_date(page)
        or _newest_of((page.meta_tags.get(name), f"meta:{name}") for name in DATE_META_TAGS)
        or _newest_of((t.datetime, "time") for t in page.time_elements)
    )
    if found is None:
        return Evidence.unmatched("E4", "noDateFound", max_score=E4_MAX)

    date, source = found
    months_old = max(0, math.floor((ctx.now - date).total_seconds() / 86400 / 30))

    if months_old <= 3:
        score = 5
    elif months_old <= 6:
        score = 4
    elif months_old <= 12:
        score = 3
    elif months_old <= 24:
        score = 2
    else:
        score = 1

    return scored(
        "E4", score, E4_MAX,
        raw_match=date.isoformat(),
        source=source,
        months_old=months_old,
    )


def detect_experience_markup(page: PageData, ctx: DetectionContext) -> Evidence:
    """E5: vertical schema types (+1 each distinct type) and "what we do"-style section headings (+0.5 each)."""
    score = 0.0
    types: List[str] = []
    for obj in page.json_ld_blocks:
        for schema_type in schema_types(obj):
            if schema_type in VERTICAL_SCHEMA_TYPES and schema_type not in types:
                types.append(schema_type)
                score += SCHEMA_TYPE_POINTS

    sections = [
        heading for heading in page.headings.all()
        if any(p.search(normalize_text(heading)) for p in ctx.patterns.experience_sections)
    ]
    score += SECTION_HEADING_POINTS * len(sections)

    raw = types + sections
    return scored(
        "E5", score, E5_MAX,
        raw_match=", ".join(raw) or None,
        schema_types=types,
        section_headings=sections,
    )


# === BLOG DETECTORS ===

def detect_publishing_consistency(insights: Optional[BlogInsights], ctx: DetectionContext) -> Evidence:
    """E6: posts per month (4-8 is optimal) adjusted by the publishing trend."""
    if insights is None:
        return Evidence.unmatched("E6", "blogInsightsUnavailable", max_score=E6_MAX)

    freq = insights.publishing_frequency
    if freq.insufficient_sample:
        return Evidence.unmatched(
            "E6", "insufficientSample",
            max_score=E6_MAX,
            sample_reason=freq.sample_reason,
            total_posts_with_dates=freq.total_posts_with_dates,
        )

    rate = freq.posts_per_month
    if 4 <= rate <= 8:
        score = 4.0
    elif 2 <= rate <= 12:
        score = 3.0
    elif rate >= 1:
        score = 2.0
    elif rate >= 0.5:
        score = 1.0
    else:
        score = 0.0

    if freq.trend == "increasing":
        score += 0.5
    elif freq.trend == "decreasing":
        score -= 0.5

    return scored(
        "E6", score, E6_MAX,
        raw_match=f"{rate:.1f} posts/month",
        posts_per_month=round(rate, 3),
        span_months=round(freq.span_months, 3),
        trend=freq.trend,
    )


def detect_content_freshness_rate(insights: Optional[BlogInsights], ctx: DetectionContext) -> Evidence:
    """E7: share of analyzed posts modified within the last twelve months."""
    if insights is None:
        return Evidence.unmatched("E7", "blogInsightsUnavailable", max_score=E7_MAX)

    analyzed = [p for p in insights.posts if p.fetched]
    if not analyzed:
        return Evidence.unmatched("E7", "noPostsAnalyzed", max_score=E7_MAX)

    cutoff = add_months(ctx.now, -FRESH_WINDOW_MONTHS)
    fresh = sum(1 for p in analyzed if p.modified_at is not None and p.modified_at >= cutoff)
    rate = fresh / len(analyzed)

    if rate >= 0.7:
        score = 4
    elif rate >= 0.5:
        score = 3
    elif rate >= 0.3:
        score = 2
    elif rate >= 0.1:
        score = 1
    else:
        score = 0

    return scored(
        "E7", score, E7_MAX,
        raw_match=f"{fresh} of {len(analyzed)} posts updated in the last {FRESH_WINDOW_MONTHS} months",
        fresh_posts=fresh,
        analyzed_posts=len(analyzed),
        freshness_rate=round(rate, 3),
    )
