"""
FILE DESCRIPTION: Trustworthiness signal detectors (T1-T5).
KEY FUNCTIONS/CLASSES: detect_editorial_principles, detect_ymyl_disclaimers,
detect_provenance_signals, detect_contact_transparency, detect_schema_hygiene
"""

import re
from typing import List

from detection.models import DetectionContext, Evidence
from detection.patterns import is_ymyl, normalize_text
from detection.signals import first_schema_object, schema_objects, schema_types, scored
from extraction.models import PageData

T1_MAX = 2
T2_MAX = 4
T3_MAX = 4
T4_MAX = 2
T5_MAX = 4

DISCLAIMERS = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"\b(not medical advice|consult.*doctor|consult.*physician|emergency.*911)\b",
    r"\b(for informational purposes|educational purposes only)\b",
    r"\b(see.*healthcare provider|speak.*medical professional)\b",
    r"\b(not financial advice|consult.*financial advisor|consult.*accountant)\b",
    r"\b(not investment advice|do your own research|dyor)\b",
))
EMERGENCY_GUIDANCE = re.compile(r"\b(911|emergency|urgent care|immediate medical attention)\b", re.IGNORECASE)

METHODOLOGY = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"\b(how we.*created|how we.*wrote|our methodology|our process)\b",
    r"\b(sources and methodology|research methodology)\b",
))

PHONE = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")
EMAIL = re.compile(r"\b[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}\b", re.IGNORECASE)

CONTENT_SCHEMA_TYPES = ("Article", "BlogPosting", "NewsArticle", "WebPage", "MedicalWebPage")


def detect_editorial_principles(page: PageData, ctx: DetectionContext) -> Evidence:
    """T1: editorial policy or standards (+1.5) and a corrections or retractions note (+1)."""
    text = normalize_text(page.visible_text).lower()
    score = 0.0
    found: List[str] = []
    if "editorial" in text and ("policy" in text or "standards" in text):
        score += 1.5
        found.append("editorial policy")
    if "correction" in text or "retraction" in text:
        score += 1
        found.append("corrections")
    return scored("T1", score, T1_MAX, raw_match=", ".join(found) or None, signals=found)


def detect_ymyl_disclaimers(page: PageData, ctx: DetectionContext) -> Evidence:
    """
    T2: health and money pages carry a disclaimer (+1.5 per kind found) and
    health pages an emergency pointer (+1). Other topics score the full points.
    """
    text = normalize_text(page.visible_text)
    if not is_ymyl(text, ctx.patterns):
        return scored("T2", T2_MAX, T2_MAX, ymyl=False)

    score = 0.0
    found: List[str] = []
    for pattern in DISCLAIMERS:
        match = pattern.search(text)
        if match:
            score += 1.5
            found.append(match.group(0))

    lowered = text.lower()
    emergency = ("medical" in lowered or "health" in lowered) and bool(EMERGENCY_GUIDANCE.search(text))
    if emergency:
        score += 1

    return scored("T2", score, T2_MAX, raw_match=", ".join(found) or None, ymyl=True,
                  disclaimers=len(found), emergency_guidance=emergency)


def detect_provenance_signals(page: PageData, ctx: DetectionContext) -> Evidence:
    """T3: bylines, schema dates and reviewer labels, plus a methodology note."""
    score = 0.0
    signals: List[str] = []
    blocks = page.json_ld_blocks

    if page.authors:
        score += 1.5
        signals.append("byline")
    if any(obj.get("datePublished") for obj in blocks):
        score += 1.5
        signals.append("datePublished")
    if any(obj.get("dateModified") or obj.get("dateUpdated") for obj in blocks):
        score += 1
        signals.append("dateModified")
    if any(obj.get("reviewedBy") or obj.get("medicalReviewer") for obj in blocks):
        score += 1
        signals.append("reviewer")

    text = normalize_text(page.visible_text)
    for pattern in METHODOLOGY:
        if pattern.search(text):
            score += 0.5
            signals.append("methodology")

    return scored("T3", score, T3_MAX, raw_match=", ".join(signals) or None, signals=signals)


def detect_contact_transparency(page: PageData, ctx: DetectionContext) -> Evidence:
    """T4: Organization address, phone and email (+0.5 each); phone (+0.3) and email (+0.2) in the text."""
    score = 0.0
    signals: List[str] = []

    org = first_schema_object(page, "Organization")
    if org is not None:
        if org.get("address"):
            score += 0.5
            signals.append("schema:address")
        if org.get("telephone") or org.get("phone"):
            score += 0.5
            signals.append("schema:telephone")
        if org.get("email"):
            score += 0.5
            signals.append("schema:email")

    text = page.visible_text
    if PHONE.search(text):
        score += 0.3
        signals.append("text:phone")
    if EMAIL.search(text):
        score += 0.2
        signals.append("text:email")

    return scored("T4", round(score, 2), T4_MAX, raw_match=", ".join(signals) or None, signals=signals)


def detect_schema_hygiene(page: PageData, ctx: DetectionContext) -> Evidence:
    """T5: a content schema object with its key fields, plus a Person object."""
    if not page.json_ld_blocks:
        return Evidence.unmatched("T5", "noSchema", max_score=T5_MAX, json_ld_errors=len(page.json_ld_errors))

    score = 0.0
    missing: List[str] = []
    content = first_schema_object(page, *CONTENT_SCHEMA_TYPES)
    if content is not None:
        score += 1.5
        for field_names, points in (
            (("headline", "name"), 0.5),
            (("author",), 1.0),
            (("datePublished",), 0.5),
            (("dateModified",), 0.5),
            (("image",), 0.3),
            (("description",), 0.2),
        ):
            if any(content.get(f) for f in field_names):
                score += points
            else:
                missing.append(field_names[0])

    has_person = next(schema_objects(page, "Person"), None) is not None
    if has_person:
        score += 0.5

    return scored(
        "T5", round(score, 2), T5_MAX,
        raw_match=", ".join(schema_types(content)) if content is not None else None,
        content_schema=content is not None,
        missing_fields=missing,
        person_schema=has_person,
        json_ld_errors=len(page.json_ld_errors),
    )
