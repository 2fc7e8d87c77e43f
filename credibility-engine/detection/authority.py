"""
FILE DESCRIPTION: Authoritativeness signal detectors that need only the page (A3).
KEY FUNCTIONS/CLASSES: detect_entity_clarity
"""

from typing import List

from detection.models import DetectionContext, Evidence
from detection.signals import as_list, entity_name, first_schema_object, scored
from extraction.models import PageData

A3_MAX = 4


def detect_entity_clarity(page: PageData, ctx: DetectionContext) -> Evidence:
    """
    A3: is it clear who publishes the page?
    Organization (+1.5, +1 sameAs, +0.5 logo), Person (+1, +0.5 sameAs).
    """
    score = 0.0
    entities: List[str] = []
    same_as: List[str] = []

    org = first_schema_object(page, "Organization", "NewsMediaOrganization", "MedicalOrganization")
    if org is not None:
        score += 1.5
        entities.append(entity_name(org) or "Organization")
        if org.get("sameAs"):
            score += 1
            same_as.extend(link for link in as_list(org["sameAs"]) if isinstance(link, str))
        if org.get("logo"):
            score += 0.5

    person = first_schema_object(page, "Person")
    if person is not None:
        score += 1
        entities.append(entity_name(person) or "Person")
        if person.get("sameAs"):
            score += 0.5

    return scored("A3", score, A3_MAX, raw_match=", ".join(entities) or None,
                  organization=org is not None, person=person is not None, same_as=same_as)
