"""
Helpers shared by the detector modules: capped scoring and JSON-LD lookups.
"""

from typing import Any, Dict, Iterator, List

from detection.models import Evidence
from extraction.models import PageData


def scored(detector_id: str, score: float, max_score: float, raw_match=None, **metadata) -> Evidence:
    """Caps score to [0, max_score]; confidence is the capped score over max_score."""
    uncapped = score
    score = min(max(score, 0.0), max_score)
    if uncapped > max_score:
        metadata["uncapped_score"] = round(uncapped, 2)
    return Evidence(
        detector_id=detector_id,
        matched=score > 0,
        confidence=score / max_score,
        raw_match=raw_match,
        metadata={"score": round(score, 2), "max_score": max_score, **metadata},
    )


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def schema_types(obj: Dict[str, Any]) -> List[str]:
    return [v for v in as_list(obj.get("@type")) if isinstance(v, str)]


def schema_objects(page: PageData, *types: str) -> Iterator[Dict[str, Any]]:
    """JSON-LD objects whose @type includes one of types, in document order."""
    for obj in page.json_ld_blocks:
        if any(t in types for t in schema_types(obj)):
            yield obj


def first_schema_object(page: PageData, *types: str):
    return next(schema_objects(page, *types), None)


def entity_name(entry: Any):
    """'Jane Doe' or {"name": "Jane Doe"} -> 'Jane Doe'; anything else -> None."""
    if isinstance(entry, dict):
        entry = entry.get("name")
    if isinstance(entry, str) and entry.strip():
        return entry.strip()
    return None
