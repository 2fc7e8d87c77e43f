from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


class DetectorInput(Enum):
    PAGE = "page"
    BLOG = "blog"


class Category(Enum):
    EXPERIENCE = "experience"
    EXPERTISE = "expertise"
    AUTHORITATIVENESS = "authoritativeness"
    TRUSTWORTHINESS = "trustworthiness"


@dataclass(frozen=True)
class Evidence:
    """
    Immutable result of one detector run.
    Invariant: confidence is within [0, 1] and is 0 whenever matched is False.
    """
    detector_id: str
    matched: bool
    confidence: float = 0.0
    raw_match: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        confidence = float(self.confidence) if self.matched else 0.0
        object.__setattr__(self, "confidence", min(1.0, max(0.0, confidence)))
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def reason(self) -> Optional[str]:
        return self.metadata.get("reason")

    @classmethod
    def unmatched(cls, detector_id: str, reason: str, **metadata) -> "Evidence":
        return cls(detector_id=detector_id, matched=False, metadata={"reason": reason, **metadata})

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"matched": self.matched, "confidence": round(self.confidence, 4)}
        if self.raw_match:
            data["raw_match"] = self.raw_match
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


@dataclass(frozen=True)
class DetectorSpec:
    """Registry entry: a stable id, a display name, its input kind, maximum points and E-E-A-T category."""
    detector_id: str
    name: str
    input: DetectorInput
    max_score: float
    func: Any
    category: Category = Category.EXPERIENCE


@dataclass(frozen=True)
class DetectionContext:
    """Read-only inputs shared by every detector of one run."""
    patterns: Any
    now: datetime
