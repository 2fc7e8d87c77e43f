from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

from detection.models import Evidence


class ScoreStatus(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class CategoryScore:
    """Subtotal of one E-E-A-T category over the detectors it has in the configuration."""
    overall: float
    max_score: float
    percentage: float
    status: ScoreStatus
    detectors: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": round(self.overall, 2),
            "max_score": round(self.max_score, 2),
            "percentage": round(self.percentage, 1),
            "status": self.status.value,
            "detectors": list(self.detectors),
        }


@dataclass(frozen=True)
class CredibilityScore:
    """
    Weighted composite of detector evidence.
    Invariant: every configured detector has a breakdown entry, placeholder or real.
    """
    overall: float
    max_score: float
    percentage: float
    status: ScoreStatus
    breakdown: Mapping[str, Evidence] = field(default_factory=dict)
    weights: Mapping[str, float] = field(default_factory=dict)
    categories: Mapping[str, CategoryScore] = field(default_factory=dict)

    def __post_init__(self):
        for name in ("breakdown", "weights", "categories"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": round(self.overall, 2),
            "max_score": round(self.max_score, 2),
            "percentage": round(self.percentage, 1),
            "status": self.status.value,
            "categories": {name: c.to_dict() for name, c in self.categories.items()},
            "breakdown": {detector_id: e.to_dict() for detector_id, e in self.breakdown.items()},
        }
