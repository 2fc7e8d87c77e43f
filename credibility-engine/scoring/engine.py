"""
FILE DESCRIPTION: Weighted credibility scoring.
KEY FUNCTIONS/CLASSES: CredibilityScorer, score_status, percentage_of
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from crawler.core import load_weight_overrides, setup_logger
from detection.engine import default_weights, detector_categories
from detection.models import Evidence
from scoring.models import CategoryScore, CredibilityScore, ScoreStatus

logger = setup_logger("crawler.scoring")

UNCATEGORIZED = "uncategorized"

STATUS_THRESHOLDS = (
    (80.0, ScoreStatus.EXCELLENT),
    (60.0, ScoreStatus.GOOD),
    (40.0, ScoreStatus.FAIR),
)


def score_status(percentage: float) -> ScoreStatus:
    for threshold, status in STATUS_THRESHOLDS:
        if percentage >= threshold:
            return status
    return ScoreStatus.POOR


def percentage_of(points: float, max_score: float) -> float:
    return (points / max_score * 100.0) if max_score > 0 else 0.0


class CredibilityScorer:
    """
    FLOW: Receives an evidence set -> Fills a "missing" placeholder for every
    configured detector without evidence -> Sums weight x confidence ->
    Divides by the total configured weight -> Classifies the status band ->
    Repeats the sum per E-E-A-T category for the subtotals.

    Failure policy: a missing detector contributes 0 but keeps its weight in
    the denominator, so missing data lowers the score rather than hiding.
    """

    def __init__(self, weights: Optional[Mapping[str, float]] = None, categories: Optional[Mapping[str, Any]] = None):
        if weights is None:
            weights = {**default_weights(), **(load_weight_overrides() or {})}
        for detector_id, weight in weights.items():
            if weight < 0:
                raise ValueError(f"weight for {detector_id} must be >= 0, got {weight}")
        self.weights: Dict[str, float] = {k: float(v) for k, v in weights.items()}
        self.categories = dict(categories if categories is not None else detector_categories())

    def score(self, evidences: Iterable[Evidence]) -> CredibilityScore:
        by_id: Dict[str, Evidence] = {}
        for evidence in evidences:
            by_id.setdefault(evidence.detector_id, evidence)

        breakdown: Dict[str, Evidence] = {}
        overall = 0.0
        for detector_id, weight in self.weights.items():
            evidence = by_id.get(detector_id)
            if evidence is None:
                logger.warning(f"No evidence for configured detector {detector_id}; scoring it as 0")
                evidence = Evidence.unmatched(detector_id, "missing")
            breakdown[detector_id] = evidence
            overall += weight * evidence.confidence

        ignored = sorted(set(by_id) - set(self.weights))
        if ignored:
            logger.debug(f"Evidence without a configured weight ignored: {ignored}")

        max_score = sum(self.weights.values())
        percentage = percentage_of(overall, max_score)

        return CredibilityScore(
            overall=overall,
            max_score=max_score,
            percentage=percentage,
            status=score_status(percentage),
            breakdown=breakdown,
            weights=self.weights,
            categories=self._category_scores(breakdown),
        )

    def _category_scores(self, breakdown: Mapping[str, Evidence]) -> Dict[str, CategoryScore]:
        """Subtotals in order of each category's first configured detector."""
        members: Dict[str, List[str]] = {}
        for detector_id in self.weights:
            category = self.categories.get(detector_id)
            name = getattr(category, "value", category) or UNCATEGORIZED
            members.setdefault(name, []).append(detector_id)

        scores: Dict[str, CategoryScore] = {}
        for name, ids in members.items():
            points = sum(self.weights[i] * breakdown[i].confidence for i in ids)
            max_score = sum(self.weights[i] for i in ids)
            percentage = percentage_of(points, max_score)
            scores[name] = CategoryScore(
                overall=points,
                max_score=max_score,
                percentage=percentage,
                status=score_status(percentage),
                detectors=tuple(ids),
            )
        return scores
