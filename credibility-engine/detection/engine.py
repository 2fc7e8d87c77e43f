"""
FILE DESCRIPTION: Detector registry and concurrent execution.
KEY FUNCTIONS/CLASSES: DETECTORS, DetectionEngine, default_weights, detector_categories
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from blog.models import BlogInsights
from crawler.core import MAX_DETECTOR_WORKERS, setup_logger
from detection import authority, experience, expertise, trust
from detection.models import Category, DetectionContext, DetectorInput, DetectorSpec, Evidence
from detection.patterns import PatternSet, default_pattern_set
from extraction.models import PageData

logger = setup_logger("crawler.detection")

# Registry order is the order of every result list.
DETECTORS: Tuple[DetectorSpec, ...] = (
    DetectorSpec("E1", "First-person narratives", DetectorInput.PAGE, experience.E1_MAX, experience.detect_first_person_narratives),
    DetectorSpec("E2", "Author perspective blocks", DetectorInput.PAGE, experience.E2_MAX, experience.detect_author_perspective),
    DetectorSpec("E3", "Original assets", DetectorInput.PAGE, experience.E3_MAX, experience.detect_original_assets),
    DetectorSpec("E4", "Freshness", DetectorInput.PAGE, experience.E4_MAX, experience.detect_freshness),
    DetectorSpec("E5", "Experience markup", DetectorInput.PAGE, experience.E5_MAX, experience.detect_experience_markup),
    DetectorSpec("E6", "Publishing consistency", DetectorInput.BLOG, experience.E6_MAX, experience.detect_publishing_consistency),
    DetectorSpec("E7", "Content freshness rate", DetectorInput.BLOG, experience.E7_MAX, experience.detect_content_freshness_rate),

    DetectorSpec("X1", "Named authors with credentials", DetectorInput.PAGE, expertise.X1_MAX,
                 expertise.detect_named_authors_with_credentials, Category.EXPERTISE),
    DetectorSpec("X2", "YMYL reviewer presence", DetectorInput.PAGE, expertise.X2_MAX,
                 expertise.detect_ymyl_reviewer_presence, Category.EXPERTISE),
    DetectorSpec("X3", "Credential verification links", DetectorInput.PAGE, expertise.X3_MAX,
                 expertise.detect_credential_verification_links, Category.EXPERTISE),
    DetectorSpec("X4", "Citation quality", DetectorInput.PAGE, expertise.X4_MAX,
                 expertise.detect_citation_quality, Category.EXPERTISE),

    DetectorSpec("A3", "Entity clarity", DetectorInput.PAGE, authority.A3_MAX,
                 authority.detect_entity_clarity, Category.AUTHORITATIVENESS),

    DetectorSpec("T1", "Editorial principles", DetectorInput.PAGE, trust.T1_MAX,
                 trust.detect_editorial_principles, Category.TRUSTWORTHINESS),
    DetectorSpec("T2", "YMYL disclaimers", DetectorInput.PAGE, trust.T2_MAX,
                 trust.detect_ymyl_disclaimers, Category.TRUSTWORTHINESS),
    DetectorSpec("T3", "Provenance signals", DetectorInput.PAGE, trust.T3_MAX,
                 trust.detect_provenance_signals, Category.TRUSTWORTHINESS),
    DetectorSpec("T4", "Contact transparency", DetectorInput.PAGE, trust.T4_MAX,
                 trust.detect_contact_transparency, Category.TRUSTWORTHINESS),
    DetectorSpec("T5", "Schema hygiene", DetectorInput.PAGE, trust.T5_MAX,
                 trust.detect_schema_hygiene, Category.TRUSTWORTHINESS),
)


def default_weights(detectors: Sequence[DetectorSpec] = DETECTORS) -> Dict[str, float]:
    """Each detector weighs its maximum points."""
    return {spec.detector_id: float(spec.max_score) for spec in detectors}


def detector_categories(detectors: Sequence[DetectorSpec] = DETECTORS) -> Dict[str, Category]:
    return {spec.detector_id: spec.category for spec in detectors}


class DetectionEngine:
    """
    FLOW: Builds one DetectionContext (patterns + clock) ->
    Submits every registered detector to a thread pool ->
    Converts a raising detector into detectorError evidence ->
    Returns evidence in registry order, regardless of completion order.
    """

    def __init__(self, detectors: Sequence[DetectorSpec] = DETECTORS, patterns: Optional[PatternSet] = None,
                 max_workers: int = MAX_DETECTOR_WORKERS, clock=None):
        self.detectors = tuple(detectors)
        self.patterns = patterns
        self.max_workers = max(1, max_workers)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.name = "DetectionEngine"

    def log(self, level, msg):
        getattr(logger, level)(msg, extra={'context': self.name})

    def _run_one(self, spec: DetectorSpec, page: Optional[PageData], insights: Optional[BlogInsights],
                 ctx: DetectionContext) -> Evidence:
        data = page if spec.input is DetectorInput.PAGE else insights
        if spec.input is DetectorInput.PAGE and page is None:
            return Evidence.unmatched(spec.detector_id, "pageUnavailable")
        try:
            evidence = spec.func(data, ctx)
        except Exception as e:
            self.log("error", f"{spec.detector_id} failed: {type(e).__name__}: {e}")
            return Evidence.unmatched(spec.detector_id, "detectorError", error=f"{type(e).__name__}: {e}")
        if evidence.detector_id != spec.detector_id:
            self.log("error", f"{spec.detector_id} returned evidence for {evidence.detector_id}")
            return Evidence.unmatched(spec.detector_id, "detectorError", error="detector id mismatch")
        return evidence

    def run(self, page: Optional[PageData], insights: Optional[BlogInsights] = None) -> List[Evidence]:
        ctx = DetectionContext(patterns=self.patterns or default_pattern_set(), now=self.clock())
        results: Dict[str, Evidence] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="Detector") as executor:
            future_to_id = {
                executor.submit(self._run_one, spec, page, insights, ctx): spec.detector_id
                for spec in self.detectors
            }
            for future in as_completed(future_to_id):
                results[future_to_id[future]] = future.result()

        matched = sum(1 for e in results.values() if e.matched)
        self.log("debug", f"{matched}/{len(results)} detectors matched for {page.url if page else 'blog insights'}")
        return [results[spec.detector_id] for spec in self.detectors]
