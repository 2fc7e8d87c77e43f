from detection.models import Evidence, DetectorSpec, DetectorInput, DetectionContext, Category
from detection.patterns import PatternSet, PatternDataError, load_pattern_set
from detection.engine import DETECTORS, DetectionEngine, default_weights, detector_categories
