from scoring.models import CategoryScore, CredibilityScore, ScoreStatus
from scoring.engine import CredibilityScorer, score_status
