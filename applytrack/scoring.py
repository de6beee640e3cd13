"""Confidence scoring for extracted applications."""

from typing import Optional

from .config import ScoreWeights
from .models import DEFAULT_STATUS

COMPANY_PLACEHOLDERS = frozenset({"Unknown Company", "Not specified"})
ROLE_PLACEHOLDERS = frozenset({"Unknown Position", "Not specified"})


class ConfidenceScorer:
    """Maps extracted fields to a 0-100 score. Pure and deterministic."""

    def __init__(self, weights: Optional[ScoreWeights] = None):
        self.weights = weights or ScoreWeights()

    def score(
        self,
        company: Optional[str],
        role: Optional[str],
        status: Optional[str],
        used_oracle: bool,
    ) -> int:
        """Score extracted fields, clamped to 0-100."""
        w = self.weights
        score = w.oracle_base if used_oracle else w.fallback_base

        if company and company not in COMPANY_PLACEHOLDERS:
            score += w.company

        if role and role not in ROLE_PLACEHOLDERS:
            score += w.role

        # A non-default status means the content was actually read
        if status and status != DEFAULT_STATUS:
            score += w.status

        return max(0, min(score, 100))


_default_scorer = ConfidenceScorer()


def calculate_confidence(
    company: Optional[str],
    role: Optional[str],
    status: Optional[str],
    used_oracle: bool,
) -> int:
    """Score with the default weights."""
    return _default_scorer.score(company, role, status, used_oracle)
