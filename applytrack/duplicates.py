"""Duplicate detection for extracted applications."""

import logging
from collections import Counter
from typing import Optional

from .models import Candidate, DuplicateVerdict, SimilarApplication
from .storage import ApplicationRepository

logger = logging.getLogger(__name__)

EXACT_MATCH_REASON = "Exact match"
DEFAULT_THRESHOLD = 0.7


def string_similarity(a: Optional[str], b: Optional[str]) -> float:
    """Heuristic 0-1 similarity of two short strings.

    Case-insensitive. Equal strings score 1.0, containment 0.8, otherwise the
    Dice coefficient over whitespace-separated words.
    """
    if not a or not b:
        return 0.0

    s1 = a.lower().strip()
    s2 = b.lower().strip()

    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0
    if s1 in s2 or s2 in s1:
        return 0.8

    words1 = s1.split()
    words2 = s2.split()
    common = sum((Counter(words1) & Counter(words2)).values())
    return (2 * common) / (len(words1) + len(words2))


class DuplicateDetector:
    """Looks candidates up against stored applications."""

    def __init__(self, repository: ApplicationRepository, threshold: float = DEFAULT_THRESHOLD):
        self.repository = repository
        self.threshold = threshold

    def check_duplicate(self, candidate: Candidate) -> DuplicateVerdict:
        """Exact natural-key match on (user, company, role, date applied).

        Repository errors propagate: reporting "no duplicate" on a storage
        failure could lead to a double insert.
        """
        existing = self.repository.find_by_natural_key(
            candidate.user_id,
            candidate.company,
            candidate.role,
            candidate.date_applied,
        )

        if existing is not None:
            return DuplicateVerdict(
                is_duplicate=True,
                duplicate_id=existing.id,
                similarity=1.0,
                reason=EXACT_MATCH_REASON,
            )

        return DuplicateVerdict(is_duplicate=False, duplicate_id=None, similarity=0.0, reason=None)

    def find_similar_applications(
        self, candidate: Candidate, threshold: Optional[float] = None
    ) -> list[SimilarApplication]:
        """Rank the user's applications by company and role similarity.

        Advisory only. Without an explicit threshold the detector's own is used.
        Storage failures are logged and yield an empty list.
        """
        if threshold is None:
            threshold = self.threshold

        if not candidate.user_id:
            return []

        try:
            existing = self.repository.list_by_user(candidate.user_id)
        except Exception as e:
            logger.error(f"Error finding similar applications: {e}")
            return []

        similar = []
        for application in existing:
            if candidate.id is not None and application.id == candidate.id:
                continue

            company_sim = string_similarity(candidate.company, application.company)
            role_sim = string_similarity(candidate.role, application.role)
            similarity = (company_sim + role_sim) / 2

            if similarity >= threshold:
                similar.append(
                    SimilarApplication(**application.model_dump(), similarity=similarity)
                )

        # sorted() is stable, so ties keep repository order
        return sorted(similar, key=lambda app: app.similarity, reverse=True)
