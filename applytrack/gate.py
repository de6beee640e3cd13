"""Keyword pre-filter deciding which messages reach the extraction oracle."""

from typing import Iterable, Optional

# Substring matches against lower-cased subject + body. Kept broad on purpose:
# a message rejected here is never looked at again.
JOB_KEYWORDS = [
    "application",
    "apply",
    "applied",
    "interview",
    "offer",
    "position",
    "role",
    "job",
    "career",
    "hiring",
    "recruit",
    "candidate",
    "rejection",
    "rejected",
    "thank you for",
    "thanks for applying",
    "thank you for applying",
    "congratulations",
    "schedule",
    "phone screen",
    "video call",
    "meet with",
    "next steps",
]

SPAM_KEYWORDS = [
    "unsubscribe",
    "promotional",
    "sale",
    "discount",
    "deal",
    "coupon",
    "newsletter",
    "update your",
    "verify your",
    "reset password",
    "confirm email",
]


class KeywordGate:
    """Cheap lexical filter run before any oracle call."""

    def __init__(
        self,
        job_keywords: Optional[Iterable[str]] = None,
        spam_keywords: Optional[Iterable[str]] = None,
    ):
        if job_keywords is None:
            job_keywords = JOB_KEYWORDS
        if spam_keywords is None:
            spam_keywords = SPAM_KEYWORDS
        self.job_keywords = [k.lower() for k in job_keywords]
        self.spam_keywords = [k.lower() for k in spam_keywords]

    def is_job_email(self, subject: str, body: str) -> bool:
        """Return True if the message may be job related."""
        text = f"{subject or ''} {body or ''}".lower()

        has_job_keyword = any(keyword in text for keyword in self.job_keywords)
        has_spam_keyword = any(keyword in text for keyword in self.spam_keywords)

        if has_spam_keyword and not has_job_keyword:
            return False

        return has_job_keyword


_default_gate = KeywordGate()


def is_job_email(subject: str, body: str) -> bool:
    """Check a message against the built-in keyword lists."""
    return _default_gate.is_job_email(subject, body)
