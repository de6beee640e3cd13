"""Keyword-only fallback classifier used when the oracle cannot answer."""

import html
import logging
import re
from typing import Optional

from .models import ExtractionResult

logger = logging.getLogger(__name__)

UNKNOWN_COMPANY = "Unknown Company"
UNKNOWN_ROLE = "Unknown Position"
NOT_SPECIFIED = "Not specified"

BASE_TITLES = [
    "Software Engineer",
    "Software Developer",
    "Frontend Engineer",
    "Backend Engineer",
    "Full Stack Engineer",
    "Full Stack Developer",
    "Mobile Developer",
    "DevOps Engineer",
    "Site Reliability Engineer",
    "Platform Engineer",
    "Data Engineer",
    "Machine Learning Engineer",
    "Security Engineer",
    "QA Engineer",
    "Data Scientist",
    "Research Scientist",
    "Data Analyst",
    "Business Analyst",
    "Product Manager",
    "Program Manager",
    "Project Manager",
    "Engineering Manager",
    "Product Designer",
    "UX Designer",
    "Solutions Architect",
    "Technical Writer",
]

TITLE_PREFIXES = [
    "Junior",
    "Senior",
    "Staff",
    "Principal",
    "Lead",
    "Associate",
    "Intern",
    "Frontend",
    "Backend",
    "Mobile",
    "Cloud",
    "Data",
]

# Checked in this order; the first category with a hit decides the status.
STATUS_PHRASES = [
    (
        "Offer",
        [
            "pleased to offer",
            "happy to offer",
            "offer letter",
            "extend an offer",
            "extend you an offer",
            "job offer",
        ],
    ),
    (
        "Rejected",
        [
            "not be moving forward",
            "not moving forward",
            "decided to move forward with other candidates",
            "pursuing other candidates",
            "regret to inform",
            "not been selected",
            "not selected",
            "position has been filled",
            "unable to offer you",
            "decided not to proceed",
        ],
    ),
    (
        "Interview",
        [
            "interview",
            "phone screen",
            "schedule a call",
            "schedule time",
            "video call",
            "meet with",
            "availability",
        ],
    ),
]

SENDER_COMPANY_PATTERNS = [
    r'"([^"]+)" via .+',
    r"([A-Za-z0-9\s&.]+?)\s+(?:Careers?|Recruiting|Talent|Jobs?|HR)\s*<",
]

BODY_COMPANY_PATTERNS = [
    r"(?:applying|applied|application)\s+(?:to|at)\s+([A-Z][A-Za-z0-9&'-]*(?:\s+[A-Z][A-Za-z0-9&'-]*)*)",
    r"interest\s+in\s+(?:joining\s+)?([A-Z][A-Za-z0-9&'-]*(?:\s+[A-Z][A-Za-z0-9&'-]*)*)",
    r"position\s+at\s+([A-Z][A-Za-z0-9&'-]*(?:\s+[A-Z][A-Za-z0-9&'-]*)*)",
]

GENERIC_SENDER_PARTS = {
    "mail",
    "email",
    "jobs",
    "careers",
    "notifications",
    "noreply",
    "no-reply",
    "talent",
    "gmail",
    "outlook",
    "yahoo",
    "greenhouse",
    "greenhouse-mail",
    "lever",
    "ashbyhq",
    "workday",
    "myworkday",
    "myworkdayjobs",
    "icims",
    "jobvite",
    "smartrecruiters",
    "linkedin",
    "indeed",
}

GENERIC_COMPANY_WORDS = {"the", "our", "a", "an", "this", "your", "us"}


def strip_html(text: str) -> str:
    """Convert HTML to plain text."""
    text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"</?p[^>]*>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", " ", text)
    text = html.unescape(text)
    return re.sub(r"\s+", " ", text).strip()


def detect_status(text: str) -> str:
    """Pick a status with the fixed precedence Offer > Rejected > Interview > Applied."""
    lowered = text.lower()
    for status, phrases in STATUS_PHRASES:
        if any(phrase in lowered for phrase in phrases):
            return status
    return "Applied"


def match_job_title(text: str) -> Optional[str]:
    """Find a common job title, keeping a level or specialization prefix."""
    for base_title in BASE_TITLES:
        match = re.search(rf"\b{re.escape(base_title)}\b", text, re.IGNORECASE)
        if not match:
            continue

        prefix_area = text[max(0, match.start() - 30) : match.start()]
        for prefix in TITLE_PREFIXES:
            if re.search(rf"\b{re.escape(prefix)}\s+$", prefix_area, re.IGNORECASE):
                return f"{prefix} {base_title}"
        return base_title

    return None


def _clean_company(name: str) -> Optional[str]:
    name = name.strip().strip('"').rstrip(".,!").strip()
    if name.lower() in GENERIC_COMPANY_WORDS:
        return None
    if 1 < len(name) < 50:
        return name
    return None


def extract_company(sender: str, text: str) -> Optional[str]:
    """Guess the hiring company from the sender header, then the body."""
    for pattern in SENDER_COMPANY_PATTERNS:
        match = re.search(pattern, sender, re.IGNORECASE)
        company = _clean_company(match.group(1)) if match else None
        if company:
            return company

    for pattern in BODY_COMPANY_PATTERNS:
        match = re.search(pattern, text)
        company = _clean_company(match.group(1)) if match else None
        if company:
            return company

    domain_match = re.search(r"@([a-zA-Z0-9.-]+)", sender)
    if domain_match:
        parts = domain_match.group(1).lower().split(".")
        if len(parts) >= 2 and parts[-2] not in GENERIC_SENDER_PARTS:
            return parts[-2].replace("-", " ").title()

    return None


def classify(sender: str, subject: str, body: str) -> Optional[ExtractionResult]:
    """Classify a message without the oracle.

    Returns None when neither a company nor a job title can be found.
    """
    text = strip_html(body or "")
    combined = f"{subject or ''} {text}"

    company = extract_company(sender or "", text)
    title = match_job_title(subject or "") or match_job_title(text)

    if company is None and title is None:
        logger.debug(f"Fallback found nothing in message: {(subject or '')[:50]}")
        return None

    location = "Remote" if re.search(r"\bremote\b", combined, re.IGNORECASE) else NOT_SPECIFIED

    return ExtractionResult(
        is_job_email=True,
        company=company or UNKNOWN_COMPANY,
        job_title=title or UNKNOWN_ROLE,
        status=detect_status(combined),
        location=location,
    )
