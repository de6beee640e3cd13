"""Turns mailbox messages into job application records."""

import logging
import uuid
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Optional

from . import heuristics
from .extractor import Extractor
from .gate import KeywordGate
from .models import Application, ExtractionResult, Message
from .scoring import ConfidenceScorer

logger = logging.getLogger(__name__)


def format_date(value: str) -> Optional[str]:
    """Normalize an ISO-8601 or RFC 2822 date to YYYY-MM-DD (UTC), or None."""
    value = (value or "").strip()
    if not value:
        return None

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError):
            return None

    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(timezone.utc)
        except OverflowError:
            return None
    return parsed.date().isoformat()


class EmailToApplicationMapper:
    """Runs a message through gate, extractor and scorer.

    ``parse`` is total: it returns a complete Application or None and never
    raises. The oracle is only reached for messages that pass the gate.
    """

    def __init__(
        self,
        extractor: Extractor,
        gate: Optional[KeywordGate] = None,
        scorer: Optional[ConfidenceScorer] = None,
        heuristic_fallback: bool = False,
        today: Callable[[], date] = date.today,
    ):
        self.extractor = extractor
        self.gate = gate or KeywordGate()
        self.scorer = scorer or ConfidenceScorer()
        self.heuristic_fallback = heuristic_fallback
        self._today = today

    def parse(self, message: Message) -> Optional[Application]:
        """Build an Application from a message, or None if it is not one."""
        try:
            return self._parse(message)
        except Exception as e:
            logger.error(f"Error parsing message {getattr(message, 'id', '?')}: {e}")
            return None

    def _parse(self, message: Message) -> Optional[Application]:
        subject = message.subject
        logger.debug(f"Parsing message {message.id}: {subject[:50]}")

        if not self.gate.is_job_email(subject, message.body):
            logger.debug(f"Gate rejected message {message.id}")
            return None

        result = self.extractor.extract(message.sender, subject, message.body)
        used_oracle = result is not None

        if result is None and self.heuristic_fallback:
            result = heuristics.classify(message.sender, subject, message.body)

        if result is None:
            logger.info(f"Skipping message (no extraction available): {subject[:50]}")
            return None

        if not result.is_job_email:
            logger.debug(f"Oracle classified message {message.id} as not job related")
            return None

        return self._build_application(message, result, used_oracle)

    def _build_application(
        self, message: Message, result: ExtractionResult, used_oracle: bool
    ) -> Application:
        date_applied = format_date(message.date)
        if date_applied is None:
            date_applied = self._today().isoformat()
            logger.warning(
                f"Unparseable date {message.date!r} on message {message.id}, "
                f"using today ({date_applied})"
            )

        location = result.location
        remote_policy = "Remote" if location and "remote" in location.lower() else None

        confidence = self.scorer.score(
            result.company, result.job_title, result.status, used_oracle
        )

        provenance = "oracle" if used_oracle else "keyword fallback"

        application = Application(
            id=f"email-{message.id}-{uuid.uuid4().hex[:12]}",
            company=result.company,
            role=result.job_title,
            location=location,
            date_applied=date_applied,
            last_update=date_applied,
            created_at=datetime.now(timezone.utc).isoformat(),
            status=result.status,
            source="Email",
            salary=None,
            remote_policy=remote_policy,
            notes=f'Extracted from email: "{message.subject}" ({provenance})',
            email_id=message.id,
            confidence_score=confidence,
            is_duplicate=0,
        )

        logger.info(
            f"Parsed application: {application.company} - {application.role} "
            f"(confidence: {application.confidence_score})"
        )
        return application
