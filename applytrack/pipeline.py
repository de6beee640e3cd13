"""Batch sync: messages in, deduplicated applications stored."""

import logging
from dataclasses import dataclass
from typing import Iterable

from filelock import FileLock

from .cache import ExtractionCache
from .config import Config
from .duplicates import DuplicateDetector
from .exceptions import DuplicateApplicationError, RepositoryError
from .extractor import Extractor
from .gate import KeywordGate
from .mapper import EmailToApplicationMapper
from .models import Message, SyncStats
from .oracle import get_oracle
from .scoring import ConfidenceScorer
from .storage import ApplicationRepository, SQLiteApplicationRepository

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    """Components wired from one configuration."""

    mapper: EmailToApplicationMapper
    detector: DuplicateDetector
    repository: SQLiteApplicationRepository
    write_lock: FileLock

    def sync(self, messages: Iterable[Message], user_id: str) -> SyncStats:
        """Run a batch sync with this pipeline's components."""
        return run_sync(
            messages, user_id, self.mapper, self.detector, self.repository, self.write_lock
        )

    def close(self) -> None:
        """Release the extractor's worker threads."""
        self.mapper.extractor.close()


def build_pipeline(config: Config) -> Pipeline:
    """Construct every pipeline component from configuration."""
    cache = ExtractionCache(max_size=config.cache_max_size, key_length=config.cache_key_length)
    extractor = Extractor(
        get_oracle(config),
        cache=cache,
        body_max_chars=config.body_max_chars,
        timeout=config.oracle_timeout,
        max_workers=config.oracle_max_workers,
    )
    mapper = EmailToApplicationMapper(
        extractor,
        gate=KeywordGate(config.job_keywords, config.spam_keywords),
        scorer=ConfidenceScorer(config.score_weights),
        heuristic_fallback=config.heuristic_fallback,
    )

    repository = SQLiteApplicationRepository(config.database_path)
    repository.init_db()

    write_lock = FileLock(str(config.database_path) + ".lock", timeout=30)

    return Pipeline(
        mapper=mapper,
        detector=DuplicateDetector(repository, threshold=config.similarity_threshold),
        repository=repository,
        write_lock=write_lock,
    )


def run_sync(
    messages: Iterable[Message],
    user_id: str,
    mapper: EmailToApplicationMapper,
    detector: DuplicateDetector,
    repository: ApplicationRepository,
    write_lock: FileLock,
) -> SyncStats:
    """Parse a batch of messages and store the new applications.

    The duplicate check and the insert run together under ``write_lock`` so two
    concurrent syncs cannot both pass the check. A storage failure during the
    check aborts the sync; everything else is counted and skipped.
    """
    stats = SyncStats()

    logger.info(f"Starting sync for user {user_id}")

    for message in messages:
        stats.messages_seen += 1

        application = mapper.parse(message)
        if application is None:
            continue

        stats.applications_extracted += 1
        application = application.model_copy(update={"user_id": user_id})

        with write_lock:
            verdict = detector.check_duplicate(application)
            if verdict.is_duplicate:
                logger.info(
                    f"Skipping duplicate application: {application.company} - "
                    f"{application.role} (matches {verdict.duplicate_id})"
                )
                stats.duplicates_skipped += 1
                continue

            try:
                repository.create(application)
            except DuplicateApplicationError as e:
                logger.warning(f"Application id collision, skipping: {e}")
                stats.errors += 1
                continue
            except RepositoryError as e:
                logger.error(f"Failed to store application from message {message.id}: {e}")
                stats.errors += 1
                continue

        stats.applications_added += 1
        logger.info(
            f"Added: {application.company} - {application.role} "
            f"(confidence: {application.confidence_score})"
        )

    logger.info(
        f"Sync complete: {stats.messages_seen} seen, "
        f"{stats.applications_extracted} extracted, "
        f"{stats.duplicates_skipped} duplicates skipped, "
        f"{stats.applications_added} added"
    )
    return stats
