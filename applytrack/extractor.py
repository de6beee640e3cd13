"""Oracle-backed extraction of job application fields."""

import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Optional

from pydantic import ValidationError

from .cache import ExtractionCache
from .exceptions import OracleError
from .models import ExtractionResult
from .oracle import Oracle
from .prompts import build_extraction_prompt

logger = logging.getLogger(__name__)

FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*\})\s*```")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def parse_oracle_json(content: str) -> Any:
    """Parse the oracle's answer, unwrapping a markdown code fence if needed."""
    content = content.strip()
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        match = FENCED_JSON.search(content)
        if not match:
            raise
        data = json.loads(match.group(1))
    return data


class Extractor:
    """Calls the oracle for a message and validates what comes back.

    ``extract`` never raises. Every failure, from a missing oracle to a
    timeout or a malformed answer, is reported as ``None``. Only validated
    results are cached.

    A timed-out call cannot be interrupted: it keeps its worker until the
    oracle itself returns, so the oracle must enforce its own deadline (the
    OpenRouter client passes its timeout to requests). If all ``max_workers``
    are held by such calls, later calls time out until one frees up.
    """

    def __init__(
        self,
        oracle: Optional[Oracle],
        cache: Optional[ExtractionCache] = None,
        body_max_chars: int = 2000,
        timeout: Optional[float] = 15.0,
        max_workers: int = 4,
    ):
        self.oracle = oracle
        self.cache = cache if cache is not None else ExtractionCache()
        self.body_max_chars = body_max_chars
        self.timeout = timeout
        self.max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        if oracle is not None:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="oracle"
            )

    def extract(self, sender: str, subject: str, body: str) -> Optional[ExtractionResult]:
        """Classify and extract one message, or None if that is not possible."""
        if self.oracle is None:
            logger.debug("No oracle configured, skipping extraction")
            return None

        try:
            sender, subject, body = _as_text(sender), _as_text(subject), _as_text(body)

            key = self.cache.key_for(subject, body)
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Cache hit for message: {subject[:50]}")
                return cached

            prompt = build_extraction_prompt(sender, subject, body, self.body_max_chars)
            content = self._invoke(prompt)
            data = parse_oracle_json(content)
            result = ExtractionResult.model_validate(data)

        except FutureTimeout:
            logger.warning(f"Oracle timed out after {self.timeout}s: {subject[:50]}")
            return None
        except OracleError as e:
            logger.warning(f"Oracle unavailable: {e}")
            return None
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse oracle response as JSON: {e}")
            return None
        except ValidationError as e:
            logger.warning(f"Invalid oracle response: {e.error_count()} validation error(s)")
            return None
        except Exception as e:
            logger.warning(f"Extraction failed: {e}")
            return None

        self.cache.put(key, result)
        if result.is_job_email:
            logger.info(f"Oracle extracted: {result.company} - {result.job_title} ({result.status})")
        return result

    def _invoke(self, prompt: str) -> str:
        future = self._executor.submit(self.oracle.invoke, prompt)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeout:
            future.cancel()
            raise

    def clear_cache(self) -> None:
        """Forget cached results so the next call asks the oracle again."""
        self.cache.clear()

    def cache_stats(self) -> dict[str, int]:
        """Get the cache size and capacity."""
        return self.cache.stats()

    def close(self) -> None:
        """Release the oracle worker threads."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> "Extractor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
