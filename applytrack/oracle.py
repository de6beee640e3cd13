"""Extraction oracle clients."""

import logging
import os
from abc import ABC, abstractmethod
from typing import Optional

import requests

from .config import Config
from .exceptions import OracleError

logger = logging.getLogger(__name__)

OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"
API_KEY_ENV = "OPENROUTER_API_KEY"


class Oracle(ABC):
    """A text-in, text-out extraction service."""

    @abstractmethod
    def invoke(self, prompt: str) -> str:
        """Send the prompt and return the raw response text."""


class OpenRouterOracle(Oracle):
    """Chat completion client for the OpenRouter API."""

    def __init__(
        self,
        api_key: str,
        model: str = "google/gemini-2.0-flash-001",
        timeout: float = 15.0,
        max_tokens: int = 1000,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens

    def invoke(self, prompt: str) -> str:
        try:
            response = requests.post(
                OPENROUTER_API_URL,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": prompt}],
                    "max_tokens": self.max_tokens,
                    "temperature": 0,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except requests.RequestException as e:
            raise OracleError(f"OpenRouter request failed: {e}") from e
        except ValueError as e:
            raise OracleError(f"OpenRouter returned a non-JSON body: {e}") from e

        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise OracleError(f"Unexpected OpenRouter response shape: {e}") from e

        if not isinstance(content, str):
            raise OracleError("OpenRouter response content is not text")
        return content


def get_oracle(config: Config) -> Optional[Oracle]:
    """Build the configured oracle, or None when no credential is set."""
    api_key = os.environ.get(API_KEY_ENV)
    if not api_key:
        logger.warning(f"{API_KEY_ENV} not set, running without the extraction oracle")
        return None

    return OpenRouterOracle(
        api_key=api_key,
        model=config.oracle_model,
        timeout=config.oracle_timeout,
        max_tokens=config.oracle_max_tokens,
    )
