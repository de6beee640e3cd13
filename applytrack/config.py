"""Configuration management."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class ScoreWeights(BaseModel):
    """Points awarded by the confidence scorer."""

    oracle_base: int = 60
    fallback_base: int = 30
    company: int = 15
    role: int = 15
    status: int = 10


class Config(BaseModel):
    """Application configuration."""

    database_path: Path = Path("data/applications.sqlite")
    lock_path: Path = Path("/tmp/applytrack.lock")
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    default_user_id: str = "default_user"

    cache_max_size: int = Field(default=1000, ge=1)
    cache_key_length: int = Field(default=200, ge=1)
    body_max_chars: int = Field(default=2000, ge=1)

    oracle_model: str = "google/gemini-2.0-flash-001"
    oracle_timeout: float = Field(default=15.0, gt=0)
    oracle_max_tokens: int = 1000
    oracle_max_workers: int = Field(default=4, ge=1)

    similarity_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    heuristic_fallback: bool = False

    # None keeps the built-in lists in applytrack.gate
    job_keywords: Optional[list[str]] = None
    spam_keywords: Optional[list[str]] = None

    score_weights: ScoreWeights = Field(default_factory=ScoreWeights)


_config: Optional[Config] = None

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.yaml"


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file.

    Without an explicit path the previously loaded configuration is reused.
    """
    global _config

    if _config is not None and config_path is None:
        return _config

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}. "
            "Copy config/config.yaml.example to config/config.yaml and fill in your settings."
        )

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    _config = Config(**data)
    return _config


def get_config() -> Config:
    """Get the loaded configuration."""
    if _config is None:
        return load_config()
    return _config
