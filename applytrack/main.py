"""Command line entry point for syncing applications from exported messages."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml
from filelock import FileLock, Timeout
from pydantic import ValidationError

from .config import Config, load_config
from .models import Message
from .pipeline import build_pipeline


def setup_logging(config: Config) -> None:
    """Configure logging for the application."""
    config.log_dir.mkdir(parents=True, exist_ok=True)
    log_file = config.log_dir / "app.log"

    level = getattr(logging, config.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout),
        ],
    )


def load_messages(path: Path) -> tuple[list[Message], int]:
    """Read a JSON array of normalized messages.

    Records that fail validation are logged and skipped. Returns the valid
    messages and the number of records skipped.
    """
    with open(path) as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array of messages")

    logger = logging.getLogger(__name__)
    messages = []
    invalid = 0
    for index, item in enumerate(data):
        try:
            messages.append(Message.model_validate(item))
        except ValidationError as e:
            logger.warning(
                f"Skipping invalid message record #{index}: "
                f"{e.error_count()} validation error(s)"
            )
            invalid += 1

    return messages, invalid


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="applytrack",
        description="Extract job applications from a batch of mailbox messages.",
    )
    parser.add_argument("messages", type=Path, help="JSON file of messages to sync")
    parser.add_argument("--config", type=Path, default=None, help="path to config.yaml")
    parser.add_argument("--user", default=None, help="user id to sync for")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point with concurrency protection."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
        setup_logging(config)
    except FileNotFoundError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except (ValidationError, yaml.YAMLError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    logger = logging.getLogger(__name__)

    try:
        messages, invalid = load_messages(args.messages)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read messages from {args.messages}: {e}")
        return 1

    user_id = args.user or config.default_user_id

    try:
        with FileLock(str(config.lock_path), timeout=10):
            logger.info("Acquired lock, starting sync")
            pipeline = build_pipeline(config)
            try:
                stats = pipeline.sync(messages, user_id)
                # Skipped records count as seen and failed
                stats.messages_seen += invalid
                stats.errors += invalid
                if invalid:
                    logger.warning(f"{invalid} invalid message record(s) were skipped")
            finally:
                pipeline.close()
            return 0 if stats.errors == 0 else 1

    except Timeout:
        logger.warning("Could not acquire lock - another instance is running")
        return 0

    except Exception as e:
        logger.exception(f"Sync failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
