"""Utility functions for knowledge-store."""

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Union

import dateparser
from loguru import logger

LOG_FILE_NAME = "knowledge-store.log"

TagsInput = Union[Iterable[str], str, None]


def setup_logging(
    log_dir: Optional[Path] = None,
    log_level: str = "INFO",
    log_to_file: bool = False,
    log_to_stderr: bool = False,
) -> None:  # pragma: no cover
    """Configure loguru sinks.

    Removes the default stderr sink first so repeated calls do not duplicate output.
    Nothing is ever written to stdout.

    Args:
        log_dir: Directory for the rotating log file
        log_level: Minimum level for every sink
        log_to_file: Write to <log_dir>/knowledge-store.log
        log_to_stderr: Also write to stderr
    """
    logger.remove()

    if log_to_file and log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_dir / LOG_FILE_NAME),
            level=log_level,
            rotation="10 MB",
            retention=5,
            backtrace=True,
            diagnose=False,
            enqueue=False,
            colorize=False,
        )

    if log_to_stderr:
        logger.add(sys.stderr, level=log_level, backtrace=True, diagnose=False, colorize=True)

    logger.info(f"Logging configured at level {log_level}")


def parse_tags(tags: TagsInput) -> list[str]:
    """Normalize tags into a sorted list of unique, non-empty strings.

    Accepts a list of strings or a single comma-separated string. Each tag is
    trimmed and empty entries are dropped. Tags are case-sensitive.

    Examples:
        >>> parse_tags(" b , a,,a ")
        ['a', 'b']
        >>> parse_tags(["x", " x", ""])
        ['x']
    """
    if tags is None:
        return []

    if isinstance(tags, str):
        raw = tags.split(",")
    else:
        raw = []
        for tag in tags:
            if not isinstance(tag, str):
                raise ValueError(f"Tags must be strings, got {type(tag).__name__}")
            raw.append(tag)

    return sorted({tag.strip() for tag in raw if tag and tag.strip()})


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime. Naive values are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_datetime(value: Union[datetime, str]) -> datetime:
    """Parse a datetime or date string into an aware UTC datetime.

    Strings may be ISO-8601 or natural language such as "3 days ago".

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return ensure_timezone_aware(value)

    text = value.strip()
    if not text:
        raise ValueError("Date must not be empty")

    try:
        parsed: Optional[datetime] = datetime.fromisoformat(text)
    except ValueError:
        parsed = dateparser.parse(text, settings={"TIMEZONE": "UTC", "TO_TIMEZONE": "UTC"})

    if parsed is None:
        raise ValueError(f"Could not parse date: {value}")
    return ensure_timezone_aware(parsed)
