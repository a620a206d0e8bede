"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.

Security Considerations:
- Shortcut names are used in queries and URL paths, so the alphabet is restricted
- Links are limited to http/https to prevent javascript: and file: redirects
- Length limits prevent oversized rows
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Iterable, Optional
from urllib.parse import urlparse

MAX_NAME_LENGTH = 64
MAX_LINK_LENGTH = 2048
MAX_REFERRER_LENGTH = 2048
MAX_REQUEST_ID_LENGTH = 128
MAX_TAG_LENGTH = 64
MAX_TAGS = 32

_NAME_PATTERN = re.compile(r'^[0-9a-zA-Z_-]+$')


def sanitize_shortcut_name(name: str) -> Optional[str]:
    """
    Sanitize and validate a shortcut name.

    Names may contain letters, digits, '-' and '_'.

    Args:
        name: The shortcut name to sanitize

    Returns:
        Sanitized name if valid, None otherwise
    """
    if not name or not isinstance(name, str):
        return None

    name = name.strip()

    if not name or len(name) > MAX_NAME_LENGTH:
        return None

    if not _NAME_PATTERN.match(name):
        return None

    return name


def is_valid_link(link: str) -> bool:
    """
    Validate a shortcut target link.

    Checks that the link uses http/https and has a host.

    Args:
        link: The URL string to validate

    Returns:
        True if valid and safe, False otherwise
    """
    if not link or not isinstance(link, str):
        return False

    if len(link) > MAX_LINK_LENGTH:
        return False

    try:
        result = urlparse(link)
    except ValueError:
        return False

    if result.scheme.lower() not in {'http', 'https'}:
        return False

    return bool(result.hostname)


def normalize_referrer(referrer: Optional[str]) -> Optional[str]:
    """
    Normalize a Referer header value for storage.

    The referrer is kept as sent (no host normalization) apart from surrounding
    whitespace. Empty and blank values become None and oversized values are
    truncated to the column width.
    """
    if not referrer or not isinstance(referrer, str):
        return None
    referrer = referrer.strip()
    if not referrer:
        return None
    return referrer[:MAX_REFERRER_LENGTH]


def normalize_tags(tags: Optional[Iterable[str]]) -> list[str]:
    """
    Clean a list of shortcut tags.

    Whitespace is stripped, blank and repeated tags are dropped and the first
    occurrence order is kept.

    Raises:
        ValueError: If a tag is too long or there are too many tags
    """
    cleaned: list[str] = []
    for tag in tags or []:
        if not isinstance(tag, str):
            raise ValueError(f"Tags must be strings, got {tag!r}")
        tag = tag.strip()
        if not tag or tag in cleaned:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Tag longer than {MAX_TAG_LENGTH} characters: {tag[:16]}...")
        cleaned.append(tag)
    if len(cleaned) > MAX_TAGS:
        raise ValueError(f"At most {MAX_TAGS} tags are allowed")
    return cleaned


def coerce_timestamp(value: Any, now: Optional[datetime] = None) -> datetime:
    """
    Turn a client supplied visit timestamp into an aware UTC datetime.

    Accepts datetimes (naive values are taken as UTC), epoch seconds and
    ISO-8601 strings. Missing, negative, non-finite or unparseable values
    fall back to ``now`` (the ingestion time).

    Args:
        value: Raw timestamp from the caller
        now: Ingestion time; defaults to the current UTC time

    Returns:
        Timezone-aware datetime in UTC
    """
    if now is None:
        now = datetime.now(timezone.utc)

    if value is None or isinstance(value, bool):
        return now

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        if value.timestamp() < 0:
            return now
        return value.astimezone(timezone.utc)

    if isinstance(value, (int, float)):
        return _from_epoch(value, now)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return now
        try:
            return _from_epoch(float(text), now)
        except ValueError:
            pass
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return now
        return coerce_timestamp(parsed, now)

    return now


def _from_epoch(seconds: float, now: datetime) -> datetime:
    if not math.isfinite(seconds) or seconds < 0:
        return now
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return now
