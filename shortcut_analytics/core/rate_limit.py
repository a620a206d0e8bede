"""
Rate Limiting Configuration

This module provides rate limiting functionality for API endpoints.

Design Decisions:
- Uses slowapi for rate limiting (lightweight, FastAPI-compatible)
- Separate limits for writes, reads, ingestion and redirects
- IP-based limiting
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from shortcut_analytics.core.setting import settings

limiter = Limiter(key_func=get_remote_address)

# Format: "count/period" (e.g., "10/minute" means 10 requests per minute)
RATE_LIMITS = {
    "write": settings.RATE_LIMIT_WRITE,
    "read": settings.RATE_LIMIT_READ,
    "ingest": settings.RATE_LIMIT_INGEST,
    "redirect": settings.RATE_LIMIT_REDIRECT,
}
