"""
Background Task Helpers

Provides helper functions for background tasks that create their own database sessions.
Background tasks cannot use the endpoint's session as it's closed after the endpoint returns.
"""

import logging
from datetime import datetime
from typing import Optional

from shortcut_analytics.db import session as db_session
from shortcut_analytics.services.visit_ingestor import VisitIngestor

logger = logging.getLogger(__name__)


async def record_visit_background(
    shortcut_name: str,
    referrer: Optional[str] = None,
    user_agent: Optional[str] = None,
    visited_at: Optional[datetime] = None
) -> None:
    """
    Background task to record a visit after a redirect was served.

    Creates its own database session as endpoint session is closed.
    Failures are logged; the visitor has already been redirected.

    Args:
        shortcut_name: The shortcut that was resolved
        referrer: Referer header of the redirect request
        user_agent: User-Agent header of the redirect request
        visited_at: Time the redirect was served
    """
    try:
        async with db_session.async_session_maker() as session:
            ingestor = VisitIngestor(session)
            await ingestor.record_visit(
                shortcut_name=shortcut_name,
                referrer=referrer,
                user_agent=user_agent,
                timestamp=visited_at
            )
    except Exception as e:
        logger.error(
            f"Failed to record visit for {shortcut_name}: {str(e)}",
            exc_info=True
        )
