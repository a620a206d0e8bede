"""
Visit Ingestion Service

This service records visit events for shortcuts. It is the only writer of
the visit_events table.

Design Decisions:
- Append-only: one immutable row per visit, never updated
- Classification happens here, so aggregation only groups stored columns
- Malformed input (User-Agent, timestamp) degrades instead of failing
- Writes for the same shortcut are serialized with a per-shortcut asyncio.Lock;
  different shortcuts never wait on each other
- Aggregation is not triggered from here, analytics are computed on read
"""

import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shortcut_analytics.core.exceptions import (
    DatabaseError,
    ShortcutNotFoundError,
    StorageUnavailableError,
)
from shortcut_analytics.core.user_agent import classify_user_agent
from shortcut_analytics.core.validators import (
    MAX_REQUEST_ID_LENGTH,
    coerce_timestamp,
    normalize_referrer,
)
from shortcut_analytics.db.models import VisitEvent
from shortcut_analytics.services.locks import ShortcutLocks, shortcut_locks
from shortcut_analytics.services.shortcut_service import ShortcutService

logger = logging.getLogger(__name__)


class VisitIngestor:
    """
    Records visits of existing shortcuts.

    Designed to be called from background tasks so the redirect response is
    never delayed by the insert.
    """

    def __init__(self, session: AsyncSession, locks: Optional[ShortcutLocks] = None):
        """
        Initialize the ingestor with a database session.

        Args:
            session: Async database session for database operations
            locks: Lock registry, defaults to the process-wide one
        """
        self.session = session
        self.locks = locks if locks is not None else shortcut_locks
        self.shortcut_service = ShortcutService(session)

    async def record_visit(
        self,
        shortcut_name: str,
        referrer: Optional[str] = None,
        user_agent: Optional[str] = None,
        timestamp: Any = None,
        request_id: Optional[str] = None
    ) -> VisitEvent:
        """
        Record one visit of a shortcut.

        Args:
            shortcut_name: Name of the visited shortcut
            referrer: Referer header, None or "" for direct visits
            user_agent: Raw User-Agent header
            timestamp: Visit time; unusable values fall back to ingestion time
            request_id: Optional idempotency key for retried calls

        Returns:
            The stored VisitEvent (the earlier one if request_id was seen before)

        Raises:
            ShortcutNotFoundError: If the shortcut does not exist
            StorageUnavailableError: If the event store cannot be written
        """
        await self.shortcut_service.require_shortcut(shortcut_name)

        if request_id:
            request_id = request_id[:MAX_REQUEST_ID_LENGTH]
            existing = await self._find_by_request_id(shortcut_name, request_id)
            if existing is not None:
                logger.debug(f"Duplicate visit request_id={request_id} for {shortcut_name}")
                return existing
        else:
            request_id = None

        ua_info = classify_user_agent(user_agent)
        visit = VisitEvent(
            shortcut_name=shortcut_name,
            visited_at=coerce_timestamp(timestamp),
            referrer=normalize_referrer(referrer),
            browser_name=ua_info.browser_name,
            os_name=ua_info.os_name,
            request_id=request_id
        )

        async with self.locks.get(shortcut_name):
            try:
                self.session.add(visit)
                await self.session.flush()
                await self.session.commit()
            except IntegrityError as e:
                await self.session.rollback()
                if request_id:
                    existing = await self._find_by_request_id(shortcut_name, request_id)
                    if existing is not None:
                        return existing
                if await self.shortcut_service.get_shortcut(shortcut_name) is None:
                    raise ShortcutNotFoundError(shortcut_name) from e
                raise DatabaseError(
                    "Failed to record visit: database constraint violation",
                    original_error=e
                ) from e
            except DBAPIError as e:
                await self.session.rollback()
                logger.error(f"Event store unavailable while recording visit for {shortcut_name}: {e}")
                raise StorageUnavailableError("record_visit", original_error=e) from e

        return visit

    async def _find_by_request_id(self, shortcut_name: str, request_id: str) -> Optional[VisitEvent]:
        # request_id is unique per shortcut, not globally
        statement = select(VisitEvent).where(
            VisitEvent.shortcut_name == shortcut_name,
            VisitEvent.request_id == request_id
        )
        try:
            result = await self.session.execute(statement)
        except DBAPIError as e:
            raise StorageUnavailableError("record_visit", original_error=e) from e
        return result.scalar_one_or_none()
