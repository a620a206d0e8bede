"""
Analytics Query Service

This service answers analytics queries for a shortcut.
Separated from the aggregator so the existence check and the aggregation
stay independent.

Design Decisions:
- Unknown shortcut is an error, an existing shortcut without visits is not
- Read-only: nothing is cached or written, repeated calls return equal snapshots
- Authorization is the caller's job
"""

from sqlalchemy.ext.asyncio import AsyncSession

from shortcut_analytics.services.aggregator import AnalyticsAggregator, AnalyticsSnapshot
from shortcut_analytics.services.shortcut_service import ShortcutService


class AnalyticsQueryService:
    """
    Service for retrieving shortcut analytics.

    Combines the shortcut registry (does it exist?) with the aggregator
    (what do its visits look like?).
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize the query service with a database session.

        Args:
            session: Async database session for database operations
        """
        self.session = session
        self.shortcut_service = ShortcutService(session)
        self.aggregator = AnalyticsAggregator(session)

    async def get_shortcut_analytics(self, shortcut_name: str) -> AnalyticsSnapshot:
        """
        Get referrer, browser and OS breakdowns for a shortcut.

        Returns:
            AnalyticsSnapshot, with empty lists when the shortcut has no visits

        Raises:
            ShortcutNotFoundError: If the shortcut does not exist
            StorageUnavailableError: If the event store cannot be read
        """
        shortcut = await self.shortcut_service.require_shortcut(shortcut_name)
        return await self.aggregator.aggregate(shortcut.name)
