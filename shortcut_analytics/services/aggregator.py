"""
Analytics Aggregator

Computes the ranked referrer / browser / OS breakdowns for one shortcut from
its visit events.

Design Decisions:
- Lazy aggregation: nothing is precomputed at ingest time
- A single GROUP BY over (referrer, browser_name, os_name) feeds all three
  lists, so they are always derived from the same read and sum to the same total
- Ranking is done in Python with an explicit (-count, name) key so the order is
  identical across databases and repeated calls
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from shortcut_analytics.core.exceptions import StorageUnavailableError
from shortcut_analytics.core.user_agent import UNKNOWN
from shortcut_analytics.db.models import VisitEvent

logger = logging.getLogger(__name__)

DIRECT = "Direct"


@dataclass(frozen=True)
class AnalyticsItem:
    """One bucket of a breakdown."""
    name: str
    count: int

    def to_dict(self) -> dict:
        return {"name": self.name, "count": self.count}


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Ranked visit breakdowns for one shortcut."""
    reference_data: tuple = field(default_factory=tuple)
    browser_data: tuple = field(default_factory=tuple)
    device_data: tuple = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return sum(item.count for item in self.reference_data)

    def to_dict(self) -> dict:
        """Convert to the JSON shape served by the analytics endpoint."""
        return {
            "referenceData": [item.to_dict() for item in self.reference_data],
            "browserData": [item.to_dict() for item in self.browser_data],
            "deviceData": [item.to_dict() for item in self.device_data],
        }


def referrer_bucket(referrer: Optional[str]) -> str:
    return referrer if referrer and referrer.strip() else DIRECT


def client_bucket(name: Optional[str]) -> str:
    return name if name else UNKNOWN


def rank_counts(counts: Counter) -> tuple:
    """
    Rank buckets by descending count, then ascending name.

    Zero counts are dropped.
    """
    ranked = sorted(
        ((name, count) for name, count in counts.items() if count > 0),
        key=lambda pair: (-pair[1], pair[0])
    )
    return tuple(AnalyticsItem(name=name, count=count) for name, count in ranked)


def build_snapshot(rows: Iterable[tuple]) -> AnalyticsSnapshot:
    """
    Fold (referrer, browser_name, os_name, count) rows into a snapshot.

    Rows may repeat a key (e.g. NULL and "" referrers arrive as separate
    groups); their counts are merged into one bucket.
    """
    references: Counter = Counter()
    browsers: Counter = Counter()
    devices: Counter = Counter()

    for referrer, browser_name, os_name, count in rows:
        references[referrer_bucket(referrer)] += count
        browsers[client_bucket(browser_name)] += count
        devices[client_bucket(os_name)] += count

    return AnalyticsSnapshot(
        reference_data=rank_counts(references),
        browser_data=rank_counts(browsers),
        device_data=rank_counts(devices),
    )


def aggregate_events(events: Iterable[VisitEvent]) -> AnalyticsSnapshot:
    """Aggregate already loaded visit events (one row per event)."""
    return build_snapshot(
        (event.referrer, event.browser_name, event.os_name, 1) for event in events
    )


class AnalyticsAggregator:
    """
    Read-only aggregation over the visit_events table.

    Does not check that the shortcut exists; an unknown name simply has no
    events. The query service adds the existence check.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def aggregate(self, shortcut_name: str) -> AnalyticsSnapshot:
        """
        Compute the analytics snapshot for a shortcut.

        Raises:
            StorageUnavailableError: If the event store cannot be read
        """
        statement = (
            select(
                VisitEvent.referrer,
                VisitEvent.browser_name,
                VisitEvent.os_name,
                func.count(VisitEvent.id)
            )
            .where(VisitEvent.shortcut_name == shortcut_name)
            .group_by(VisitEvent.referrer, VisitEvent.browser_name, VisitEvent.os_name)
        )

        try:
            result = await self.session.execute(statement)
            rows = result.all()
        except DBAPIError as e:
            logger.error(f"Event store unavailable while aggregating {shortcut_name}: {e}")
            raise StorageUnavailableError("aggregate", original_error=e) from e

        snapshot = build_snapshot(rows)
        logger.debug(
            f"Aggregated {snapshot.total} visits for {shortcut_name} "
            f"into {len(rows)} groups"
        )
        return snapshot
