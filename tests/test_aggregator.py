"""
Tests for analytics aggregation.

The pure helpers are tested without a database; AnalyticsAggregator is
tested against the SQLite test database.
"""

import random
from collections import Counter

import pytest

from shortcut_analytics.core.exceptions import StorageUnavailableError
from shortcut_analytics.db.models import VisitEvent
from shortcut_analytics.services.aggregator import (
    DIRECT,
    AnalyticsAggregator,
    AnalyticsItem,
    AnalyticsSnapshot,
    aggregate_events,
    build_snapshot,
    rank_counts,
)
from shortcut_analytics.services.visit_ingestor import VisitIngestor

from conftest import CHROME_WINDOWS, FIREFOX_LINUX, SAFARI_IPHONE, raise_storage_error


def make_event(referrer=None, browser="Chrome", os_name="Windows"):
    return VisitEvent(shortcut_name="docs", referrer=referrer, browser_name=browser, os_name=os_name)


def assert_ranked(items):
    for a, b in zip(items, items[1:]):
        assert a.count > b.count or (a.count == b.count and a.name <= b.name), (a, b)


class TestRankCounts:
    def test_descending_count_then_ascending_name(self):
        ranked = rank_counts(Counter({"b": 2, "a": 2, "c": 5, "d": 1}))
        assert [item.name for item in ranked] == ["c", "a", "b", "d"]

    def test_zero_counts_are_dropped(self):
        assert rank_counts(Counter({"a": 0, "b": 1})) == (AnalyticsItem("b", 1),)

    def test_empty(self):
        assert rank_counts(Counter()) == ()


class TestBuildSnapshot:
    def test_empty_referrers_collapse_into_direct(self):
        events = [make_event(None), make_event(""), make_event(None)]
        events += [make_event("https://x.com"), make_event("https://x.com")]
        snapshot = aggregate_events(events)
        assert snapshot.to_dict()["referenceData"] == [
            {"name": DIRECT, "count": 3},
            {"name": "https://x.com", "count": 2},
        ]

    def test_blank_stored_referrer_counts_as_direct(self):
        snapshot = build_snapshot([(" ", "Chrome", "Windows", 2), (None, "Chrome", "Windows", 1)])
        assert snapshot.reference_data == (AnalyticsItem(DIRECT, 3),)

    def test_referrers_are_not_host_normalized(self):
        snapshot = aggregate_events([make_event("https://x.com/a"), make_event("https://x.com/b")])
        assert [item.name for item in snapshot.reference_data] == ["https://x.com/a", "https://x.com/b"]

    def test_missing_client_names_collapse_into_unknown(self):
        events = [make_event(browser="", os_name=""), make_event(browser=None, os_name=None)]
        events.append(make_event(browser="Unknown", os_name="Unknown"))
        snapshot = aggregate_events(events)
        assert snapshot.browser_data == (AnalyticsItem("Unknown", 3),)
        assert snapshot.device_data == (AnalyticsItem("Unknown", 3),)

    def test_grouped_rows_are_merged(self):
        rows = [(None, "Chrome", "Windows", 2), ("", "Chrome", "macOS", 3), ("https://a.io", "Safari", "iOS", 1)]
        snapshot = build_snapshot(rows)
        assert snapshot.reference_data == (AnalyticsItem(DIRECT, 5), AnalyticsItem("https://a.io", 1))
        assert snapshot.browser_data == (AnalyticsItem("Chrome", 5), AnalyticsItem("Safari", 1))
        assert snapshot.device_data == (
            AnalyticsItem("macOS", 3),
            AnalyticsItem("Windows", 2),
            AnalyticsItem("iOS", 1),
        )

    def test_no_events(self):
        snapshot = aggregate_events([])
        assert snapshot == AnalyticsSnapshot()
        assert snapshot.to_dict() == {"referenceData": [], "browserData": [], "deviceData": []}

    def test_sums_names_and_order_on_random_events(self):
        rng = random.Random(1234)
        referrers = [None, "", "https://a.io", "https://b.io", "https://c.io/x"]
        browsers = ["Chrome", "Firefox", "Safari", "", "Unknown"]
        systems = ["Windows", "macOS", "iOS", None, "Linux"]
        for size in [1, 7, 50, 300]:
            events = [
                make_event(rng.choice(referrers), rng.choice(browsers), rng.choice(systems))
                for _ in range(size)
            ]
            snapshot = aggregate_events(events)
            for items in (snapshot.reference_data, snapshot.browser_data, snapshot.device_data):
                assert sum(item.count for item in items) == size
                names = [item.name for item in items]
                assert len(names) == len(set(names))
                assert_ranked(items)
            assert aggregate_events(events) == snapshot


class TestAnalyticsAggregator:
    @pytest.mark.asyncio
    async def test_aggregate_stored_visits(self, session, shortcut):
        ingestor = VisitIngestor(session)
        for _ in range(3):
            await ingestor.record_visit("docs", referrer=None, user_agent=CHROME_WINDOWS)
        await ingestor.record_visit("docs", referrer="https://x.com", user_agent=SAFARI_IPHONE)
        await ingestor.record_visit("docs", referrer="https://x.com", user_agent=FIREFOX_LINUX)

        snapshot = await AnalyticsAggregator(session).aggregate("docs")

        assert snapshot.to_dict() == {
            "referenceData": [
                {"name": "Direct", "count": 3},
                {"name": "https://x.com", "count": 2},
            ],
            "browserData": [
                {"name": "Chrome", "count": 3},
                {"name": "Firefox", "count": 1},
                {"name": "Safari", "count": 1},
            ],
            "deviceData": [
                {"name": "Windows", "count": 3},
                {"name": "Linux", "count": 1},
                {"name": "iOS", "count": 1},
            ],
        }

    @pytest.mark.asyncio
    async def test_only_direct_visits(self, session, shortcut):
        ingestor = VisitIngestor(session)
        for referrer in [None, "", "   ", ""]:
            await ingestor.record_visit("docs", referrer=referrer)

        snapshot = await AnalyticsAggregator(session).aggregate("docs")

        assert snapshot.reference_data == (AnalyticsItem(DIRECT, 4),)
        assert snapshot.browser_data == (AnalyticsItem("Unknown", 4),)
        assert snapshot.device_data == (AnalyticsItem("Unknown", 4),)

    @pytest.mark.asyncio
    async def test_zero_events(self, session, shortcut):
        snapshot = await AnalyticsAggregator(session).aggregate("docs")
        assert snapshot == AnalyticsSnapshot()

    @pytest.mark.asyncio
    async def test_aggregate_is_idempotent(self, session, shortcut):
        ingestor = VisitIngestor(session)
        await ingestor.record_visit("docs", referrer="https://b.io", user_agent=CHROME_WINDOWS)
        await ingestor.record_visit("docs", referrer="https://a.io", user_agent=FIREFOX_LINUX)

        aggregator = AnalyticsAggregator(session)
        first = await aggregator.aggregate("docs")
        second = await aggregator.aggregate("docs")

        assert first == second
        assert first.to_dict() == second.to_dict()
        assert [item.name for item in first.reference_data] == ["https://a.io", "https://b.io"]

    @pytest.mark.asyncio
    async def test_unreadable_event_store(self, session, shortcut, monkeypatch):
        monkeypatch.setattr(session, "execute", raise_storage_error)

        with pytest.raises(StorageUnavailableError) as exc_info:
            await AnalyticsAggregator(session).aggregate("docs")

        assert exc_info.value.operation == "aggregate"
