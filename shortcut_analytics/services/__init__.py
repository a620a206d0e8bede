"""
Services module for business logic separation.

This module contains service classes that encapsulate business logic,
keeping it separate from API endpoints and database models:
- ShortcutService: shortcut registry
- VisitIngestor: records visit events
- AnalyticsAggregator: groups visit events into ranked breakdowns
- AnalyticsQueryService: answers analytics queries for a shortcut
"""
