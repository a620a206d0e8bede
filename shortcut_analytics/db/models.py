"""
Database Models for the Shortcut Analytics Service

This module defines the SQLModel database schemas for:
- Shortcut: A named alias that redirects to a target link
- VisitEvent: One recorded resolution of a shortcut, the source of all analytics

Design Decisions:
- VisitEvent rows are append-only; analytics are derived from them on read
- Browser and OS are classified at ingest time, the raw User-Agent is not stored
- Index on shortcut_name for per-shortcut scans (the aggregation path)
- request_id is unique per shortcut, so retries are deduped without one
  shortcut's ids ever shadowing another's visits
- Events reference shortcuts.name with ON UPDATE CASCADE, so renaming a
  shortcut keeps its history
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlmodel import Column, Field, SQLModel


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Shortcut(SQLModel, table=True):
    """
    Shortcut registry table.

    Fields:
    - id: Auto-incrementing primary key
    - name: Unique public identifier, used in /s/{name} and every API path
    - link: Target URL of the redirect
    - title / description: Free-form metadata shown by clients
    - tags: List of free-form labels
    - created_at: Timestamp when the shortcut was created
    """
    __tablename__ = "shortcuts"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(
        sa_column=Column(String(64), nullable=False, unique=True, index=True),
        max_length=64
    )
    link: str = Field(sa_column=Column(Text, nullable=False))
    title: str = Field(default="", sa_column=Column(String(256), nullable=False, default=""))
    description: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )


class VisitEvent(SQLModel, table=True):
    """
    Visit event table.

    Each row is a single immutable visit of a shortcut:
    - shortcut_name: Foreign key to shortcuts.name
    - visited_at: When the visit happened (client supplied or ingestion time)
    - referrer: Referer header as sent, None for direct visits
    - browser_name / os_name: Classified from the User-Agent, "Unknown" if unrecognised
    - request_id: Optional client supplied id used to dedupe retried ingests,
      unique together with shortcut_name
    """
    __tablename__ = "visit_events"
    __table_args__ = (
        UniqueConstraint("shortcut_name", "request_id", name="uq_visit_events_shortcut_request_id"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    shortcut_name: str = Field(
        sa_column=Column(
            String(64),
            ForeignKey("shortcuts.name", ondelete="CASCADE", onupdate="CASCADE"),
            nullable=False,
            index=True
        )
    )
    visited_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    referrer: Optional[str] = Field(
        default=None,
        sa_column=Column(String(2048), nullable=True)
    )
    browser_name: str = Field(
        default="Unknown",
        sa_column=Column(String(64), nullable=False, default="Unknown")
    )
    os_name: str = Field(
        default="Unknown",
        sa_column=Column(String(64), nullable=False, default="Unknown")
    )
    request_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(128), nullable=True)
    )
