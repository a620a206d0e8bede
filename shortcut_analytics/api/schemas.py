"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.

Design Principles:
- Request models: Define input shape; business validation stays in services
- Response models: Define output structure
- Analytics fields are served under their camelCase names (referenceData, ...)
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from shortcut_analytics.services.aggregator import AnalyticsSnapshot


class ShortcutCreateRequest(BaseModel):
    """Request model for shortcut creation."""
    name: str = Field(..., description="Unique shortcut name, e.g. 'docs'")
    link: str = Field(..., description="Target URL of the shortcut")
    title: str = Field(default="", description="Optional display title")
    description: str = Field(default="", description="Optional description")
    tags: list[str] = Field(default_factory=list, description="Optional labels")


class ShortcutUpdateRequest(BaseModel):
    """
    Request model for a partial shortcut update.

    Only the fields present in the body are written (they form the update
    mask); omitted fields keep their stored values.
    """
    name: Optional[str] = Field(default=None, description="New shortcut name; visits stay attached")
    link: Optional[str] = Field(default=None, description="New target URL")
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ShortcutResponse(BaseModel):
    """Response model for a single shortcut."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    link: str
    title: str
    description: str
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    view_count: int = Field(default=0, description="Number of recorded visits")

    @classmethod
    def from_shortcut(cls, shortcut, view_count: int = 0) -> "ShortcutResponse":
        return cls.model_validate(shortcut).model_copy(update={"view_count": view_count})


class ShortcutListResponse(BaseModel):
    """Response model for the shortcut listing."""
    shortcuts: list[ShortcutResponse]


class VisitRequest(BaseModel):
    """
    Request model for visit ingestion.

    Every field is optional. The timestamp is accepted as sent and coerced by
    the ingestor, so a malformed value never rejects the visit.
    """
    referrer: Optional[str] = Field(default=None, description="Referer header, empty for direct visits")
    user_agent: Optional[str] = Field(default=None, description="Raw User-Agent header")
    timestamp: Any = Field(
        default=None,
        description="Visit time as epoch seconds or ISO-8601, defaults to ingestion time"
    )
    request_id: Optional[str] = Field(default=None, description="Idempotency key for retries")


class VisitResponse(BaseModel):
    """Response model for a recorded visit."""
    id: int
    shortcut_name: str
    visited_at: datetime
    referrer: Optional[str]
    browser_name: str
    os_name: str


class AnalyticsItemResponse(BaseModel):
    name: str
    count: int


class AnalyticsResponse(BaseModel):
    """Response model for the analytics endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    reference_data: list[AnalyticsItemResponse] = Field(default_factory=list, alias="referenceData")
    browser_data: list[AnalyticsItemResponse] = Field(default_factory=list, alias="browserData")
    device_data: list[AnalyticsItemResponse] = Field(default_factory=list, alias="deviceData")

    @classmethod
    def from_snapshot(cls, snapshot: AnalyticsSnapshot) -> "AnalyticsResponse":
        return cls.model_validate(snapshot.to_dict())
