"""
FastAPI Endpoints for the Shortcut Analytics Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Request validation (Pydantic models)
- Rate limiting
- Error handling and HTTP responses
- Delegating to service layer

Design Principles:
- Thin endpoints: Only validation and rate limiting
- Service layer: All business logic
- Error handling: NotFound -> 404, storage down -> 503
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shortcut_analytics.api.schemas import (
    AnalyticsResponse,
    ShortcutCreateRequest,
    ShortcutListResponse,
    ShortcutResponse,
    ShortcutUpdateRequest,
    VisitRequest,
    VisitResponse,
)
from shortcut_analytics.core.exceptions import (
    InvalidShortcutError,
    ShortcutAlreadyExistsError,
    ShortcutNotFoundError,
    StorageUnavailableError,
)
from shortcut_analytics.core.rate_limit import RATE_LIMITS, limiter
from shortcut_analytics.core.setting import settings
from shortcut_analytics.core.validators import sanitize_shortcut_name
from shortcut_analytics.db.models import utcnow
from shortcut_analytics.db.session import get_session
from shortcut_analytics.services.analytics_service import AnalyticsQueryService
from shortcut_analytics.services.background_tasks import record_visit_background
from shortcut_analytics.services.redirect_service import RedirectService
from shortcut_analytics.services.shortcut_service import ShortcutService
from shortcut_analytics.services.visit_ingestor import VisitIngestor

router = APIRouter(prefix="/api/v1")

redirect_router = APIRouter()


def require_valid_name(name: str) -> str:
    """Return the sanitized shortcut name or raise a 404 for malformed names."""
    sanitized = sanitize_shortcut_name(name)
    if not sanitized:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Shortcut '{name}' not found"
        )
    return sanitized


def not_found(e: ShortcutNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def unavailable(e: StorageUnavailableError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.post(
    "/shortcuts",
    response_model=ShortcutResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a shortcut"
)
@limiter.limit(RATE_LIMITS["write"])
async def create_shortcut(
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    body: ShortcutCreateRequest,
    session: AsyncSession = Depends(get_session)
) -> ShortcutResponse:
    try:
        shortcut = await ShortcutService(session).create_shortcut(
            name=body.name,
            link=body.link,
            title=body.title,
            description=body.description,
            tags=body.tags
        )
    except InvalidShortcutError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ShortcutAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except StorageUnavailableError as e:
        raise unavailable(e)

    return ShortcutResponse.from_shortcut(shortcut)


@router.get(
    "/shortcuts",
    response_model=ShortcutListResponse,
    summary="List shortcuts"
)
@limiter.limit(RATE_LIMITS["read"])
async def list_shortcuts(
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> ShortcutListResponse:
    service = ShortcutService(session)
    try:
        shortcuts = await service.list_shortcuts()
        view_counts = await service.get_view_counts(shortcut.name for shortcut in shortcuts)
    except StorageUnavailableError as e:
        raise unavailable(e)
    return ShortcutListResponse(
        shortcuts=[
            ShortcutResponse.from_shortcut(shortcut, view_counts[shortcut.name])
            for shortcut in shortcuts
        ]
    )


@router.get(
    "/shortcuts/{name}",
    response_model=ShortcutResponse,
    summary="Get a shortcut"
)
@limiter.limit(RATE_LIMITS["read"])
async def get_shortcut(
    name: str,
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> ShortcutResponse:
    name = require_valid_name(name)
    service = ShortcutService(session)
    try:
        shortcut = await service.require_shortcut(name)
        view_count = await service.get_view_count(shortcut.name)
    except ShortcutNotFoundError as e:
        raise not_found(e)
    except StorageUnavailableError as e:
        raise unavailable(e)
    return ShortcutResponse.from_shortcut(shortcut, view_count)


@router.patch(
    "/shortcuts/{name}",
    response_model=ShortcutResponse,
    summary="Update a shortcut",
    description="Only the fields present in the body are changed"
)
@limiter.limit(RATE_LIMITS["write"])
async def update_shortcut(
    name: str,
    request: Request,
    body: ShortcutUpdateRequest,
    session: AsyncSession = Depends(get_session)
) -> ShortcutResponse:
    """
    Partially update a shortcut.

    Raises:
        HTTPException 400: If no fields are given or a value is invalid
        HTTPException 404: If the shortcut does not exist
        HTTPException 409: If renaming to a name that is taken
    """
    name = require_valid_name(name)
    service = ShortcutService(session)
    try:
        shortcut = await service.update_shortcut(name, body.changes())
        view_count = await service.get_view_count(shortcut.name)
    except InvalidShortcutError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ShortcutNotFoundError as e:
        raise not_found(e)
    except ShortcutAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except StorageUnavailableError as e:
        raise unavailable(e)
    return ShortcutResponse.from_shortcut(shortcut, view_count)


@router.delete(
    "/shortcuts/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a shortcut and its visits"
)
@limiter.limit(RATE_LIMITS["write"])
async def delete_shortcut(
    name: str,
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> Response:
    name = require_valid_name(name)
    try:
        await ShortcutService(session).delete_shortcut(name)
    except ShortcutNotFoundError as e:
        raise not_found(e)
    except StorageUnavailableError as e:
        raise unavailable(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/shortcuts/{name}/visits",
    response_model=VisitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Record a shortcut visit",
    description="Ingestion boundary for redirect handlers that live outside this service"
)
@limiter.limit(RATE_LIMITS["ingest"])
async def record_visit(
    name: str,
    request: Request,
    body: VisitRequest,
    session: AsyncSession = Depends(get_session)
) -> VisitResponse:
    """
    Record one visit of a shortcut.

    Raises:
        HTTPException 404: If the shortcut does not exist
        HTTPException 503: If the event store is unavailable (safe to retry with request_id)
    """
    name = require_valid_name(name)
    try:
        visit = await VisitIngestor(session).record_visit(
            shortcut_name=name,
            referrer=body.referrer,
            user_agent=body.user_agent,
            timestamp=body.timestamp,
            request_id=body.request_id
        )
    except ShortcutNotFoundError as e:
        raise not_found(e)
    except StorageUnavailableError as e:
        raise unavailable(e)

    return VisitResponse(
        id=visit.id,
        shortcut_name=visit.shortcut_name,
        visited_at=visit.visited_at,
        referrer=visit.referrer,
        browser_name=visit.browser_name,
        os_name=visit.os_name
    )


@router.get(
    "/shortcuts/{name}/analytics",
    response_model=AnalyticsResponse,
    summary="Get shortcut analytics",
    description="Visit counts grouped by referrer, browser and operating system"
)
@limiter.limit(RATE_LIMITS["read"])
async def get_shortcut_analytics(
    name: str,
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> AnalyticsResponse:
    """
    Get analytics for a shortcut.

    Raises:
        HTTPException 404: If the shortcut does not exist
        HTTPException 503: If the event store is unavailable
    """
    name = require_valid_name(name)
    try:
        snapshot = await AnalyticsQueryService(session).get_shortcut_analytics(name)
    except ShortcutNotFoundError as e:
        raise not_found(e)
    except StorageUnavailableError as e:
        raise unavailable(e)
    return AnalyticsResponse.from_snapshot(snapshot)


@redirect_router.get(
    f"/{settings.SHORTCUT_PATH_PREFIX.strip('/')}/{{name}}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to the shortcut link"
)
@limiter.limit(RATE_LIMITS["redirect"])
async def redirect_to_link(
    name: str,
    request: Request,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session)
) -> RedirectResponse:
    """
    Redirect to the link of a shortcut and record the visit in the background.

    Raises:
        HTTPException 404: If the shortcut does not exist
        HTTPException 429: If rate limit exceeded
    """
    name = require_valid_name(name)

    try:
        link = await RedirectService(session).get_redirect_url(name)
    except StorageUnavailableError as e:
        raise unavailable(e)

    if not link:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Shortcut '{name}' not found"
        )

    background_tasks.add_task(
        record_visit_background,
        shortcut_name=name,
        referrer=request.headers.get("Referer"),
        user_agent=request.headers.get("User-Agent"),
        visited_at=utcnow()
    )

    return RedirectResponse(url=link, status_code=status.HTTP_302_FOUND)
