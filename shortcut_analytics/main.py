"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes (shortcut registry, visit ingestion, analytics, redirects)
- Middleware (logging, CORS)
- Rate limiting
- Table creation on startup for local deployments

Run with:
    uvicorn shortcut_analytics.main:app
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shortcut_analytics.api import endpoints
from shortcut_analytics.core.rate_limit import limiter
from shortcut_analytics.core.setting import settings
from shortcut_analytics.db.session import init_models
from shortcut_analytics.middleware.logging import add_logging_middleware, configure_logging

logger = logging.getLogger(__name__)

configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title="Shortcut Analytics Service",
    description="Shortcut registry with visit ingestion and referrer/browser/OS analytics",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Health"])
async def root():
    """Service information."""
    return {
        "message": "Shortcut Analytics Service",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}


app.include_router(endpoints.router, tags=["Shortcuts"])
app.include_router(endpoints.redirect_router, tags=["Redirect"])


@app.on_event("startup")
async def startup_event():
    """Create missing tables when enabled."""
    if settings.AUTO_CREATE_TABLES:
        await init_models()
        logger.info("Database tables ensured")
