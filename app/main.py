# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the LockedIn API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    LockedInException,
    lockedin_exception_handler,
    validation_exception_handler,
)
from app.routers import favicons, follows, github, health, posts, profiles, sponsors, startups
from app.auth import routes as auth_routes
from lib.favicon import FaviconOutcomeCache

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: log config, create the process-wide favicon outcome cache
    - Shutdown: log
    """
    logger.info(f"Starting LockedIn API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    app.state.favicon_cache = FaviconOutcomeCache()

    yield

    logger.info("Shutting down LockedIn API")


# Create FastAPI application
app = FastAPI(
    title="LockedIn API",
    description="""
## Accountability Network for Builders

LockedIn lets builders post public commitments, track daily streaks, follow
each other and showcase their startups.

### Key Features

- **Profiles & Streaks**: Daily activity feeds a consecutive-day streak
- **Posts**: Commitments, progress, shipped work and revenue updates
- **Startups**: Showcase pages with milestones and resolved favicons
- **Favicons**: Ordered icon sources with a fallback chain and outcome cache
- **Sponsors**: Polar-backed sponsor plans
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Verify Supabase JWTs and get the current user"},
        {"name": "Profiles", "description": "Profiles, streaks and stats"},
        {"name": "Builders", "description": "Public builders directory"},
        {"name": "Posts", "description": "Feed, likes, comments and tags"},
        {"name": "Follows", "description": "Follow graph and suggestions"},
        {"name": "Startups", "description": "Startup pages and milestones"},
        {"name": "Favicons", "description": "Favicon candidates and fallback chain"},
        {"name": "GitHub", "description": "Contribution calendars and contributors"},
        {"name": "Sponsors", "description": "Sponsor plans, checkout and Polar webhooks"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(LockedInException)
async def handle_lockedin_exception(request: Request, exc: LockedInException):
    """Handle custom LockedIn exceptions."""
    return await lockedin_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1/auth",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Profile endpoints
app.include_router(
    profiles.router,
    prefix="/api/v1/profiles",
    tags=["Profiles"]
)

# Builders directory
app.include_router(
    profiles.builders_router,
    prefix="/api/v1/builders",
    tags=["Builders"]
)

# Feed endpoints
app.include_router(
    posts.router,
    prefix="/api/v1/posts",
    tags=["Posts"]
)

# Follow graph endpoints
app.include_router(
    follows.router,
    prefix="/api/v1/follows",
    tags=["Follows"]
)

# Startup endpoints
app.include_router(
    startups.router,
    prefix="/api/v1/startups",
    tags=["Startups"]
)

# Favicon endpoints
app.include_router(
    favicons.router,
    prefix="/api/v1/favicons",
    tags=["Favicons"]
)

# GitHub endpoints
app.include_router(
    github.router,
    prefix="/api/v1/github",
    tags=["GitHub"]
)

# Sponsorship endpoints (/sponsors, /checkout, /portal, /webhook/polar)
app.include_router(
    sponsors.router,
    prefix="/api/v1",
    tags=["Sponsors"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "LockedIn API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
