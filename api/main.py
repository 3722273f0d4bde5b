"""
Plans Fulfillment API - Main Application.

FastAPI application with CORS enabled for the storefront pages.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from services.settings import get_settings

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="Plans Fulfillment API",
    description="Watermarked plan delivery and signed model downloads for the furniture plans storefront",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Storefront pages are served from a different origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "plans-fulfillment-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Plans Fulfillment API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import downloads, licenses, webhook

app.include_router(webhook.router, tags=["Webhooks"])
app.include_router(downloads.router, tags=["Downloads"])
app.include_router(licenses.router, prefix="/api", tags=["Premium Content"])
