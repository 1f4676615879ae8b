"""
Marketplace Backend API - Main Application.

FastAPI application with CORS enabled for frontend communication.
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="Marketplace Backend API",
    description="REST API for listing, browsing and purchasing items with an internal balance",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Comma-separated list of allowed origins; "*" allows all (development only)
allowed_origins = [
    origin.strip() for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
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
        "service": "marketplace-backend-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Marketplace Backend API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import balance, categories, items, purchases, users

app.include_router(users.router, prefix="/api/v1", tags=["Users"])
app.include_router(balance.router, prefix="/api/v1", tags=["Balance"])
app.include_router(items.router, prefix="/api/v1", tags=["Items"])
app.include_router(categories.router, prefix="/api/v1", tags=["Categories"])
app.include_router(purchases.router, prefix="/api/v1", tags=["Purchases"])
