"""
Warranty Engine API - Main Application.

FastAPI application with CORS enabled for frontend communication.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.logging_config import configure_logging
from services.config import load_settings

configure_logging(load_settings().log_level)

# Create FastAPI application
app = FastAPI(
    title="Warranty Engine API",
    description="REST API for issuing warranties, recording claims and reporting on expirations",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS - Allow all origins for development
# TODO: Restrict origins to the shop dashboard domain in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
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
        "service": "warranty-engine-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Warranty Engine API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import claims, reports, settings, warranties

app.include_router(warranties.router, prefix="/api/v1", tags=["Warranties"])
app.include_router(claims.router, prefix="/api/v1", tags=["Claims"])
app.include_router(reports.router, prefix="/api/v1", tags=["Reports"])
app.include_router(settings.router, prefix="/api/v1", tags=["Settings"])
