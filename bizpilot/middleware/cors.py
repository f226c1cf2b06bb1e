"""CORS configuration for the browser client."""
import logging

from fastapi.middleware.cors import CORSMiddleware

from bizpilot.config import Settings

logger = logging.getLogger(__name__)

# Base allowed origins for development
DEV_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


def add_cors_middleware(app, settings: Settings):
    """Add CORS middleware allowing CLIENT_URL (plus local dev origins outside production)."""
    origins = [] if settings.environment == "production" else list(DEV_ORIGINS)
    if settings.client_url and settings.client_url not in origins:
        origins.append(settings.client_url)

    logger.info(f"[CORS] Environment: {settings.environment}, allowed origins: {origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
