"""Centralized CORS configuration for the backend services."""

import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


# Used in production when CORS_ALLOWED_ORIGINS is not set
PRODUCTION_ORIGINS = [
    "https://iicl-blog.onrender.com",
    "http://localhost:3000",
]


def get_allowed_origins() -> list[str]:
    """
    Origins allowed to call the API.

    Development allows any origin. Production uses CORS_ALLOWED_ORIGINS
    (comma separated) or the defaults above, plus FRONTEND_URL if set.
    """
    env = os.getenv("ENVIRONMENT", "development")
    if env != "production":
        return ["*"]

    configured = os.getenv("CORS_ALLOWED_ORIGINS", "")
    origins = [o.strip().rstrip("/") for o in configured.split(",") if o.strip()]
    if not origins:
        origins = list(PRODUCTION_ORIGINS)

    frontend_url = os.getenv("FRONTEND_URL")
    if frontend_url:
        clean_url = frontend_url.rstrip("/")
        if clean_url not in origins:
            origins.append(clean_url)

    return origins


def setup_cors(app: FastAPI, expose_headers: Optional[list[str]] = None) -> None:
    """Add CORS middleware to a FastAPI app."""
    origins = get_allowed_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers refuse credentials with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=expose_headers or [],
    )
