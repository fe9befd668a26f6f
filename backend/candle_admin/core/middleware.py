"""
CORS middleware — lets the admin dashboard origin call the API.

Origins come from CORS_ALLOWED_ORIGINS (comma-separated, "*" by default).
Version: 1.0.0
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from candle_admin.core.config import get_settings


def apply_cors(app: FastAPI) -> None:
    origins = get_settings().cors_allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject credentials with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
