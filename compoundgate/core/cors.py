from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from compoundgate.core.settings import get_settings


def add_cors_middleware(app: FastAPI) -> None:
    """Allow the owner/admin web clients to call the API with cookies."""
    settings = get_settings()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "User-Agent"],
        # Rate-limited OTP sends report their cool-down through this header
        expose_headers=["Retry-After"],
    )
