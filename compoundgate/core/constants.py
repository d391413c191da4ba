"""
App-wide constants for route configuration.

This module provides a single source of truth for route prefixes, tags,
and common response definitions for API routes.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape


@dataclass(frozen=True)
class RouteConfig:
    """Configuration for a route group."""

    prefix: str
    tag: str


class Routes:
    """Route configurations for all API endpoints."""

    AUTH = RouteConfig(prefix="/auth", tag="auth")
    OWNERS = RouteConfig(prefix="/owners", tag="owners")
    INVITES = RouteConfig(prefix="/owners/invites", tag="invites")
    HEALTH = RouteConfig(prefix="/health", tag="health")


# Common response definitions for reuse across routers
# Use these when configuring APIRouter or individual endpoints
class CommonResponses:
    """Standard HTTP error response definitions for OpenAPI documentation."""

    UNAUTHORIZED: dict[int, dict[str, Any]] = {
        401: {"description": "Not authenticated or invalid credentials"}
    }
    FORBIDDEN: dict[int, dict[str, Any]] = {
        403: {"description": "Caller does not own the resource"}
    }
    NOT_FOUND: dict[int, dict[str, Any]] = {404: {"description": "Resource not found"}}
    BAD_REQUEST: dict[int, dict[str, Any]] = {
        400: {"description": "Invalid request data"}
    }
    BAD_GATEWAY: dict[int, dict[str, Any]] = {
        502: {"description": "Phone verification provider failed"}
    }


# Cookie carrying the Firebase session issued after OTP / password login
SESSION_COOKIE_NAME = "session"

# HTML Templates Directory
EmailTemplatesDir = Path(__file__).parent.parent / "templates" / "emails"

# Jinja2 environment for email templates (rendered at send time)
JinjaEmailTemplatesEnv = Environment(
    loader=FileSystemLoader(str(EmailTemplatesDir)),
    autoescape=select_autoescape(["html", "xml"]),
)
