"""Logging setup for CompoundGate.

Everything goes to stdout so container runtimes collect it. Two record
families carry structured extras:

- request records from ``RequestLoggingMiddleware``
- auth audit records (identity resolution, device trust, step transitions)
  emitted under ``compoundgate.auth`` / ``compoundgate.user`` / ``compoundgate.device``

Configuration is env-driven because ``configure_logging`` runs before the
typed settings are loaded.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
import sys
from datetime import UTC, datetime
from typing import Any

REQUEST_FIELDS = (
    "method",
    "path",
    "query",
    "status_code",
    "duration_ms",
    "client_ip",
    "user_agent",
    "error_type",
)
AUDIT_FIELDS = ("user_id", "compound_id", "strategy", "next_step", "device_id")

_TRUTHY = frozenset({"1", "true", "t", "yes", "y", "on"})


def _env_flag(name: str, *, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with known request/audit extras lifted out."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        attrs = record.__dict__
        payload.update(
            {key: attrs[key] for key in REQUEST_FIELDS + AUDIT_FIELDS if key in attrs}
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _library_levels(level: str, *, uvicorn_access: bool) -> dict[str, dict]:
    return {
        "uvicorn": {"level": level, "propagate": True},
        "uvicorn.error": {"level": level, "propagate": True},
        "uvicorn.access": {
            "level": "INFO" if uvicorn_access else "WARNING",
            "propagate": True,
        },
        "httpx": {"level": os.getenv("HTTPX_LOG_LEVEL", "WARNING"), "propagate": True},
        "firebase_admin": {"level": "WARNING", "propagate": True},
        "sqlalchemy.engine": {
            "level": "INFO" if _env_flag("LOG_SQL", default=False) else "WARNING",
            "propagate": True,
        },
    }


def configure_logging() -> None:
    """Install the stdout handler and logger levels.

    Env vars:
    - LOG_LEVEL: root level (default INFO)
    - LOG_AUTH_LEVEL: level for the auth audit loggers (default LOG_LEVEL)
    - LOG_JSON: emit JSON lines (default false)
    - LOG_REQUESTS: per-request access log from our middleware (default true)
    - LOG_UVICORN_ACCESS: uvicorn's own access log; off by default while
      LOG_REQUESTS is on
    - LOG_SQL: echo SQLAlchemy statements (default false)
    """
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    auth_level = os.getenv("LOG_AUTH_LEVEL", level).upper()
    log_requests = _env_flag("LOG_REQUESTS", default=True)
    uvicorn_access = _env_flag("LOG_UVICORN_ACCESS", default=not log_requests)

    loggers = _library_levels(level, uvicorn_access=uvicorn_access)
    for name in ("compoundgate.auth", "compoundgate.user", "compoundgate.device"):
        loggers[name] = {"level": auth_level, "propagate": True}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "text": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                },
                "json": {"()": "compoundgate.core.logging.JsonFormatter"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": level,
                    "formatter": "json"
                    if _env_flag("LOG_JSON", default=False)
                    else "text",
                    "stream": sys.stdout,
                }
            },
            "root": {"handlers": ["console"], "level": level},
            "loggers": loggers,
        }
    )
