"""Centralized dependency type aliases for FastAPI routes.

Import shared dependencies from this single module:
    from compoundgate.core.deps import SessionDep, SettingsDep, StoreDep
"""

from typing import Annotated

from fastapi import Depends
from sqlmodel import Session

from compoundgate.core.settings import Settings, get_settings
from compoundgate.db.engine import get_session
from compoundgate.db.store import StoreDep

# Database session
SessionDep = Annotated[Session, Depends(get_session)]

# Application settings
SettingsDep = Annotated[Settings, Depends(get_settings)]

__all__ = ["SessionDep", "SettingsDep", "StoreDep"]
