"""Shared API dependencies, the single import point for all routers.

Re-exports database session and authentication dependencies so that router
modules can import everything they need from one place::

    from parkpulse.api.deps import get_db, get_current_identity
"""

from parkpulse.auth.dependencies import get_current_identity
from parkpulse.database import get_db

__all__ = [
    "get_db",
    "get_current_identity",
]
