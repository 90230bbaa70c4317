"""Centralized singleton accessors for shared clients.

All getters are idempotent and safe for concurrent reads (locking handled in source modules).
"""

from __future__ import annotations

# Re-export existing singletons implemented in their own modules to avoid circular imports.
from ..db.data_service import get_data_service, reset_data_service  # noqa: F401
from ..db.database import get_data_service_from_env  # noqa: F401

__all__ = [
    "get_data_service",
    "get_data_service_from_env",
    "reset_data_service",
]
