"""API Routers for the DM ads dashboard."""

from .system import router as system_router
from .imports import router as imports_router
from .entries import router as entries_router
from .backup import router as backup_router

__all__ = [
    "system_router",
    "imports_router",
    "entries_router",
    "backup_router",
]
