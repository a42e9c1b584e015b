"""
Sync service route modules.

This package contains modular route definitions for the sync service.
Each module handles a specific area of functionality.
"""

from .applications import router as applications_router
from .contacts import router as contacts_router
from .dashboard import router as dashboard_router

__all__ = [
    "applications_router",
    "contacts_router",
    "dashboard_router",
]
