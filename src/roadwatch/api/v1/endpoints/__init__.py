# src/roadwatch/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .accounts import router as accounts_router
from .hazards import router as hazards_router
from .store import router as store_router

__all__ = [
    "accounts_router",
    "hazards_router",
    "store_router",
]
