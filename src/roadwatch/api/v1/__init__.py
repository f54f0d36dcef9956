# src/roadwatch/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import accounts_router, hazards_router, store_router

__all__ = [
    "accounts_router",
    "hazards_router",
    "store_router",
]
