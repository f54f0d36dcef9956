# src/roadwatch/models/__init__.py
"""SQLAlchemy models for the RoadWatch application."""

from .account import Account
from .hazard import HazardComment, HazardReport, HazardStatus, HazardType, HazardVote
from .store import Redemption, RedemptionStatus, StoreItem

__all__ = [
    "Account",
    "HazardComment", "HazardReport", "HazardStatus", "HazardType", "HazardVote",
    "Redemption", "RedemptionStatus", "StoreItem",
]
