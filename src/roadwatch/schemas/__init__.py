"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .account import ProfileResponse, ProfileUpdateRequest
from .hazard import (
    ClassifyRequest,
    ClassifyResponse,
    CommentCreate,
    CommentResponse,
    HazardCreate,
    HazardResponse,
    HazardStatusChange,
    HazardUpdate,
    LocationSchema,
    VoteResponse,
)
from .store import (
    RedeemResponse,
    RedemptionResponse,
    RedemptionStatusChange,
    StoreItemCreate,
    StoreItemResponse,
    StoreItemUpdate,
)

__all__ = [
    "ProfileResponse", "ProfileUpdateRequest",
    "ClassifyRequest", "ClassifyResponse",
    "CommentCreate", "CommentResponse",
    "HazardCreate", "HazardResponse", "HazardStatusChange", "HazardUpdate",
    "LocationSchema", "VoteResponse",
    "RedeemResponse", "RedemptionResponse", "RedemptionStatusChange",
    "StoreItemCreate", "StoreItemResponse", "StoreItemUpdate",
]
