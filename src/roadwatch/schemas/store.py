"""Store catalog and redemption schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class StoreItemCreate(BaseModel):
    """Admin request to add a catalog item."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=2000)
    token_cost: int = Field(..., gt=0)
    image_url: str | None = Field(None, max_length=2048)
    available: bool = True


class StoreItemUpdate(BaseModel):
    """Partial update of a catalog item."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    token_cost: int | None = Field(None, gt=0)
    image_url: str | None = Field(None, max_length=2048)
    available: bool | None = None

    model_config = ConfigDict(extra="forbid")


class StoreItemResponse(BaseModel):
    """Catalog item returned by the API."""

    id: str
    name: str
    description: str
    token_cost: int
    available: bool
    image_url: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RedemptionResponse(BaseModel):
    """Redemption record returned by the API."""

    id: str
    user_id: str
    item_id: str
    status: Literal["pending", "fulfilled", "cancelled"]
    token_cost: int
    created_at: datetime
    fulfilled_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class RedeemResponse(BaseModel):
    """Outcome of a successful redemption."""

    success: bool = True
    balance: int
    redemption: RedemptionResponse


class RedemptionStatusChange(BaseModel):
    """Admin request to fulfil or cancel a redemption."""

    status: Literal["pending", "fulfilled", "cancelled"]
