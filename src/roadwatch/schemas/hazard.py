"""Hazard report, vote and comment schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

HazardTypeLiteral = Literal["pothole", "waterlogging", "other"]
HazardStatusLiteral = Literal["active", "investigating", "resolved"]


class LocationSchema(BaseModel):
    """Coordinates and human-readable address of a hazard."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: str = Field(..., min_length=1, max_length=500)


class HazardCreate(BaseModel):
    """Schema for submitting a hazard report.

    ``hazard_type`` accepts any label (for example the classifier output);
    it is normalized to pothole, waterlogging or other.
    """

    hazard_type: str = Field("other", max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    location: LocationSchema
    image_url: str | None = Field(None, max_length=2048)
    submission_key: str | None = Field(
        None,
        min_length=8,
        max_length=64,
        description="Client idempotency key; retries with the same key are not rewarded twice",
    )


class HazardUpdate(BaseModel):
    """Owner edit of the non-status fields of a report."""

    type: HazardTypeLiteral | None = None
    description: str | None = Field(None, min_length=1, max_length=5000)
    location: LocationSchema | None = None
    image_url: str | None = Field(None, max_length=2048)

    model_config = ConfigDict(extra="forbid")

    def to_changes(self) -> dict[str, object]:
        """Flatten into column changes, keeping only the fields that were sent."""
        data = self.model_dump(exclude_unset=True)
        location = data.pop("location", None)
        if location is not None:
            data.update(location)
        return data


class HazardStatusChange(BaseModel):
    """Admin request to move a report along its lifecycle."""

    status: HazardStatusLiteral


class HazardResponse(BaseModel):
    """Hazard report returned by the API."""

    id: str
    type: HazardTypeLiteral
    description: str
    location: LocationSchema
    reported_by: str
    reporter_name: str | None = None
    reported_at: datetime
    status: HazardStatusLiteral
    votes: int
    comments: int
    image_url: str | None = None
    token_reward: int

    @model_validator(mode="before")
    @classmethod
    def _nest_location(cls, data: object) -> object:
        if not isinstance(data, dict):
            extracted: dict[str, object | None] = {
                field_name: getattr(data, field_name, None) for field_name in cls.model_fields
            }
            extracted["location"] = {
                "lat": getattr(data, "lat", None),
                "lng": getattr(data, "lng", None),
                "address": getattr(data, "address", None),
            }
            extracted["reported_at"] = getattr(data, "created_at", None)
            data = extracted
        return data

    model_config = ConfigDict(from_attributes=True)


class VoteResponse(BaseModel):
    """Vote state of the caller after a toggle."""

    voted: bool
    votes: int


class CommentCreate(BaseModel):
    """Schema for posting a comment."""

    body: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    """Comment returned by the API."""

    id: str
    hazard_id: str
    user_id: str
    body: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClassifyRequest(BaseModel):
    """Image to classify."""

    image_url: str = Field(..., min_length=1, max_length=2048)


class ClassifyResponse(BaseModel):
    """Classifier outcome reduced to a hazard type."""

    label: str
    hazard_type: HazardTypeLiteral
