"""Account/profile endpoints for the RoadWatch API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from roadwatch.api.v1.dependencies import CurrentUserDep, SessionDep
from roadwatch.models import Account
from roadwatch.schemas.account import ProfileResponse, ProfileUpdateRequest
from roadwatch.services.accounts import update_profile

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("/me", response_model=ProfileResponse)
def get_my_profile(current_user: CurrentUserDep) -> Account:
    """Return the caller's profile including the token balance."""
    return current_user


@router.patch("/me", response_model=ProfileResponse)
def update_my_profile(
    profile_data: ProfileUpdateRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Account:
    """Update the caller's display name or avatar."""
    changes = profile_data.model_dump(exclude_unset=True)
    if "full_name" in changes and changes["full_name"] is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Display name cannot be empty",
        )
    if not changes:
        return current_user
    return update_profile(db, current_user, changes)
