"""Rewards store endpoints for the RoadWatch API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from roadwatch.api.v1.dependencies import AdminUserDep, CurrentUserDep, EngineDep, SessionDep
from roadwatch.models import Account, Redemption, StoreItem
from roadwatch.schemas.store import (
    RedeemResponse,
    RedemptionResponse,
    RedemptionStatusChange,
    StoreItemCreate,
    StoreItemResponse,
    StoreItemUpdate,
)
from roadwatch.services import catalog

router = APIRouter(prefix="/store", tags=["store"])


@router.get("/items", response_model=list[StoreItemResponse])
def list_items(db: SessionDep) -> list[StoreItem]:
    """List redeemable items, cheapest first."""
    return catalog.list_available_items(db)


@router.get("/items/all", response_model=list[StoreItemResponse])
def list_all_items(admin: AdminUserDep, db: SessionDep) -> list[StoreItem]:
    """List every catalog item including unavailable ones (admin only)."""
    return catalog.list_all_items(db, admin)


@router.post("/items", response_model=StoreItemResponse, status_code=status.HTTP_201_CREATED)
def create_item(item_data: StoreItemCreate, admin: AdminUserDep, db: SessionDep) -> StoreItem:
    """Add an item to the catalog (admin only)."""
    return catalog.create_item(db, admin, **item_data.model_dump())


@router.patch("/items/{item_id}", response_model=StoreItemResponse)
def update_item(
    item_id: str,
    item_data: StoreItemUpdate,
    admin: AdminUserDep,
    db: SessionDep,
) -> StoreItem:
    """Edit a catalog item (admin only)."""
    changes = item_data.model_dump(exclude_unset=True)
    if any(changes.get(key) is None for key in ("name", "token_cost", "available") if key in changes):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="name, token_cost and available cannot be null",
        )
    return catalog.update_item(db, admin, item_id, changes)


@router.delete("/items/{item_id}")
def delete_item(item_id: str, admin: AdminUserDep, db: SessionDep) -> dict[str, bool]:
    """Delete an item, or retire it if it has been redeemed before (admin only)."""
    return {"deleted": catalog.delete_item(db, admin, item_id)}


@router.post(
    "/items/{item_id}/redeem",
    response_model=RedeemResponse,
    status_code=status.HTTP_201_CREATED,
)
def redeem_item(
    item_id: str,
    current_user: CurrentUserDep,
    engine: EngineDep,
    db: SessionDep,
) -> RedeemResponse:
    """Spend tokens on an item; creates a pending redemption."""
    redemption = engine.redeem_item(current_user.id, item_id)
    account = db.get(Account, current_user.id)
    return RedeemResponse(
        balance=account.tokens if account else 0,
        redemption=RedemptionResponse.model_validate(redemption),
    )


@router.get("/redemptions/mine", response_model=list[RedemptionResponse])
def list_my_redemptions(current_user: CurrentUserDep, db: SessionDep) -> list[Redemption]:
    """Return the caller's redemption history, newest first."""
    return catalog.list_user_redemptions(db, current_user, current_user.id)


@router.get("/redemptions/pending", response_model=list[RedemptionResponse])
def list_pending_redemptions(current_user: CurrentUserDep, db: SessionDep) -> list[Redemption]:
    """Return pending redemptions, oldest first (admin only)."""
    return catalog.list_pending_redemptions(db, current_user)


@router.post("/redemptions/{redemption_id}/status", response_model=RedemptionResponse)
def change_redemption_status(
    redemption_id: str,
    status_data: RedemptionStatusChange,
    current_user: CurrentUserDep,
    engine: EngineDep,
) -> Redemption:
    """Fulfil or cancel a pending redemption (admin only)."""
    return engine.transition_redemption(redemption_id, status_data.status, current_user.id)
