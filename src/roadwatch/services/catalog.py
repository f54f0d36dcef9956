"""Rewards catalog administration and redemption listings."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from roadwatch.models import Account, Redemption, RedemptionStatus, StoreItem
from roadwatch.services.errors import NotAuthorized, NotFound
from roadwatch.services.policy import Action, can_act_on
from roadwatch.services.unit_of_work import unit_of_work

__all__ = [
    "list_available_items",
    "list_all_items",
    "create_item",
    "update_item",
    "delete_item",
    "list_user_redemptions",
    "list_pending_redemptions",
]

logger = logging.getLogger(__name__)

ITEM_FIELDS = frozenset({"name", "description", "token_cost", "available", "image_url"})


def _require_admin(actor: Account, action: Action) -> None:
    if not can_act_on(actor, StoreItem(), action):
        raise NotAuthorized()


def list_available_items(db: Session) -> list[StoreItem]:
    """Return redeemable items, cheapest first."""
    return list(
        db.execute(
            select(StoreItem)
            .where(StoreItem.available.is_(True))
            .order_by(StoreItem.token_cost.asc(), StoreItem.name.asc())
        ).scalars()
    )


def list_all_items(db: Session, actor: Account) -> list[StoreItem]:
    """Return every item including unavailable ones (admin only)."""
    _require_admin(actor, Action.UPDATE)
    return list(db.execute(select(StoreItem).order_by(StoreItem.created_at.desc())).scalars())


def create_item(
    db: Session,
    actor: Account,
    *,
    name: str,
    description: str,
    token_cost: int,
    image_url: str | None = None,
    available: bool = True,
) -> StoreItem:
    """Add an item to the catalog."""
    _require_admin(actor, Action.CREATE)
    if token_cost <= 0:
        raise ValueError("Token cost must be positive")

    item = StoreItem(
        name=name,
        description=description,
        token_cost=token_cost,
        image_url=image_url or None,
        available=available,
    )
    with unit_of_work(db, "create_item"):
        db.add(item)
    logger.info("Store item %s created by %s", item.id, actor.id)
    return item


def update_item(db: Session, actor: Account, item_id: str, changes: dict[str, Any]) -> StoreItem:
    """Apply a partial update to a catalog item.

    Repricing never affects redemptions already made; they keep the cost
    they were charged.
    """
    _require_admin(actor, Action.UPDATE)
    unknown = set(changes) - ITEM_FIELDS
    if unknown:
        raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")
    if "token_cost" in changes and changes["token_cost"] <= 0:
        raise ValueError("Token cost must be positive")

    with unit_of_work(db, "update_item"):
        item = db.get(StoreItem, item_id)
        if item is None:
            raise NotFound("Store item")
        for key, value in changes.items():
            setattr(item, key, value)
    return item


def delete_item(db: Session, actor: Account, item_id: str) -> bool:
    """Remove an item from the catalog.

    Items that already have redemptions are retired (marked unavailable)
    instead of deleted so the redemption history stays intact.

    Returns:
        True if the row was deleted, False if it was retired.
    """
    _require_admin(actor, Action.DELETE)
    with unit_of_work(db, "delete_item"):
        item = db.get(StoreItem, item_id)
        if item is None:
            raise NotFound("Store item")
        referenced = db.execute(
            select(func.count()).select_from(Redemption).where(Redemption.item_id == item_id)
        ).scalar_one()
        if referenced:
            item.available = False
            deleted = False
        else:
            db.delete(item)
            deleted = True
    logger.info("Store item %s %s by %s", item_id, "deleted" if deleted else "retired", actor.id)
    return deleted


def list_user_redemptions(db: Session, actor: Account, user_id: str) -> list[Redemption]:
    """Return a user's redemption history, newest first."""
    if not can_act_on(actor, Redemption(user_id=user_id), Action.READ):
        raise NotAuthorized()
    return list(
        db.execute(
            select(Redemption)
            .where(Redemption.user_id == user_id)
            .order_by(Redemption.created_at.desc())
        ).scalars()
    )


def list_pending_redemptions(db: Session, actor: Account) -> list[Redemption]:
    """Return pending redemptions oldest first (admin only)."""
    if not can_act_on(actor, Redemption(), Action.TRANSITION):
        raise NotAuthorized()
    return list(
        db.execute(
            select(Redemption)
            .where(Redemption.status == RedemptionStatus.PENDING.value)
            .order_by(Redemption.created_at.asc())
        ).scalars()
    )
