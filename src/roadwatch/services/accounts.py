"""Helpers for provisioning accounts and self-service profile edits."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from roadwatch.core.settings import settings
from roadwatch.models import Account
from roadwatch.services.errors import NotAuthorized, StorageError
from roadwatch.services.policy import Action, can_act_on
from roadwatch.services.unit_of_work import unit_of_work

__all__ = [
    "get_account",
    "get_or_create_account",
    "update_profile",
]

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset({"full_name", "avatar_url"})


def get_account(db: Session, account_id: str) -> Account | None:
    """Return a single account by primary key."""
    return db.get(Account, account_id)


def get_or_create_account(
    db: Session,
    account_id: str,
    *,
    full_name: str | None = None,
    avatar_url: str | None = None,
) -> Account:
    """Return the account for ``account_id``, creating it on first authentication.

    New accounts start with zero tokens and no admin flag.
    """
    account = db.get(Account, account_id)
    if account is not None:
        return account

    account = Account(
        id=account_id,
        full_name=full_name or settings.default_display_name,
        avatar_url=avatar_url,
        tokens=0,
        is_admin=False,
    )
    try:
        with unit_of_work(db, "provision_account"):
            db.add(account)
    except StorageError as err:
        # A concurrent first request may have inserted the same id.
        if isinstance(err.__cause__, IntegrityError):
            existing = db.get(Account, account_id)
            if existing is not None:
                return existing
        raise
    logger.info("Provisioned account %s", account_id)
    return account


def update_profile(db: Session, actor: Account, changes: dict[str, Any]) -> Account:
    """Apply name/avatar edits to the actor's own profile.

    Balance and admin flag are never writable through this path.
    """
    if not can_act_on(actor, actor, Action.UPDATE):
        raise NotAuthorized()
    unknown = set(changes) - PROFILE_FIELDS
    if unknown:
        raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")

    with unit_of_work(db, "update_profile"):
        for key, value in changes.items():
            setattr(actor, key, value)
        db.add(actor)
    db.refresh(actor)
    return actor
