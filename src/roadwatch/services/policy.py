"""Authorization predicate evaluated at the start of every engine operation.

The rules mirror the row-level policies of the hosted schema but live in
plain Python so they can be tested without a database.
"""

from __future__ import annotations

import enum
from typing import Any

from roadwatch.models import (
    Account,
    HazardComment,
    HazardReport,
    HazardVote,
    Redemption,
    StoreItem,
)


class Action(str, enum.Enum):
    """Operations an actor may attempt on a resource."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    TRANSITION = "transition"
    REDEEM = "redeem"
    VOTE = "vote"
    COMMENT = "comment"


def _owner_of(resource: Any) -> str | None:
    if isinstance(resource, Account):
        return resource.id
    if isinstance(resource, HazardReport):
        return resource.reported_by
    if isinstance(resource, HazardVote | HazardComment | Redemption):
        return resource.user_id
    return None


def can_act_on(actor: Account | None, resource: Any, action: Action) -> bool:
    """Return True when ``actor`` may perform ``action`` on ``resource``.

    Args:
        actor: The authenticated account, or None for anonymous callers.
        resource: A model instance (persisted or transient) being acted on.
        action: The attempted action.
    """
    if actor is None:
        return False

    if action is Action.READ:
        if isinstance(resource, Redemption):
            return actor.is_admin or resource.user_id == actor.id
        return True

    owner_id = _owner_of(resource)
    is_owner = owner_id is not None and owner_id == actor.id

    if isinstance(resource, Account):
        # Profile edits are self-service only; admins do not edit other profiles.
        return action is Action.UPDATE and is_owner

    if isinstance(resource, StoreItem):
        if action is Action.REDEEM:
            return True
        return actor.is_admin

    if action is Action.TRANSITION:
        return actor.is_admin

    if isinstance(resource, HazardVote):
        # Votes are always cast by the voter themselves.
        return action in (Action.CREATE, Action.DELETE, Action.VOTE) and is_owner

    if isinstance(resource, HazardReport):
        if action in (Action.VOTE, Action.COMMENT):
            return True
        if action is Action.CREATE:
            return is_owner
        return is_owner or actor.is_admin

    if isinstance(resource, HazardComment):
        if action is Action.CREATE:
            return is_owner
        return action is Action.DELETE and (is_owner or actor.is_admin)

    if isinstance(resource, Redemption):
        if action is Action.CREATE:
            return is_owner or actor.is_admin
        return False

    return False
