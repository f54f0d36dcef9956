"""Token economy engine.

Atomic operations over account balances, report rewards, vote/comment
counters and store redemptions. Each public method is one transaction:
it either applies completely or leaves nothing behind.

Locking order is always the account (balance) row first, then the rows that
depend on it, so concurrent operations by the same user serialize on that
single row and cannot deadlock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from roadwatch.core.settings import settings
from roadwatch.db.time import utcnow
from roadwatch.models import (
    Account,
    HazardComment,
    HazardReport,
    HazardStatus,
    HazardType,
    HazardVote,
    Redemption,
    RedemptionStatus,
    StoreItem,
)
from roadwatch.services.counters import apply_delta, saturating_sub
from roadwatch.services.errors import (
    InsufficientBalance,
    InvalidTransition,
    NotAuthorized,
    NotFound,
)
from roadwatch.services.policy import Action, can_act_on
from roadwatch.services.unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

HAZARD_TRANSITIONS: dict[HazardStatus, frozenset[HazardStatus]] = {
    HazardStatus.ACTIVE: frozenset({HazardStatus.INVESTIGATING, HazardStatus.RESOLVED}),
    HazardStatus.INVESTIGATING: frozenset({HazardStatus.RESOLVED}),
    HazardStatus.RESOLVED: frozenset(),
}

REDEMPTION_TRANSITIONS: dict[RedemptionStatus, frozenset[RedemptionStatus]] = {
    RedemptionStatus.PENDING: frozenset({RedemptionStatus.FULFILLED, RedemptionStatus.CANCELLED}),
    RedemptionStatus.FULFILLED: frozenset(),
    RedemptionStatus.CANCELLED: frozenset(),
}

# Fields a reporter (or an admin) may edit without going through a status transition.
EDITABLE_REPORT_FIELDS = frozenset({"type", "description", "lat", "lng", "address", "image_url"})


@dataclass(frozen=True)
class Location:
    """Where a hazard was observed."""

    lat: float
    lng: float
    address: str


class TokenEconomyEngine:
    """Applies token-economy mutations with consistency guarantees."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # ------------------------------------------------------------------ helpers

    def _load_actor(self, actor_id: str | None) -> Account:
        actor = self.session.get(Account, actor_id) if actor_id else None
        if actor is None:
            # Unknown identities get the same answer as unprivileged ones.
            raise NotAuthorized()
        return actor

    @staticmethod
    def _require(actor: Account, resource: Any, action: Action) -> None:
        if not can_act_on(actor, resource, action):
            raise NotAuthorized()

    def _lock_account(self, account_id: str) -> Account:
        account = self.session.execute(
            select(Account)
            .where(Account.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if account is None:
            raise NotFound("Account")
        return account

    def _get_report(self, report_id: str, *, lock: bool = False) -> HazardReport:
        stmt = select(HazardReport).where(HazardReport.id == report_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        report = self.session.execute(stmt).scalar_one_or_none()
        if report is None:
            raise NotFound("Hazard report")
        return report

    def _credit(self, account_id: str, amount: int) -> int:
        return apply_delta(self.session, Account.tokens, account_id, amount)

    def _debit(self, account_id: str, amount: int) -> int:
        """Deduct ``amount`` only if the balance covers it.

        The sufficiency check and the write are one conditional UPDATE, so
        two concurrent debits can never both pass against the same tokens.
        """
        result = self.session.execute(
            update(Account)
            .where(Account.id == account_id, Account.tokens >= amount)
            .values(tokens=saturating_sub(Account.tokens, amount))
            .execution_options(synchronize_session=False)
        )
        balance = self.session.execute(
            select(Account.tokens).where(Account.id == account_id)
        ).scalar_one()
        account = self.session.identity_map.get(self.session.identity_key(Account, account_id))
        if account is not None:
            self.session.expire(account, ["tokens"])
        if result.rowcount == 0:
            raise InsufficientBalance(balance=balance, required=amount)
        return balance

    # ------------------------------------------------------------- hazard reports

    def create_report(
        self,
        reporter_id: str,
        hazard_type: HazardType | str,
        description: str,
        location: Location,
        *,
        image_url: str | None = None,
        token_reward: int | None = None,
        submission_key: str | None = None,
    ) -> HazardReport:
        """Insert a hazard report and credit its reward in the same transaction.

        Args:
            reporter_id: Account submitting the report (also the acting user).
            hazard_type: One of the :class:`HazardType` values.
            description: Free-text description; must not be empty.
            location: Coordinates and address of the hazard.
            image_url: Optional reference to an uploaded photo.
            token_reward: Reward override; defaults to the configured amount.
            submission_key: Optional client idempotency key. A retry carrying a
                key that was already stored returns the original report and
                credits nothing.

        Returns:
            The persisted report.

        Raises:
            NotAuthorized: If the reporter account does not exist or a
                submission key belongs to another user.
            ValueError: If the type, description or reward is invalid.
        """
        kind = HazardType(hazard_type)
        if not description or not description.strip():
            raise ValueError("Description is required")
        reward = settings.default_report_reward if token_reward is None else token_reward
        if reward < 0:
            raise ValueError("Token reward cannot be negative")

        with unit_of_work(self.session, "create_report"):
            reporter = self._load_actor(reporter_id)
            self._lock_account(reporter.id)

            if submission_key:
                existing = self.session.execute(
                    select(HazardReport).where(HazardReport.submission_key == submission_key)
                ).scalar_one_or_none()
                if existing is not None:
                    if existing.reported_by != reporter.id:
                        raise NotAuthorized()
                    logger.info(
                        "Duplicate submission %s for report %s ignored",
                        submission_key,
                        existing.id,
                    )
                    return existing

            report = HazardReport(
                type=kind.value,
                description=description.strip(),
                lat=location.lat,
                lng=location.lng,
                address=location.address,
                reported_by=reporter.id,
                status=HazardStatus.ACTIVE.value,
                votes=0,
                comments=0,
                image_url=image_url or None,
                token_reward=reward,
                reward_credited=False,
                submission_key=submission_key,
            )
            self._require(reporter, report, Action.CREATE)
            self.session.add(report)
            self.session.flush()
            self._credit_report_reward(report.id)

        logger.info("Report %s created by %s (%s)", report.id, reporter_id, kind.value)
        return report

    def _credit_report_reward(self, report_id: str) -> bool:
        claimed = self.session.execute(
            update(HazardReport)
            .where(HazardReport.id == report_id, HazardReport.reward_credited.is_(False))
            .values(reward_credited=True)
            .execution_options(synchronize_session=False)
        )
        report = self.session.get(HazardReport, report_id, populate_existing=True)
        if report is None:
            raise NotFound("Hazard report")
        if claimed.rowcount == 0:
            logger.debug("Reward for report %s already credited", report_id)
            return False
        balance = self._credit(report.reported_by, report.token_reward)
        logger.info(
            "Credited %d tokens to %s for report %s (balance %d)",
            report.token_reward,
            report.reported_by,
            report_id,
            balance,
        )
        return True

    def credit_report_reward(self, report_id: str) -> bool:
        """Credit a report's reward to its reporter if not yet credited.

        Normally invoked by :meth:`create_report` inside the insert
        transaction. Calling it again for the same report is a no-op.

        Returns:
            True if tokens were credited by this call.
        """
        with unit_of_work(self.session, "credit_report_reward"):
            report = self._get_report(report_id)
            self._lock_account(report.reported_by)
            credited = self._credit_report_reward(report_id)
        return credited

    def update_report(
        self,
        report_id: str,
        acting_user_id: str,
        changes: dict[str, Any],
    ) -> HazardReport:
        """Edit the non-status fields of a report (owner or admin)."""
        unknown = set(changes) - EDITABLE_REPORT_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")

        with unit_of_work(self.session, "update_report"):
            actor = self._load_actor(acting_user_id)
            report = self._get_report(report_id, lock=True)
            self._require(actor, report, Action.UPDATE)
            for key, value in changes.items():
                if key == "type":
                    value = HazardType(value).value
                if key == "description" and not (value and str(value).strip()):
                    raise ValueError("Description is required")
                setattr(report, key, value)
        return report

    def transition_hazard_status(
        self,
        report_id: str,
        new_status: HazardStatus | str,
        acting_admin_id: str,
    ) -> HazardReport:
        """Move a report forward through active → investigating → resolved.

        Raises:
            NotAuthorized: If the actor is not an administrator.
            NotFound: If the report does not exist.
            InvalidTransition: If the move is not forward.
        """
        with unit_of_work(self.session, "transition_hazard_status"):
            actor = self._load_actor(acting_admin_id)
            self._require(actor, HazardReport(), Action.TRANSITION)
            report = self._get_report(report_id, lock=True)
            current = HazardStatus(report.status)
            try:
                target = HazardStatus(new_status)
            except ValueError as err:
                raise InvalidTransition(current.value, str(new_status)) from err
            if target not in HAZARD_TRANSITIONS[current]:
                raise InvalidTransition(current.value, target.value)
            report.status = target.value

        logger.info(
            "Report %s moved %s -> %s by %s",
            report_id,
            current.value,
            target.value,
            acting_admin_id,
        )
        return report

    # -------------------------------------------------------------- votes/comments

    def toggle_vote(
        self,
        user_id: str,
        report_id: str,
        acting_user_id: str | None = None,
    ) -> bool:
        """Add the user's vote if absent, remove it if present.

        Returns:
            True if the user holds a vote on the report afterwards.
        """
        with unit_of_work(self.session, "toggle_vote"):
            actor = self._load_actor(acting_user_id or user_id)
            self._require(actor, HazardVote(hazard_id=report_id, user_id=user_id), Action.VOTE)
            self._lock_account(user_id)
            self._get_report(report_id)

            existing = self.session.execute(
                select(HazardVote).where(
                    HazardVote.hazard_id == report_id,
                    HazardVote.user_id == user_id,
                )
            ).scalar_one_or_none()

            if existing is not None:
                self.session.delete(existing)
                self.session.flush()
                votes = apply_delta(self.session, HazardReport.votes, report_id, -1)
                voted = False
            else:
                self.session.add(HazardVote(hazard_id=report_id, user_id=user_id))
                self.session.flush()
                votes = apply_delta(self.session, HazardReport.votes, report_id, 1)
                voted = True

        logger.debug("Vote by %s on %s now %s (votes=%d)", user_id, report_id, voted, votes)
        return voted

    def has_voted(self, user_id: str, report_id: str) -> bool:
        """Return True if the user currently holds a vote on the report."""
        vote_id = self.session.execute(
            select(HazardVote.id).where(
                HazardVote.hazard_id == report_id,
                HazardVote.user_id == user_id,
            )
        ).scalar_one_or_none()
        return vote_id is not None

    def add_comment(self, user_id: str, report_id: str, body: str) -> HazardComment:
        """Append a comment and bump the report's comment counter."""
        if not body or not body.strip():
            raise ValueError("Comment cannot be empty")

        with unit_of_work(self.session, "add_comment"):
            actor = self._load_actor(user_id)
            self._lock_account(actor.id)
            report = self._get_report(report_id)
            self._require(actor, report, Action.COMMENT)
            comment = HazardComment(hazard_id=report_id, user_id=actor.id, body=body.strip())
            self._require(actor, comment, Action.CREATE)
            self.session.add(comment)
            self.session.flush()
            apply_delta(self.session, HazardReport.comments, report_id, 1)
        return comment

    def delete_comment(self, comment_id: str, acting_user_id: str) -> None:
        """Remove a comment (author or admin) and decrement the counter."""
        with unit_of_work(self.session, "delete_comment"):
            actor = self._load_actor(acting_user_id)
            comment = self.session.get(HazardComment, comment_id)
            if comment is None:
                raise NotFound("Comment")
            self._require(actor, comment, Action.DELETE)
            self._lock_account(comment.user_id)
            report_id = comment.hazard_id
            self.session.delete(comment)
            self.session.flush()
            apply_delta(self.session, HazardReport.comments, report_id, -1)

    # ------------------------------------------------------------------ store

    def redeem_item(
        self,
        user_id: str,
        item_id: str,
        acting_user_id: str | None = None,
    ) -> Redemption:
        """Exchange tokens for a store item.

        Deducts the item's cost and inserts a pending redemption in one
        transaction. The balance is re-checked here regardless of what the
        client displayed.

        Raises:
            NotAuthorized: If the actor may not redeem for ``user_id``.
            NotFound: If the account or item is missing, or the item is unavailable.
            InsufficientBalance: If the balance is below the item's cost.
        """
        with unit_of_work(self.session, "redeem_item"):
            actor = self._load_actor(acting_user_id or user_id)
            self._require(actor, Redemption(user_id=user_id), Action.CREATE)
            self._lock_account(user_id)

            item = self.session.get(StoreItem, item_id)
            if item is None or not item.available:
                raise NotFound("Store item")
            self._require(actor, item, Action.REDEEM)

            balance = self._debit(user_id, item.token_cost)
            redemption = Redemption(
                user_id=user_id,
                item_id=item.id,
                status=RedemptionStatus.PENDING.value,
                token_cost=item.token_cost,
            )
            self.session.add(redemption)
            self.session.flush()

        logger.info(
            "Redemption %s: %s spent %d tokens on %s (balance %d)",
            redemption.id,
            user_id,
            redemption.token_cost,
            item_id,
            balance,
        )
        return redemption

    def transition_redemption(
        self,
        redemption_id: str,
        new_status: RedemptionStatus | str,
        acting_admin_id: str,
    ) -> Redemption:
        """Fulfil or cancel a pending redemption.

        Cancelling does not refund the tokens unless
        ``settings.redemption_refund_on_cancel`` is enabled.

        Raises:
            NotAuthorized: If the actor is not an administrator. Checked
                before the lookup so the answer does not reveal existence.
            NotFound: If the redemption does not exist.
            InvalidTransition: If the redemption is not pending or the
                target status is not fulfilled/cancelled.
        """
        with unit_of_work(self.session, "transition_redemption"):
            actor = self._load_actor(acting_admin_id)
            self._require(actor, Redemption(), Action.TRANSITION)

            redemption = self.session.get(Redemption, redemption_id)
            if redemption is None:
                raise NotFound("Redemption")
            refund = settings.redemption_refund_on_cancel
            if refund:
                self._lock_account(redemption.user_id)
            redemption = self.session.execute(
                select(Redemption)
                .where(Redemption.id == redemption_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one()

            current = RedemptionStatus(redemption.status)
            try:
                target = RedemptionStatus(new_status)
            except ValueError as err:
                raise InvalidTransition(current.value, str(new_status)) from err
            if target not in REDEMPTION_TRANSITIONS[current]:
                raise InvalidTransition(current.value, target.value)

            redemption.status = target.value
            if target is RedemptionStatus.FULFILLED:
                redemption.fulfilled_at = utcnow()
            elif refund:
                self._credit(redemption.user_id, redemption.token_cost)

        logger.info(
            "Redemption %s moved %s -> %s by %s",
            redemption_id,
            current.value,
            target.value,
            acting_admin_id,
        )
        return redemption
