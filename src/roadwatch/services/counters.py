"""Counter and balance arithmetic shared by every engine mutation.

Counters on ``hazard_reports`` are denormalized row counts of the vote and
comment ledgers. They are only ever changed through :func:`apply_delta`,
inside the same transaction that inserts or deletes the ledger row.
"""

from __future__ import annotations

from typing import Any, overload

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import InstrumentedAttribute, Session
from sqlalchemy.sql.elements import ColumnElement

from roadwatch.models import HazardComment, HazardReport, HazardVote


@overload
def saturating_sub(value: int, amount: int) -> int: ...


@overload
def saturating_sub(value: ColumnElement[Any], amount: int) -> ColumnElement[int]: ...


def saturating_sub(value: Any, amount: int) -> Any:
    """Subtract ``amount`` from ``value`` without going below zero.

    Works on plain integers and on SQL column expressions, so Python-side
    checks and SQL updates clamp exactly the same way. A negative ``amount``
    adds.
    """
    if isinstance(value, int):
        return max(value - amount, 0)
    return case((value - amount < 0, 0), else_=value - amount)


def apply_delta(
    session: Session,
    column: InstrumentedAttribute[int],
    row_id: str,
    delta: int,
) -> int:
    """Atomically add ``delta`` to ``column`` on one row and return the new value.

    The update is a single statement evaluated by the database, so concurrent
    writers never lose an increment. The result is clamped at zero.

    Raises:
        LookupError: If no row with ``row_id`` exists.
    """
    model = column.class_
    result = session.execute(
        update(model)
        .where(model.id == row_id)
        .values({column.key: saturating_sub(column, -delta)})
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise LookupError(f"{model.__tablename__} row {row_id} not found")
    value = session.execute(select(column).where(model.id == row_id)).scalar_one()
    # Keep any identity-mapped instance in step with the database.
    instance = session.identity_map.get(session.identity_key(model, row_id))
    if instance is not None:
        session.expire(instance, [column.key])
    return int(value)


def count_votes(session: Session, report_id: str) -> int:
    """Return the number of vote rows referencing ``report_id``."""
    return session.execute(
        select(func.count()).select_from(HazardVote).where(HazardVote.hazard_id == report_id)
    ).scalar_one()


def count_comments(session: Session, report_id: str) -> int:
    """Return the number of comment rows referencing ``report_id``."""
    return session.execute(
        select(func.count())
        .select_from(HazardComment)
        .where(HazardComment.hazard_id == report_id)
    ).scalar_one()


def find_counter_drift(session: Session) -> list[dict[str, Any]]:
    """Return reports whose stored counters disagree with their ledger rows.

    Meant for audits and tests; an empty list means the counters are sound.
    """
    vote_counts = (
        select(HazardVote.hazard_id, func.count().label("n"))
        .group_by(HazardVote.hazard_id)
        .subquery()
    )
    comment_counts = (
        select(HazardComment.hazard_id, func.count().label("n"))
        .group_by(HazardComment.hazard_id)
        .subquery()
    )
    actual_votes = func.coalesce(vote_counts.c.n, 0)
    actual_comments = func.coalesce(comment_counts.c.n, 0)
    rows = session.execute(
        select(
            HazardReport.id,
            HazardReport.votes,
            actual_votes.label("actual_votes"),
            HazardReport.comments,
            actual_comments.label("actual_comments"),
        )
        .outerjoin(vote_counts, vote_counts.c.hazard_id == HazardReport.id)
        .outerjoin(comment_counts, comment_counts.c.hazard_id == HazardReport.id)
        .where((HazardReport.votes != actual_votes) | (HazardReport.comments != actual_comments))
    ).all()
    return [
        {
            "report_id": row.id,
            "votes": row.votes,
            "actual_votes": row.actual_votes,
            "comments": row.comments,
            "actual_comments": row.actual_comments,
        }
        for row in rows
    ]
