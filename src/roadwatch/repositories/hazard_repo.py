"""Data access helpers for reading hazard reports and their comments."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from roadwatch.models import Account, HazardComment, HazardReport

__all__ = ["HazardRepository"]


class HazardRepository:
    """Thin wrapper around read access for hazard reports.

    Writes go through the token economy engine; this class never mutates.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, report_id: str) -> HazardReport | None:
        """Return a report by identifier."""
        return self.session.get(HazardReport, report_id)

    def list_recent(self, limit: int, offset: int = 0, status: str | None = None) -> list[HazardReport]:
        """Return reports newest first, optionally filtered by status."""
        stmt = select(HazardReport)
        if status is not None:
            stmt = stmt.where(HazardReport.status == status)
        stmt = stmt.order_by(HazardReport.created_at.desc()).offset(offset).limit(limit)
        return list(self.session.execute(stmt).scalars())

    def list_by_reporter(self, reporter_id: str) -> list[HazardReport]:
        """Return a user's own reports, newest first."""
        return list(
            self.session.execute(
                select(HazardReport)
                .where(HazardReport.reported_by == reporter_id)
                .order_by(HazardReport.created_at.desc())
            ).scalars()
        )

    def reporter_names(self, reports: list[HazardReport]) -> dict[str, str]:
        """Map reporter ids to display names for a batch of reports."""
        ids = {report.reported_by for report in reports}
        if not ids:
            return {}
        rows = self.session.execute(
            select(Account.id, Account.full_name).where(Account.id.in_(ids))
        ).all()
        return {row.id: row.full_name for row in rows}

    def list_comments(self, report_id: str) -> list[HazardComment]:
        """Return comments on a report, oldest first."""
        return list(
            self.session.execute(
                select(HazardComment)
                .where(HazardComment.hazard_id == report_id)
                .order_by(HazardComment.created_at.asc())
            ).scalars()
        )
