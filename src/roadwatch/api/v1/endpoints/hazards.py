"""Hazard report, vote and comment endpoints for the RoadWatch API."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from roadwatch.api.v1.dependencies import AdminUserDep, CurrentUserDep, EngineDep, SessionDep
from roadwatch.models import HazardComment, HazardReport
from roadwatch.repositories.hazard_repo import HazardRepository
from roadwatch.schemas.hazard import (
    ClassifyRequest,
    ClassifyResponse,
    CommentCreate,
    CommentResponse,
    HazardCreate,
    HazardResponse,
    HazardStatusChange,
    HazardUpdate,
    VoteResponse,
)
from roadwatch.services.classification import (
    ClassifierClient,
    ClassifierDisabledError,
    ClassifierError,
    get_classifier_client,
    normalize_hazard_type,
)
from roadwatch.services.ledger import Location

router = APIRouter(prefix="/hazards", tags=["hazards"])
logger = logging.getLogger(__name__)


def get_classifier_dep() -> ClassifierClient:
    """Return the shared classifier client."""
    return get_classifier_client()


ClassifierDep = Annotated[ClassifierClient, Depends(get_classifier_dep)]


def _get_report_or_404(repo: HazardRepository, report_id: str) -> HazardReport:
    report = repo.get_by_id(report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hazard report not found")
    return report


def _to_responses(repo: HazardRepository, reports: list[HazardReport]) -> list[HazardResponse]:
    names = repo.reporter_names(reports)
    return [
        HazardResponse.model_validate(report).model_copy(
            update={"reporter_name": names.get(report.reported_by, "Unknown")}
        )
        for report in reports
    ]


def _unprocessable(err: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(err))


@router.get("/", response_model=list[HazardResponse])
def list_hazards(
    db: SessionDep,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    status_filter: str | None = Query(None, alias="status"),
) -> list[HazardResponse]:
    """List hazard reports, newest first."""
    repo = HazardRepository(db)
    return _to_responses(repo, repo.list_recent(limit, offset, status_filter))


@router.get("/mine", response_model=list[HazardResponse])
def list_my_hazards(current_user: CurrentUserDep, db: SessionDep) -> list[HazardResponse]:
    """List the caller's own reports."""
    repo = HazardRepository(db)
    return _to_responses(repo, repo.list_by_reporter(current_user.id))


@router.post("/classify", response_model=ClassifyResponse)
async def classify_image(
    request: ClassifyRequest,
    current_user: CurrentUserDep,
    classifier: ClassifierDep,
) -> ClassifyResponse:
    """Suggest a hazard type for an uploaded image.

    Falls back to ``other`` when the classifier is unavailable.
    """
    try:
        result = await classifier.classify(request.image_url)
    except ClassifierDisabledError:
        return ClassifyResponse(label="Unknown", hazard_type="other")
    except ClassifierError as err:
        logger.warning("Classification for %s failed: %s", current_user.id, err)
        return ClassifyResponse(label="Unknown", hazard_type="other")
    return ClassifyResponse(label=result.label, hazard_type=result.hazard_type.value)


@router.get("/{report_id}", response_model=HazardResponse)
def get_hazard(report_id: str, db: SessionDep) -> HazardResponse:
    """Return a single hazard report."""
    repo = HazardRepository(db)
    return _to_responses(repo, [_get_report_or_404(repo, report_id)])[0]


@router.post("/", response_model=HazardResponse, status_code=status.HTTP_201_CREATED)
def create_hazard(
    hazard_data: HazardCreate,
    current_user: CurrentUserDep,
    engine: EngineDep,
    db: SessionDep,
) -> HazardResponse:
    """Submit a hazard report; the reporter is credited the report reward."""
    try:
        report = engine.create_report(
            current_user.id,
            normalize_hazard_type(hazard_data.hazard_type),
            hazard_data.description,
            Location(**hazard_data.location.model_dump()),
            image_url=hazard_data.image_url,
            submission_key=hazard_data.submission_key,
        )
    except ValueError as err:
        raise _unprocessable(err) from err
    return _to_responses(HazardRepository(db), [report])[0]


@router.patch("/{report_id}", response_model=HazardResponse)
def update_hazard(
    report_id: str,
    hazard_data: HazardUpdate,
    current_user: CurrentUserDep,
    engine: EngineDep,
    db: SessionDep,
) -> HazardResponse:
    """Edit the description, type, location or image of a report."""
    changes = hazard_data.to_changes()
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No changes supplied")
    try:
        report = engine.update_report(report_id, current_user.id, changes)
    except ValueError as err:
        raise _unprocessable(err) from err
    return _to_responses(HazardRepository(db), [report])[0]


@router.post("/{report_id}/status", response_model=HazardResponse)
def change_hazard_status(
    report_id: str,
    status_data: HazardStatusChange,
    current_user: CurrentUserDep,
    engine: EngineDep,
    db: SessionDep,
) -> HazardResponse:
    """Move a report to investigating or resolved (admin only)."""
    report = engine.transition_hazard_status(report_id, status_data.status, current_user.id)
    return _to_responses(HazardRepository(db), [report])[0]


@router.post("/{report_id}/vote", response_model=VoteResponse)
def toggle_hazard_vote(
    report_id: str,
    current_user: CurrentUserDep,
    engine: EngineDep,
    db: SessionDep,
) -> VoteResponse:
    """Add the caller's vote, or remove it if already present."""
    voted = engine.toggle_vote(current_user.id, report_id)
    report = _get_report_or_404(HazardRepository(db), report_id)
    return VoteResponse(voted=voted, votes=report.votes)


@router.get("/{report_id}/my-vote", response_model=VoteResponse)
def get_my_vote(
    report_id: str,
    current_user: CurrentUserDep,
    engine: EngineDep,
    db: SessionDep,
) -> VoteResponse:
    """Return whether the caller currently votes for a report."""
    report = _get_report_or_404(HazardRepository(db), report_id)
    return VoteResponse(voted=engine.has_voted(current_user.id, report_id), votes=report.votes)


@router.get("/{report_id}/comments", response_model=list[CommentResponse])
def list_comments(report_id: str, db: SessionDep) -> list[HazardComment]:
    """List comments on a report, oldest first."""
    repo = HazardRepository(db)
    _get_report_or_404(repo, report_id)
    return repo.list_comments(report_id)


@router.post(
    "/{report_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    report_id: str,
    comment_data: CommentCreate,
    current_user: CurrentUserDep,
    engine: EngineDep,
) -> HazardComment:
    """Comment on a report."""
    try:
        return engine.add_comment(current_user.id, report_id, comment_data.body)
    except ValueError as err:
        raise _unprocessable(err) from err


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(comment_id: str, current_user: CurrentUserDep, engine: EngineDep) -> None:
    """Delete a comment (its author or an admin)."""
    engine.delete_comment(comment_id, current_user.id)


@router.get("/admin/all", response_model=list[HazardResponse])
def list_hazards_for_admin(
    admin: AdminUserDep,
    db: SessionDep,
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    status_filter: str | None = Query(None, alias="status"),
) -> list[HazardResponse]:
    """Page through every report with reporter names (admin only)."""
    repo = HazardRepository(db)
    return _to_responses(repo, repo.list_recent(limit, offset, status_filter))
