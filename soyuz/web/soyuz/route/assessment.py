"""Assessment persistence routes used by the auto-saver."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from soyuz.auth.middleware import AuthContext, get_current_user
from soyuz.core import di
from soyuz.model import Assessment, AssessmentID, AssessmentStatus
from soyuz.storage import assessment as assessment_storage
from soyuz.storage.assessment import AssessmentClosedError, AssessmentUpdateParams

from ..view.assessment import PatchAssessmentRequest, ResultsRequest, SaveAssessmentRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assessment", tags=["assessment"])


def _update_params(request: ResultsRequest) -> AssessmentUpdateParams:
    params: AssessmentUpdateParams = {
        "disc_results": request.disc_results,
        "soft_skills_results": request.soft_skills_results,
        "sjt_results": request.sjt_results,
        "progress_data": request.progress_data,
    }
    if request.status is not None:
        params["status"] = request.status
    return params


def _apply(
    assessment_id: AssessmentID, params: AssessmentUpdateParams, auth: AuthContext, session: Session
) -> Assessment:
    try:
        updated = assessment_storage.update(assessment_id, params, user_id=auth.user_id, session=session)
    except AssessmentClosedError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Assessment is already {e.assessment.status.value}",
        ) from e
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assessment not found")
    return updated


@router.post("", operation_id="save_assessment")
@di.inject
def save_assessment(
    request: SaveAssessmentRequest,
    response: Response,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Assessment:
    """Create an assessment, or apply a partial update when `assessment_id` is given.

    Returns 201 on creation and 200 on update.
    """
    with session.begin():
        if request.assessment_id is None:
            assessment = assessment_storage.create(
                {
                    "user_id": auth.user_id,
                    "type": request.type,
                    "status": request.status or AssessmentStatus.InProgress,
                    **_update_params(request),
                },
                session=session,
            )
            response.status_code = status.HTTP_201_CREATED
            logger.info(
                "created assessment",
                extra={"assessment_id": assessment.assessment_id, "type": assessment.type.value},
            )
            return assessment

        params = _update_params(request)
        params["type"] = request.type
        assessment = _apply(request.assessment_id, params, auth, session)

    if assessment.status is AssessmentStatus.Completed:
        logger.info("completed assessment", extra={"assessment_id": assessment.assessment_id})
    return assessment


@router.get("", operation_id="get_incomplete_assessment")
@di.inject
def get_incomplete_assessment(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Assessment:
    """The caller's most recently updated in-progress assessment."""
    with session.begin():
        assessment = assessment_storage.find_incomplete(auth.user_id, session=session)
    if assessment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No assessment in progress")
    return assessment


@router.get("/{assessment_id}", operation_id="get_assessment")
@di.inject
def get_assessment(
    assessment_id: AssessmentID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Assessment:
    with session.begin():
        assessment = assessment_storage.get(assessment_id, user_id=auth.user_id, session=session)
    if assessment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assessment not found")
    return assessment


@router.patch("/{assessment_id}", operation_id="update_assessment")
@di.inject
def update_assessment(
    assessment_id: AssessmentID,
    request: PatchAssessmentRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Assessment:
    params = _update_params(request)
    if request.type is not None:
        params["type"] = request.type
    with session.begin():
        return _apply(assessment_id, params, auth, session)


@router.delete("/{assessment_id}", operation_id="abandon_assessment")
@di.inject
def abandon_assessment(
    assessment_id: AssessmentID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Assessment:
    """Mark an assessment abandoned. Abandoning twice is harmless; a completed assessment is a conflict."""
    with session.begin():
        try:
            assessment = assessment_storage.abandon(assessment_id, user_id=auth.user_id, session=session)
        except AssessmentClosedError as e:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Assessment is already {e.assessment.status.value}",
            ) from e
    if assessment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assessment not found")
    logger.info("abandoned assessment", extra={"assessment_id": assessment_id})
    return assessment
