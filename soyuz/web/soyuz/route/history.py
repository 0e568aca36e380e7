"""Assessment history listing."""

from __future__ import annotations

import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from soyuz.auth.middleware import AuthContext, get_current_user
from soyuz.core import di
from soyuz.lib.util import ceil_div
from soyuz.model import AssessmentStatus, AssessmentType
from soyuz.storage import assessment as assessment_storage

from ..view.assessment import AssessmentListResponse, PaginationResponse

router = APIRouter(prefix="/api/assessments", tags=["assessment"])


@router.get("", operation_id="list_assessments")
@di.inject
def list_assessments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    type: AssessmentType | None = None,
    status: AssessmentStatus | None = None,
    date_from: datetime.date | None = None,
    date_to: datetime.date | None = None,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> AssessmentListResponse:
    """Newest first. `date_to` includes the whole day."""
    filters = dict(user_id=auth.user_id, type=type, status=status, date_from=date_from, date_to=date_to)
    with session.begin():
        total = assessment_storage.count(**filters, session=session)
        assessments = assessment_storage.find(**filters, offset=(page - 1) * limit, limit=limit, session=session)

    return AssessmentListResponse(
        assessments=list(assessments),
        pagination=PaginationResponse(total=total, page=page, limit=limit, total_pages=ceil_div(total, limit)),
    )
