"""Export of completed assessments as downloadable reports."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from soyuz.assessment import AssessmentReport
from soyuz.auth.middleware import AuthContext, get_current_user
from soyuz.autosave import ExportFormat
from soyuz.core import di
from soyuz.core.provider import TimestampProvider
from soyuz.model import AssessmentStatus
from soyuz.storage import assessment as assessment_storage

from ..view.assessment import ExportRequest

router = APIRouter(prefix="/api/assessment", tags=["assessment"])

ContentTypes = {
    ExportFormat.Csv: "text/csv; charset=utf-8",
    ExportFormat.Text: "text/plain; charset=utf-8",
}


@router.post(
    "/export",
    operation_id="export_assessment",
    response_class=Response,
    responses={200: {"content": {ct.split(";")[0]: {} for ct in ContentTypes.values()}}},
)
@di.inject
def export_assessment(
    request: ExportRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> Response:
    """Render a completed assessment as CSV or plain text, sent as an attachment."""
    with session.begin():
        assessment = assessment_storage.get(request.assessment_id, user_id=auth.user_id, session=session)
    if assessment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assessment not found")
    if assessment.status is not AssessmentStatus.Completed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only completed assessments can be exported",
        )

    report = AssessmentReport.from_assessment(assessment)
    match request.format:
        case ExportFormat.Csv:
            content = report.render_csv()
        case ExportFormat.Text:
            content = report.render_text(now=utcnow())

    filename = report.filename(request.format.value)
    return Response(
        content=content.encode("utf-8"),
        media_type=ContentTypes[request.format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
