from __future__ import annotations

import datetime
import typing as t

from sqlalchemy import func, select

from soyuz.core import di
from soyuz.core.provider import TimestampProvider
from soyuz.model import Assessment, AssessmentID, AssessmentStatus, AssessmentType, DiscResults, SjtResults, \
    SoftSkillsResults, UserID

from . import Session
from .table import assessments

ResultFields = ("disc_results", "soft_skills_results", "sjt_results")


class AssessmentClosedError(Exception):
    """Raised when mutating an assessment that is completed or abandoned."""

    def __init__(self, assessment: Assessment):
        self.assessment = assessment
        super().__init__(f"assessment {assessment.assessment_id} is {assessment.status.value}")


def get(
    key: AssessmentID,
    *,
    user_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Assessment | None:
    stmt = select(assessments.__table__).where(assessments.assessment_id == key)
    if user_id is not None:
        stmt = stmt.where(assessments.user_id == user_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Assessment(**row) if row else None


def _filtered(
    stmt: t.Any,
    user_id: UserID | None,
    type: AssessmentType | None,
    status: AssessmentStatus | None,
    date_from: datetime.date | None,
    date_to: datetime.date | None,
) -> t.Any:
    if user_id is not None:
        stmt = stmt.where(assessments.user_id == user_id)
    if type is not None:
        stmt = stmt.where(assessments.type == type)
    if status is not None:
        stmt = stmt.where(assessments.status == status)
    if date_from is not None:
        stmt = stmt.where(assessments.create_time >= _start_of(date_from))
    if date_to is not None:
        # inclusive of the whole final day
        stmt = stmt.where(assessments.create_time < _start_of(date_to + datetime.timedelta(days=1)))
    return stmt


def _start_of(day: datetime.date) -> datetime.datetime:
    return datetime.datetime.combine(day, datetime.time.min, tzinfo=datetime.UTC)


def find(
    *,
    user_id: UserID | None = None,
    type: AssessmentType | None = None,
    status: AssessmentStatus | None = None,
    date_from: datetime.date | None = None,
    date_to: datetime.date | None = None,
    offset: int = 0,
    limit: int | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Assessment, ...]:
    """Newest first."""
    stmt = _filtered(select(assessments.__table__), user_id, type, status, date_from, date_to)
    stmt = stmt.order_by(assessments.create_time.desc(), assessments.assessment_id).offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    rows = session.execute(stmt).mappings().all()
    return tuple(Assessment(**row) for row in rows)


def count(
    *,
    user_id: UserID | None = None,
    type: AssessmentType | None = None,
    status: AssessmentStatus | None = None,
    date_from: datetime.date | None = None,
    date_to: datetime.date | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    stmt = _filtered(
        select(func.count()).select_from(assessments.__table__), user_id, type, status, date_from, date_to
    )
    return session.execute(stmt).scalar_one()


def find_incomplete(
    user_id: UserID, session: Session = di.Provide["storage.persistent.session"]
) -> Assessment | None:
    """The user's most recently touched in-progress assessment."""
    stmt = (
        select(assessments.__table__)
        .where(assessments.user_id == user_id)
        .where(assessments.status == AssessmentStatus.InProgress)
        .order_by(assessments.update_time.desc(), assessments.create_time.desc())
        .limit(1)
    )
    row = session.execute(stmt).mappings().one_or_none()
    return Assessment(**row) if row else None


def create(
    params: AssessmentCreateParams,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> Assessment:
    now = utcnow()
    status = params.get("status", AssessmentStatus.InProgress)
    row = assessments(
        assessment_id=AssessmentID(),
        user_id=params["user_id"],
        type=params["type"],
        status=status,
        create_time=now,
        update_time=now,
        completed_at=now if status is AssessmentStatus.Completed else None,
    )
    _assign(row, params)
    session.add(row)
    session.flush()
    return get(row.assessment_id, session=session)  # type: ignore


def update(
    key: AssessmentID,
    params: AssessmentUpdateParams,
    *,
    user_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> Assessment | None:
    """
    Partial update: result sections and progress data that are absent or None
    in `params` are left as they are.

    Returns None for an unknown key, raises AssessmentClosedError when the
    assessment is no longer in progress.
    """
    stmt = select(assessments).where(assessments.assessment_id == key)
    if user_id is not None:
        stmt = stmt.where(assessments.user_id == user_id)
    row = session.execute(stmt).scalar_one_or_none()
    if row is None:
        return None
    if row.status.is_closed:
        raise AssessmentClosedError(Assessment(**get_mapping(row)))

    now = utcnow()
    _assign(row, params)
    if (status := params.get("status")) is not None:
        row.status = status
        if status is AssessmentStatus.Completed:
            row.completed_at = now
    if (type := params.get("type")) is not None:
        row.type = type
    row.update_time = now
    session.flush()
    return get(key, session=session)


def abandon(
    key: AssessmentID,
    *,
    user_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Assessment | None:
    """Mark an in-progress assessment abandoned; abandoning twice is a no-op."""
    existing = get(key, user_id=user_id, session=session)
    if existing is None or existing.status is AssessmentStatus.Abandoned:
        return existing
    return update(key, {"status": AssessmentStatus.Abandoned}, user_id=user_id, session=session)


def _assign(row: assessments, params: AssessmentCreateParams | AssessmentUpdateParams) -> None:
    for field in ResultFields:
        value = params.get(field)
        if value is not None:
            setattr(row, field, value.model_dump(mode="json"))
    if (progress := params.get("progress_data")) is not None:
        row.progress_data = progress


def get_mapping(row: assessments) -> dict[str, t.Any]:
    return {column.key: getattr(row, column.key) for column in assessments.__table__.columns}


class AssessmentCreateParams(t.TypedDict, total=False):
    user_id: t.Required[UserID]
    type: t.Required[AssessmentType]
    status: AssessmentStatus
    disc_results: DiscResults | None
    soft_skills_results: SoftSkillsResults | None
    sjt_results: SjtResults | None
    progress_data: dict[str, t.Any] | None


class AssessmentUpdateParams(t.TypedDict, total=False):
    type: AssessmentType
    status: AssessmentStatus
    disc_results: DiscResults | None
    soft_skills_results: SoftSkillsResults | None
    sjt_results: SjtResults | None
    progress_data: dict[str, t.Any] | None
