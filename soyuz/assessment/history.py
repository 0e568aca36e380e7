from __future__ import annotations

import datetime
import logging
import typing as t

import pydantic as p

from soyuz.autosave import AssessmentClient, PersistenceError
from soyuz.autosave.client import Pagination
from soyuz.model import Assessment, AssessmentID, AssessmentStatus, AssessmentType, BaseModel

logger = logging.getLogger(__name__)


class HistoryFilters(BaseModel):
    model_config = p.ConfigDict(frozen=True)

    type: AssessmentType | None = None
    status: AssessmentStatus | None = None
    date_from: datetime.date | None = None
    date_to: datetime.date | None = None
    #: matched against the assessment type, case-insensitively; applied locally
    search: str | None = None

    def matches(self, assessment: Assessment) -> bool:
        if self.type is not None and assessment.type is not self.type:
            return False
        if self.status is not None and assessment.status is not self.status:
            return False
        created = assessment.create_time.date()
        if self.date_from is not None and created < self.date_from:
            return False
        if self.date_to is not None and created > self.date_to:
            return False
        if self.search:
            term = self.search.lower()
            if term not in assessment.type.value.lower() and term not in assessment.type.label.lower():
                return False
        return True


class HistoryStats(t.NamedTuple):
    total: int
    completed: int
    in_progress: int
    #: whole percent
    completion_rate: int
    #: whole minutes from creation to completion, 0 without completed assessments
    average_completion_minutes: int


class HistoryBrowser(object):
    """
    Paged view of the user's assessments. Failures are kept in `error`
    rather than raised so a listing screen can show them in place.
    """

    client: AssessmentClient
    limit: int
    filters: HistoryFilters
    assessments: list[Assessment]
    pagination: Pagination | None
    loading: bool
    error: str | None

    def __init__(self, client: AssessmentClient, limit: int = 10, filters: HistoryFilters | None = None) -> None:
        if not 1 <= limit <= 100:
            raise ValueError("limit must be between 1 and 100")
        self.client = client
        self.limit = limit
        self.filters = filters or HistoryFilters()
        self.assessments = []
        self.pagination = None
        self.loading = False
        self.error = None

    @property
    def page(self) -> int:
        return self.pagination.page if self.pagination else 1

    @property
    def total_pages(self) -> int:
        return self.pagination.total_pages if self.pagination else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    async def load(self, page: int = 1) -> bool:
        self.loading = True
        try:
            result = await self.client.find(
                page=page,
                limit=self.limit,
                type=self.filters.type,
                status=self.filters.status,
                date_from=self.filters.date_from,
                date_to=self.filters.date_to,
            )
        except PersistenceError as e:
            logger.warning("could not load assessment history", extra={"page": page, "error": str(e)})
            self.error = str(e)
            return False
        finally:
            self.loading = False

        self.assessments = result.assessments
        self.pagination = result.pagination
        self.error = None
        return True

    async def refresh(self) -> bool:
        return await self.load(self.page)

    async def go_to_page(self, page: int) -> bool:
        if page < 1 or (self.pagination is not None and page > max(self.total_pages, 1)):
            return False
        return await self.load(page)

    async def next_page(self) -> bool:
        if not self.has_next:
            return False
        return await self.load(self.page + 1)

    async def previous_page(self) -> bool:
        if not self.has_previous:
            return False
        return await self.load(self.page - 1)

    async def apply_filters(self, **changes: t.Any) -> bool:
        self.filters = self.filters.model_copy(update=changes)
        return await self.load(1)

    async def clear_filters(self) -> bool:
        self.filters = HistoryFilters()
        return await self.load(1)

    async def get(self, assessment_id: AssessmentID) -> Assessment | None:
        try:
            return await self.client.get(assessment_id)
        except PersistenceError as e:
            logger.warning("could not fetch assessment", extra={"assessment_id": assessment_id, "error": str(e)})
            self.error = str(e)
            return None

    def filtered(self, filters: HistoryFilters | None = None) -> list[Assessment]:
        active = filters or self.filters
        return [a for a in self.assessments if active.matches(a)]

    def stats(self) -> HistoryStats:
        return summarize(self.assessments)


def summarize(assessments: t.Sequence[Assessment]) -> HistoryStats:
    total = len(assessments)
    completed = sum(1 for a in assessments if a.status is AssessmentStatus.Completed)
    in_progress = sum(1 for a in assessments if a.status is AssessmentStatus.InProgress)
    durations = [d for a in assessments if (d := a.completion_time) is not None]
    average = sum(durations, datetime.timedelta()) / len(durations) if durations else datetime.timedelta()
    return HistoryStats(
        total=total,
        completed=completed,
        in_progress=in_progress,
        completion_rate=round(completed / total * 100) if total else 0,
        average_completion_minutes=round(average.total_seconds() / 60),
    )
