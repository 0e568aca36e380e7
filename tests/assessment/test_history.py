"""Tests for soyuz.assessment.history."""

from __future__ import annotations

import datetime
import typing as t

import pytest

from soyuz.assessment import HistoryBrowser, HistoryFilters
from soyuz.assessment.history import summarize
from soyuz.autosave import AssessmentPage, TransientError
from soyuz.autosave.client import Pagination
from soyuz.model import Assessment, AssessmentID, AssessmentStatus, AssessmentType, UserID

Start = datetime.datetime(2024, 3, 1, 9, tzinfo=datetime.UTC)


def make_assessment(
    type: AssessmentType = AssessmentType.Disc,
    status: AssessmentStatus = AssessmentStatus.InProgress,
    created: datetime.datetime = Start,
    minutes: int | None = None,
) -> Assessment:
    return Assessment(
        assessment_id=AssessmentID(),
        user_id=UserID(),
        type=type,
        status=status,
        create_time=created,
        update_time=created,
        completed_at=created + datetime.timedelta(minutes=minutes) if minutes is not None else None,
    )


class PagedClient(object):
    """Serves a fixed list in pages, like the service's history route."""

    def __init__(self, assessments: list[Assessment]) -> None:
        self.assessments = assessments
        self.requests: list[dict[str, t.Any]] = []
        self.error: Exception | None = None

    async def find(self, *, page: int = 1, limit: int = 10, **filters: t.Any) -> AssessmentPage:
        self.requests.append({"page": page, "limit": limit, **filters})
        if self.error is not None:
            raise self.error
        start = (page - 1) * limit
        total = len(self.assessments)
        return AssessmentPage(
            assessments=self.assessments[start : start + limit],
            pagination=Pagination(total=total, page=page, limit=limit, total_pages=-(-total // limit)),
        )

    async def get(self, assessment_id: AssessmentID) -> Assessment | None:
        if self.error is not None:
            raise self.error
        return next((a for a in self.assessments if a.assessment_id == assessment_id), None)


@pytest.fixture
def client() -> PagedClient:
    return PagedClient([make_assessment() for _ in range(25)])


@pytest.fixture
def browser(client: PagedClient) -> HistoryBrowser:
    return HistoryBrowser(client, limit=10)  # type: ignore[arg-type]


class TestPaging(object):
    @pytest.mark.anyio
    async def test_load_and_navigate(self, browser: HistoryBrowser) -> None:
        assert await browser.load()
        assert browser.page == 1
        assert browser.total_pages == 3
        assert len(browser.assessments) == 10
        assert not browser.has_previous

        assert await browser.next_page()
        assert await browser.next_page()
        assert browser.page == 3
        assert len(browser.assessments) == 5
        assert not await browser.next_page()

        assert await browser.previous_page()
        assert browser.page == 2

    @pytest.mark.anyio
    async def test_go_to_page_checks_bounds(self, browser: HistoryBrowser, client: PagedClient) -> None:
        await browser.load()

        assert not await browser.go_to_page(0)
        assert not await browser.go_to_page(4)
        assert await browser.go_to_page(3)
        assert len(client.requests) == 2

    @pytest.mark.anyio
    async def test_apply_filters_reloads_first_page(self, browser: HistoryBrowser, client: PagedClient) -> None:
        await browser.load(2)
        await browser.apply_filters(type=AssessmentType.Sjt, status=AssessmentStatus.Completed)

        request = client.requests[-1]
        assert request["page"] == 1
        assert request["type"] is AssessmentType.Sjt
        assert request["status"] is AssessmentStatus.Completed

    @pytest.mark.anyio
    async def test_errors_are_captured(self, browser: HistoryBrowser, client: PagedClient) -> None:
        """A failed load keeps the previous page and reports the error."""
        await browser.load()
        client.error = TransientError("HTTP 503: unavailable", 503)

        assert not await browser.next_page()
        assert browser.error == "HTTP 503: unavailable"
        assert browser.page == 1
        assert not browser.loading
        assert await browser.get(browser.assessments[0].assessment_id) is None

    def test_limit_is_bounded(self, client: PagedClient) -> None:
        with pytest.raises(ValueError):
            HistoryBrowser(client, limit=101)  # type: ignore[arg-type]


class TestLocalFiltering(object):
    def test_filters_match_type_status_dates_and_search(self) -> None:
        disc = make_assessment(AssessmentType.Disc, AssessmentStatus.Completed, Start, 30)
        sjt = make_assessment(AssessmentType.Sjt, created=Start + datetime.timedelta(days=10))
        skills = make_assessment(AssessmentType.SoftSkills, created=Start + datetime.timedelta(days=20))
        rows = [disc, sjt, skills]

        def match(**kwargs: t.Any) -> list[Assessment]:
            filters = HistoryFilters(**kwargs)
            return [a for a in rows if filters.matches(a)]

        assert match(type=AssessmentType.Sjt) == [sjt]
        assert match(status=AssessmentStatus.Completed) == [disc]
        assert match(date_from=datetime.date(2024, 3, 5)) == [sjt, skills]
        assert match(date_to=datetime.date(2024, 3, 11)) == [disc, sjt]
        assert match(search="SOFT") == [skills]
        assert match(search="julgamento") == [sjt]


class TestSummary(object):
    def test_stats(self) -> None:
        rows = [
            make_assessment(status=AssessmentStatus.Completed, minutes=20),
            make_assessment(status=AssessmentStatus.Completed, minutes=31),
            make_assessment(status=AssessmentStatus.InProgress),
            make_assessment(status=AssessmentStatus.Abandoned),
        ]

        stats = summarize(rows)

        assert stats.total == 4
        assert stats.completed == 2
        assert stats.in_progress == 1
        assert stats.completion_rate == 50
        assert stats.average_completion_minutes == 26

    def test_empty(self) -> None:
        stats = summarize([])
        assert stats.completion_rate == 0
        assert stats.average_completion_minutes == 0
