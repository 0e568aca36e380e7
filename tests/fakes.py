"""In-memory stand-in for AssessmentClient used by the auto-saver tests."""

from __future__ import annotations

import asyncio
import datetime
import typing as t

from soyuz.model import Assessment, AssessmentID, AssessmentStatus, AssessmentType, PartialResults, UserID

Now = datetime.datetime(2024, 5, 1, 12, tzinfo=datetime.UTC)


class Gate(t.NamedTuple):
    """Answer once `event` is set, failing with `error` if given."""

    event: asyncio.Event
    error: BaseException | None = None


class SaveCall(t.NamedTuple):
    type: AssessmentType
    results: PartialResults
    assessment_id: AssessmentID | None
    status: AssessmentStatus | None


class FakeClient(object):
    """
    Records save() calls. Each call consumes the next queued outcome: an
    exception is raised, a Gate is awaited before answering, and an empty
    queue answers at once.
    """

    user_id: UserID
    assessment_id: AssessmentID
    calls: list[SaveCall]
    outcomes: list[BaseException | Gate]
    incomplete: Assessment | None
    abandoned: list[AssessmentID]
    fail_abandon: BaseException | None
    fail_lookup: BaseException | None

    def __init__(self, user_id: UserID | None = None) -> None:
        self.user_id = user_id or UserID()
        self.assessment_id = AssessmentID()
        self.calls = []
        self.outcomes = []
        self.incomplete = None
        self.abandoned = []
        self.fail_abandon = None
        self.fail_lookup = None

    async def save(
        self,
        type: AssessmentType,
        results: PartialResults,
        *,
        assessment_id: AssessmentID | None = None,
        status: AssessmentStatus | None = None,
    ) -> Assessment:
        self.calls.append(SaveCall(type, results, assessment_id, status))
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if isinstance(outcome, Gate):
            await outcome.event.wait()
            outcome = outcome.error
        if outcome is not None:
            raise outcome
        return self.assessment(type=type, results=results, status=status or AssessmentStatus.InProgress)

    async def find_incomplete(self) -> Assessment | None:
        if self.fail_lookup is not None:
            raise self.fail_lookup
        return self.incomplete

    async def abandon(self, assessment_id: AssessmentID) -> Assessment:
        if self.fail_abandon is not None:
            raise self.fail_abandon
        self.abandoned.append(assessment_id)
        return self.assessment(assessment_id=assessment_id, status=AssessmentStatus.Abandoned)

    def assessment(
        self,
        *,
        type: AssessmentType = AssessmentType.Complete,
        results: PartialResults | None = None,
        status: AssessmentStatus = AssessmentStatus.InProgress,
        assessment_id: AssessmentID | None = None,
    ) -> Assessment:
        results = results or PartialResults()
        return Assessment(
            assessment_id=assessment_id or self.assessment_id,
            user_id=self.user_id,
            type=type,
            status=status,
            disc_results=results.disc_results,
            soft_skills_results=results.soft_skills_results,
            sjt_results=results.sjt_results,
            progress_data=results.progress_data,
            create_time=Now,
            update_time=Now,
            completed_at=Now if status is AssessmentStatus.Completed else None,
        )
