"""View models for assessment endpoints."""

from __future__ import annotations

import typing as t

import pydantic as p

from soyuz.autosave import ExportFormat
from soyuz.model import Assessment, AssessmentID, AssessmentStatus, AssessmentType, BaseModel, DiscResults, \
    PartialResults, SjtResults, SoftSkillsResults


class ResultsRequest(BaseModel):
    """Result sections shared by save and patch requests; absent sections are left untouched."""

    disc_results: DiscResults | None = None
    soft_skills_results: SoftSkillsResults | None = None
    sjt_results: SjtResults | None = None
    progress_data: dict[str, t.Any] | None = None
    status: AssessmentStatus | None = None

    @p.field_validator("status")
    @classmethod
    def reject_abandoned(cls, value: AssessmentStatus | None) -> AssessmentStatus | None:
        if value is AssessmentStatus.Abandoned:
            raise ValueError("use DELETE to abandon an assessment")
        return value

    @property
    def results(self) -> PartialResults:
        return PartialResults(
            disc_results=self.disc_results,
            soft_skills_results=self.soft_skills_results,
            sjt_results=self.sjt_results,
            progress_data=self.progress_data,
        )


class SaveAssessmentRequest(ResultsRequest):
    """Request body for saving progress.

    Without `assessment_id` a new assessment is created, otherwise the
    provided sections are applied to the existing one.
    """

    type: AssessmentType
    assessment_id: AssessmentID | None = None


class PatchAssessmentRequest(ResultsRequest):
    type: AssessmentType | None = None


class PaginationResponse(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class AssessmentListResponse(BaseModel):
    assessments: list[Assessment]
    pagination: PaginationResponse


class ExportRequest(BaseModel):
    assessment_id: AssessmentID
    format: ExportFormat = ExportFormat.Csv
