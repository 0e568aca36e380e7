from __future__ import annotations

import datetime
import typing as t
from collections import Counter

import pydantic as p

from .base import BaseModel, WithTimestamps
from .enum import AssessmentStatus, AssessmentType, DiscFactor
from .id import AssessmentID, UserID

SkillRating = t.Annotated[int, p.Field(ge=1, le=10)]
ScenarioScore = t.Annotated[int, p.Field(ge=0, le=10)]


class DiscResults(BaseModel):
    model_config = p.ConfigDict(frozen=True, populate_by_name=True)

    dominance: int = p.Field(0, alias="D", ge=0)
    influence: int = p.Field(0, alias="I", ge=0)
    steadiness: int = p.Field(0, alias="S", ge=0)
    conscientiousness: int = p.Field(0, alias="C", ge=0)

    responses: dict[str, DiscFactor] | None = None

    @classmethod
    def from_answers(cls, answers: t.Mapping[str, DiscFactor | str]) -> DiscResults:
        """
        Tally a mapping of question id to chosen factor.
        """
        responses = {qid: DiscFactor(choice) for qid, choice in answers.items()}
        counts = Counter(responses.values())
        return cls(
            dominance=counts[DiscFactor.Dominance],
            influence=counts[DiscFactor.Influence],
            steadiness=counts[DiscFactor.Steadiness],
            conscientiousness=counts[DiscFactor.Conscientiousness],
            responses=responses,
        )

    @property
    def counts(self) -> dict[DiscFactor, int]:
        return {
            DiscFactor.Dominance: self.dominance,
            DiscFactor.Influence: self.influence,
            DiscFactor.Steadiness: self.steadiness,
            DiscFactor.Conscientiousness: self.conscientiousness,
        }

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def primary_factor(self) -> DiscFactor:
        # max() keeps the first of equal counts, so ties resolve in D, I, S, C order
        counts = self.counts
        return max(counts, key=counts.__getitem__)

    def percentages(self, questions: int | None = None) -> dict[DiscFactor, float]:
        denominator = questions if questions is not None else self.total
        if not denominator:
            return {factor: 0.0 for factor in DiscFactor}
        return {factor: round(count / denominator * 100, 1) for factor, count in self.counts.items()}


class SoftSkillsResults(BaseModel):
    model_config = p.ConfigDict(frozen=True, populate_by_name=True)

    communication: SkillRating = p.Field(alias="comunicacao")
    leadership: SkillRating = p.Field(alias="lideranca")
    teamwork: SkillRating = p.Field(
        validation_alias=p.AliasChoices("trabalhoEmEquipe", "trabalhoEquipe", "teamwork"),
        serialization_alias="trabalhoEmEquipe",
    )
    problem_solving: SkillRating = p.Field(alias="resolucaoProblemas")
    adaptability: SkillRating = p.Field(alias="adaptabilidade")
    creativity: SkillRating = p.Field(alias="criatividade")
    time_management: SkillRating = p.Field(alias="gestaoTempo")
    negotiation: SkillRating = p.Field(alias="negociacao")

    @property
    def ratings(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in type(self).model_fields}

    @property
    def average(self) -> float:
        ratings = self.ratings
        return round(sum(ratings.values()) / len(ratings), 1)


class SjtResults(BaseModel):
    model_config = p.ConfigDict(frozen=True)

    scores: list[ScenarioScore] = p.Field(default_factory=list)
    responses: list[int] | None = None

    @p.model_validator(mode="before")
    @classmethod
    def accept_bare_list(cls, data: t.Any) -> t.Any:
        if isinstance(data, (list, tuple)):
            return {"scores": list(data)}
        return data

    @property
    def average(self) -> float | None:
        if not self.scores:
            return None
        return round(sum(self.scores) / len(self.scores), 1)


class PartialResults(BaseModel):
    """
    Any subset of the result sections of an assessment, plus the screen cursor.

    A section left as None is absent: merging keeps the other side's value and
    a partial update leaves it untouched on the server.
    """

    model_config = p.ConfigDict(frozen=True)

    disc_results: DiscResults | None = None
    soft_skills_results: SoftSkillsResults | None = None
    sjt_results: SjtResults | None = None
    progress_data: dict[str, t.Any] | None = None

    def merge(self, other: PartialResults) -> PartialResults:
        updates = {name: value for name, value in other if value is not None}
        return self.model_copy(update=updates)

    @property
    def is_empty(self) -> bool:
        return all(value is None for _, value in self)

    def as_fields(self) -> dict[str, t.Any]:
        return self.model_dump(mode="json", exclude_none=True)


class Assessment(WithTimestamps):
    assessment_id: AssessmentID
    user_id: UserID

    type: AssessmentType
    status: AssessmentStatus = AssessmentStatus.InProgress

    disc_results: DiscResults | None = None
    soft_skills_results: SoftSkillsResults | None = None
    sjt_results: SjtResults | None = None
    progress_data: dict[str, t.Any] | None = None

    completed_at: datetime.datetime | None = None

    @property
    def results(self) -> PartialResults:
        return PartialResults(
            disc_results=self.disc_results,
            soft_skills_results=self.soft_skills_results,
            sjt_results=self.sjt_results,
            progress_data=self.progress_data,
        )

    @property
    def completion_time(self) -> datetime.timedelta | None:
        if self.completed_at is None:
            return None
        return self.completed_at - self.create_time
