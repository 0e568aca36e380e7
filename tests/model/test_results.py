"""Tests for soyuz.model.assessment."""

from __future__ import annotations

import datetime

import pydantic as p
import pytest

from soyuz.model import Assessment, AssessmentID, AssessmentStatus, AssessmentType, DiscFactor, DiscResults, \
    PartialResults, SjtResults, SoftSkillsResults, UserID, WithTimestamps

SkillsBody = {
    "comunicacao": 8,
    "lideranca": 7,
    "trabalhoEmEquipe": 9,
    "resolucaoProblemas": 6,
    "adaptabilidade": 8,
    "criatividade": 5,
    "gestaoTempo": 7,
    "negociacao": 6,
}


class TestPartialResults(object):
    def test_merge_keeps_sections_missing_from_update(self) -> None:
        confirmed = PartialResults(disc_results=DiscResults(D=2), progress_data={"screen": "disc"})
        update = PartialResults(sjt_results=SjtResults(scores=[5]), progress_data={"screen": "sjt"})

        merged = confirmed.merge(update)

        assert merged.disc_results == DiscResults(D=2)
        assert merged.sjt_results == SjtResults(scores=[5])
        assert merged.progress_data == {"screen": "sjt"}
        assert confirmed.sjt_results is None

    def test_is_empty(self) -> None:
        assert PartialResults().is_empty
        assert not PartialResults(progress_data={}).is_empty

    def test_as_fields_uses_wire_names_and_drops_absent_sections(self) -> None:
        fields = PartialResults(
            disc_results=DiscResults(D=1, C=2),
            soft_skills_results=SoftSkillsResults.model_validate(SkillsBody),
        ).as_fields()

        assert fields == {
            "disc_results": {"D": 1, "I": 0, "S": 0, "C": 2},
            "soft_skills_results": SkillsBody,
        }


class TestDiscResults(object):
    def test_from_answers(self) -> None:
        results = DiscResults.from_answers({"q1": "D", "q2": "S", "q3": DiscFactor.Dominance})

        assert results.dominance == 2
        assert results.steadiness == 1
        assert results.total == 3
        assert results.primary_factor is DiscFactor.Dominance

    def test_percentages_of_empty_results(self) -> None:
        assert DiscResults().percentages() == {factor: 0.0 for factor in DiscFactor}

    def test_negative_counts_rejected(self) -> None:
        with pytest.raises(p.ValidationError):
            DiscResults.model_validate({"D": -1})


class TestSoftSkillsResults(object):
    @pytest.mark.parametrize("alias", ["trabalhoEmEquipe", "trabalhoEquipe", "teamwork"])
    def test_teamwork_aliases(self, alias: str) -> None:
        body = {k: v for k, v in SkillsBody.items() if k != "trabalhoEmEquipe"}
        skills = SoftSkillsResults.model_validate({**body, alias: 4})

        assert skills.teamwork == 4
        assert skills.model_dump()["trabalhoEmEquipe"] == 4

    def test_ratings_are_bounded(self) -> None:
        with pytest.raises(p.ValidationError):
            SoftSkillsResults.model_validate({**SkillsBody, "comunicacao": 11})
        with pytest.raises(p.ValidationError):
            SoftSkillsResults.model_validate({**SkillsBody, "negociacao": 0})

    def test_all_skills_required(self) -> None:
        with pytest.raises(p.ValidationError):
            SoftSkillsResults.model_validate({"comunicacao": 8})

    def test_average(self) -> None:
        assert SoftSkillsResults.model_validate(SkillsBody).average == 7.0


class TestSjtResults(object):
    def test_accepts_bare_list(self) -> None:
        assert SjtResults.model_validate([4, 6]).scores == [4, 6]

    def test_average(self) -> None:
        assert SjtResults(scores=[7, 8, 8]).average == 7.7
        assert SjtResults().average is None


def test_labels() -> None:
    assert AssessmentType.Sjt.label == "Julgamento Situacional"
    assert AssessmentStatus.Abandoned.label == "Abandonada"


class TestAssessment(object):
    def test_results_and_completion_time(self) -> None:
        start = datetime.datetime(2024, 5, 1, 12, tzinfo=datetime.UTC)
        assessment = Assessment(
            assessment_id=AssessmentID(),
            user_id=UserID(),
            type=AssessmentType.Complete,
            status=AssessmentStatus.Completed,
            disc_results=DiscResults(I=3),
            create_time=start,
            update_time=start,
            completed_at=start + datetime.timedelta(minutes=25),
        )

        assert isinstance(assessment, WithTimestamps)
        assert assessment.results == PartialResults(disc_results=DiscResults(I=3))
        assert assessment.completion_time == datetime.timedelta(minutes=25)

    def test_open_assessment_has_no_completion_time(self) -> None:
        now = datetime.datetime(2024, 5, 1, 12, tzinfo=datetime.UTC)
        assessment = Assessment.model_validate(
            {
                "assessment_id": str(AssessmentID()),
                "user_id": str(UserID()),
                "type": "disc",
                "create_time": now,
                "update_time": now,
            }
        )

        assert assessment.status is AssessmentStatus.InProgress
        assert assessment.completion_time is None
