from __future__ import annotations

import enum


class DeploymentEnvironment(enum.Enum):
    Production = "production"
    Development = "development"
    Staging = "staging"
    Test = "test"
    Local = "local"


class AssessmentType(enum.Enum):
    Complete = "complete"
    Disc = "disc"
    SoftSkills = "soft_skills"
    Sjt = "sjt"

    @property
    def label(self) -> str:
        return _type_labels[self]


class AssessmentStatus(enum.Enum):
    InProgress = "in_progress"
    Completed = "completed"
    Abandoned = "abandoned"

    @property
    def is_closed(self) -> bool:
        return self is not AssessmentStatus.InProgress

    @property
    def label(self) -> str:
        return _status_labels[self]


_type_labels = {
    AssessmentType.Complete: "Avaliação Completa",
    AssessmentType.Disc: "DISC",
    AssessmentType.SoftSkills: "Soft Skills",
    AssessmentType.Sjt: "Julgamento Situacional",
}

_status_labels = {
    AssessmentStatus.InProgress: "Em Progresso",
    AssessmentStatus.Completed: "Concluída",
    AssessmentStatus.Abandoned: "Abandonada",
}


class DiscFactor(enum.Enum):
    Dominance = "D"
    Influence = "I"
    Steadiness = "S"
    Conscientiousness = "C"

