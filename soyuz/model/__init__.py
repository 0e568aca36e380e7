__all__ = [
    # Base
    "BaseModel",
    "WithTimestamps",
    # Enums
    "DeploymentEnvironment",
    # ID Types
    "ShortUUIDKey",
    "UserID",
    "AssessmentID",
    # Assessments
    "Assessment",
    "AssessmentStatus",
    "AssessmentType",
    "DiscFactor",
    "DiscResults",
    "PartialResults",
    "SjtResults",
    "SoftSkillsResults",
]

from .assessment import Assessment, DiscResults, PartialResults, SjtResults, SoftSkillsResults
from .base import BaseModel, WithTimestamps
from .enum import AssessmentStatus, AssessmentType, DeploymentEnvironment, DiscFactor
from .id import AssessmentID, ShortUUIDKey, UserID
