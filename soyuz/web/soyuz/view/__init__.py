"""View models for the Soyuz web application."""

__all__ = [
    "AssessmentListResponse",
    "ExportRequest",
    "PaginationResponse",
    "PatchAssessmentRequest",
    "SaveAssessmentRequest",
]

from .assessment import AssessmentListResponse, ExportRequest, PaginationResponse, PatchAssessmentRequest, \
    SaveAssessmentRequest
