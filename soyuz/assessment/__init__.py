__all__ = [
    "AssessmentReport",
    "HistoryBrowser",
    "HistoryFilters",
    "HistoryStats",
    "ResumeChoice",
    "ResumeCoordinator",
    "ResumePlan",
    "Screen",
    "next_screen",
]

from .history import HistoryBrowser, HistoryFilters, HistoryStats
from .report import AssessmentReport
from .resume import next_screen, ResumeChoice, ResumeCoordinator, ResumePlan, Screen
