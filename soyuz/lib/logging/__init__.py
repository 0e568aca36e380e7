__all__ = [
    "ExtraFormatter",
    "LogStyle",
]

from .extra import ExtraFormatter, LogStyle
