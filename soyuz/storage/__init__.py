from sqlalchemy.orm import Session, SessionTransaction

from . import assessment

__all__ = [
    "Session",
    "SessionTransaction",
    "assessment",
]
