# vibecheck/models/__init__.py
from .session import Session, SessionStatus
from .participant import Participant

__all__ = [
    "Session",
    "SessionStatus",
    "Participant",
]
