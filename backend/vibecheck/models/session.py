# vibecheck/models/session.py
from sqlalchemy import Column, String, Integer, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
import secrets
import time
import enum
from ..database import Base

def new_id() -> str:
    """Short URL-safe identifier used in share links (8 chars)"""
    return secrets.token_urlsafe(6)

def epoch_now() -> int:
    return int(time.time())

class SessionStatus(str, enum.Enum):
    """Session lifecycle status, only ever moves forward"""
    LOBBY = "lobby"
    COLLECTING = "collecting"
    COMPLETE = "complete"

class Session(Base):
    """
    Represents one party game
    One session = a host, the people who joined, and the group results
    """
    __tablename__ = "sessions"

    # Primary key
    id = Column(String(16), primary_key=True, default=new_id)

    # Status tracking
    status = Column(
        SQLEnum(SessionStatus, values_callable=lambda e: [m.value for m in e]),
        default=SessionStatus.LOBBY,
        nullable=False
    )
    host_name = Column(String(64), nullable=False)

    # Serialized RecommendationResult, set when status becomes complete
    results = Column(Text, nullable=True)

    # Epoch seconds, drives retention
    created_at = Column(Integer, default=epoch_now, nullable=False)

    # Relationships
    participants = relationship("Participant", back_populates="session", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Session {self.id} status={self.status}>"
