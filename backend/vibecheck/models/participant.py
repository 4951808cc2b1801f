# vibecheck/models/participant.py
from sqlalchemy import Column, String, Integer, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship
from ..database import Base
from .session import new_id, epoch_now

class Participant(Base):
    """
    Represents a person taking the swipe quiz
    The host is always the first participant of their session
    """
    __tablename__ = "participants"

    # Primary key
    id = Column(String(16), primary_key=True, default=new_id)

    # Foreign key to session
    session_id = Column(String(16), ForeignKey("sessions.id"), nullable=False, index=True)

    name = Column(String(64), nullable=False)

    # Serialized votes, null until submission
    answers = Column(Text, nullable=True)
    # Example structure:
    # {
    #   "496243": {"movieId": 496243, "title": "Parasite", "vote": "love"},
    #   "550": {"movieId": 550, "title": "Fight Club", "vote": "pass"}
    # }

    completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(Integer, default=epoch_now, nullable=False)

    # Relationships
    session = relationship("Session", back_populates="participants")

    def __repr__(self):
        return f"<Participant {self.name} completed={self.completed}>"
