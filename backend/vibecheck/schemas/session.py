# vibecheck/schemas/session.py
from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator
from typing import Optional, List
from ..models.session import SessionStatus
from .results import Answers, MovieDetails, RecommendationResult

answers_adapter = TypeAdapter(Answers)

def load_results(value) -> Optional[RecommendationResult]:
    """Decode a stored results blob, treating anything malformed as absent"""
    if value is None or isinstance(value, RecommendationResult):
        return value
    try:
        if isinstance(value, (str, bytes)):
            return RecommendationResult.model_validate_json(value)
        return RecommendationResult.model_validate(value)
    except ValidationError:
        return None

def load_answers(value) -> Optional[Answers]:
    """Decode a stored answers blob, treating anything malformed as absent"""
    if value is None:
        return None
    try:
        if isinstance(value, (str, bytes)):
            return answers_adapter.validate_json(value)
        return answers_adapter.validate_python(value)
    except ValidationError:
        return None

# Request schemas
class SessionCreate(BaseModel):
    """Schema for creating a new session"""
    host_name: Optional[str] = Field(None, alias="hostName")

class SessionJoin(BaseModel):
    name: Optional[str] = None

class AnswersSubmit(BaseModel):
    participant_id: str = Field(alias="participantId")
    answers: Answers

# Response schemas
class ParticipantSummary(BaseModel):
    id: str
    name: str
    completed: bool

    class Config:
        from_attributes = True

class ParticipantAnswers(BaseModel):
    name: str
    answers: Optional[Answers] = None
    completed: bool

    parse_answers = field_validator("answers", mode="before")(load_answers)

    class Config:
        from_attributes = True

class SessionRecord(BaseModel):
    """Session row as stored, with results decoded"""
    id: str
    status: SessionStatus
    host_name: str
    results: Optional[RecommendationResult] = None
    created_at: int

    parse_results = field_validator("results", mode="before")(load_results)

    class Config:
        from_attributes = True

class SessionDetail(SessionRecord):
    """Session plus roster, as shown in the lobby"""
    category: str = "movies"
    mode: str = "discover"
    participants: List[ParticipantSummary]
    completed_count: int = Field(alias="completedCount")

    class Config:
        from_attributes = True
        populate_by_name = True

    @classmethod
    def from_snapshot(cls, snapshot) -> "SessionDetail":
        session = snapshot.session
        return cls(
            id=session.id,
            status=session.status,
            host_name=session.host_name,
            results=session.results,
            created_at=session.created_at,
            participants=[ParticipantSummary.model_validate(p) for p in snapshot.participants],
            completed_count=snapshot.completed_count,
        )

class SessionCreated(BaseModel):
    id: str
    link: str
    participant_id: str = Field(alias="participantId")

    class Config:
        populate_by_name = True

class SessionJoined(BaseModel):
    id: str
    session: SessionDetail

class QuizStarted(BaseModel):
    mode: str = "movies"

class SubmitResponse(BaseModel):
    success: bool = True
    all_completed: bool = Field(alias="allCompleted")

    class Config:
        populate_by_name = True

class ResultsResponse(BaseModel):
    session: SessionRecord
    participants: List[ParticipantAnswers]
    results: Optional[RecommendationResult] = None

class CloseResponse(BaseModel):
    success: bool = True
    results: RecommendationResult

class QuizMoviesResponse(BaseModel):
    movies: List[MovieDetails]
