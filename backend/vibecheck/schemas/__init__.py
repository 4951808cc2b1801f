# vibecheck/schemas/__init__.py
from .session import (
    SessionCreate,
    SessionJoin,
    AnswersSubmit,
    SessionDetail,
    SessionCreated,
    SessionJoined,
    SubmitResponse,
    ResultsResponse,
    CloseResponse,
)
from .results import Vote, VoteRecord, RecommendationResult, MovieDetails

__all__ = [
    "SessionCreate",
    "SessionJoin",
    "AnswersSubmit",
    "SessionDetail",
    "SessionCreated",
    "SessionJoined",
    "SubmitResponse",
    "ResultsResponse",
    "CloseResponse",
    "Vote",
    "VoteRecord",
    "RecommendationResult",
    "MovieDetails",
]
