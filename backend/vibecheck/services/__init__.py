# vibecheck/services/__init__.py
from .session_store import SessionStore
from .session_machine import SessionStateMachine, SessionSnapshot, SubmissionOutcome
from .synthesizer import RecommendationSynthesizer
from .completion_client import CompletionClient
from .movie_catalog import MovieCatalog
from .retention import RetentionSweeper
from .rate_limiter import RateLimiter

__all__ = [
    "SessionStore",
    "SessionStateMachine",
    "SessionSnapshot",
    "SubmissionOutcome",
    "RecommendationSynthesizer",
    "CompletionClient",
    "MovieCatalog",
    "RetentionSweeper",
    "RateLimiter",
]
