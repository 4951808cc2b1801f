# vibecheck/schemas/results.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Union
import enum

class Vote(str, enum.Enum):
    """Four-way swipe vote"""
    LOVE = "love"
    LIKE = "like"
    PASS = "pass"
    HAVENT_SEEN = "havent_seen"

class VoteRecord(BaseModel):
    """One swipe, keyed by movie id inside a participant's answers"""
    movie_id: Union[int, str] = Field(alias="movieId")
    title: str = ""
    vote: Vote

    class Config:
        populate_by_name = True

Answers = Dict[str, VoteRecord]

class Recommendation(BaseModel):
    item: str
    reason: str = ""
    rank: int

class IndividualWriteup(BaseModel):
    name: str
    taste_summary: str = ""
    personal_recs: List[str] = []

class RecommendationResult(BaseModel):
    """
    Group recommendation payload

    Field names match the JSON contract given to the completion service,
    and the payload is stored in sessions.results exactly as dumped here.
    """
    group_summary: str
    recommendations: List[Recommendation] = []
    individual_writeups: List[IndividualWriteup] = []

class MovieDetails(BaseModel):
    """Quiz card data resolved from TMDB"""
    id: int
    title: str
    year: Optional[str] = None
    poster: Optional[str] = None
    overview: Optional[str] = None
    genres: List[str] = []
    rating: Optional[float] = None
    runtime: Optional[int] = None
