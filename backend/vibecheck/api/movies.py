# vibecheck/api/movies.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from .dependencies import get_movie_catalog
from ..schemas.session import QuizMoviesResponse
from ..services.movie_catalog import MovieCatalog

router = APIRouter()

@router.get("/quiz", response_model=QuizMoviesResponse)
async def get_quiz_movies(
    request: Request,
    count: Optional[int] = Query(None, ge=1, le=50),
    catalog: MovieCatalog = Depends(get_movie_catalog)
):
    """
    Random movies from the curated pool for the swipe quiz
    Defaults to QUIZ_SIZE cards; returns 503 when none of them could be resolved
    """
    if count is None:
        count = request.app.state.settings.QUIZ_SIZE
    movies = await catalog.quiz_movies(count)
    return QuizMoviesResponse(movies=movies)
