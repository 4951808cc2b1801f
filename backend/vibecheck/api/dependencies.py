# vibecheck/api/dependencies.py
from fastapi import Request
from ..services.movie_catalog import MovieCatalog
from ..services.session_machine import SessionStateMachine

def client_key(request: Request) -> str:
    """Rate limit key for the caller"""
    return request.client.host if request.client else "unknown"

def get_state_machine(request: Request) -> SessionStateMachine:
    return request.app.state.session_machine

def get_movie_catalog(request: Request) -> MovieCatalog:
    return request.app.state.movie_catalog

def limit_session_creation(request: Request):
    """Session creation has its own, stricter limit"""
    request.app.state.create_session_limiter.check(client_key(request))
