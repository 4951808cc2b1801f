# =============================================
# File: tests/conftest.py
# Purpose: Shared fixtures: temp SQLite store, fake completion/movie/notifier collaborators, app client
# =============================================
import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from vibecheck.config import Settings
from vibecheck.database import build_engine
from vibecheck.errors import UpstreamUnavailable
from vibecheck.main import create_app
from vibecheck.schemas.results import MovieDetails
from vibecheck.schemas.session import answers_adapter
from vibecheck.services.session_machine import SessionStateMachine
from vibecheck.services.session_store import SessionStore
from vibecheck.services.synthesizer import RecommendationSynthesizer


GOOD_RESULT = {
    "group_summary": "A crowd that loves twisty thrillers.",
    "recommendations": [
        {"item": "Memories of Murder (2003)", "reason": "Parasite fans, same director", "rank": 2},
        {"item": "Coherence (2013)", "reason": "Indie mind-bender like Inception", "rank": 1},
    ],
    "individual_writeups": [
        {"name": "Alice", "taste_summary": "Dark and clever", "personal_recs": ["Oldboy"]},
    ],
}


class FakeCompletionClient:
    """Returns canned text; yields to the loop so concurrent callers interleave"""

    def __init__(self, text=None, delay=0.01):
        self.text = text if text is not None else "Sure! " + json.dumps(GOOD_RESULT) + " Enjoy."
        self.delay = delay
        self.calls = []

    async def complete(self, messages, max_tokens=1500):
        self.calls.append(messages)
        await asyncio.sleep(self.delay)
        return self.text


class FakeNotifier:
    def __init__(self):
        self.events = []

    async def publish(self, channel, event, data):
        self.events.append((channel, event.value, data))
        await asyncio.sleep(0)

    def kinds(self):
        return [kind for _, kind, _ in self.events]


class FakeCatalog:
    def __init__(self, movies=None):
        self.movies = movies or []
        self.counts = []

    async def quiz_movies(self, count=15):
        self.counts.append(count)
        if not self.movies:
            raise UpstreamUnavailable("Could not fetch movies. Check TMDB API key.")
        return self.movies[:count]


def make_answers(*votes):
    """answers map from (movie_id, title, vote) tuples"""
    return answers_adapter.validate_python({
        str(movie_id): {"movieId": movie_id, "title": title, "vote": vote}
        for movie_id, title, vote in votes
    })


@pytest.fixture
def engine(tmp_path):
    return build_engine(f"sqlite:///{tmp_path / 'test.db'}")


@pytest.fixture
def store(engine):
    s = SessionStore(engine)
    s.init_schema()
    return s


@pytest.fixture
def completion():
    return FakeCompletionClient()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def machine(store, completion, notifier):
    return SessionStateMachine(store, RecommendationSynthesizer(completion), notifier)


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        LOG_DIR=str(tmp_path / "logs"),
        STATIC_DIR=str(tmp_path / "no-client"),
        TMDB_API_KEY=None,
        SYNTHETIC_API_KEY=None,
    )


@pytest.fixture
def client(test_settings, engine, completion):
    catalog = FakeCatalog([
        MovieDetails(id=496243, title="Parasite", year="2019", genres=["Thriller"]),
        MovieDetails(id=550, title="Fight Club", year="1999", genres=["Drama"]),
    ])
    app = create_app(test_settings, engine=engine, completion_client=completion, movie_catalog=catalog)
    with TestClient(app) as c:
        yield c
