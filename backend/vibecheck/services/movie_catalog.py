# vibecheck/services/movie_catalog.py
import asyncio
import logging
import random
from typing import List, Optional

import httpx

from ..errors import UpstreamUnavailable
from ..schemas.results import MovieDetails

logger = logging.getLogger(__name__)

# Curated quiz pool - TMDB IDs
CURATED_MOVIES = [
    # Acclaimed crowd-pleasers
    {"id": 496243, "title": "Parasite"},
    {"id": 545611, "title": "Everything Everywhere All at Once"},
    {"id": 27205, "title": "Inception"},
    {"id": 238, "title": "The Godfather"},
    {"id": 155, "title": "The Dark Knight"},
    {"id": 680, "title": "Pulp Fiction"},
    {"id": 13, "title": "Forrest Gump"},
    {"id": 550, "title": "Fight Club"},
    {"id": 157336, "title": "Interstellar"},
    {"id": 278, "title": "The Shawshank Redemption"},

    # Indie / arthouse
    {"id": 376867, "title": "Moonlight"},
    {"id": 313369, "title": "La La Land"},
    {"id": 398818, "title": "Call Me by Your Name"},
    {"id": 381288, "title": "Lady Bird"},
    {"id": 508442, "title": "Soul"},
    {"id": 38757, "title": "Whiplash"},
    {"id": 76203, "title": "12 Years a Slave"},
    {"id": 68718, "title": "Django Unchained"},

    # Foreign cinema
    {"id": 4935, "title": "Howl's Moving Castle"},
    {"id": 129, "title": "Spirited Away"},
    {"id": 664, "title": "Amélie"},
    {"id": 670, "title": "Oldboy"},
    {"id": 598, "title": "City of God"},
    {"id": 372058, "title": "Your Name"},
    {"id": 346, "title": "Seven Samurai"},
    {"id": 11360, "title": "Life is Beautiful"},

    # Recent hits
    {"id": 872585, "title": "Oppenheimer"},
    {"id": 569094, "title": "Spider-Man: Across the Spider-Verse"},
    {"id": 466420, "title": "Killers of the Flower Moon"},
    {"id": 346698, "title": "Barbie"},

    # Cult classics & genre favorites
    {"id": 603, "title": "The Matrix"},
    {"id": 120, "title": "The Lord of the Rings: The Fellowship of the Ring"},
    {"id": 769, "title": "GoodFellas"},
    {"id": 807, "title": "Se7en"},
    {"id": 297802, "title": "Arrival"},
    {"id": 264660, "title": "Ex Machina"},
    {"id": 293660, "title": "Deadpool"},
    {"id": 284053, "title": "Thor: Ragnarok"},

    # Horror / thriller
    {"id": 419430, "title": "Get Out"},
    {"id": 493922, "title": "Hereditary"},
    {"id": 310131, "title": "The Witch"},
    {"id": 458220, "title": "A Quiet Place"},
    {"id": 539681, "title": "Midsommar"},

    # Comedy
    {"id": 353486, "title": "The Grand Budapest Hotel"},
    {"id": 22538, "title": "Scott Pilgrim vs. the World"},
    {"id": 515001, "title": "Jojo Rabbit"},
    {"id": 466272, "title": "Once Upon a Time in Hollywood"},
]


def to_movie_details(data: dict, image_base: str) -> MovieDetails:
    """Map a TMDB /movie/{id} payload to a quiz card"""
    release_date = data.get("release_date") or ""
    poster_path = data.get("poster_path")
    return MovieDetails(
        id=data["id"],
        title=data.get("title") or "",
        year=release_date.split("-")[0] or None,
        poster=f"{image_base}{poster_path}" if poster_path else None,
        overview=data.get("overview"),
        genres=[g["name"] for g in data.get("genres") or [] if g.get("name")],
        rating=data.get("vote_average"),
        runtime=data.get("runtime"),
    )


class MovieCatalog:
    """TMDB lookups for the curated quiz pool"""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.themoviedb.org/3",
        image_base: str = "https://image.tmdb.org/t/p/w500",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.image_base = image_base
        self.timeout = timeout
        self._transport = transport

    async def fetch(self, tmdb_id: int, client: Optional[httpx.AsyncClient] = None) -> Optional[MovieDetails]:
        """Details for one movie, or None if TMDB is unconfigured or the lookup fails"""
        if not self.api_key:
            logger.error("TMDB_API_KEY not set")
            return None

        if client is None:
            async with self._client() as own_client:
                return await self.fetch(tmdb_id, own_client)

        try:
            response = await client.get(f"{self.base_url}/movie/{tmdb_id}", params={"api_key": self.api_key})
            response.raise_for_status()
            return to_movie_details(response.json(), self.image_base)
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.error(f"TMDB fetch error for {tmdb_id}: {e}")
            return None

    async def quiz_movies(self, count: int = 15) -> List[MovieDetails]:
        """Random selection from the curated pool, dropping lookups that failed"""
        selected = random.sample(CURATED_MOVIES, min(count, len(CURATED_MOVIES)))

        async with self._client() as client:
            movies = await asyncio.gather(*(self.fetch(m["id"], client) for m in selected))

        found = [m for m in movies if m is not None]
        if not found:
            raise UpstreamUnavailable("Could not fetch movies. Check TMDB API key.")
        logger.info(f"Resolved {len(found)}/{len(selected)} quiz movies")
        return found

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
