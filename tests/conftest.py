import pytest

from movie_search.config import Settings
from movie_search.services.cache import ResponseCache

from fakes import Clock


@pytest.fixture
def settings():
    return Settings(
        OMDB_API_KEY="test-key",
        POPULAR_SEED_QUERIES=["Marvel", "Batman"],
        _env_file=None,
    )


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def cache(settings, clock):
    return ResponseCache(ttl=settings.CACHE_TTL, timer=clock)
