import pytest

from movie_search.errors import ProviderUnavailable, ValidationError
from movie_search.services.movie_service import MovieService

from fakes import FakeProvider, NOT_FOUND


@pytest.mark.asyncio
async def test_get_movie_returns_full_record(cache):
    provider = FakeProvider()
    service = MovieService(provider, cache)

    response = await service.get_movie("tt0468569")

    assert response.success is True
    assert response.data.imdbID == "tt0468569"
    assert response.data.Director == "Christopher Nolan"
    # Provider fields outside the model are passed through
    assert response.model_dump()["data"]["Metascore"] == "84"


@pytest.mark.asyncio
async def test_get_movie_is_cached(cache):
    provider = FakeProvider()
    service = MovieService(provider, cache)

    first = await service.get_movie("tt1")
    second = await service.get_movie("tt1")

    assert first == second
    assert provider.detail_calls == ["tt1"]
    assert cache.get("movie:tt1") is not None


@pytest.mark.asyncio
async def test_unknown_movie_is_cached_failure(cache):
    provider = FakeProvider(details={"tt0": {"Response": "False", "Error": "Incorrect IMDb ID."}})
    service = MovieService(provider, cache)

    first = await service.get_movie("tt0")
    await service.get_movie("tt0")

    assert first.success is False
    assert first.error == "Incorrect IMDb ID."
    assert provider.detail_calls == ["tt0"]


@pytest.mark.asyncio
async def test_get_movie_provider_failure_propagates(cache):
    service = MovieService(FakeProvider(failing_ids={"tt1"}), cache)

    with pytest.raises(ProviderUnavailable):
        await service.get_movie("tt1")
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_get_movie_requires_id(cache):
    with pytest.raises(ValidationError):
        await MovieService(FakeProvider(), cache).get_movie("  ")


@pytest.mark.asyncio
async def test_get_movies_skips_unknown_ids(cache):
    provider = FakeProvider(details={"tt2": NOT_FOUND})
    service = MovieService(provider, cache)

    response = await service.get_movies(["tt1", "tt2", "tt3"])

    assert response.success is True
    assert [m.imdbID for m in response.movies] == ["tt1", "tt3"]
    assert provider.detail_calls == ["tt1", "tt2", "tt3"]
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_get_movies_requires_list(cache):
    with pytest.raises(ValidationError, match="imdbIDs must be an array."):
        await MovieService(FakeProvider(), cache).get_movies("tt1")
