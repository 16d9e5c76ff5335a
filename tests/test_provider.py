import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, Mock

import aiohttp
import pytest

from movie_search.errors import ProviderUnavailable
from movie_search.services.provider import ProviderClient, provider_error


def mock_session(payload=None, status_error=None, decode_error=None):
    response = MagicMock()
    response.raise_for_status = Mock(side_effect=status_error)
    response.json = AsyncMock(return_value=payload, side_effect=decode_error)
    session = MagicMock()
    session.closed = False
    session.get.return_value.__aenter__.return_value = response
    return session


@pytest.mark.asyncio
async def test_search_builds_query(settings):
    client = ProviderClient(settings)
    client.session = mock_session({"Response": "True", "Search": []})

    data = await client.search("batman", 2)

    assert data == {"Response": "True", "Search": []}
    client.session.get.assert_called_once_with(
        "https://www.omdbapi.com/",
        params={"apikey": "test-key", "s": "batman", "page": 2},
    )


@pytest.mark.asyncio
async def test_get_by_id_builds_query(settings):
    client = ProviderClient(settings)
    client.session = mock_session({"Response": "True", "imdbID": "tt0372784"})

    await client.get_by_id("tt0372784")

    client.session.get.assert_called_once_with(
        "https://www.omdbapi.com/",
        params={"apikey": "test-key", "i": "tt0372784"},
    )


@pytest.mark.asyncio
async def test_session_has_timeout_and_user_agent(settings):
    client = ProviderClient(settings)
    session = await client.get_session()
    try:
        assert session.timeout.total == 10
        assert session.headers["User-Agent"] == "Movie-Search-App/1.0"
        assert await client.get_session() is session
    finally:
        await client.close()
    assert client.session is None


@pytest.mark.asyncio
async def test_timeout_raises_provider_unavailable(settings):
    client = ProviderClient(settings)
    client.session = mock_session()
    client.session.get.side_effect = asyncio.TimeoutError()

    with pytest.raises(ProviderUnavailable) as exc_info:
        await client.search("batman")
    assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)


@pytest.mark.asyncio
async def test_http_error_raises_provider_unavailable(settings):
    error = aiohttp.ClientResponseError(request_info=Mock(), history=(), status=503)
    client = ProviderClient(settings)
    client.session = mock_session(status_error=error)

    with pytest.raises(ProviderUnavailable) as exc_info:
        await client.get_by_id("tt1")
    assert exc_info.value.__cause__ is error
    assert client.session.get.call_count == 1


@pytest.mark.asyncio
async def test_non_object_payload_is_rejected(settings):
    client = ProviderClient(settings)
    client.session = mock_session(["not", "an", "object"])

    with pytest.raises(ProviderUnavailable):
        await client.search("batman")


def test_provider_error():
    assert provider_error({"Response": "True"}, "No movies found") is None
    assert provider_error({"Response": "False", "Error": "Too many results."}, "No movies found") == "Too many results."
    assert provider_error({"Response": "False"}, "No movies found") == "No movies found"


@pytest.mark.asyncio
async def test_undecodable_body_raises_provider_unavailable(settings):
    error = json.JSONDecodeError("Expecting value", "<html>Service Unavailable</html>", 0)
    client = ProviderClient(settings)
    client.session = mock_session(decode_error=error)

    with pytest.raises(ProviderUnavailable) as exc_info:
        await client.search("batman")
    assert exc_info.value.__cause__ is error
