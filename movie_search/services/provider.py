import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..config import Settings, get_settings
from ..errors import ProviderUnavailable

logger = logging.getLogger(__name__)


def provider_error(payload: Dict[str, Any], default: str) -> Optional[str]:
    """
    Return the provider's error text when the payload reports no match,
    otherwise None.
    """
    if payload.get("Response") == "True":
        return None
    return payload.get("Error") or default


class ProviderClient:
    """
    Thin async client for the OMDb API. Every call is a single GET with a
    fixed timeout; failures are raised as ProviderUnavailable and never retried.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.session = None

    async def get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.settings.API_TIMEOUT),
                headers={"User-Agent": self.settings.USER_AGENT},
            )
        return self.session

    async def fetch(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send one request to the provider and return the decoded JSON payload
        """
        query = {"apikey": self.settings.OMDB_API_KEY}
        query.update(params)
        session = await self.get_session()
        try:
            async with session.get(self.settings.OMDB_BASE_URL, params=query) as response:
                response.raise_for_status()
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"OMDB API error: {e!r}")
            raise ProviderUnavailable("Failed to fetch data from movie database") from e

        if not isinstance(data, dict):
            raise ProviderUnavailable("Unexpected payload from movie database")
        return data

    async def search(self, query: str, page: int = 1) -> Dict[str, Any]:
        return await self.fetch({"s": query, "page": page})

    async def get_by_id(self, imdb_id: str) -> Dict[str, Any]:
        return await self.fetch({"i": imdb_id})

    async def close(self):
        if self.session is not None and not self.session.closed:
            await self.session.close()
        self.session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
