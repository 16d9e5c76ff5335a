import asyncio
import logging
from typing import List, Optional, Sequence

from pydantic import ValidationError as PayloadError

from ..errors import ProviderUnavailable
from ..models.movie import EnrichedMovie, MovieDetail, MovieSummary
from .provider import ProviderClient, provider_error

logger = logging.getLogger(__name__)


class DetailEnricher:
    """
    Merges the provider's detail record into search hits.

    Enrichment never fails: when the detail lookup errors out for any
    reason the hit is returned with its summary fields only.
    """

    def __init__(self, provider: ProviderClient, concurrency: int = 10):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.provider = provider
        self.concurrency = concurrency

    async def enrich(self, summary: MovieSummary) -> EnrichedMovie:
        detail = await self._fetch_detail(summary.imdbID)
        return EnrichedMovie.from_summary(summary, detail)

    async def enrich_many(self, summaries: Sequence[MovieSummary]) -> List[EnrichedMovie]:
        """
        Enrich a batch concurrently. The result keeps the input order no
        matter which lookup finishes first.
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(summary: MovieSummary) -> EnrichedMovie:
            async with semaphore:
                return await self.enrich(summary)

        return list(await asyncio.gather(*(_bounded(summary) for summary in summaries)))

    async def _fetch_detail(self, imdb_id: str) -> Optional[MovieDetail]:
        try:
            payload = await self.provider.get_by_id(imdb_id)
        except Exception as e:
            cause = e.__cause__ if isinstance(e, ProviderUnavailable) else e
            logger.warning(f"Detail lookup failed for {imdb_id}, returning basic info: {cause!r}")
            return None

        error = provider_error(payload, "Movie not found")
        if error is not None:
            logger.info(f"No detail record for {imdb_id}: {error}")
            return None
        try:
            return MovieDetail.model_validate(payload)
        except PayloadError as e:
            logger.warning(f"Malformed detail record for {imdb_id}: {e}")
            return None
