import logging
from typing import List, Optional, Sequence

from ..config import Settings, get_settings
from ..errors import ProviderUnavailable
from ..models.movie import EnrichedMovie, PopularMovies, PopularResponse
from .cache import POPULAR_KEY, ResponseCache
from .enricher import DetailEnricher
from .provider import ProviderClient, provider_error
from .search import parse_hits

logger = logging.getLogger(__name__)


def dedupe_by_id(movies: Sequence[EnrichedMovie]) -> List[EnrichedMovie]:
    seen = set()
    unique = []
    for movie in movies:
        if movie.imdbID in seen:
            continue
        seen.add(movie.imdbID)
        unique.append(movie)
    return unique


class PopularCurator:
    """
    Builds the "popular" list out of a fixed set of seed searches.
    There is no real ranking: the first hits of each seed are taken in
    seed order, duplicates dropped and the list capped.
    """

    def __init__(
        self,
        provider: ProviderClient,
        cache: ResponseCache,
        enricher: Optional[DetailEnricher] = None,
        settings: Optional[Settings] = None,
        seeds: Optional[Sequence[str]] = None,
    ):
        self.settings = settings or get_settings()
        self.provider = provider
        self.cache = cache
        self.enricher = enricher or DetailEnricher(provider, concurrency=self.settings.PAGE_SIZE)
        self.seeds = list(seeds if seeds is not None else self.settings.POPULAR_SEED_QUERIES)

    async def curate(self) -> PopularResponse:
        cached = self.cache.get(POPULAR_KEY)
        if cached is not None:
            return PopularResponse.model_validate_json(cached)

        popular_movies: List[EnrichedMovie] = []
        for seed in self.seeds:
            popular_movies.extend(await self._seed_movies(seed))

        movies = dedupe_by_id(popular_movies)[: self.settings.POPULAR_LIMIT]
        response = PopularResponse(success=True, data=PopularMovies(movies=movies))

        serialized = response.model_dump_json(exclude_none=True)
        self.cache.set(POPULAR_KEY, serialized)
        return PopularResponse.model_validate_json(serialized)

    async def _seed_movies(self, seed: str) -> List[EnrichedMovie]:
        try:
            payload = await self.provider.search(seed, 1)
        except ProviderUnavailable as e:
            logger.error(f"Error fetching trending movies for {seed}: {e.__cause__!r}")
            return []

        if provider_error(payload, "No movies found") is not None:
            logger.info(f"No trending movies for {seed}, skipping")
            return []

        hits = parse_hits(payload)[: self.settings.POPULAR_PER_SEED]
        return await self.enricher.enrich_many(hits)
