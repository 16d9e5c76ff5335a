import logging
from typing import Any, List

from pydantic import ValidationError as PayloadError

from ..errors import ValidationError
from ..models.movie import MovieDetail, MovieDetailResponse, MoviesBatchResponse
from .cache import ResponseCache, movie_key
from .provider import ProviderClient, provider_error

logger = logging.getLogger(__name__)


class MovieService:
    """
    Lookups of complete movie records by IMDb id
    """

    def __init__(self, provider: ProviderClient, cache: ResponseCache):
        self.provider = provider
        self.cache = cache

    async def get_movie(self, imdb_id: str) -> MovieDetailResponse:
        """
        Fetch one movie's detail record. Both found and not-found outcomes
        are cached under movie:{id}; ProviderUnavailable propagates.
        """
        imdb_id = (imdb_id or "").strip()
        if not imdb_id:
            raise ValidationError("imdbID is required.")

        cache_key = movie_key(imdb_id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return MovieDetailResponse.model_validate_json(cached)

        payload = await self.provider.get_by_id(imdb_id)
        error = provider_error(payload, "Movie not found")
        if error is None:
            try:
                response = MovieDetailResponse(success=True, data=MovieDetail.model_validate(payload))
            except PayloadError as e:
                logger.warning(f"Malformed detail record for {imdb_id}: {e}")
                response = MovieDetailResponse(success=False, error="Movie not found")
        else:
            response = MovieDetailResponse(success=False, error=error)

        serialized = response.model_dump_json(exclude_none=True)
        self.cache.set(cache_key, serialized)
        return MovieDetailResponse.model_validate_json(serialized)

    async def get_movies(self, imdb_ids: Any) -> MoviesBatchResponse:
        """
        Fetch several movies one after another, skipping ids the provider
        does not know. Results are not cached as a batch.
        """
        if not isinstance(imdb_ids, list):
            raise ValidationError("imdbIDs must be an array.")

        movies: List[MovieDetail] = []
        for imdb_id in imdb_ids:
            payload = await self.provider.get_by_id(str(imdb_id))
            if provider_error(payload, "Movie not found") is not None:
                continue
            try:
                movies.append(MovieDetail.model_validate(payload))
            except PayloadError as e:
                logger.warning(f"Skipping malformed detail record for {imdb_id}: {e}")
        return MoviesBatchResponse(success=True, movies=movies)
