import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PayloadError

from ..config import Settings, get_settings
from ..errors import ValidationError
from ..models.movie import MovieSummary, SearchPage, SearchResponse
from .cache import ResponseCache, search_key
from .enricher import DetailEnricher
from .history import HistoryRecorder
from .provider import ProviderClient, provider_error

logger = logging.getLogger(__name__)


def total_pages(total_results: int, page_size: int) -> int:
    return math.ceil(total_results / page_size)


def parse_total(value: Any) -> int:
    """
    Read the provider's result count, which arrives as a string
    """
    try:
        total = int(str(value).strip())
    except (TypeError, ValueError):
        return 0
    return max(total, 0)


def parse_hits(payload: Dict[str, Any]) -> List[MovieSummary]:
    hits = []
    for item in payload.get("Search") or []:
        try:
            hits.append(MovieSummary.model_validate(item))
        except PayloadError as e:
            logger.warning(f"Skipping malformed search hit {item!r}: {e}")
    return hits


class SearchAggregator:
    """
    Title search with per-hit enrichment, served through the response cache
    """

    def __init__(
        self,
        provider: ProviderClient,
        cache: ResponseCache,
        enricher: Optional[DetailEnricher] = None,
        history: Optional[HistoryRecorder] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.provider = provider
        self.cache = cache
        self.enricher = enricher or DetailEnricher(provider, concurrency=self.settings.PAGE_SIZE)
        self.history = history

    def validate(self, query: Optional[str], page: Any = 1) -> Tuple[str, int]:
        """
        Check the query and page bounds and return the normalized pair.
        Raises ValidationError with a message naming the offending field.
        """
        if query is None:
            raise ValidationError('"query" is required')
        if not isinstance(query, str):
            raise ValidationError('"query" must be a string')
        if len(query) > self.settings.MAX_QUERY_LENGTH:
            raise ValidationError(
                f'"query" length must be less than or equal to {self.settings.MAX_QUERY_LENGTH} characters long'
            )
        query = query.strip()
        if not query:
            raise ValidationError('"query" is not allowed to be empty')

        if page is None:
            page = 1
        if isinstance(page, bool) or not isinstance(page, int):
            raise ValidationError('"page" must be an integer')
        if page < 1:
            raise ValidationError('"page" must be greater than or equal to 1')
        if page > self.settings.MAX_PAGE:
            raise ValidationError(f'"page" must be less than or equal to {self.settings.MAX_PAGE}')
        return query, page

    async def search(self, query: Optional[str], page: Any = 1, client_address: Optional[str] = None) -> SearchResponse:
        """
        Search the provider for a title and return one enriched page.

        Misses go to the provider; the final envelope, including a
        "no movies found" result, is cached under search:{query}:{page}.
        ProviderUnavailable from the search call itself propagates.
        """
        query, page = self.validate(query, page)
        cache_key = search_key(query, page)

        # Check cache first
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {cache_key}")
            return SearchResponse.model_validate_json(cached)

        payload = await self.provider.search(query, page)

        error = provider_error(payload, "No movies found")
        if error is not None:
            response = SearchResponse(success=False, error=error)
        else:
            movies = await self.enricher.enrich_many(parse_hits(payload))
            total = parse_total(payload.get("totalResults"))
            response = SearchResponse(
                success=True,
                data=SearchPage(
                    movies=movies,
                    totalResults=total,
                    currentPage=page,
                    totalPages=total_pages(total, self.settings.PAGE_SIZE),
                ),
            )

        serialized = response.model_dump_json(exclude_none=True)
        self.cache.set(cache_key, serialized)

        if response.success:
            self._record_history(query, response.data.totalResults, client_address)

        return SearchResponse.model_validate_json(serialized)

    def _record_history(self, query: str, results: int, client_address: Optional[str]):
        if self.history is None:
            return
        try:
            self.history.notify(query, results, client_address)
        except Exception as e:
            logger.error(f"Failed to schedule search history record: {e!r}")
