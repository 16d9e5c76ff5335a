import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .errors import ProviderUnavailable, ValidationError
from .middleware.logging import configure_logging, logging_middleware
from .middleware.rate_limit import RateLimiter, rate_limit_middleware
from .models.movie import (
    ErrorResponse,
    MovieDetailResponse,
    MoviesBatchResponse,
    PopularResponse,
    SearchHistoryResponse,
    SearchResponse,
)
from .services.cache import ResponseCache
from .services.enricher import DetailEnricher
from .services.history import HistoryRecorder
from .services.movie_service import MovieService
from .services.popular import PopularCurator
from .services.provider import ProviderClient
from .services.search import SearchAggregator

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Bad Request"},
    429: {"model": ErrorResponse, "description": "Too Many Requests"},
    500: {"model": ErrorResponse, "description": "Internal Server Error"},
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the shared cache and services once per process and tear them
    down at shutdown.
    """
    settings = app.state.settings
    provider = app.state.provider or ProviderClient(settings)
    cache = ResponseCache(ttl=settings.CACHE_TTL, maxsize=settings.CACHE_MAX_SIZE)
    history = HistoryRecorder(limit=settings.HISTORY_LIMIT)
    enricher = DetailEnricher(provider, concurrency=settings.PAGE_SIZE)

    app.state.cache = cache
    app.state.history = history
    app.state.search_aggregator = SearchAggregator(provider, cache, enricher, history, settings)
    app.state.popular_curator = PopularCurator(provider, cache, enricher, settings)
    app.state.movie_service = MovieService(provider, cache)
    try:
        yield
    finally:
        await app.state.rate_limiter.stop_cleanup()
        await history.drain()
        await provider.close()


def get_search_aggregator(request: Request) -> SearchAggregator:
    return request.app.state.search_aggregator


def get_popular_curator(request: Request) -> PopularCurator:
    return request.app.state.popular_curator


def get_movie_service(request: Request) -> MovieService:
    return request.app.state.movie_service


def get_history(request: Request) -> HistoryRecorder:
    return request.app.state.history


def create_app(settings: Optional[Settings] = None, provider: Optional[ProviderClient] = None) -> FastAPI:
    """
    Build the application. ``provider`` replaces the OMDb client, which
    tests use to plug in a fake.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_FILE)

    app = FastAPI(
        title="Movie Search API",
        description="Search OMDb by title with enriched, cached results",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.provider = provider
    app.state.rate_limiter = RateLimiter(limit=settings.RATE_LIMIT_MAX_REQUESTS, window=settings.RATE_LIMIT_WINDOW)

    # Add middlewares
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(logging_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request, exc):
        """
        Render every HTTP error as a {success, error} envelope
        """
        detail = "Endpoint not found" if exc.status_code == 404 else exc.detail
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": detail},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request, exc):
        error = exc.errors()[0]
        field = error["loc"][-1]
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": f'Invalid value for "{field}": {error["msg"]}'},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request, exc):
        logger.exception("Unhandled error", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Something went wrong!"},
        )

    @app.get("/api/search",
             response_model=SearchResponse,
             response_model_exclude_none=True,
             responses=ERROR_RESPONSES,
             tags=["Movies"])
    async def search_movies(
        request: Request,
        query: Optional[str] = Query(None, description="Movie title to search for"),
        page: int = Query(1, description="Page number (1-100)"),
        aggregator: SearchAggregator = Depends(get_search_aggregator),
    ):
        """
        Search movies by title.

        - **query**: title to search for, 1-100 characters
        - **page**: page number, 1-100, ten movies per page

        Each movie is enriched with plot, director, actors, genre, runtime,
        rating and awards where the provider has them.
        """
        client_address = request.client.host if request.client else None
        try:
            return await aggregator.search(query, page, client_address=client_address)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ProviderUnavailable as e:
            logger.error(f"Search error: {e.__cause__!r}")
            raise HTTPException(status_code=500, detail="Internal server error")

    @app.get("/api/popular",
             response_model=PopularResponse,
             response_model_exclude_none=True,
             responses=ERROR_RESPONSES,
             tags=["Movies"])
    async def popular_movies(curator: PopularCurator = Depends(get_popular_curator)):
        """
        Trending movies, assembled from a fixed list of seed searches
        """
        try:
            return await curator.curate()
        except ProviderUnavailable as e:
            logger.error(f"Trending movies error: {e.__cause__!r}")
            raise HTTPException(status_code=500, detail="Failed to fetch trending movies")

    @app.get("/api/movie/{imdb_id}",
             response_model=MovieDetailResponse,
             response_model_exclude_none=True,
             responses=ERROR_RESPONSES,
             tags=["Movies"])
    async def movie_detail(imdb_id: str, movie_service: MovieService = Depends(get_movie_service)):
        """
        Full provider record for one movie
        """
        try:
            return await movie_service.get_movie(imdb_id)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ProviderUnavailable as e:
            logger.error(f"Movie detail error: {e.__cause__!r}")
            raise HTTPException(status_code=500, detail="Failed to fetch movie details")

    @app.post("/api/movies",
              response_model=MoviesBatchResponse,
              response_model_exclude_none=True,
              responses=ERROR_RESPONSES,
              tags=["Movies"])
    async def movies_batch(
        payload: Any = Body(default=None),
        movie_service: MovieService = Depends(get_movie_service),
    ):
        """
        Fetch several movies by IMDb id, skipping ids the provider does not know
        """
        try:
            imdb_ids = payload.get("imdbIDs") if isinstance(payload, dict) else None
            return await movie_service.get_movies(imdb_ids)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ProviderUnavailable as e:
            logger.error(f"Batch movie error: {e.__cause__!r}")
            raise HTTPException(status_code=500, detail="Failed to fetch movies.")

    @app.get("/api/search-history",
             response_model=SearchHistoryResponse,
             response_model_exclude_none=True,
             tags=["History"])
    async def search_history(history: HistoryRecorder = Depends(get_history)):
        """
        Most recent successful searches, newest first
        """
        return SearchHistoryResponse(success=True, data=history.recent())

    @app.get("/api/health", tags=["System"])
    async def health_check(request: Request):
        """
        Health check endpoint to verify the API is running.
        """
        return {
            "success": True,
            "message": "Server is running",
            "provider": "configured" if request.app.state.settings.OMDB_API_KEY else "missing api key",
            "cachedEntries": len(request.app.state.cache),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()
