from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime
from typing import List, Optional

# Detail fields merged into a search hit during enrichment
ENRICHMENT_FIELDS = (
    "Plot",
    "Director",
    "Actors",
    "Genre",
    "Runtime",
    "imdbRating",
    "Awards",
)


class MovieSummary(BaseModel):
    """
    Minimal movie record returned by a provider title search.
    Field names follow the provider's payload.
    """
    model_config = ConfigDict(extra="ignore")

    imdbID: str
    Title: str
    Year: Optional[str] = None
    Type: Optional[str] = None
    Poster: Optional[str] = None


class MovieDetail(MovieSummary):
    """
    Full provider record for a single movie. Fields the provider adds
    beyond the ones declared here are kept as-is.
    """
    model_config = ConfigDict(extra="allow")

    Plot: Optional[str] = None
    Director: Optional[str] = None
    Actors: Optional[str] = None
    Genre: Optional[str] = None
    Runtime: Optional[str] = None
    imdbRating: Optional[str] = None
    Awards: Optional[str] = None


class EnrichedMovie(MovieSummary):
    """
    Search hit merged with the enrichment fields of its detail record
    """
    Plot: Optional[str] = None
    Director: Optional[str] = None
    Actors: Optional[str] = None
    Genre: Optional[str] = None
    Runtime: Optional[str] = None
    imdbRating: Optional[str] = None
    Awards: Optional[str] = None

    @classmethod
    def from_summary(cls, summary: MovieSummary, detail: Optional[MovieDetail] = None) -> "EnrichedMovie":
        fields = summary.model_dump()
        if detail is not None:
            fields.update({name: getattr(detail, name) for name in ENRICHMENT_FIELDS})
        return cls(**fields)

    @property
    def is_enriched(self) -> bool:
        return any(getattr(self, name) is not None for name in ENRICHMENT_FIELDS)


class SearchPage(BaseModel):
    """
    One page of enriched search results
    """
    movies: List[EnrichedMovie]
    totalResults: int
    currentPage: int
    totalPages: int

    @field_validator('totalResults', 'totalPages')
    @classmethod
    def validate_counts(cls, v):
        if v < 0:
            raise ValueError("Result counts must be non-negative")
        return v

    @field_validator('currentPage')
    @classmethod
    def validate_page(cls, v):
        if v < 1:
            raise ValueError("Page number must be greater than 0")
        return v


class SearchResponse(BaseModel):
    """
    Envelope for /api/search
    """
    success: bool
    data: Optional[SearchPage] = None
    error: Optional[str] = None


class PopularMovies(BaseModel):
    movies: List[EnrichedMovie]


class PopularResponse(BaseModel):
    """
    Envelope for /api/popular
    """
    success: bool
    data: PopularMovies


class MovieDetailResponse(BaseModel):
    """
    Envelope for /api/movie/{id}
    """
    success: bool
    data: Optional[MovieDetail] = None
    error: Optional[str] = None


class MoviesBatchResponse(BaseModel):
    """
    Envelope for POST /api/movies
    """
    success: bool
    movies: List[MovieDetail]


class SearchHistoryEntry(BaseModel):
    query: str
    timestamp: datetime
    results: int


class SearchHistoryResponse(BaseModel):
    success: bool
    data: List[SearchHistoryEntry]


class ErrorResponse(BaseModel):
    """
    Error response model
    """
    success: bool = False
    error: str

