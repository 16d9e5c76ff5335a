from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """
    # Provider
    OMDB_API_KEY: str = ""
    OMDB_BASE_URL: str = "https://www.omdbapi.com/"
    USER_AGENT: str = "Movie-Search-App/1.0"

    # Cache Settings
    CACHE_TTL: int = 3600  # Cache time-to-live in seconds
    CACHE_MAX_SIZE: Optional[int] = None  # Unbounded unless set

    # Rate Limiting
    RATE_LIMIT_MAX_REQUESTS: int = 100  # Requests allowed per client per window
    RATE_LIMIT_WINDOW: int = 900  # Window length in seconds

    # API Timeouts
    API_TIMEOUT: int = 10  # Timeout for external API calls in seconds

    # Search bounds
    PAGE_SIZE: int = 10  # Fixed by the provider
    MAX_QUERY_LENGTH: int = 100
    MAX_PAGE: int = 100

    # Popular list
    POPULAR_SEED_QUERIES: List[str] = [
        "Marvel",
        "Batman",
        "Spider-Man",
        "Star Wars",
        "Fast",
        "Mission Impossible",
        "John Wick",
        "Transformers",
    ]
    POPULAR_PER_SEED: int = 3
    POPULAR_LIMIT: int = 25

    # Search history
    HISTORY_LIMIT: int = 50

    LOG_FILE: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    @field_validator('CACHE_TTL')
    @classmethod
    def validate_cache_ttl(cls, v):
        if v < 0:
            raise ValueError("Cache TTL must be non-negative")
        return v

    @field_validator('CACHE_MAX_SIZE')
    @classmethod
    def validate_cache_max_size(cls, v):
        if v is not None and v < 1:
            raise ValueError("Cache max size must be positive")
        return v

    @field_validator('RATE_LIMIT_MAX_REQUESTS', 'RATE_LIMIT_WINDOW')
    @classmethod
    def validate_rate_limit(cls, v):
        if v < 1:
            raise ValueError("Rate limit must be positive")
        return v

    @field_validator('API_TIMEOUT')
    @classmethod
    def validate_timeout(cls, v):
        if v < 1:
            raise ValueError("API timeout must be positive")
        return v

    @field_validator('PAGE_SIZE', 'MAX_QUERY_LENGTH', 'MAX_PAGE', 'POPULAR_PER_SEED', 'POPULAR_LIMIT', 'HISTORY_LIMIT')
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("Value must be positive")
        return v


@lru_cache()
def get_settings() -> Settings:
    """
    Create and cache settings instance
    """
    return Settings()
