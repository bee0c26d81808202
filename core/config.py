from pydantic_settings import BaseSettings
from functools import lru_cache
from pathlib import Path


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Pulse Aggregator API"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = """
    Read-side aggregation service for a multi-writer social event log.

    ## Features
    * Like, repost and bookmark state rebuilt from append-only interaction records
    * Two-level comment threads
    * Quote counts and quoted-post resolution
    * Time-windowed trending over play events
    * Follower graph and bookmark lists

    ## Consistency
    * Every read reflects the last completed fetch round
    * Writers that fail to answer contribute nothing to that round
    """
    DOCS_URL: str = "/docs"
    REDOC_URL: str = "/redoc"
    OPENAPI_URL: str = "/openapi.json"
    OPENAPI_TAGS: list[dict] = [
        {
            "name": "feed",
            "description": "Post feed, single posts, stats and comment threads"
        },
        {
            "name": "plays",
            "description": "Play event recording, play counts and trending"
        },
        {
            "name": "social",
            "description": "Followers, following and bookmarks"
        },
        {
            "name": "records",
            "description": "Validated writes of raw records to the event log"
        },
        {
            "name": "admin",
            "description": "Writer registry, refresh and cache management",
        }
    ]

    # CORS
    CORS_ALLOWED_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost"]

    # Event log storage
    DATABASE_URL: str = "sqlite:///./event_log.db"
    DATABASE_ECHO: bool = False

    # Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # Cache
    CACHE_ENABLED: bool = True
    CACHE_EXPIRE_TIME: int = 30  # seconds

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Records
    MAX_CONTENT_LENGTH: int = 5000
    QUOTE_MAX_DEPTH: int = 3

    # Trending
    TRENDING_WINDOW_DAYS: int = 7
    TRENDING_LIMIT: int = 10

    # Polling
    POLL_INTERVAL_SECONDS: int = 30
    WRITER_FETCH_TIMEOUT_SECONDS: float = 10.0

    # Writers known at startup, more are discovered from interaction authors
    PUBLISHERS: list[str] = []

    # Logging
    LOG_FORMAT: str = "console"  # "console" or "json"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    # Get the current file's directory
    current_dir = Path(__file__).resolve().parent
    # Go up one level to the project root
    project_dir = current_dir.parent

    # Initialize settings with explicit .env path
    return Settings(_env_file=project_dir / ".env")
