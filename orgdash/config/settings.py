"""Application settings and configuration"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "GitHub Org Dashboard"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # GitHub API
    GITHUB_API_BASE_URL: str = "https://api.github.com"
    GITHUB_API_VERSION: str = "2022-11-28"
    USER_AGENT: str = "GitHubOrgDashboard/1.0"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Repository listing
    REPOS_PAGE_SIZE: int = 10

    # Query cache
    QUERY_STALE_TIME_SECONDS: float = 5 * 60
    QUERY_GC_TIME_SECONDS: float = 10 * 60
    QUERY_MAX_RETRIES: int = 2
    QUERY_RETRY_BACKOFF_BASE_SECONDS: float = 1.0
    QUERY_RETRY_BACKOFF_MAX_SECONDS: float = 30.0

    # Language aggregation fan-out
    MAX_CONCURRENT_REQUESTS: int = 10

    # Search input
    SEARCH_DEBOUNCE_MS: int = 400

    # Persisted UI state
    UI_STATE_STORAGE_KEY: str = "github-org-dashboard/ui-state"
    STATE_DATABASE_URL: str = "sqlite:///./orgdash_state.db"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env


settings = Settings()
