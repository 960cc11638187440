"""Configuration settings for gitlab-mr-refs."""

from functools import lru_cache
from typing import Literal, Self

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RateLimitConfig(BaseModel):
    """Configuration for the rate governor.

    The governor spaces requests by a minimum interval that escalates
    through two tiers as the server-reported remaining quota drops.
    """

    # Spacing tiers
    baseline_interval_ms: int = Field(
        default=100,
        ge=0,
        description="Minimum milliseconds between requests before any throttling signal",
    )
    cautious_interval_ms: int = Field(
        default=1000,
        ge=0,
        description="Minimum milliseconds between requests once quota runs low",
    )
    critical_interval_ms: int = Field(
        default=5000,
        ge=0,
        description="Minimum milliseconds between requests once quota is nearly gone",
    )

    # Remaining-quota thresholds
    cautious_threshold: int = Field(
        default=10,
        ge=0,
        description="Remaining requests at or below which spacing becomes cautious",
    )
    critical_threshold: int = Field(
        default=5,
        ge=0,
        description="Remaining requests at or below which spacing becomes critical",
    )

    # Throttled responses (429)
    default_retry_after_seconds: float = Field(
        default=60.0,
        ge=0.0,
        description="Wait applied on 429 when the server sends no Retry-After",
    )
    max_throttle_retries: int = Field(
        default=0,
        ge=0,
        le=10,
        description="Times a 429 request is re-issued after waiting (0 = fail the request)",
    )

    @model_validator(mode="after")
    def _check_thresholds(self) -> Self:
        if self.critical_threshold > self.cautious_threshold:
            raise ValueError("critical_threshold must not exceed cautious_threshold")
        return self

    @property
    def baseline_interval(self) -> float:
        """Baseline spacing in seconds."""
        return self.baseline_interval_ms / 1000

    @property
    def cautious_interval(self) -> float:
        """Cautious-tier spacing in seconds."""
        return self.cautious_interval_ms / 1000

    @property
    def critical_interval(self) -> float:
        """Critical-tier spacing in seconds."""
        return self.critical_interval_ms / 1000


class GitLabConfig(BaseModel):
    """Configuration for the GitLab REST client."""

    base_url: str = Field(
        default="https://gitlab.com",
        description="GitLab instance address (API root is <base_url>/api/v4)",
    )
    per_page: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Merge requests per listing page (GitLab maximum is 100)",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="HTTP timeout for a single request",
    )
    user_agent: str = Field(
        default="gitlab-mr-refs/0.1",
        description="User-Agent header sent with every request",
    )


class GitHubConfig(BaseModel):
    """Configuration for creating migration branches on GitHub."""

    branch_prefix: str = Field(
        default="migration-pr-",
        min_length=1,
        description="Prefix of the branch created for each merge request",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging behavior.

    Controls file logging, rotation, and output format.
    """

    log_file: str | None = Field(
        default=None,
        description="Optional path for file logging (enables rotation)",
    )
    rotation: str = Field(
        default="10 MB",
        description="When to rotate log file (e.g., '10 MB', '1 day')",
    )
    retention: str = Field(
        default="7 days",
        description="How long to keep rotated logs",
    )
    serialize: bool = Field(
        default=False,
        description="If True, output JSON format to file",
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # Credentials
    # --------------------------------------------------------------------------
    gitlab_token: str = Field(
        default="",
        description="GitLab personal or project access token",
    )
    github_token: str = Field(
        default="",
        description="GitHub personal access token (create-refs only)",
    )

    # --------------------------------------------------------------------------
    # Application
    # --------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # --------------------------------------------------------------------------
    # Platforms
    # --------------------------------------------------------------------------
    gitlab: GitLabConfig = Field(
        default_factory=GitLabConfig,
        description="GitLab client configuration",
    )
    github: GitHubConfig = Field(
        default_factory=GitHubConfig,
        description="GitHub branch creation configuration",
    )

    # --------------------------------------------------------------------------
    # Rate Limiting
    # --------------------------------------------------------------------------
    rate_limit: RateLimitConfig = Field(
        default_factory=RateLimitConfig,
        description="Rate governor configuration",
    )

    # --------------------------------------------------------------------------
    # Logging Configuration
    # --------------------------------------------------------------------------
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration (file output, rotation)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
