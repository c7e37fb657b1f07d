"""Application settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="toastrank", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment name"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=3000, description="API port")
    api_reload: bool = Field(default=True, description="Enable auto-reload")

    # Redis (optional ranking cache)
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    redis_max_connections: int = Field(default=10, description="Max Redis connections")
    redis_socket_timeout: float = Field(default=5.0, description="Redis socket timeout")
    redis_socket_connect_timeout: float = Field(
        default=5.0, description="Redis connect timeout"
    )
    redis_retry_on_timeout: bool = Field(default=True, description="Retry on timeout")
    redis_health_check_interval: int = Field(
        default=30, description="Health check interval"
    )

    # Cassandra
    cassandra_hosts: list[str] = Field(
        default=["localhost"], description="Cassandra hosts"
    )
    cassandra_port: int = Field(default=9042, description="Cassandra port")
    cassandra_keyspace: str = Field(
        default="toastrank", description="Cassandra keyspace"
    )
    cassandra_username: str | None = Field(default=None, description="Cassandra user")
    cassandra_password: str | None = Field(
        default=None, description="Cassandra password"
    )
    cassandra_protocol_version: int = Field(default=4, description="Protocol version")
    cassandra_connect_timeout: float = Field(
        default=10.0, description="Connect timeout"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="DEBUG", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log format"
    )
    log_include_caller_info: bool = Field(
        default=True, description="Include caller info"
    )
    log_dir: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Max size per log file (10MB default)"
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )
    log_requests: bool = Field(
        default=True, description="Log HTTP request start/finish"
    )
    log_exclude_paths: list[str] = Field(
        default=["/health", "/uploads/", "/banners/"],
        description="Path prefixes left out of the access log",
    )

    # CORS
    cors_origins: list[str] = Field(default=["*"], description="CORS origins")
    cors_allow_credentials: bool = Field(default=True, description="Allow credentials")
    cors_allow_methods: list[str] = Field(default=["*"], description="Allowed methods")
    cors_allow_headers: list[str] = Field(default=["*"], description="Allowed headers")
    cors_max_age: int = Field(default=600, description="CORS max age")

    # Upload Settings
    upload_dir: str = Field(
        default="public/uploads", description="Directory holding uploaded images"
    )
    upload_max_file_size_mb: int = Field(
        default=10, description="Maximum file size for uploads in MB"
    )
    upload_allowed_extensions: list[str] = Field(
        default=[".png", ".webp", ".jpg", ".jpeg"],
        description="Allowed image file extensions (lower case, with dot)",
    )
    upload_cooldown_seconds: int = Field(
        default=3600, description="Minimum time between uploads per client"
    )
    upload_verify_content: bool = Field(
        default=False, description="Check magic bytes against the allowed formats"
    )

    # Votes
    vote_marker_max_age_days: int = Field(
        default=3650, description="Lifetime of the per-toaster vote cookie"
    )
    vote_max_retries: int = Field(
        default=10, description="Compare-and-set attempts before giving up a vote"
    )

    # Listings
    hall_of_fame_size: int = Field(default=5, description="Toasters in hall of fame")
    listing_page_size: int = Field(
        default=500, description="Rows fetched per page when scanning toasters"
    )
    ranking_cache_ttl_seconds: int = Field(
        default=60, description="Hall of fame cache TTL (Redis)"
    )

    # Moderation
    moderator_username: str = Field(
        default="admin", description="Basic auth user for /mod"
    )
    moderator_password: str = Field(
        default="CHANGE_ME", description="Basic auth password for /mod"
    )
    moderator_delete_password: str = Field(
        default="CHANGE_ME", description="Second password required to delete"
    )
    moderation_tolerate_missing_file: bool = Field(
        default=True,
        description="Delete the record even if the image file is already gone",
    )

    # Client markers (advisory cookies)
    cookie_secure: bool = Field(default=False, description="Secure cookie (HTTPS only)")
    cookie_samesite: Literal["lax", "strict", "none"] = Field(
        default="lax", description="SameSite cookie policy"
    )

    # Decorations
    banner_dir: str = Field(
        default="public/banners", description="Directory scanned for banners"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"

    @property
    def upload_max_file_size(self) -> int:
        """Maximum upload size in bytes."""
        return self.upload_max_file_size_mb * 1024 * 1024

    @property
    def vote_marker_max_age_seconds(self) -> int:
        """Vote cookie lifetime in seconds."""
        return self.vote_marker_max_age_days * 24 * 60 * 60


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
