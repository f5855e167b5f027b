"""Application settings using Pydantic Settings."""

from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Origin configuration
    github_api_url: str = "https://api.github.com"
    github_raw_url: str = "https://raw.githubusercontent.com"
    github_user: str = ""
    github_token: str = ""
    user_agent: str = "WP Release API"
    origin_timeout_seconds: float = 30.0

    # Redis configuration
    redis_host: str | None = None
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: str | None = None
    redis_url: str | None = None  # If set, overrides host/port/db/password
    key_prefix: str = "release-api"

    # Cache configuration
    metadata_ttl_seconds: int = 60 * 60 * 4
    response_ttl_seconds: int = 3600
    shared_max_age: int = 3600  # s-maxage sent with successful responses
    cache_file_path: str = "release_api.cache"

    # Blob store configuration
    blob_store_path: str = "artifacts"
    blob_retention: int = 5

    # R2 (S3-compatible) blob store; the local directory is used when unset
    r2_bucket: str | None = None
    r2_endpoint_url: str | None = None
    r2_access_key_id: str | None = None
    r2_secret_access_key: str | None = None
    r2_region: str = "auto"

    # Leading path segments added by the deployment (e.g. /workers/release-api)
    path_prefixes: Annotated[list[str], NoDecode] = [
        "workers",
        "release-api",
        "release-api-staging",
    ]

    @field_validator("path_prefixes", mode="before")
    @classmethod
    def parse_path_prefixes(cls, v):
        if isinstance(v, str):
            if not v.strip():
                return []
            return [item.strip().strip("/") for item in v.split(",")]
        return v

    # Server configuration
    server_host: str = "0.0.0.0"
    server_port: int = 8000
    dev: bool = True
    workers: int = 1

    @property
    def use_redis(self) -> bool:
        """Check if Redis should be used for caching."""
        return bool(self.redis_url or self.redis_host)

    @property
    def use_r2(self) -> bool:
        """Check if artifacts should be stored in R2."""
        return bool(self.r2_bucket and self.r2_endpoint_url)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()
