"""Redis repository for release metadata and cached responses."""

import logging
from typing import Any, Awaitable, Callable, Optional

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from pydantic import ValidationError

from release_api.config.settings import Settings
from release_api.repository.base_repository import CacheRepository, StorageError
from release_api.schema.cache import CachedResponse, MetadataDocument

logger = logging.getLogger(__name__)


class RedisRepository(CacheRepository):
    """Repository for the metadata cache and edge response cache in Redis."""

    def __init__(self, settings: Settings, client: Optional[Redis] = None) -> None:
        """Initialize Redis repository."""
        self.settings = settings
        self._client: Optional[Redis] = client

    async def connect(self) -> None:
        """Connect to Redis."""
        # Close existing client if it exists to prevent connection leaks
        if self._client:
            try:
                await self._client.aclose()
            except RedisError:
                pass
            self._client = None

        if self.settings.redis_url:
            redis_url = self.settings.redis_url
        elif self.settings.redis_password:
            redis_url = f"redis://:{self.settings.redis_password}@{self.settings.redis_host}:{self.settings.redis_port}/{self.settings.redis_db}"
        else:
            redis_url = f"redis://{self.settings.redis_host}:{self.settings.redis_port}/{self.settings.redis_db}"
        self._client = Redis.from_url(redis_url, decode_responses=True)

        # Test connection
        try:
            await self._client.ping()
        except Exception:
            self._client = None
            raise

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _make_metadata_key(self, path: str) -> str:
        """Generate cache key for a metadata document."""
        return f"{self.settings.key_prefix}:meta:{path}"

    def _make_response_key(self, url: str) -> str:
        """Generate cache key for a full response."""
        return f"{self.settings.key_prefix}:response:{url}"

    async def _execute(self, operation: Callable[[Redis], Awaitable[Any]]) -> Any:
        """Run a command, reconnecting once if the connection dropped."""
        try:
            if not self._client:
                await self.connect()
            try:
                return await operation(self._client)
            except (RedisConnectionError, OSError):
                await self.connect()
                return await operation(self._client)
        except (RedisError, OSError) as e:
            raise StorageError(f"Redis command failed: {e}") from e

    async def get_metadata(self, path: str) -> Optional[MetadataDocument]:
        """Get the metadata document stored for a request path."""
        key = self._make_metadata_key(path)
        data = await self._execute(lambda client: client.get(key))
        if not data:
            return None

        try:
            return MetadataDocument.model_validate_json(data)
        except ValidationError:
            logger.error(f"Discarding unreadable metadata for {path}")
            return None

    async def set_metadata(
        self,
        path: str,
        document: MetadataDocument,
        ttl: Optional[int] = None,
    ) -> None:
        """Store a metadata document for a request path."""
        key = self._make_metadata_key(path)
        data = document.model_dump_json()
        expiry = ttl or self.settings.metadata_ttl_seconds
        await self._execute(lambda client: client.setex(key, expiry, data))

    async def get_response(self, url: str) -> Optional[CachedResponse]:
        """Get a cached response for a normalized URL."""
        key = self._make_response_key(url)
        data = await self._execute(lambda client: client.get(key))
        if not data:
            return None

        try:
            return CachedResponse.model_validate_json(data)
        except ValidationError:
            logger.error(f"Discarding unreadable cached response for {url}")
            return None

    async def set_response(
        self,
        url: str,
        response: CachedResponse,
        ttl: Optional[int] = None,
    ) -> None:
        """Store a full response, body encoded as base64 inside the JSON."""
        key = self._make_response_key(url)
        # Redis client uses decode_responses=True, so the body travels as base64
        data = response.model_dump_json()
        expiry = ttl or self.settings.response_ttl_seconds
        await self._execute(lambda client: client.setex(key, expiry, data))
