"""Base interfaces for cache and blob repositories."""

from typing import Optional, Protocol, runtime_checkable

from release_api.schema.cache import CachedResponse, MetadataDocument, StoredBlob


class StorageError(Exception):
    """Raised when a cache tier or the blob store cannot be read or written."""


@runtime_checkable
class CacheRepository(Protocol):
    """Protocol for the metadata cache and the edge response cache."""

    async def get_metadata(self, path: str) -> Optional[MetadataDocument]: ...

    async def set_metadata(
        self,
        path: str,
        document: MetadataDocument,
        ttl: Optional[int] = None,
    ) -> None: ...

    async def get_response(self, url: str) -> Optional[CachedResponse]: ...

    async def set_response(
        self,
        url: str,
        response: CachedResponse,
        ttl: Optional[int] = None,
    ) -> None: ...

    async def disconnect(self) -> None: ...


@runtime_checkable
class BlobRepository(Protocol):
    """Protocol for the durable artifact store."""

    async def exists(self, key: str) -> bool: ...

    async def get(self, key: str) -> Optional[StoredBlob]: ...

    async def put(self, key: str, content: bytes, content_type: str) -> None: ...

    async def list_keys_by_suffix(self, suffix: str) -> list[str]: ...

    async def delete(self, key: str) -> None: ...
