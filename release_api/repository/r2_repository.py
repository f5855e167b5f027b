"""Cloudflare R2 repository for durable release artifacts.

R2 exposes an S3-compatible API, so objects are handled through a boto3 S3
client pointed at the account endpoint.
"""

import asyncio
import logging
from functools import partial
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from release_api.config.settings import Settings
from release_api.repository.base_repository import BlobRepository, StorageError
from release_api.schema.cache import ZIP_CONTENT_TYPE, StoredBlob

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


def _is_missing(error: ClientError) -> bool:
    return str(error.response.get("Error", {}).get("Code")) in _MISSING_CODES


class R2BlobRepository(BlobRepository):
    """Artifact store backed by an R2 (S3-compatible) bucket."""

    def __init__(self, settings: Settings, client: Optional[Any] = None) -> None:
        """Initialize R2 repository."""
        self.settings = settings
        self.bucket = settings.r2_bucket
        self.s3 = client or boto3.client(
            "s3",
            endpoint_url=settings.r2_endpoint_url,
            aws_access_key_id=settings.r2_access_key_id,
            aws_secret_access_key=settings.r2_secret_access_key,
            region_name=settings.r2_region,
        )

    async def _run(self, func, **kwargs) -> Any:
        """Run a blocking boto3 call in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, **kwargs))

    async def exists(self, key: str) -> bool:
        try:
            await self._run(self.s3.head_object, Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if _is_missing(e):
                return False
            raise StorageError(f"Unable to check blob {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Unable to check blob {key}: {e}") from e

    async def get(self, key: str) -> Optional[StoredBlob]:
        try:
            response = await self._run(self.s3.get_object, Bucket=self.bucket, Key=key)
            content = await self._run(response["Body"].read)
        except ClientError as e:
            if _is_missing(e):
                return None
            raise StorageError(f"Unable to read blob {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Unable to read blob {key}: {e}") from e

        return StoredBlob(
            key=key,
            content=content,
            content_type=response.get("ContentType") or ZIP_CONTENT_TYPE,
        )

    async def put(self, key: str, content: bytes, content_type: str) -> None:
        try:
            await self._run(
                self.s3.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Unable to write blob {key}: {e}") from e
        logger.info(f"Stored blob {key} in R2 bucket {self.bucket} ({len(content)} bytes)")

    async def list_keys_by_suffix(self, suffix: str) -> list[str]:
        def collect() -> list[str]:
            paginator = self.s3.get_paginator("list_objects_v2")
            keys = []
            for page in paginator.paginate(Bucket=self.bucket):
                for item in page.get("Contents", []):
                    if item["Key"].endswith(suffix):
                        keys.append(item["Key"])
            return keys

        try:
            return await self._run(collect)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Unable to list blobs: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._run(self.s3.delete_object, Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Unable to delete blob {key}: {e}") from e
        logger.info(f"Deleted blob {key} from R2 bucket {self.bucket}")
