"""Durable artifact handling on top of the blob store."""

import logging
from typing import Optional

from release_api.config.settings import Settings
from release_api.repository.base_repository import BlobRepository, StorageError
from release_api.repository.github_repository import GitHubRepository
from release_api.schema.cache import ZIP_CONTENT_TYPE, StoredBlob
from release_api.schema.request import RequestDescriptor
from release_api.schema.result import Fail

logger = logging.getLogger(__name__)


class ArtifactService:
    """Saves release assets to the blob store and reads them back."""

    def __init__(
        self,
        settings: Settings,
        blob_repo: BlobRepository,
        github_repo: GitHubRepository,
    ) -> None:
        self.settings = settings
        self.blob_repo = blob_repo
        self.github_repo = github_repo

    @staticmethod
    def artifact_key(version: str, package: str) -> str:
        """Blob key of a package's artifact at a version."""
        return f"{version}-{package}.zip"

    async def fetch(self, key: str) -> Optional[StoredBlob]:
        return await self.blob_repo.get(key)

    async def save(self, key: str, download_url: str) -> bool:
        """
        Copy a release asset into the blob store unless the key already exists.

        Returns True when the key holds an artifact afterwards. Download
        failures are logged and reported as False; blob store failures
        propagate as StorageError.
        """
        if await self.blob_repo.exists(key):
            logger.info(f"Blob {key} already stored, skipping upload")
            return True

        downloaded = await self.github_repo.download_asset(download_url)
        if isinstance(downloaded, Fail):
            logger.error(f"Unable to download {download_url}: {downloaded.detail}")
            return False

        await self.blob_repo.put(key, downloaded.value, ZIP_CONTENT_TYPE)
        return True

    async def fetch_fallback(
        self, descriptor: RequestDescriptor
    ) -> Optional[StoredBlob]:
        """
        Find a stored artifact to serve when the origin cannot be used.

        A pinned version reads exactly that key. Otherwise the newest key for
        the package is served and older ones beyond the retention limit are
        deleted.
        """
        if descriptor.version:
            return await self.blob_repo.get(
                self.artifact_key(descriptor.version, descriptor.package)
            )

        keys = await self.blob_repo.list_keys_by_suffix(f"-{descriptor.package}.zip")
        if not keys:
            return None

        # Lexical order only approximates version order
        keys.sort(reverse=True)
        blob = await self.blob_repo.get(keys[0])
        try:
            await self.prune(keys)
        except StorageError as e:
            logger.error(f"Unable to prune stored artifacts for {descriptor.package}: {e}")
        return blob

    async def prune(self, keys: list[str]) -> None:
        """Delete everything after the newest ``blob_retention`` keys."""
        for key in keys[self.settings.blob_retention :]:
            await self.blob_repo.delete(key)
