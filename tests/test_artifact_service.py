import tempfile
import unittest
from unittest.mock import AsyncMock, patch

from release_api.config.settings import Settings
from release_api.repository.base_repository import StorageError
from release_api.repository.blob_repository import FileBlobRepository
from release_api.schema.request import EntityType, RequestDescriptor
from release_api.schema.result import ErrorKind, Fail, Ok
from release_api.service.artifact_service import ArtifactService

DOWNLOAD_URL = "https://github.com/acme/x/releases/download/v6/x.zip"


def make_descriptor(version=None):
    return RequestDescriptor(
        type=EntityType.PLUGIN,
        vendor="acme",
        package="x",
        slug="x",
        file="x.php",
        version=version,
        is_download=True,
    )


class TestArtifactService(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.settings = Settings(blob_store_path=self._tmp.name)
        self.blob_repo = FileBlobRepository(self.settings)
        self.github_repo = AsyncMock()
        self.service = ArtifactService(self.settings, self.blob_repo, self.github_repo)

    def tearDown(self):
        self._tmp.cleanup()

    def test_artifact_key(self):
        self.assertEqual(ArtifactService.artifact_key("1.2.0", "widget"), "1.2.0-widget.zip")

    async def test_version_less_lookup_prunes_to_five(self):
        for version in ["v1", "v2", "v3", "v4", "v5", "v6"]:
            await self.blob_repo.put(f"{version}-x.zip", version.encode(), "application/zip")

        blob = await self.service.fetch_fallback(make_descriptor())

        self.assertEqual(blob.key, "v6-x.zip")
        remaining = sorted(await self.blob_repo.list_keys_by_suffix("-x.zip"), reverse=True)
        self.assertEqual(
            remaining, ["v6-x.zip", "v5-x.zip", "v4-x.zip", "v3-x.zip", "v2-x.zip"]
        )

    async def test_version_less_lookup_serves_blob_when_delete_fails(self):
        for version in ["v1", "v2", "v3", "v4", "v5", "v6"]:
            await self.blob_repo.put(f"{version}-x.zip", version.encode(), "application/zip")

        with patch.object(
            self.blob_repo, "delete", AsyncMock(side_effect=StorageError("read-only"))
        ) as delete:
            blob = await self.service.fetch_fallback(make_descriptor())

        self.assertEqual(blob.key, "v6-x.zip")
        self.assertEqual(blob.content, b"v6")
        delete.assert_awaited_once_with("v1-x.zip")

    async def test_pinned_lookup_reads_exact_key_without_pruning(self):
        for version in ["v1", "v2", "v3", "v4", "v5", "v6"]:
            await self.blob_repo.put(f"{version}-x.zip", version.encode(), "application/zip")

        blob = await self.service.fetch_fallback(make_descriptor("v1"))

        self.assertEqual(blob.content, b"v1")
        self.assertEqual(len(await self.blob_repo.list_keys_by_suffix("-x.zip")), 6)

    async def test_fallback_with_empty_store(self):
        self.assertIsNone(await self.service.fetch_fallback(make_descriptor()))

    async def test_save_downloads_and_stores(self):
        self.github_repo.download_asset.return_value = Ok(b"zip-bytes")

        saved = await self.service.save("v6-x.zip", DOWNLOAD_URL)

        self.assertTrue(saved)
        self.github_repo.download_asset.assert_awaited_once_with(DOWNLOAD_URL)
        self.assertEqual((await self.blob_repo.get("v6-x.zip")).content, b"zip-bytes")

    async def test_save_skips_existing_key(self):
        await self.blob_repo.put("v6-x.zip", b"old", "application/zip")

        self.assertTrue(await self.service.save("v6-x.zip", DOWNLOAD_URL))

        self.github_repo.download_asset.assert_not_awaited()
        self.assertEqual((await self.blob_repo.get("v6-x.zip")).content, b"old")

    async def test_save_reports_failed_download(self):
        self.github_repo.download_asset.return_value = Fail(ErrorKind.NOT_FOUND, "gone", 404)

        self.assertFalse(await self.service.save("v6-x.zip", DOWNLOAD_URL))
        self.assertFalse(await self.blob_repo.exists("v6-x.zip"))


if __name__ == "__main__":
    unittest.main()
