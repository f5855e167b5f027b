import os
import tempfile
import unittest
from unittest.mock import patch

from release_api.config.settings import Settings
from release_api.repository.file_repository import FileRepository
from release_api.schema.cache import CachedResponse, MetadataDocument
from release_api.schema.payload import (
    AuthorInfo,
    CompatibilityInfo,
    Payload,
    RequiresInfo,
    VersionInfo,
)
from release_api.schema.release import ReleaseRecord
from release_api.schema.request import EntityType


def make_document(tag="1.0.0"):
    release = ReleaseRecord.model_validate(
        {
            "tag_name": tag,
            "published_at": "2024-01-01T00:00:00Z",
            "assets": [{"browser_download_url": "https://example.com/w.zip"}],
        }
    )
    payload = Payload(
        name="Widget",
        type=EntityType.PLUGIN,
        version=VersionInfo(current=tag, latest=tag),
        author=AuthorInfo(),
        requires=RequiresInfo(),
        tested=CompatibilityInfo(),
        download="https://example.com/w.zip",
        slug="widget",
        basename="widget/widget.php",
    )
    return MetadataDocument(latest_release=release, release=release, payload=payload)


class TestFileRepository(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.settings = Settings(
            cache_file_path=os.path.join(self._tmp.name, "cache.db")
        )
        self.repo = FileRepository(self.settings)

    def tearDown(self):
        self._tmp.cleanup()

    async def test_metadata_round_trip(self):
        await self.repo.set_metadata("/plugins/acme/widget", make_document("1.2.0"))
        document = await self.repo.get_metadata("/plugins/acme/widget")
        self.assertEqual(document.release.tag_name, "1.2.0")
        self.assertEqual(document.payload.basename, "widget/widget.php")

    async def test_metadata_last_write_wins(self):
        await self.repo.set_metadata("/plugins/acme/widget", make_document("1.0.0"))
        await self.repo.set_metadata("/plugins/acme/widget", make_document("1.1.0"))
        document = await self.repo.get_metadata("/plugins/acme/widget")
        self.assertEqual(document.latest_release.tag_name, "1.1.0")

    async def test_missing_metadata(self):
        self.assertIsNone(await self.repo.get_metadata("/plugins/acme/other"))

    async def test_expired_metadata_is_ignored(self):
        with patch("release_api.repository.file_repository.time.time", return_value=1000.0):
            await self.repo.set_metadata("/plugins/acme/widget", make_document(), ttl=60)
        with patch("release_api.repository.file_repository.time.time", return_value=1061.0):
            self.assertIsNone(await self.repo.get_metadata("/plugins/acme/widget"))

    async def test_response_round_trip_keeps_bytes(self):
        response = CachedResponse(
            status_code=200,
            headers={"Content-Type": "application/zip"},
            body=b"PK\x03\x04\x00\xff",
        )
        await self.repo.set_response("https://api.test/plugins/a/b/download", response)
        cached = await self.repo.get_response("https://api.test/plugins/a/b/download")
        self.assertEqual(cached, response)

    async def test_missing_response(self):
        self.assertIsNone(await self.repo.get_response("https://api.test/nothing"))


if __name__ == "__main__":
    unittest.main()
