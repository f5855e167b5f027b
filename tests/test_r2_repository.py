import unittest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from release_api.config.settings import Settings
from release_api.repository.base_repository import StorageError
from release_api.repository.r2_repository import R2BlobRepository


def client_error(code, operation="HeadObject"):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestR2BlobRepository(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.settings = Settings(
            r2_bucket="artifacts",
            r2_endpoint_url="https://account.r2.cloudflarestorage.com",
            r2_access_key_id="key",
            r2_secret_access_key="secret",
        )
        patcher = patch("release_api.repository.r2_repository.boto3")
        self.boto3 = patcher.start()
        self.addCleanup(patcher.stop)
        self.s3 = MagicMock()
        self.boto3.client.return_value = self.s3
        self.repo = R2BlobRepository(self.settings)

    def test_client_points_at_r2_endpoint(self):
        self.boto3.client.assert_called_once_with(
            "s3",
            endpoint_url="https://account.r2.cloudflarestorage.com",
            aws_access_key_id="key",
            aws_secret_access_key="secret",
            region_name="auto",
        )

    async def test_exists(self):
        self.assertTrue(await self.repo.exists("1.0-widget.zip"))
        self.s3.head_object.assert_called_once_with(
            Bucket="artifacts", Key="1.0-widget.zip"
        )

    async def test_exists_missing_key(self):
        self.s3.head_object.side_effect = client_error("404")
        self.assertFalse(await self.repo.exists("1.0-widget.zip"))

    async def test_exists_access_denied_raises_storage_error(self):
        self.s3.head_object.side_effect = client_error("403")
        with self.assertRaises(StorageError):
            await self.repo.exists("1.0-widget.zip")

    async def test_get(self):
        body = MagicMock()
        body.read.return_value = b"PK\x03\x04"
        self.s3.get_object.return_value = {"Body": body, "ContentType": "application/zip"}

        blob = await self.repo.get("1.0-widget.zip")

        self.assertEqual(blob.key, "1.0-widget.zip")
        self.assertEqual(blob.content, b"PK\x03\x04")
        self.assertEqual(blob.content_type, "application/zip")

    async def test_get_missing_key(self):
        self.s3.get_object.side_effect = client_error("NoSuchKey", "GetObject")
        self.assertIsNone(await self.repo.get("9.9-widget.zip"))

    async def test_put_sets_content_type(self):
        await self.repo.put("1.0-widget.zip", b"zip", "application/zip")

        self.s3.put_object.assert_called_once_with(
            Bucket="artifacts",
            Key="1.0-widget.zip",
            Body=b"zip",
            ContentType="application/zip",
        )

    async def test_put_failure_raises_storage_error(self):
        self.s3.put_object.side_effect = client_error("InternalError", "PutObject")
        with self.assertRaises(StorageError):
            await self.repo.put("1.0-widget.zip", b"zip", "application/zip")

    async def test_list_keys_by_suffix_reads_every_page(self):
        paginator = self.s3.get_paginator.return_value
        paginator.paginate.return_value = [
            {"Contents": [{"Key": "1.0-widget.zip"}, {"Key": "1.0-gadget.zip"}]},
            {"Contents": [{"Key": "1.1-widget.zip"}]},
            {},
        ]

        keys = await self.repo.list_keys_by_suffix("-widget.zip")

        self.assertEqual(keys, ["1.0-widget.zip", "1.1-widget.zip"])
        self.s3.get_paginator.assert_called_once_with("list_objects_v2")
        paginator.paginate.assert_called_once_with(Bucket="artifacts")

    async def test_delete(self):
        await self.repo.delete("1.0-widget.zip")
        self.s3.delete_object.assert_called_once_with(
            Bucket="artifacts", Key="1.0-widget.zip"
        )

    async def test_delete_failure_raises_storage_error(self):
        self.s3.delete_object.side_effect = client_error("AccessDenied", "DeleteObject")
        with self.assertRaises(StorageError):
            await self.repo.delete("1.0-widget.zip")


class TestR2Settings(unittest.TestCase):
    def test_requires_bucket_and_endpoint(self):
        self.assertFalse(Settings(r2_bucket="artifacts").use_r2)
        self.assertTrue(
            Settings(
                r2_bucket="artifacts",
                r2_endpoint_url="https://account.r2.cloudflarestorage.com",
            ).use_r2
        )


if __name__ == "__main__":
    unittest.main()
