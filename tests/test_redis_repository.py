import json
import unittest
from unittest.mock import AsyncMock, MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from release_api.config.settings import Settings
from release_api.repository.base_repository import StorageError
from release_api.repository.redis_repository import RedisRepository
from release_api.schema.cache import CachedResponse


class TestRedisRepository(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.settings = Settings(redis_host="localhost")
        self.client = MagicMock()
        self.client.get = AsyncMock()
        self.client.setex = AsyncMock()
        self.repo = RedisRepository(self.settings, client=self.client)

    async def test_set_response_uses_response_ttl(self):
        response = CachedResponse(status_code=302, headers={"Location": "https://x"})
        await self.repo.set_response("https://api.test/plugins/a/b/download", response)

        key, ttl, data = self.client.setex.await_args.args
        self.assertEqual(key, "release-api:response:https://api.test/plugins/a/b/download")
        self.assertEqual(ttl, 3600)
        self.assertEqual(CachedResponse.model_validate_json(data), response)

    async def test_binary_body_is_stored_as_base64(self):
        response = CachedResponse(status_code=200, body=b"\x00\xffPK")
        await self.repo.set_response("https://api.test/x", response)

        data = self.client.setex.await_args.args[2]
        self.assertNotIn("PK", data)
        self.assertIsInstance(json.loads(data)["body"], str)
        self.client.get.return_value = data

        self.assertEqual(await self.repo.get_response("https://api.test/x"), response)

    async def test_unreadable_response_is_discarded(self):
        self.client.get.return_value = '{"status_code": "x"}'
        self.assertIsNone(await self.repo.get_response("https://api.test/x"))

    async def test_get_metadata_missing(self):
        self.client.get.return_value = None
        self.assertIsNone(await self.repo.get_metadata("/plugins/a/b"))
        self.client.get.assert_awaited_once_with("release-api:meta:/plugins/a/b")

    async def test_unreadable_metadata_is_discarded(self):
        self.client.get.return_value = "{not json"
        self.assertIsNone(await self.repo.get_metadata("/plugins/a/b"))

    async def test_connection_failure_raises_storage_error(self):
        self.client.get.side_effect = RedisConnectionError("down")
        self.repo.connect = AsyncMock()

        with self.assertRaises(StorageError):
            await self.repo.get_response("https://api.test/x")
        self.repo.connect.assert_awaited_once()


if __name__ == "__main__":
    unittest.main()
