"""SQLite repository for file-based caching."""

import json
import sqlite3
import logging
import time
from typing import Optional

from pydantic import ValidationError

from release_api.config.settings import Settings
from release_api.schema.cache import CachedResponse, MetadataDocument
from release_api.repository.base_repository import CacheRepository

logger = logging.getLogger(__name__)


class FileRepository(CacheRepository):
    """SQLite-based repository for caching when Redis is unavailable."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.db_path = settings.cache_file_path
        self._init_db()

    def _init_db(self) -> None:
        """Initialize SQLite database."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS metadata (
                    key TEXT PRIMARY KEY,
                    document TEXT,
                    expires_at REAL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS responses (
                    key TEXT PRIMARY KEY,
                    status_code INTEGER,
                    headers TEXT,
                    body BLOB,
                    expires_at REAL
                )
                """
            )
            # Cleanup expired entries on startup
            now = time.time()
            conn.execute("DELETE FROM metadata WHERE expires_at < ?", (now,))
            conn.execute("DELETE FROM responses WHERE expires_at < ?", (now,))
            conn.commit()

    async def get_metadata(self, path: str) -> Optional[MetadataDocument]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT document FROM metadata WHERE key = ? AND expires_at > ?",
                    (path, time.time()),
                ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Error reading metadata from SQLite: {e}")
            return None

        if not row:
            return None

        try:
            return MetadataDocument.model_validate_json(row[0])
        except ValidationError as e:
            logger.error(f"Discarding unreadable metadata for {path}: {e}")
            return None

    async def set_metadata(
        self,
        path: str,
        document: MetadataDocument,
        ttl: Optional[int] = None,
    ) -> None:
        expires_at = time.time() + (ttl or self.settings.metadata_ttl_seconds)

        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO metadata (key, document, expires_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        document = excluded.document,
                        expires_at = excluded.expires_at
                    """,
                    (path, document.model_dump_json(), expires_at),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error writing metadata to SQLite: {e}")

    async def get_response(self, url: str) -> Optional[CachedResponse]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                row = conn.execute(
                    """
                    SELECT status_code, headers, body FROM responses
                    WHERE key = ? AND expires_at > ?
                    """,
                    (url, time.time()),
                ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Error reading response from SQLite: {e}")
            return None

        if not row:
            return None

        status_code, headers, body = row
        return CachedResponse(
            status_code=status_code,
            headers=json.loads(headers),
            body=bytes(body) if body is not None else b"",
        )

    async def set_response(
        self,
        url: str,
        response: CachedResponse,
        ttl: Optional[int] = None,
    ) -> None:
        expires_at = time.time() + (ttl or self.settings.response_ttl_seconds)

        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO responses (key, status_code, headers, body, expires_at)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        status_code = excluded.status_code,
                        headers = excluded.headers,
                        body = excluded.body,
                        expires_at = excluded.expires_at
                    """,
                    (
                        url,
                        response.status_code,
                        json.dumps(response.headers),
                        response.body,
                        expires_at,
                    ),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error writing response to SQLite: {e}")

    async def disconnect(self) -> None:
        pass
