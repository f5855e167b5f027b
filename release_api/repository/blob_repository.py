"""Filesystem repository for durable release artifacts."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from release_api.config.settings import Settings
from release_api.repository.base_repository import BlobRepository, StorageError
from release_api.schema.cache import ZIP_CONTENT_TYPE, StoredBlob

logger = logging.getLogger(__name__)


class FileBlobRepository(BlobRepository):
    """Stores each artifact as a file named after its key.

    The content type lives in a hidden sidecar file next to the artifact so
    that listing only ever sees artifact keys.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.root = Path(settings.blob_store_path)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key or key.startswith(".") or "/" in key or "\\" in key:
            raise StorageError(f"Invalid blob key: {key!r}")
        return self.root / key

    def _content_type_path(self, key: str) -> Path:
        return self.root / f".{key}.content-type"

    async def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    async def get(self, key: str) -> Optional[StoredBlob]:
        path = self._path(key)
        try:
            content = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Unable to read blob {key}: {e}") from e

        content_type_path = self._content_type_path(key)
        try:
            content_type = content_type_path.read_text().strip() or ZIP_CONTENT_TYPE
        except FileNotFoundError:
            content_type = ZIP_CONTENT_TYPE
        except OSError as e:
            raise StorageError(f"Unable to read blob {key}: {e}") from e

        return StoredBlob(key=key, content=content, content_type=content_type)

    async def put(self, key: str, content: bytes, content_type: str) -> None:
        path = self._path(key)
        tmp_path = None
        # Concurrent writers of one key each get their own hidden temp file
        try:
            with tempfile.NamedTemporaryFile(
                dir=self.root, prefix=f".{key}.", suffix=".partial", delete=False
            ) as tmp:
                tmp_path = Path(tmp.name)
                tmp.write(content)
            self._content_type_path(key).write_text(content_type)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path:
                tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Unable to write blob {key}: {e}") from e
        logger.info(f"Stored blob {key} ({len(content)} bytes)")

    async def list_keys_by_suffix(self, suffix: str) -> list[str]:
        try:
            return [
                entry.name
                for entry in self.root.iterdir()
                if entry.is_file()
                and not entry.name.startswith(".")
                and entry.name.endswith(suffix)
            ]
        except OSError as e:
            raise StorageError(f"Unable to list blobs: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
            self._content_type_path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Unable to delete blob {key}: {e}") from e
        logger.info(f"Deleted blob {key}")
