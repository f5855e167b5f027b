"""Cache-related data schemas."""

import json
from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from release_api.schema.payload import Payload
from release_api.schema.release import ReleaseRecord

ZIP_CONTENT_TYPE = "application/zip"
JSON_CONTENT_TYPE = "application/json"


class MetadataDocument(BaseModel):
    """Resolved release snapshot stored in the metadata cache."""

    latest_release: ReleaseRecord
    release: ReleaseRecord
    payload: Payload
    cached_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the document was cached",
    )


class CachedResponse(BaseModel):
    """A complete, ready-to-serve HTTP response held by the edge cache.

    In JSON the body travels as base64 so binary artifacts survive.
    """

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    status_code: int
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def json_document(
        cls, body: bytes, status_code: int = 200, cache_control: str | None = None
    ) -> "CachedResponse":
        headers = {"Content-Type": JSON_CONTENT_TYPE}
        if cache_control:
            headers["Cache-Control"] = cache_control
        return cls(status_code=status_code, headers=headers, body=body)

    @classmethod
    def error(cls, message: str, status_code: int = 400) -> "CachedResponse":
        body = json.dumps({"status": "error", "message": message}, indent=2)
        return cls.json_document(body.encode("utf-8"), status_code=status_code)

    @classmethod
    def redirect(
        cls, location: str, cache_control: str | None = None
    ) -> "CachedResponse":
        headers = {"Location": location}
        if cache_control:
            headers["Cache-Control"] = cache_control
        return cls(status_code=302, headers=headers)

    @classmethod
    def artifact(
        cls, blob: "StoredBlob", filename: str, cache_control: str | None = None
    ) -> "CachedResponse":
        headers = {
            "Content-Type": blob.content_type or ZIP_CONTENT_TYPE,
            "Content-Disposition": f'attachment; filename="{filename}"',
        }
        if cache_control:
            headers["Cache-Control"] = cache_control
        return cls(status_code=200, headers=headers, body=blob.content)


@dataclass(frozen=True)
class StoredBlob:
    """Artifact bytes read back from the blob store."""

    key: str
    content: bytes
    content_type: str = ZIP_CONTENT_TYPE
