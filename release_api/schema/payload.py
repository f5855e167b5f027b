"""User-facing release payload schemas."""

from typing import Optional

from pydantic import BaseModel

from release_api.schema.request import EntityType


class VersionInfo(BaseModel):
    current: Optional[str] = None
    latest: str


class AuthorInfo(BaseModel):
    name: str = ""
    url: str = ""


class RequiresInfo(BaseModel):
    wp: str = ""
    php: str = ""


class CompatibilityInfo(BaseModel):
    wp: str = ""


class Payload(BaseModel):
    """Release metadata document served for a plugin or theme."""

    name: Optional[str] = None
    type: EntityType
    version: VersionInfo
    description: str = ""
    author: AuthorInfo
    updated: str = ""
    requires: RequiresInfo
    tested: CompatibilityInfo
    url: str = ""
    download: str
    slug: str
    basename: Optional[str] = None

    def to_json(self) -> bytes:
        """Serialize as the pretty-printed body served to clients."""
        return self.model_dump_json(indent=2, exclude_none=True).encode("utf-8")
