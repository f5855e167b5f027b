"""Request descriptor schemas."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class EntityType(str, Enum):
    """Kind of WordPress package a request is about."""

    PLUGIN = "plugin"
    THEME = "theme"


class ParsedRequest(BaseModel):
    """Raw request fields as split from the URL, not yet validated."""

    type: Optional[EntityType] = None
    vendor: Optional[str] = None
    package: Optional[str] = None
    version: Optional[str] = None
    slug: Optional[str] = None
    file: Optional[str] = None
    is_download: bool = False


class RequestDescriptor(BaseModel):
    """Validated description of a release lookup."""

    model_config = ConfigDict(frozen=True)

    type: EntityType
    vendor: str
    package: str
    slug: str
    file: str
    version: Optional[str] = None
    is_download: bool = False

    @property
    def basename(self) -> str:
        """Relative path WordPress uses to identify an installed plugin."""
        return f"{self.slug}/{self.file}"
