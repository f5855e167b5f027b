"""GitHub release data schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReleaseAsset(BaseModel):
    """A downloadable file attached to a release."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    download_url: str = Field(..., alias="browser_download_url")
    name: str = ""


class ReleaseRecord(BaseModel):
    """A release as returned by the GitHub releases API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tag_name: str
    published_at: Optional[str] = None
    draft: bool = False
    prerelease: bool = False
    assets: list[ReleaseAsset] = Field(default_factory=list)
