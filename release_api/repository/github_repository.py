"""GitHub repository for release documents, source files and assets."""

import logging
from typing import Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from release_api.config.settings import Settings
from release_api.schema.release import ReleaseRecord
from release_api.schema.result import ErrorKind, Fail, Ok, Result

logger = logging.getLogger(__name__)

_release_list = TypeAdapter(list[ReleaseRecord])


class GitHubRepository:
    """Repository for the GitHub releases API and raw.githubusercontent.com."""

    def __init__(
        self, settings: Settings, client: Optional[httpx.AsyncClient] = None
    ) -> None:
        """Initialize GitHub repository."""
        self.settings = settings
        self.client = client or httpx.AsyncClient(
            timeout=self.settings.origin_timeout_seconds,
            follow_redirects=True,
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": self.settings.user_agent,
        }

    def _auth(self) -> Optional[httpx.BasicAuth]:
        if not self.settings.github_token:
            return None
        return httpx.BasicAuth(self.settings.github_user, self.settings.github_token)

    def _releases_url(self, vendor: str, package: str) -> str:
        api_url = self.settings.github_api_url.rstrip("/")
        return f"{api_url}/repos/{vendor}/{package}/releases"

    def build_raw_url(self, vendor: str, package: str, tag: str, file: str) -> str:
        """Build raw.githubusercontent.com URL for a file at a tag."""
        raw_url = self.settings.github_raw_url.rstrip("/")
        return f"{raw_url}/{vendor}/{package}/{tag}/{file.lstrip('/')}"

    async def _get(
        self, url: str, authenticated: bool = True
    ) -> Result[httpx.Response]:
        auth = self._auth() if authenticated else None
        try:
            response = await self.client.get(url, headers=self._headers(), auth=auth)
        except httpx.RequestError as e:
            logger.error(f"Request to {url} failed: {e}")
            return Fail(ErrorKind.ORIGIN_ERROR, f"Unable to reach origin: {e}")
        return Ok(response)

    async def _get_document(self, url: str) -> Result[object]:
        fetched = await self._get(url)
        if isinstance(fetched, Fail):
            return fetched

        response = fetched.value
        if not response.is_success:
            logger.info(f"Origin returned {response.status_code} for {url}")
            return Fail(ErrorKind.ORIGIN_ERROR, response.text, response.status_code)

        try:
            return Ok(response.json())
        except ValueError:
            return Fail(
                ErrorKind.ORIGIN_ERROR,
                f"Origin returned an unreadable document for {url}",
                response.status_code,
            )

    async def list_releases(
        self, vendor: str, package: str
    ) -> Result[list[ReleaseRecord]]:
        """Fetch the most recent releases of a repository."""
        document = await self._get_document(self._releases_url(vendor, package))
        if isinstance(document, Fail):
            return document

        if not isinstance(document.value, list):
            return Ok([])

        try:
            return Ok(_release_list.validate_python(document.value))
        except ValidationError as e:
            return Fail(ErrorKind.ORIGIN_ERROR, f"Unexpected release list: {e}")

    async def get_release_by_tag(
        self, vendor: str, package: str, tag: str
    ) -> Result[ReleaseRecord]:
        """Fetch a single release by its tag name."""
        url = f"{self._releases_url(vendor, package)}/tags/{tag}"
        document = await self._get_document(url)
        if isinstance(document, Fail):
            return document

        try:
            return Ok(ReleaseRecord.model_validate(document.value))
        except ValidationError as e:
            return Fail(ErrorKind.ORIGIN_ERROR, f"Unexpected release document: {e}")

    async def fetch_source_file(
        self, vendor: str, package: str, tag: str, file: str
    ) -> Result[str]:
        """
        Fetch the text of a file at a tag.

        A failure carries the raw URL as detail so callers can report it.
        """
        url = self.build_raw_url(vendor, package, tag, file)
        fetched = await self._get(url)
        if isinstance(fetched, Fail):
            return Fail(ErrorKind.NOT_FOUND, url)

        response = fetched.value
        if response.status_code != 200:
            return Fail(ErrorKind.NOT_FOUND, url, response.status_code)
        return Ok(response.text)

    async def download_asset(self, download_url: str) -> Result[bytes]:
        """Download a release asset, following the CDN redirect."""
        fetched = await self._get(download_url, authenticated=False)
        if isinstance(fetched, Fail):
            return fetched

        response = fetched.value
        if response.status_code != 200:
            return Fail(
                ErrorKind.NOT_FOUND,
                f"Unable to download {download_url}",
                response.status_code,
            )
        return Ok(response.content)
