"""Resolution pipeline: edge cache, metadata cache, blob store, origin."""

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Awaitable, Callable, Optional

import httpx

from release_api.config.settings import Settings
from release_api.repository.base_repository import BlobRepository, CacheRepository
from release_api.repository.github_repository import GitHubRepository
from release_api.schema.cache import CachedResponse, MetadataDocument
from release_api.schema.release import ReleaseRecord
from release_api.schema.request import RequestDescriptor
from release_api.schema.result import Fail, Ok, Result
from release_api.service.artifact_service import ArtifactService
from release_api.service.file_headers import extract_headers
from release_api.service.payload_builder import build_payload
from release_api.service.release_selector import select_latest, validate_tagged
from release_api.service.request_parser import parse_request, validate_request

logger = logging.getLogger(__name__)

DeferredWrite = Callable[[], Awaitable[None]]

SOURCE_HIT = "HIT"
SOURCE_BLOB = "BLOB"
SOURCE_MISS = "MISS"
SOURCE_FALLBACK = "FALLBACK"
SOURCE_ERROR = "ERROR"


@dataclass
class Resolution:
    """Outcome of one request.

    ``deferred`` holds cache writes to run after the response has been sent.
    """

    response: CachedResponse
    source: str
    deferred: list[DeferredWrite] = field(default_factory=list)


def normalize_url(url: httpx.URL) -> str:
    """Edge cache key: scheme, host, path and query, never headers."""
    key = f"{url.scheme}://{url.netloc.decode('ascii')}{url.path}"
    if url.query:
        key = f"{key}?{url.query.decode('ascii')}"
    return key


class ResolutionService:
    """Decides which tier answers a request and keeps the tiers populated."""

    def __init__(
        self,
        settings: Settings,
        cache_repo: CacheRepository,
        blob_repo: BlobRepository,
        github_repo: GitHubRepository,
    ) -> None:
        """Initialize resolution service."""
        self.settings = settings
        self.cache_repo = cache_repo
        self.github_repo = github_repo
        self.artifacts = ArtifactService(settings, blob_repo, github_repo)

    @property
    def cache_control(self) -> str:
        return f"s-maxage={self.settings.shared_max_age}"

    async def resolve(self, url: str) -> Resolution:
        """
        Resolve a request URL to a response.

        Validation happens before any cache tier or the origin is touched.
        Error responses are never scheduled for caching.
        """
        request_url = httpx.URL(url)
        parsed = parse_request(
            request_url.path, request_url.params, self.settings.path_prefixes
        )
        validated = validate_request(parsed)
        if isinstance(validated, Fail):
            return Resolution(CachedResponse.error(validated.detail, 400), SOURCE_ERROR)

        descriptor = validated.value
        cache_key = normalize_url(request_url)
        path = request_url.path

        cached = await self._lookup_response(cache_key)
        if cached:
            logger.info(f"Edge cache HIT for {cache_key}")
            return Resolution(cached, SOURCE_HIT)

        logger.info(f"Edge cache MISS for {cache_key}")

        if descriptor.is_download:
            fast = await self._download_fast_path(descriptor, path)
            if fast:
                return Resolution(
                    fast, SOURCE_BLOB, [partial(self._store_response, cache_key, fast)]
                )

        releases = await self._resolve_releases(descriptor)
        if isinstance(releases, Fail):
            return await self._handle_origin_failure(descriptor, releases)

        latest_release, release = releases.value

        source_file = await self.github_repo.fetch_source_file(
            descriptor.vendor, descriptor.package, release.tag_name, descriptor.file
        )
        if isinstance(source_file, Fail):
            message = f"Unable to fetch {descriptor.type.value} file: {source_file.detail}"
            return Resolution(CachedResponse.error(message, 404), SOURCE_ERROR)

        payload = build_payload(
            descriptor, extract_headers(source_file.value), latest_release, release
        )
        document = MetadataDocument(
            latest_release=latest_release, release=release, payload=payload
        )
        deferred: list[DeferredWrite] = [
            partial(self._store_metadata, path, document)
        ]

        if descriptor.is_download:
            response = await self._deliver_download(descriptor, release, payload.download)
        else:
            response = CachedResponse.json_document(
                payload.to_json(), cache_control=self.cache_control
            )

        deferred.append(partial(self._store_response, cache_key, response))
        return Resolution(response, SOURCE_MISS, deferred)

    async def run_deferred(self, deferred: list[DeferredWrite]) -> None:
        """Run background cache writes; a failing write is logged and dropped."""
        for write in deferred:
            try:
                await write()
            except Exception as e:
                logger.error(f"Background cache write failed: {e}")

    async def _lookup_response(self, cache_key: str) -> Optional[CachedResponse]:
        try:
            return await self.cache_repo.get_response(cache_key)
        except Exception as e:
            logger.error(f"Edge cache lookup failed for {cache_key}: {e}")
            return None

    async def _download_fast_path(
        self, descriptor: RequestDescriptor, path: str
    ) -> Optional[CachedResponse]:
        """Serve a download straight from the blob store when the tag is known."""
        try:
            document = await self.cache_repo.get_metadata(path)
            if not document:
                return None

            key = self.artifacts.artifact_key(
                document.release.tag_name, descriptor.package
            )
            blob = await self.artifacts.fetch(key)
        except Exception as e:
            logger.error(f"Download fast path failed for {path}: {e}")
            return None

        if not blob:
            logger.info(f"Blob MISS for {key}, resolving from origin")
            return None

        logger.info(f"Blob HIT: serving {key} without contacting origin")
        return CachedResponse.artifact(
            blob, f"{descriptor.package}.zip", cache_control=self.cache_control
        )

    async def _resolve_releases(
        self, descriptor: RequestDescriptor
    ) -> Result[tuple[ReleaseRecord, ReleaseRecord]]:
        """Latest usable release, plus the pinned release if a version was asked for."""
        listed = await self.github_repo.list_releases(
            descriptor.vendor, descriptor.package
        )
        if isinstance(listed, Fail):
            return listed

        latest = select_latest(listed.value)
        if isinstance(latest, Fail):
            return latest

        if not descriptor.version:
            return Ok((latest.value, latest.value))

        tagged = await self.github_repo.get_release_by_tag(
            descriptor.vendor, descriptor.package, descriptor.version
        )
        if isinstance(tagged, Fail):
            return tagged

        checked = validate_tagged(tagged.value)
        if isinstance(checked, Fail):
            return checked

        return Ok((latest.value, checked.value))

    async def _handle_origin_failure(
        self, descriptor: RequestDescriptor, failure: Fail
    ) -> Resolution:
        """Downloads fall back to a stored artifact; metadata requests do not."""
        logger.info(
            f"Origin resolution failed for {descriptor.vendor}/{descriptor.package} "
            f"({failure.kind.value}): {failure.detail}"
        )

        if descriptor.is_download:
            try:
                blob = await self.artifacts.fetch_fallback(descriptor)
            except Exception as e:
                logger.error(f"Blob fallback failed for {descriptor.package}: {e}")
                blob = None

            if blob:
                logger.info(f"Serving stored artifact {blob.key} after origin failure")
                return Resolution(
                    CachedResponse.artifact(blob, f"{descriptor.package}.zip"),
                    SOURCE_FALLBACK,
                )

        return Resolution(CachedResponse.error(failure.detail, 404), SOURCE_ERROR)

    async def _deliver_download(
        self, descriptor: RequestDescriptor, release: ReleaseRecord, download_url: str
    ) -> CachedResponse:
        """Serve the artifact from the blob store, or redirect to the origin asset."""
        key = self.artifacts.artifact_key(release.tag_name, descriptor.package)
        blob = None
        try:
            if await self.artifacts.save(key, download_url):
                blob = await self.artifacts.fetch(key)
        except Exception as e:
            logger.error(f"Unable to serve {key} from the blob store: {e}")

        if blob:
            return CachedResponse.artifact(
                blob, f"{descriptor.package}.zip", cache_control=self.cache_control
            )

        logger.info(f"Redirecting download to {download_url}")
        return CachedResponse.redirect(download_url, cache_control=self.cache_control)

    async def _store_metadata(self, path: str, document: MetadataDocument) -> None:
        await self.cache_repo.set_metadata(path, document)

    async def _store_response(self, cache_key: str, response: CachedResponse) -> None:
        await self.cache_repo.set_response(cache_key, response)
