"""Main Litestar application."""

import uvicorn
import logging
from contextlib import asynccontextmanager
from typing import Optional

from litestar import Litestar, Request, Response
from litestar.di import Provide
from litestar.datastructures import State
from litestar.exceptions import NotFoundException
from litestar.openapi import OpenAPIConfig
from litestar import get
from litestar.response import Redirect

from release_api.config.settings import Settings, get_settings
from release_api.controller.release_controller import ReleaseController
from release_api.repository.base_repository import BlobRepository, CacheRepository
from release_api.repository.blob_repository import FileBlobRepository
from release_api.repository.file_repository import FileRepository
from release_api.repository.github_repository import GitHubRepository
from release_api.repository.r2_repository import R2BlobRepository
from release_api.repository.redis_repository import RedisRepository
from release_api.service.resolution_service import ResolutionService

logger = logging.getLogger("release_api.main")


async def get_cache_repository(state: State) -> CacheRepository:
    """Dependency: Get cache repository instance from app state."""
    return state.cache_repo


async def get_blob_repository(state: State) -> BlobRepository:
    """Dependency: Get blob repository instance from app state."""
    return state.blob_repo


async def get_github_repository(state: State) -> GitHubRepository:
    """Dependency: Get GitHub repository instance from app state."""
    return state.github_repo


async def get_resolution_service(
    state: State,
    cache_repo: CacheRepository,
    blob_repo: BlobRepository,
    github_repo: GitHubRepository,
) -> ResolutionService:
    """Dependency: Get resolution service instance."""
    return ResolutionService(state.settings, cache_repo, blob_repo, github_repo)


def not_found_handler(request: Request, exc: NotFoundException) -> Response:
    """Handle 404 errors with guidance on the expected path shape."""
    return Response(
        content={
            "status": "error",
            "message": "Endpoint not found. Use /{plugins|themes}/{vendor}/{package}[/{version}][/download].",
            "example": f"{request.url.scheme}://{request.url.netloc}/plugins/vendor/package/download",
            "documentation": f"{request.url.scheme}://{request.url.netloc}/docs",
        },
        status_code=exc.status_code,
    )


@get("/", include_in_schema=False)
async def root_handler() -> Redirect:
    """Redirect root to API documentation."""
    return Redirect(path="/docs")


@asynccontextmanager
async def lifespan(app: Litestar):
    """Application lifespan context manager for initializing resources."""
    settings: Settings = app.state.settings

    # Initialize repositories
    if settings.use_redis:
        repo_target = (
            settings.redis_url or f"{settings.redis_host}:{settings.redis_port}"
        )
        logger.info(f"Using Redis cache at {repo_target}")
        cache_repo = RedisRepository(settings)
        await cache_repo.connect()
    else:
        logger.info(f"Using SQLite cache at {settings.cache_file_path}")
        cache_repo = FileRepository(settings)

    if settings.use_r2:
        logger.info(f"Storing artifacts in R2 bucket {settings.r2_bucket}")
        blob_repo = R2BlobRepository(settings)
    else:
        logger.info(f"Storing artifacts under {settings.blob_store_path}")
        blob_repo = FileBlobRepository(settings)

    # Store in app state
    app.state.cache_repo = cache_repo
    app.state.blob_repo = blob_repo
    app.state.github_repo = GitHubRepository(settings)

    yield

    # Cleanup
    if hasattr(app.state, "cache_repo"):
        await app.state.cache_repo.disconnect()

    if hasattr(app.state, "github_repo"):
        await app.state.github_repo.close()


def create_app(settings: Optional[Settings] = None) -> Litestar:
    """Create and configure Litestar application."""
    settings = settings or get_settings()
    return Litestar(
        debug=settings.dev,
        route_handlers=[root_handler, ReleaseController],
        dependencies={
            "cache_repo": Provide(get_cache_repository),
            "blob_repo": Provide(get_blob_repository),
            "github_repo": Provide(get_github_repository),
            "resolution_service": Provide(get_resolution_service),
        },
        exception_handlers={
            NotFoundException: not_found_handler,
        },
        openapi_config=OpenAPIConfig(
            title="WP Release API",
            version="0.1.0",
            path="/docs",
        ),
        state=State({"settings": settings}),
        lifespan=[lifespan],
    )


app = create_app()


def run() -> None:
    """Run the application with uvicorn."""
    settings = get_settings()

    uvicorn.run(
        "release_api.main:app",
        reload=settings.dev,
        host=settings.server_host,
        port=settings.server_port,
        workers=settings.workers,
        log_level="info",
    )


if __name__ == "__main__":
    run()
