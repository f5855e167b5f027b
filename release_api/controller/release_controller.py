import logging
from litestar import Controller, Request, get
from litestar.background_tasks import BackgroundTask
from litestar.exceptions import HTTPException
from litestar.response import Response
from litestar.status_codes import HTTP_500_INTERNAL_SERVER_ERROR

from release_api.service.resolution_service import ResolutionService

logger = logging.getLogger(__name__)


class ReleaseController(Controller):
    """Controller for plugin and theme release requests."""

    path = "/"

    @get("/{request_path:path}")
    async def resolve_release(
        self,
        request: Request,
        request_path: str,
        resolution_service: ResolutionService,
        slug: str | None = None,
        file: str | None = None,
    ) -> Response:
        """
        Resolve release metadata or a release download.

        Args:
            request_path: /{plugins|themes}/{vendor}/{package}[/{version}][/download]
            slug: Override for the installed directory name (default: package)
            file: Override for the main plugin file or theme stylesheet

        Returns:
            JSON payload, ZIP artifact, redirect to the release asset, or an
            error document
        """
        try:
            resolution = await resolution_service.resolve(str(request.url))
        except Exception as e:
            logger.exception(f"Unexpected error resolving {request_path}: {str(e)}")
            raise HTTPException(
                status_code=HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Internal server error: {str(e)}",
            )

        cached = resolution.response
        headers = dict(cached.headers)
        media_type = headers.pop("Content-Type", "text/plain")
        headers["X-Cache-Status"] = resolution.source

        background = None
        if resolution.deferred:
            background = BackgroundTask(
                resolution_service.run_deferred, resolution.deferred
            )

        return Response(
            content=cached.body,
            media_type=media_type,
            status_code=cached.status_code,
            headers=headers,
            background=background,
        )
