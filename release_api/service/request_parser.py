"""Turn an inbound request URL into a validated request descriptor."""

import re
from typing import Iterable, Mapping, Optional

from release_api.schema.request import EntityType, ParsedRequest, RequestDescriptor
from release_api.schema.result import ErrorKind, Fail, Ok, Result

ENTITY_ALIASES = {
    "plugin": EntityType.PLUGIN,
    "plugins": EntityType.PLUGIN,
    "theme": EntityType.THEME,
    "themes": EntityType.THEME,
}

VERSION_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._+\-]*$")

MISSING_TYPE = (
    "The first URL path segment is missing a valid entity type. "
    "Must be either 'plugins' or 'themes'."
)
MISSING_VENDOR = (
    "The second URL path segment is missing. It should contain the vendor name."
)
MISSING_PACKAGE = (
    "The third URL path segment is missing. It should contain the package name."
)
INVALID_VERSION = "The fourth URL path segment is not a valid version tag."


def parse_request(
    path: str,
    query: Optional[Mapping[str, str]] = None,
    prefixes: Iterable[str] = (),
) -> ParsedRequest:
    """Split ``/{type}/{vendor}/{package}[/{version}][/download]`` into fields."""
    query = query or {}
    segments = [segment for segment in path.split("/") if segment]

    for prefix in prefixes:
        if segments and segments[0] == prefix:
            segments.pop(0)

    entity = ENTITY_ALIASES.get(segments.pop(0)) if segments else None
    vendor = segments.pop(0) if segments else None
    package = segments.pop(0) if segments else None

    is_download = "download" in segments
    if is_download:
        segments.pop()

    version = segments.pop(0) if segments else None

    return ParsedRequest(
        type=entity,
        vendor=vendor,
        package=package,
        version=version,
        slug=query.get("slug") or None,
        file=query.get("file") or None,
        is_download=is_download,
    )


def validate_request(parsed: ParsedRequest) -> Result[RequestDescriptor]:
    """Check required fields and fill in the slug and file defaults."""
    if parsed.type is None:
        return Fail(ErrorKind.CLIENT_ERROR, MISSING_TYPE)
    if not parsed.vendor:
        return Fail(ErrorKind.CLIENT_ERROR, MISSING_VENDOR)
    if not parsed.package:
        return Fail(ErrorKind.CLIENT_ERROR, MISSING_PACKAGE)
    if parsed.version is not None and not VERSION_PATTERN.match(parsed.version):
        return Fail(ErrorKind.CLIENT_ERROR, INVALID_VERSION)

    if parsed.type is EntityType.THEME:
        default_file = "style.css"
    else:
        default_file = f"{parsed.package}.php"

    return Ok(
        RequestDescriptor(
            type=parsed.type,
            vendor=parsed.vendor,
            package=parsed.package,
            slug=parsed.slug or parsed.package,
            file=parsed.file or default_file,
            version=parsed.version,
            is_download=parsed.is_download,
        )
    )
