"""Build the user-facing payload from headers and releases."""

from release_api.schema.payload import (
    AuthorInfo,
    CompatibilityInfo,
    Payload,
    RequiresInfo,
    VersionInfo,
)
from release_api.schema.release import ReleaseRecord
from release_api.schema.request import EntityType, RequestDescriptor


def build_payload(
    descriptor: RequestDescriptor,
    file_headers: dict[str, str],
    latest_release: ReleaseRecord,
    release: ReleaseRecord,
) -> Payload:
    is_theme = descriptor.type is EntityType.THEME
    name_header = "Theme Name" if is_theme else "Plugin Name"
    uri_header = "Theme URI" if is_theme else "Plugin URI"

    return Payload(
        name=file_headers.get(name_header),
        type=descriptor.type,
        version=VersionInfo(
            current=file_headers.get("Version"),
            latest=latest_release.tag_name,
        ),
        description=file_headers.get("Description", ""),
        author=AuthorInfo(
            name=file_headers.get("Author", ""),
            url=file_headers.get("Author URI", ""),
        ),
        updated=release.published_at or "",
        requires=RequiresInfo(
            wp=file_headers.get("Requires at least", ""),
            php=file_headers.get("Requires PHP", ""),
        ),
        tested=CompatibilityInfo(wp=file_headers.get("Tested up to", "")),
        url=file_headers.get(uri_header, ""),
        download=release.assets[0].download_url,
        slug=descriptor.slug,
        basename=None if is_theme else descriptor.basename,
    )
