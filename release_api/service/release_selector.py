"""Pick a usable release out of what the origin returned."""

from typing import Sequence

from release_api.schema.release import ReleaseRecord
from release_api.schema.result import ErrorKind, Fail, Ok, Result


def select_latest(releases: Sequence[ReleaseRecord]) -> Result[ReleaseRecord]:
    """
    Return the most recently published release that can be installed.

    Drafts, pre-releases and releases without assets are skipped.
    """
    if not releases:
        return Fail(ErrorKind.NO_VIABLE_RELEASE, "No releases available!")

    ordered = sorted(
        releases, key=lambda release: release.published_at or "", reverse=True
    )

    for release in ordered:
        if release.draft:
            continue
        if release.prerelease:
            continue
        if not release.assets:
            continue
        return Ok(release)

    return Fail(ErrorKind.NO_VIABLE_RELEASE, "No valid releases available!")


def validate_tagged(release: ReleaseRecord) -> Result[ReleaseRecord]:
    """Accept an explicitly requested release if it has something to download."""
    if not release.assets:
        return Fail(
            ErrorKind.NO_ASSET_FOR_RELEASE,
            f"Release {release.tag_name} doesn't have a release asset!",
        )
    return Ok(release)
