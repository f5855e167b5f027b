"""WordPress plugin/theme file header extraction."""

import re

KNOWN_HEADERS = (
    "Author",
    "Author URI",
    "Description",
    "Domain Path",
    "License",
    "License URI",
    "Plugin Name",
    "Plugin URI",
    "Requires at least",
    "Requires PHP",
    "Tested up to",
    "Text Domain",
    "Theme Name",
    "Theme URI",
    "Version",
)

# Same shape as get_file_data() in WordPress core
_HEADER_PATTERNS = {
    header: re.compile(
        rf"^(?:[ \t]*<\?php)?[ \t/*#@]*{re.escape(header)}:(.*)$", re.MULTILINE
    )
    for header in KNOWN_HEADERS
}
_CLOSING_COMMENT = re.compile(r"\s*(?:\*/|\?>).*")


def extract_headers(file_text: str) -> dict[str, str]:
    """Return the first value found for each known header.

    Headers that do not appear in the file are left out of the result.
    """
    headers = {}
    for header, pattern in _HEADER_PATTERNS.items():
        match = pattern.search(file_text)
        if match:
            headers[header] = _CLOSING_COMMENT.sub("", match.group(1)).strip()
    return headers
