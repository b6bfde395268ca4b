"""
Optimistic concurrency helpers.

A post's version counter is its version token. Clients read it from the
ETag header (or the body) and send it back with If-Match when updating.
"""
from typing import Optional

from apps.blog.exceptions import PostConflictError, PostValidationError


def check_conflict(
    existing_version: int,
    expected_version: Optional[int],
    post_id: Optional[int] = None,
) -> None:
    """Raise PostConflictError if the record moved past the caller's token."""
    if expected_version is None:
        return
    if existing_version != expected_version:
        raise PostConflictError(post_id=post_id, current_version=existing_version)


def format_etag(version: int) -> str:
    return f'"{version}"'


def parse_etag(header: Optional[str]) -> Optional[int]:
    """
    Version from an If-Match header value.

    None for a missing or empty header. Weak validators are accepted. Any
    other value that is not a quoted version (including "*", which callers
    handle before parsing) raises PostValidationError.
    """
    if header is None:
        return None
    value = header.strip()
    if not value:
        return None
    if value.startswith("W/"):
        value = value[2:]
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = value[1:-1]
    if not (value.isascii() and value.isdigit()):
        raise PostValidationError("If-Match must be a post version such as \"3\".", ["If-Match"])
    return int(value)
