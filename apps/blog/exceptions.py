"""
Blog domain errors.

Raised by the validator and the post store; the HTTP layer maps each one to
a status code. None of them are retried internally.
"""
from typing import Optional


class BlogError(Exception):
    """Base class for blog service errors."""


class PostValidationError(BlogError):
    """Candidate post failed validation (bad fields or id mismatch)."""

    def __init__(self, message: str, fields: Optional[list[str]] = None):
        super().__init__(message)
        self.message = message
        self.fields = fields or []


class PostNotFoundError(BlogError):
    def __init__(self, post_id: int):
        super().__init__(f"Blog post {post_id} not found")
        self.post_id = post_id


class PostConflictError(BlogError):
    """The post changed since the caller last read it."""

    def __init__(self, post_id: Optional[int] = None, current_version: Optional[int] = None):
        super().__init__(
            "The post was modified by another user. Please reload and try again."
        )
        self.post_id = post_id
        self.current_version = current_version


class StorageFailure(BlogError):
    """The underlying database failed; the operation had no effect."""

    def __init__(self, operation: str):
        super().__init__(f"Storage failure during {operation}")
        self.operation = operation
