"""Validation of incoming post data before it reaches the store."""
from typing import Any, Optional

from apps.blog.exceptions import PostValidationError
from apps.blog.models import TITLE_MAX_LENGTH, AUTHOR_MAX_LENGTH

REQUIRED_FIELDS = ("title", "author", "content")
MAX_LENGTHS = {"title": TITLE_MAX_LENGTH, "author": AUTHOR_MAX_LENGTH}


def _field(candidate: Any, name: str) -> Any:
    if isinstance(candidate, dict):
        return candidate.get(name)
    return getattr(candidate, name, None)


def validate_post(candidate: Any, target_id: Optional[int] = None) -> None:
    """
    Check a candidate post (schema object or dict).

    Raises PostValidationError naming every missing/blank or over-long field.
    With target_id (update path) the candidate's own id must equal it.
    """
    if candidate is None:
        raise PostValidationError("Request body is required.")

    if target_id is not None and _field(candidate, "id") != target_id:
        raise PostValidationError("ID in URL must match ID in body.", ["id"])

    missing = []
    for name in REQUIRED_FIELDS:
        value = _field(candidate, name)
        if not isinstance(value, str) or not value.strip():
            missing.append(name)
    if missing:
        names = ", ".join(n.capitalize() for n in missing)
        raise PostValidationError(f"{names} {'is' if len(missing) == 1 else 'are'} required.", missing)

    too_long = [
        name for name, limit in MAX_LENGTHS.items()
        if len(_field(candidate, name)) > limit
    ]
    if too_long:
        details = ", ".join(f"{n.capitalize()} ({MAX_LENGTHS[n]})" for n in too_long)
        raise PostValidationError(f"Maximum length exceeded: {details}.", too_long)
