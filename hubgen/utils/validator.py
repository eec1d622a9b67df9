"""Input validation — checks the integration name before any collaborator is touched."""

import re

_SLUG_RE = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


def validate_integration(name: str) -> str:
    """Validate that the integration name is a non-empty slug.

    Returns the stripped, lower-cased name on success.
    Raises ValueError for empty, non-string or path-like input.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Integration name must be a non-empty string.")
    slug = name.strip().lower()
    if not _SLUG_RE.match(slug):
        raise ValueError(
            f"Integration name '{name}' must contain only letters, digits, '-' or '_'."
        )
    return slug
