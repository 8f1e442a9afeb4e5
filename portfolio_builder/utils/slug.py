"""URL slug helpers for portfolios."""

import re

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 50


def generate_slug(name: str) -> str:
    """
    Derive a slug from a display name.

    Example:
        >>> generate_slug("  Jane Doe's Portfolio! ")
        'jane-doe-s-portfolio'
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower())
    slug = slug.strip("-")
    # Truncation can leave a trailing hyphen behind
    return slug[:SLUG_MAX_LENGTH].rstrip("-")


def validate_slug(slug: str) -> bool:
    return (
        bool(SLUG_PATTERN.match(slug))
        and SLUG_MIN_LENGTH <= len(slug) <= SLUG_MAX_LENGTH
    )
