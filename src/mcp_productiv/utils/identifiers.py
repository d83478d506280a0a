"""Utilities for recognising Productiv application identifiers and names."""

import re
from collections.abc import Iterable

from thefuzz import fuzz, process

# Application IDs are lowercase hex digits and hyphens, e.g. UUIDs
APP_ID_PATTERN = re.compile(r"^[a-f0-9-]+$")

# Minimum thefuzz score for a name to be offered as a suggestion
SUGGESTION_CUTOFF = 70


def looks_like_app_id(value: str) -> bool:
    """Check whether a string is shaped like an application ID.

    Args:
        value: Caller-supplied identifier or name

    Returns:
        True if the value contains only lowercase hex digits and hyphens.
    """
    return bool(APP_ID_PATTERN.match(value))


def normalize_name(name: str) -> str:
    """Case-fold an application name for exact comparison."""
    return name.strip().casefold()


def suggest_names(
    query: str, names: Iterable[str], limit: int = 3, cutoff: int = SUGGESTION_CUTOFF
) -> list[str]:
    """Find application names close to a query that did not match exactly.

    Suggestions are informational only; resolution never uses them.

    Args:
        query: The name the caller asked for
        names: Candidate application names
        limit: Maximum number of suggestions
        cutoff: Minimum similarity score (0-100)

    Returns:
        Names sorted by similarity (highest first), deduplicated.
    """
    choices = list(dict.fromkeys(n for n in names if n))
    if not query or not choices:
        return []
    matches = process.extract(
        query, choices, scorer=fuzz.token_sort_ratio, limit=limit
    )
    return [name for name, score in matches if score >= cutoff]
