"""Content-intent classification of tabs from their title and URL."""

from typing import Iterable, Optional

from tab_grouper.grouping.models import ContentType

EXPLORATION_TEXT_HINTS = ("search", "reddit", "stackoverflow")
EXPLORATION_URL_HINTS = (
    "google.com/search",
    "reddit.com",
    "twitter.com",
    "youtube.com/results",
)

REFERENCE_TEXT_HINTS = ("documentation", "docs", "api reference", "guide", "mdn")
REFERENCE_URL_HINTS = (
    "developer.mozilla.org",
    "react.dev",
    "docs.",
    "/documentation",
)


def _contains_any(text: str, patterns: Iterable[str]) -> bool:
    for p in patterns:
        if p in text:
            return True
    return False


def detect_content_type(title: Optional[str], url: Optional[str]) -> ContentType:
    """
    Classify a tab as exploration (search, forums), reference (docs) or general.

    Exploration rules win over reference rules. Matching is case-insensitive
    substring matching; text hints are checked against both title and URL.
    """
    t = (title or "").lower()
    u = (url or "").lower()

    if (
        _contains_any(t, EXPLORATION_TEXT_HINTS)
        or _contains_any(u, EXPLORATION_TEXT_HINTS)
        or _contains_any(u, EXPLORATION_URL_HINTS)
    ):
        return ContentType.EXPLORATION

    if (
        _contains_any(t, REFERENCE_TEXT_HINTS)
        or _contains_any(u, REFERENCE_TEXT_HINTS)
        or _contains_any(u, REFERENCE_URL_HINTS)
    ):
        return ContentType.REFERENCE

    return ContentType.GENERAL
