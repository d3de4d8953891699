"""ETag fingerprints for single persons and list pages.

A person's tag depends only on its modified timestamp, which the store bumps
on scalar and contact-set changes alike. A page's tag depends on the window,
the row count and the newest modified timestamp in the whole table, so any
write anywhere invalidates every page.
"""

from datetime import datetime, timezone


def _millis(value: datetime | None) -> int:
    if value is None:
        return 0
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return round(value.timestamp() * 1000)


def person_etag(modified_at: datetime) -> str:
    return f'"{_millis(modified_at)}"'


def page_etag(limit: int, offset: int, total: int, latest_modified: datetime | None) -> str:
    return f'"list-{limit}-{offset}-{total}-{_millis(latest_modified)}"'


def etag_matches(if_none_match: str | None, etag: str) -> bool:
    """True if an If-None-Match value names the current tag (weak tags compare equal)."""
    if not if_none_match:
        return False
    for candidate in if_none_match.split(","):
        candidate = candidate.strip()
        if candidate == "*":
            return True
        if candidate.startswith("W/"):
            candidate = candidate[2:]
        if candidate == etag:
            return True
    return False
