"""Base URL helpers shared by adapters and config."""

from __future__ import annotations

import re

_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


def strip_trailing_slash(url: str | None) -> str:
    return (url or "").rstrip("/")


def normalize_api_url(url: str | None) -> str:
    """Trim input and add ``https://`` when no scheme is given.

    The path is kept as typed so custom prefixes such as ``/proxy`` survive.
    """
    value = (url or "").strip()
    if value and not _SCHEME.match(value):
        value = f"https://{value}"
    return value


def join_endpoint(base: str, path: str) -> str:
    return f"{strip_trailing_slash(base)}/{path.lstrip('/')}"
