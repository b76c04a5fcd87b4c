"""Application-level exception types for toolcheck."""

from __future__ import annotations

import re

_HTML_PREFIX = re.compile(r"^\s*<(!doctype|html|head|body)", re.IGNORECASE)


class ToolcheckError(Exception):
    """Base exception for toolcheck."""


class ConfigurationError(ToolcheckError):
    """Base exception for configuration and startup validation errors."""


class ApiKeyNotConfiguredError(ConfigurationError):
    """Raised when an API key is required but missing."""


class ApiUrlNotConfiguredError(ConfigurationError):
    """Raised when the API base URL is missing."""


class UnknownScenarioError(ConfigurationError):
    """Raised when a vendor/scenario pair is not in the scenario table."""


class ConfigNotFoundError(ConfigurationError):
    """Raised when a named saved config does not exist."""


class TransportError(ToolcheckError):
    """Raised when an HTTP exchange fails; aborts the active loop."""

    def __init__(self, message: str, *, raw_text: str | None = None, content_type: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text
        self.content_type = content_type

    @property
    def looks_like_html(self) -> bool:
        if "text/html" in self.content_type.lower():
            return True
        return bool(self.raw_text and _HTML_PREFIX.match(self.raw_text))


class HttpStatusError(TransportError):
    """Raised on a non-2xx HTTP status."""

    def __init__(self, status: int, *, raw_text: str | None = None, content_type: str = "") -> None:
        super().__init__(f"HTTP {status}", raw_text=raw_text, content_type=content_type)
        self.status = status


class ResponseNotJsonError(TransportError):
    """Raised when a 2xx response body is not valid JSON."""

    def __init__(self, *, raw_text: str | None = None, content_type: str = "") -> None:
        super().__init__("response is not JSON", raw_text=raw_text, content_type=content_type)


class LoopCancelled(ToolcheckError):  # noqa: N818
    """Raised inside a loop when its cancellation token fires."""
