"""Error types raised by the posts pipeline.

Only `ValidationError` carries a message meant for the client. Everything
else is logged server-side and collapses to an opaque 500.
"""


class AggregatorError(Exception):
    """Base class for all pipeline errors."""


class ValidationError(AggregatorError):
    """Malformed query parameters (maps to 400)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UpstreamError(AggregatorError):
    """Network, HTTP or decoding failure talking to the blog API."""

    def __init__(self, message: str, tag: str = "", status_code: int | None = None):
        super().__init__(message)
        self.tag = tag
        self.status_code = status_code


class CacheError(AggregatorError):
    """Cache setup failure or an unreadable cached payload."""


class SerializationError(AggregatorError):
    """Response body could not be encoded."""
