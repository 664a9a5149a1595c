from __future__ import annotations


class InstagrabError(RuntimeError):
    """Base error carrying an HTTP status and a caller-facing message.

    The message is sent back to the caller as-is, so it must never contain
    upstream response bodies or other internal detail. Chain the underlying
    exception with ``raise ... from exc`` instead.
    """

    status: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(InstagrabError):
    """Raised when a submitted URL is missing, malformed or not allowed."""

    status = 400
    default_message = "Invalid URL"


class NotFound(InstagrabError):
    """Raised when the post page was reachable but no media could be located."""

    status = 404
    default_message = "Could not extract media from Instagram post"


class UpstreamFailure(InstagrabError):
    """Raised when Instagram or a media host fails, times out or returns non-2xx."""

    status = 500
    default_message = "Failed to process Instagram URL"
