"""Error taxonomy shared by the tabrelay components.

Every error carries the HTTP status it maps to and a message that is safe to
show to callers. Internal detail goes in the exception's ``str()`` and is only
ever logged.
"""

from __future__ import annotations

from typing import Any, Mapping


class TabRelayError(RuntimeError):
    """Base class for failures surfaced at the HTTP boundary."""

    status_code: int = 500
    public_message: str = "Internal Server Error"

    def __init__(self, detail: str | None = None, *, public_message: str | None = None) -> None:
        super().__init__(detail or public_message or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class ClientInputError(TabRelayError):
    """Missing or malformed request fields. The message is shown verbatim."""

    status_code = 400
    public_message = "Invalid request"

    def __init__(self, message: str) -> None:
        super().__init__(message, public_message=message)


class PolicyViolation(TabRelayError):
    """Request rejected by an access policy."""

    status_code = 403
    public_message = "Forbidden"


class OriginNotAllowed(PolicyViolation):
    public_message = "Not allowed by CORS"


class RateLimitExceeded(PolicyViolation):
    status_code = 429
    public_message = "Too many requests, please try again later."


class UpstreamFormatError(TabRelayError):
    """The scraped page carried a data blob that could not be parsed."""

    public_message = "Failed to parse search results"


class UpstreamFetchError(TabRelayError):
    """The search site could not be reached or answered with an error."""

    status_code = 502
    public_message = "Failed to fetch search results"


class ExternalToolError(TabRelayError):
    """The converter program failed to run or exited non-zero."""

    public_message = "Failed to convert tab"


class DownstreamRelayError(TabRelayError):
    """The automation endpoint was unreachable or answered with an error.

    ``payload`` holds the downstream JSON object when there was one, so the
    boundary can echo it back with the friendlier ``error`` message merged in.
    """

    def __init__(
        self,
        detail: str,
        *,
        status_code: int = 500,
        public_message: str,
        payload: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(detail, public_message=public_message)
        self.status_code = status_code
        self.payload = dict(payload) if payload is not None else None


__all__ = [
    "ClientInputError",
    "DownstreamRelayError",
    "ExternalToolError",
    "OriginNotAllowed",
    "PolicyViolation",
    "RateLimitExceeded",
    "TabRelayError",
    "UpstreamFetchError",
    "UpstreamFormatError",
]
