"""
Strava provider errors.

Raised by the provider collaborator. Callers only need to tell a gone
activity (404) apart from everything else, which is retried.
"""

from typing import Optional


class StravaError(Exception):
    """Base Strava error."""
    pass


class StravaAPIError(StravaError):
    """Strava API error, optionally carrying the HTTP status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        friendly_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.friendly_message = friendly_message


class StravaNotFoundError(StravaAPIError):
    """Requested resource does not exist (deleted activity, etc)."""

    def __init__(self, message: str = "Not found", friendly_message: Optional[str] = None):
        super().__init__(message, status_code=404, friendly_message=friendly_message)


class StravaRateLimitError(StravaAPIError):
    """Rate limit exceeded."""

    def __init__(self, message: str = "Rate limit exceeded"):
        super().__init__(message, status_code=429)


def is_not_found(error: BaseException) -> bool:
    """True if the error means the upstream resource is gone."""
    if isinstance(error, StravaNotFoundError):
        return True
    return getattr(error, "status_code", None) == 404


def friendly_error_message(error: BaseException) -> str:
    """User-facing message for an error raised by the provider."""
    message = getattr(error, "friendly_message", None)
    return message or str(error) or error.__class__.__name__
