"""Exceptions raised by analytics_piwik."""


class PiwikError(Exception):
    """Base class for Piwik helper errors."""
    pass


class MissingEndpointError(PiwikError, ValueError):
    """Raised when neither the call nor the config provides a Piwik URL."""
    pass


class PiwikRequestError(PiwikError):
    """Raised by ApiResult.raise_for_error() when a request failed."""

    def __init__(self, message: str, url: str = "", status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
