"""Exceptions raised by the M2Web API client."""


class M2WebError(Exception):
    """Base class for all M2Web client errors.

    Attributes:
        message: Human-readable message, as returned by the API when available.
        status_code: HTTP status code of the response, if one was received.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"HTTP {self.status_code}: {self.message}"
        return self.message


class ConfigurationError(M2WebError):
    """Raised when the client is misconfigured, before any request is sent."""


class TransportError(M2WebError):
    """Raised when the API could not be reached."""


class DecodeError(M2WebError):
    """Raised when a response body does not match the expected format."""


class ApiError(M2WebError):
    """Raised when the API answers with an unsuccessful response."""


class AuthError(ApiError):
    """Raised when credentials or the session are rejected or missing."""


class NotFoundError(ApiError):
    """Raised when the requested eWON does not exist."""
