"""M2Web REST API client package.

Provides an async HTTP client for the Talk2M M2Web API that returns
validated API response types with minimal processing.

Exports:
    M2WebClient: HTTP client with authentication and error handling.
    ClientBuilder: Fluent builder for M2WebClient.
    Ewon, EwonStatus: Pydantic models for API responses.
    DEFAULT_API_URL: Default M2Web API base URL.
    DEFAULT_TIMEOUT: Default HTTP request timeout.
"""

from . import types
from .client import (
    DEFAULT_API_URL,
    DEFAULT_TIMEOUT,
    ClientBuilder,
    M2WebClient,
)
from .errors import (
    ApiError,
    AuthError,
    ConfigurationError,
    DecodeError,
    M2WebError,
    NotFoundError,
    TransportError,
)
from .types import Ewon, EwonStatus

__all__ = [
    "DEFAULT_API_URL",
    "DEFAULT_TIMEOUT",
    "ApiError",
    "AuthError",
    "ClientBuilder",
    "ConfigurationError",
    "DecodeError",
    "Ewon",
    "EwonStatus",
    "M2WebClient",
    "M2WebError",
    "NotFoundError",
    "TransportError",
    "types",
]
