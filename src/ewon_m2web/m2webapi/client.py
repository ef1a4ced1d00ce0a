"""M2Web REST API client.

Provides an async HTTP client for the Talk2M M2Web API with stateless
(per-call credentials) or legacy stateful (session id) authentication, and
response validation using Pydantic models.
"""

import time
from typing import Any

import httpx
import pydantic
import structlog

from .errors import (
    ApiError,
    AuthError,
    ConfigurationError,
    DecodeError,
    NotFoundError,
    TransportError,
)
from .types import ApiResponse, Ewon

logger = structlog.get_logger(__name__)

DEFAULT_API_URL = "https://m2web.talk2m.com/t2mapi"

DEFAULT_TIMEOUT = 30.0

LOGIN_ENDPOINT = "login"
LOGOUT_ENDPOINT = "logout"
GET_EWONS_ENDPOINT = "getewons"
GET_EWON_ENDPOINT = "getewon"

_ERRORS_BY_STATUS: dict[int, type[ApiError]] = {
    httpx.codes.UNAUTHORIZED: AuthError,
    httpx.codes.FORBIDDEN: AuthError,
    httpx.codes.NOT_FOUND: NotFoundError,
    httpx.codes.GONE: NotFoundError,
}


def _api_error(status_code: int, message: str) -> ApiError:
    """Map an unsuccessful API answer to the matching exception."""
    if not message:
        if status_code == httpx.codes.BAD_REQUEST:
            message = "Missing parameter"
        else:
            message = "Unknown error occurred"
    error_class = _ERRORS_BY_STATUS.get(status_code, ApiError)
    return error_class(message, status_code=status_code)


class M2WebClient:
    """Async HTTP client for the M2Web REST API.

    Stateless by default: every request carries the account credentials.
    With ``stateful_auth`` the legacy session flow is used instead; call
    :meth:`login` first and :meth:`logout` once done. A logged out client
    cannot be used anymore.

    Stateful clients keep the session id on the instance and are meant for
    sequential use. Can be used as an async context manager for cleanup.
    """

    def __init__(
        self,
        account: str | None,
        username: str | None,
        password: str | None,
        developer_id: str | None,
        api_url: str = DEFAULT_API_URL,
        stateful_auth: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the client. No request is sent.

        Args:
            account: Talk2M corporate account name.
            username: Talk2M user attached to the account.
            password: Password of the user.
            developer_id: Talk2M developer id (API key).
            api_url: Base URL of the M2Web API.
            stateful_auth: Use the legacy login/logout session flow.
            timeout: Request timeout in seconds (default: 30.0).

        Raises:
            ConfigurationError: If a credential or the URL is missing or
                empty, or if timeout is not positive.
        """
        credentials = {
            "account": account,
            "username": username,
            "password": password,
            "developer_id": developer_id,
        }
        if missing := [name for name, value in credentials.items() if not (value or "").strip()]:
            msg = f"Missing required configuration: {', '.join(missing)}"
            raise ConfigurationError(msg)
        if not api_url:
            msg = "api_url cannot be empty"
            raise ConfigurationError(msg)
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ConfigurationError(msg)

        self.api_url = api_url.rstrip("/")
        self.stateful_auth = stateful_auth
        self._account = account
        self._username = username
        self._password = password
        self._developer_id = developer_id
        self._timeout = timeout

        self._session: str | None = None
        self._terminated = False
        self._http_client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or lazily create the underlying httpx client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                base_url=self.api_url,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        return self._http_client

    @property
    def session(self) -> str | None:
        """Session id of the open stateful session, if any."""
        return self._session

    @property
    def is_terminated(self) -> bool:
        return self._terminated

    async def __aenter__(self):
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager and cleanup resources."""
        await self.close()

    async def close(self):
        """Close the HTTP client if open."""
        if self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()

    def _credential_params(self) -> dict[str, str]:
        return {
            "t2maccount": self._account,
            "t2musername": self._username,
            "t2mpassword": self._password,
            "t2mdeveloperid": self._developer_id,
        }

    def _auth_params(self, endpoint: str) -> dict[str, str]:
        """Build the authentication query parameters for an endpoint.

        Raises:
            AuthError: If the client is stateful and no session is open.
        """
        if not self.stateful_auth or endpoint == LOGIN_ENDPOINT:
            return self._credential_params()

        if self._session is None:
            msg = "No session opened, please login before requesting the API"
            raise AuthError(msg)
        return {
            "t2msession": self._session,
            "t2mdeveloperid": self._developer_id,
        }

    def _require_stateful(self) -> None:
        if not self.stateful_auth:
            msg = "Client set to authenticate statelessly: stateful_auth was not set"
            raise ConfigurationError(msg)

    async def _make_request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """Make a GET request to the M2Web API.

        Handles authentication parameters, request execution, error
        mapping and response validation. Logs request details and
        duration, never credential values.

        Args:
            endpoint: API endpoint path relative to the base URL.
            params: Optional endpoint-specific query parameters.

        Returns:
            Validated API response envelope.

        Raises:
            AuthError: If the client was logged out, no session is open,
                or the API rejects the credentials.
            TransportError: If the HTTP request fails.
            NotFoundError: If the API reports the eWON does not exist.
            ApiError: If the API returns any other unsuccessful response.
            DecodeError: If the response body cannot be decoded.
        """
        if self._terminated:
            msg = "Session closed, the client can no longer be used"
            raise AuthError(msg)

        params = params or {}
        query = self._auth_params(endpoint)
        query.update(params)

        start_time = time.time()
        logger.debug(
            "Making API request",
            method="GET",
            endpoint=endpoint,
            params=params,
            stateful=self.stateful_auth,
        )
        try:
            response = await self.client.get(endpoint, params=query)
        except httpx.RequestError as exc:
            duration = time.time() - start_time
            logger.exception(
                "API request failed",
                endpoint=endpoint,
                duration_seconds=round(duration, 3),
            )
            msg = f"Request to {endpoint} failed: {exc}"
            raise TransportError(msg) from exc

        duration = time.time() - start_time
        logger.debug(
            "API request completed",
            endpoint=endpoint,
            status_code=response.status_code,
            duration_seconds=round(duration, 3),
        )

        try:
            data = response.json()
        except ValueError as exc:
            if not response.is_success:
                raise _api_error(response.status_code, response.text[:200]) from exc
            msg = f"JSON response syntax error: {exc}"
            raise DecodeError(msg, status_code=response.status_code) from exc

        if not isinstance(data, dict):
            if not response.is_success:
                raise _api_error(response.status_code, "")
            msg = "JSON response is not an object"
            raise DecodeError(msg, status_code=response.status_code)

        if response.is_success and "success" not in data:
            msg = "JSON response data format does not match the expected one: missing field `success`"
            raise DecodeError(msg, status_code=response.status_code)

        if not response.is_success or not data.get("success", False):
            status_code = response.status_code
            if response.is_success and isinstance(data.get("code"), int):
                status_code = data["code"]
            message = str(data.get("message", ""))
            logger.error(
                "API error response",
                endpoint=endpoint,
                status_code=status_code,
                error_message=message,
            )
            raise _api_error(status_code, message)

        try:
            return ApiResponse.model_validate(data)
        except pydantic.ValidationError as exc:
            msg = f"JSON response data format does not match the expected one: {exc}"
            raise DecodeError(msg, status_code=response.status_code) from exc

    async def login(self) -> str:
        """Open a stateful session.

        Kept for legacy code relying on stateful authentication. The API
        returns a session id which replaces the credentials on subsequent
        requests.

        Returns:
            The session id.

        Raises:
            ConfigurationError: If the client is not set to stateful auth.
            AuthError: If the credentials are rejected.
        """
        self._require_stateful()
        response = await self._make_request(LOGIN_ENDPOINT)
        if not response.t2msession:
            msg = "Login response does not contain a session id"
            raise DecodeError(msg)

        self._session = response.t2msession
        logger.info("Opened M2Web session", account=self._account)
        return self._session

    async def logout(self) -> None:
        """Close the stateful session.

        Invalidates the session id. The client is terminated afterwards:
        any further call, including another logout, raises AuthError.

        Raises:
            ConfigurationError: If the client is not set to stateful auth.
            AuthError: If no session is open, the client was already logged
                out, or the API rejects the session.
        """
        self._require_stateful()
        await self._make_request(LOGOUT_ENDPOINT)

        self._session = None
        self._terminated = True
        logger.info("Closed M2Web session", account=self._account)
        await self.close()

    async def get_ewons(self, pool: str | None = None) -> list[Ewon]:
        """Fetch all eWONs registered for the corporate account.

        Args:
            pool: Optional pool name; only eWONs of this pool are returned.

        Returns:
            List of validated Ewon objects, empty if the account has none.

        Raises:
            M2WebError: See :meth:`_make_request`.
        """
        params = {}
        if pool is not None:
            params["pool"] = pool

        response = await self._make_request(GET_EWONS_ENDPOINT, params=params)
        if response.ewons is None:
            msg = "JSON response data format does not match the expected one: missing field `ewons`"
            raise DecodeError(msg)

        if not response.ewons:
            logger.warning("No eWON returned by API", pool=pool)
        return response.ewons

    async def _get_ewon(self, params: dict[str, Any]) -> Ewon:
        response = await self._make_request(GET_EWON_ENDPOINT, params=params)
        if response.ewon is None:
            msg = "JSON response data format does not match the expected one: missing field `ewon`"
            raise DecodeError(msg)
        return response.ewon

    async def get_ewon_by_id(self, ewon_id: int) -> Ewon:
        """Fetch one eWON by its id, as returned by :meth:`get_ewons`.

        Raises:
            NotFoundError: If no eWON has this id.
        """
        return await self._get_ewon({"id": str(ewon_id)})

    async def get_ewon_by_name(self, name: str) -> Ewon:
        """Fetch one eWON by its exact name, as returned by :meth:`get_ewons`.

        Raises:
            NotFoundError: If no eWON has this name.
        """
        return await self._get_ewon({"name": name})


class ClientBuilder:
    """Fluent builder for :class:`M2WebClient`.

    Example:
        client = (
            ClientBuilder()
            .account("account1")
            .username("username1")
            .password("password1")
            .developer_id("731e38ec-981f-4f31-9cb5-e87f0d571816")
            .build()
        )
    """

    def __init__(self):
        self._api_url = DEFAULT_API_URL
        self._account: str | None = None
        self._username: str | None = None
        self._password: str | None = None
        self._developer_id: str | None = None
        self._stateful_auth = False
        self._timeout = DEFAULT_TIMEOUT

    def url(self, api_url: str) -> "ClientBuilder":
        self._api_url = api_url
        return self

    def account(self, account: str) -> "ClientBuilder":
        self._account = account
        return self

    def username(self, username: str) -> "ClientBuilder":
        self._username = username
        return self

    def password(self, password: str) -> "ClientBuilder":
        self._password = password
        return self

    def developer_id(self, developer_id: str) -> "ClientBuilder":
        self._developer_id = developer_id
        return self

    def stateful_auth(self, enabled: bool = True) -> "ClientBuilder":
        self._stateful_auth = enabled
        return self

    def timeout(self, timeout: float) -> "ClientBuilder":
        self._timeout = timeout
        return self

    def build(self) -> M2WebClient:
        """Build the client.

        Raises:
            ConfigurationError: If a required field is missing or invalid.
        """
        return M2WebClient(
            account=self._account,
            username=self._username,
            password=self._password,
            developer_id=self._developer_id,
            api_url=self._api_url,
            stateful_auth=self._stateful_auth,
            timeout=self._timeout,
        )
