"""Tests for the legacy stateful login/logout session flow."""

import httpx
import pytest
import respx

from ewon_m2web import m2webapi
from tests.payloads import (
    ACCOUNT,
    API_URL,
    DEVELOPER_ID,
    OFFLINE_EWON,
    PASSWORD,
    SESSION_ID,
    USERNAME,
)

LOGIN_URL = f"{API_URL}/login"
LOGOUT_URL = f"{API_URL}/logout"
GETEWONS_URL = f"{API_URL}/getewons"


def _mock_login(router=respx) -> respx.Route:
    return router.get(LOGIN_URL).mock(
        return_value=httpx.Response(200, json={"t2msession": SESSION_ID, "success": True}),
    )


def _mock_logout(router=respx) -> respx.Route:
    return router.get(LOGOUT_URL).mock(
        return_value=httpx.Response(200, json={"success": True}),
    )


# ---------------------------------------------------------------------------
# login
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@respx.mock
async def test_login_returns_and_stores_session(stateful_client: m2webapi.M2WebClient):
    """Login sends the credentials and keeps the returned session id."""
    route = _mock_login()

    session_id = await stateful_client.login()

    assert session_id == SESSION_ID
    assert stateful_client.session == SESSION_ID
    params = route.calls.last.request.url.params
    assert params["t2maccount"] == ACCOUNT
    assert params["t2musername"] == USERNAME
    assert params["t2mpassword"] == PASSWORD
    assert params["t2mdeveloperid"] == DEVELOPER_ID


@pytest.mark.asyncio
@respx.mock
async def test_login_rejected_raises_auth_error(stateful_client: m2webapi.M2WebClient):
    """Invalid credentials on login raise AuthError and open no session."""
    respx.get(LOGIN_URL).mock(
        return_value=httpx.Response(
            403,
            json={"code": 403, "message": "Invalid credentials", "success": False},
        ),
    )

    with pytest.raises(m2webapi.AuthError) as exc_info:
        await stateful_client.login()

    assert str(exc_info.value) == "HTTP 403: Invalid credentials"
    assert stateful_client.session is None


@pytest.mark.asyncio
@respx.mock
async def test_login_without_session_in_response_raises_decode_error(
    stateful_client: m2webapi.M2WebClient,
):
    """A successful login answer must carry a session id."""
    respx.get(LOGIN_URL).mock(return_value=httpx.Response(200, json={"success": True}))

    with pytest.raises(m2webapi.DecodeError):
        await stateful_client.login()


@pytest.mark.asyncio
async def test_login_on_stateless_client_raises_configuration_error(
    stateless_client: m2webapi.M2WebClient,
):
    """Login is refused without a request when stateful_auth is not set."""
    with respx.mock(assert_all_called=False) as router:
        route = _mock_login(router)

        with pytest.raises(m2webapi.ConfigurationError, match="stateful_auth was not set"):
            await stateless_client.login()

    assert not route.called


# ---------------------------------------------------------------------------
# Session use
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@respx.mock
async def test_requests_after_login_use_session(stateful_client: m2webapi.M2WebClient):
    """Once logged in, requests carry the session instead of the credentials."""
    _mock_login()
    route = respx.get(GETEWONS_URL).mock(
        return_value=httpx.Response(200, json={"ewons": [OFFLINE_EWON], "success": True}),
    )

    await stateful_client.login()
    ewons = await stateful_client.get_ewons()

    assert len(ewons) == 1
    params = route.calls.last.request.url.params
    assert params["t2msession"] == SESSION_ID
    assert params["t2mdeveloperid"] == DEVELOPER_ID
    assert "t2mpassword" not in params
    assert "t2musername" not in params
    assert "t2maccount" not in params


@pytest.mark.asyncio
async def test_request_before_login_raises_auth_error(
    stateful_client: m2webapi.M2WebClient,
):
    """Stateful clients need a session before querying devices."""
    with respx.mock(assert_all_called=False) as router:
        route = router.get(GETEWONS_URL)

        with pytest.raises(m2webapi.AuthError, match="No session opened"):
            await stateful_client.get_ewons()

    assert not route.called


# ---------------------------------------------------------------------------
# logout
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@respx.mock
async def test_logout_closes_session(stateful_client: m2webapi.M2WebClient):
    """Logout sends the session and terminates the client."""
    _mock_login()
    route = _mock_logout()

    await stateful_client.login()
    await stateful_client.logout()

    params = route.calls.last.request.url.params
    assert params["t2msession"] == SESSION_ID
    assert params["t2mdeveloperid"] == DEVELOPER_ID
    assert stateful_client.session is None
    assert stateful_client.is_terminated


@pytest.mark.asyncio
@respx.mock
async def test_logout_twice_raises_auth_error(stateful_client: m2webapi.M2WebClient):
    """The second logout on the same session fails without a request."""
    _mock_login()
    route = _mock_logout()

    await stateful_client.login()
    await stateful_client.logout()

    with pytest.raises(m2webapi.AuthError):
        await stateful_client.logout()

    assert route.call_count == 1


@pytest.mark.asyncio
async def test_requests_after_logout_raise_auth_error(
    stateful_client: m2webapi.M2WebClient,
):
    """A logged out client cannot be used anymore, even to log in again."""
    with respx.mock(assert_all_called=False) as router:
        login = _mock_login(router)
        _mock_logout(router)
        route = router.get(GETEWONS_URL)

        await stateful_client.login()
        await stateful_client.logout()

        with pytest.raises(m2webapi.AuthError):
            await stateful_client.get_ewons()
        with pytest.raises(m2webapi.AuthError):
            await stateful_client.login()

    assert not route.called
    assert login.call_count == 1


@pytest.mark.asyncio
async def test_logout_without_login_raises_auth_error(
    stateful_client: m2webapi.M2WebClient,
):
    """Logout needs an open session."""
    with respx.mock(assert_all_called=False) as router:
        route = _mock_logout(router)

        with pytest.raises(m2webapi.AuthError):
            await stateful_client.logout()

    assert not route.called
    assert not stateful_client.is_terminated


@pytest.mark.asyncio
@respx.mock
async def test_logout_rejected_session_raises_auth_error(
    stateful_client: m2webapi.M2WebClient,
):
    """An already invalidated session is reported by the API as forbidden."""
    _mock_login()
    respx.get(LOGOUT_URL).mock(
        return_value=httpx.Response(
            403,
            json={"code": 403, "message": "Invalid session", "success": False},
        ),
    )

    await stateful_client.login()

    with pytest.raises(m2webapi.AuthError, match="Invalid session"):
        await stateful_client.logout()


@pytest.mark.asyncio
async def test_logout_on_stateless_client_raises_configuration_error(
    stateless_client: m2webapi.M2WebClient,
):
    """Logout is refused when stateful_auth is not set."""
    with pytest.raises(m2webapi.ConfigurationError):
        await stateless_client.logout()
