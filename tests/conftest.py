"""Shared client fixtures."""

from collections.abc import Iterator

import pytest
from structlog.testing import capture_logs

from ewon_m2web import m2webapi
from tests.payloads import make_builder


@pytest.fixture(autouse=True)
def log_output() -> Iterator[list[dict]]:
    """Capture structlog events instead of printing them."""
    with capture_logs() as logs:
        yield logs


@pytest.fixture
def stateless_client() -> m2webapi.M2WebClient:
    """Client sending credentials on every request."""
    return make_builder().build()


@pytest.fixture
def stateful_client() -> m2webapi.M2WebClient:
    """Client using the legacy login/logout session flow."""
    return make_builder().stateful_auth().build()
