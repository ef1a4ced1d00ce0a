"""Configuration and logging setup for the M2Web client."""

import json
import logging
import os
import pathlib
import sys

import pydantic
import structlog

from . import m2webapi

CONFIG_ENV_VAR = "EWON_M2WEB_CONFIG_PATH"
DEFAULT_CONFIG_PATH = "m2web.json"
logger = structlog.get_logger(__name__)


class ClientConfig(pydantic.BaseModel):
    """Configuration for the M2Web client."""

    api_url: str = pydantic.Field(
        m2webapi.DEFAULT_API_URL,
        description="Base URL for the M2Web API",
    )
    account: str = pydantic.Field(description="Talk2M corporate account")
    username: str = pydantic.Field(description="Talk2M user of the account")
    password: pydantic.SecretStr = pydantic.Field(description="Password of the user")
    developer_id: str = pydantic.Field(description="Talk2M developer id")
    stateful_auth: bool = pydantic.Field(
        False,
        description="Use the legacy login/logout session flow",
    )
    timeout: float = pydantic.Field(
        m2webapi.DEFAULT_TIMEOUT,
        description="Request timeout in seconds",
        gt=0,
    )
    log_level: str = pydantic.Field("INFO", description="Logging level")


def configure_logging(log_level_name: str) -> None:
    """Configure structlog for logfmt output on stderr."""
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=("timestamp", "level", "msg"),
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def resolve_config_path(config_path: str | None = None) -> str:
    """Return the explicit path, else the environment default, else ./m2web.json."""
    return config_path or os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)


def load_config(config_path: str) -> ClientConfig:
    """Load configuration from JSON file."""
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with path.open("r") as f:
        data = json.load(f)

    return ClientConfig.model_validate(data)


def create_client(config: ClientConfig) -> m2webapi.M2WebClient:
    """Construct the API client from validated config."""
    client = (
        m2webapi.ClientBuilder()
        .url(config.api_url)
        .account(config.account)
        .username(config.username)
        .password(config.password.get_secret_value())
        .developer_id(config.developer_id)
        .stateful_auth(config.stateful_auth)
        .timeout(config.timeout)
        .build()
    )
    logger.info(
        "Created M2Web client",
        api_url=config.api_url,
        stateful_auth=config.stateful_auth,
    )
    return client
