"""Configuration for the ARIA bridge.

Settings are validated with a voluptuous schema and exposed to the rest of
the bridge as a frozen BridgeConfig.
"""

import logging
from dataclasses import dataclass
from typing import Any

import voluptuous as vol

from .const import (
    AUTH_URL,
    CHANNEL_ID_PATTERN,
    CONF_AUTH_URL,
    CONF_BAUD_RATE,
    CONF_CHANNEL_ID,
    CONF_CLIENT_ID,
    CONF_KEY_PATH,
    CONF_MESSAGING_URL,
    CONF_PORT,
    CONF_SCOPES,
    CONF_TIMEOUT,
    DEFAULT_BAUD_RATE,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_KEY_PATH,
    DEFAULT_SCOPES,
    MESSAGING_URL,
)
from .exceptions import ConfigError

_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_PORT): vol.All(
            str, vol.Length(min=1, msg="serial port name is required")
        ),
        vol.Required(CONF_CHANNEL_ID): vol.All(
            str,
            vol.Match(CHANNEL_ID_PATTERN, msg="channel ID format is invalid"),
        ),
        vol.Required(CONF_CLIENT_ID): vol.All(
            str, vol.Length(min=1, msg="device client ID is required")
        ),
        vol.Optional(CONF_KEY_PATH, default=DEFAULT_KEY_PATH): str,
        vol.Optional(CONF_AUTH_URL, default=AUTH_URL): vol.Url(),
        vol.Optional(CONF_MESSAGING_URL, default=MESSAGING_URL): vol.Url(),
        vol.Optional(CONF_SCOPES, default=list(DEFAULT_SCOPES)): vol.All(
            [str], vol.Length(min=1)
        ),
        vol.Optional(CONF_TIMEOUT, default=DEFAULT_HTTP_TIMEOUT): vol.All(
            vol.Coerce(float), vol.Range(min=0, min_included=False)
        ),
        vol.Optional(CONF_BAUD_RATE, default=DEFAULT_BAUD_RATE): vol.All(
            vol.Coerce(int), vol.Range(min=1)
        ),
    }
)


@dataclass(frozen=True)
class BridgeConfig:
    """Validated bridge settings."""

    port: str
    channel_id: str
    client_id: str
    key_path: str = DEFAULT_KEY_PATH
    auth_url: str = AUTH_URL
    messaging_url: str = MESSAGING_URL
    scopes: tuple[str, ...] = DEFAULT_SCOPES
    timeout: float = DEFAULT_HTTP_TIMEOUT
    baud_rate: int = DEFAULT_BAUD_RATE


def load_config(user_input: dict[str, Any]) -> BridgeConfig:
    """Validate raw settings and build a BridgeConfig.

    Args:
        user_input: Settings keyed by the CONF_* constants. Keys whose value
            is None are treated as not given.

    Returns:
        The validated BridgeConfig.

    Raises:
        ConfigError: If a setting is missing or invalid.

    """
    data = {key: value for key, value in user_input.items() if value is not None}
    try:
        validated = CONFIG_SCHEMA(data)
    except vol.Invalid as err:
        error_msg = f"Invalid configuration: {err}"
        raise ConfigError(error_msg) from err

    _LOGGER.debug(
        "Loaded configuration for client %s on port %s",
        validated[CONF_CLIENT_ID],
        validated[CONF_PORT],
    )
    return BridgeConfig(
        port=validated[CONF_PORT],
        channel_id=validated[CONF_CHANNEL_ID],
        client_id=validated[CONF_CLIENT_ID],
        key_path=validated[CONF_KEY_PATH],
        auth_url=validated[CONF_AUTH_URL],
        messaging_url=validated[CONF_MESSAGING_URL],
        scopes=tuple(validated[CONF_SCOPES]),
        timeout=validated[CONF_TIMEOUT],
        baud_rate=validated[CONF_BAUD_RATE],
    )
