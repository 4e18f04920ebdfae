"""Command line entry point for the ARIA bridge."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

import serial

from .api import MessagingClient, create_session_client
from .auth import TokenManager
from .bridge import AriaBridge
from .config import BridgeConfig, load_config
from .const import (
    CONF_AUTH_URL,
    CONF_BAUD_RATE,
    CONF_CHANNEL_ID,
    CONF_CLIENT_ID,
    CONF_KEY_PATH,
    CONF_MESSAGING_URL,
    CONF_PORT,
    CONF_TIMEOUT,
    DEFAULT_KEY_PATH,
)
from .exceptions import ConfigError, SigningError
from .serial_reader import iter_lines, open_serial

_LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aria-bridge",
        description="Forward ARIA sensor frames from a TWELITE gateway to a "
        "messaging channel.",
    )
    parser.add_argument(
        "-p", "--port", dest=CONF_PORT, help="Serial port of the MONOSTICK gateway"
    )
    parser.add_argument("-c", "--channel-id", dest=CONF_CHANNEL_ID, help="Channel ID")
    parser.add_argument(
        "-i", "--client-id", dest=CONF_CLIENT_ID, help="Device client ID"
    )
    parser.add_argument(
        "-k",
        "--key",
        dest=CONF_KEY_PATH,
        default=DEFAULT_KEY_PATH,
        help="Path to the device's PEM encoded RSA private key",
    )
    parser.add_argument("--auth-url", dest=CONF_AUTH_URL)
    parser.add_argument("--messaging-url", dest=CONF_MESSAGING_URL)
    parser.add_argument("--timeout", dest=CONF_TIMEOUT, type=float)
    parser.add_argument("--baud-rate", dest=CONF_BAUD_RATE, type=int)
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    return parser


def run(config: BridgeConfig) -> int:
    """Run the bridge until the serial port closes or the user interrupts."""
    with create_session_client(config.timeout) as session:
        try:
            token_manager = TokenManager.from_pem_file(
                config.key_path,
                config.client_id,
                session,
                auth_url=config.auth_url,
                scopes=config.scopes,
            )
        except SigningError as err:
            _LOGGER.error("%s", err)
            return 1

        client = MessagingClient(session, token_manager, config.messaging_url)
        bridge = AriaBridge(client, config.channel_id)

        try:
            with open_serial(config.port, config.baud_rate) as port:
                bridge.run(iter_lines(port))
        except serial.SerialException as err:
            _LOGGER.error("Serial port error on %s: %s", config.port, err)
            return 1
        except SigningError as err:
            _LOGGER.error("%s", err)
            return 1
        except KeyboardInterrupt:
            _LOGGER.info("Exiting...")

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = vars(build_parser().parse_args(argv))
    debug = args.pop("debug")
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = load_config(args)
    except ConfigError as err:
        print(err, file=sys.stderr)
        return 1

    return run(config)


if __name__ == "__main__":
    sys.exit(main())
