"""Constants for the ARIA serial-to-cloud bridge.

This module contains the constants used throughout the bridge, including
API endpoints, OAuth parameters, configuration keys, the ARIA frame layout
and the byte-to-enum mapping dictionaries.
"""

from .models import MagnetismEvent, MagnetismState, WakeFactor, WakeFactorSource

AUTH_URL = "https://auth.optim.cloud"
MESSAGING_URL = "https://messaging.optimcloudapis.com/v2"
TOKEN_PATH = "/connect/token"
MESSAGING_PATH = "/messaging"

JWT_BEARER_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_ALGORITHM = "RS256"
ASSERTION_LIFETIME = 180  # Seconds
TOKEN_REFRESH_MARGIN = 30  # Seconds before expiry at which a token is renewed
DEFAULT_SCOPES = ("messaging.publish",)
DEFAULT_HTTP_TIMEOUT = 10.0

DEFAULT_KEY_PATH = "./jwtRS256.key"
DEFAULT_BAUD_RATE = 115200
DEFAULT_SERIAL_TIMEOUT = 1.0

CHANNEL_ID_PATTERN = r"^[0-9a-v]{20}$"

CONF_PORT = "port"
CONF_CHANNEL_ID = "channel_id"
CONF_CLIENT_ID = "client_id"
CONF_KEY_PATH = "key_path"
CONF_AUTH_URL = "auth_url"
CONF_MESSAGING_URL = "messaging_url"
CONF_SCOPES = "scopes"
CONF_TIMEOUT = "timeout"
CONF_BAUD_RATE = "baud_rate"

# Serial line framing: ":" followed by the hex-encoded frame
FRAME_LINE_PREFIX = ":"
FRAME_LINE_LENGTH = 123
MIN_FRAME_LENGTH = 59

WAKE_FACTOR_SOURCE_MAP = {
    0x00: WakeFactorSource.MAGNETISM,
    0x01: WakeFactorSource.TEMPERATURE,
    0x02: WakeFactorSource.HUMIDITY,
    0x03: WakeFactorSource.ILLUMINANCE,
    0x04: WakeFactorSource.ACCELERATION,
    0x31: WakeFactorSource.DIO,
    0x32: WakeFactorSource.TIMER,
}
WAKE_FACTOR_MAP = {
    0x00: WakeFactor.EVENT_OCCURRED,
    0x01: WakeFactor.VALUE_CHANGED,
    0x02: WakeFactor.EXCEEDED_THRESHOLD,
    0x03: WakeFactor.BELOW_THRESHOLD,
    0x04: WakeFactor.IN_THRESHOLD_RANGE,
}
MAGNETISM_EVENT_MAP = {
    0x00: MagnetismEvent.NO_MAGNET,
    0x01: MagnetismEvent.N_POLE_MAGNET,
    0x02: MagnetismEvent.S_POLE_MAGNET,
}
MAGNETISM_STATE_MAP = {
    0x00: MagnetismState.NO_MAGNET,
    0x01: MagnetismState.N_POLE_MAGNET,
    0x02: MagnetismState.S_POLE_MAGNET,
    # 0x80 is the periodic-report bit
    0x80: MagnetismState.NO_CHANGE_NO_MAGNET,
    0x81: MagnetismState.NO_CHANGE_N_POLE_MAGNET,
    0x82: MagnetismState.NO_CHANGE_S_POLE_MAGNET,
}
