"""Pytest configuration and fixtures for ARIA bridge tests."""

from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import httpx
import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from aria_bridge.auth import TokenManager

CLIENT_ID = "test-device-client"
CHANNEL_ID = "0123456789abcdefghij"
TEST_JWT_SECRET = "test-secret-with-at-least-thirty-two-bytes"

# 61-byte frame as printed by the gateway (the last two bytes are trailer)
SAMPLE_FRAME_HEX = (
    "81000001"  # 0-3 relay serial ID
    "a5"  # 4 LQI
    "0123"  # 5-6 sequence number
    "8201c0de"  # 7-10 sender serial ID
    "01"  # 11 sender logical ID
    "80"  # 12 sensor type
    "06"  # 13 PAL ID
    "05"  # 14 sensor count
    "00000000"  # 15-18
    "850000"  # 19-21 packet property
    "00000000"  # 22-25
    "01"  # 26 magnetism event
    "00000000000000"  # 27-33
    "0bb8"  # 34-35 supply voltage
    "00000000"  # 36-39
    "04d2"  # 40-41 DC1 voltage
    "00000000"  # 42-45
    "81"  # 46 magnetism state
    "00000000"  # 47-50
    "09c4"  # 51-52 temperature
    "00000000"  # 53-56
    "11c6"  # 57-58 humidity
    "7f00"  # 59-60 trailer
)
SAMPLE_FRAME = bytes.fromhex(SAMPLE_FRAME_HEX)
SAMPLE_LINE = ":" + SAMPLE_FRAME_HEX.upper()


def create_test_jwt(exp_timestamp: int | None = None) -> str:
    """Create a test JWT token with optional expiration timestamp.

    Args:
        exp_timestamp: Optional expiration timestamp. If None, defaults to
            1 hour from now.

    Returns:
        An HS256 signed JWT token string.

    """
    if exp_timestamp is None:
        exp_timestamp = int(datetime.now(UTC).timestamp()) + 3600

    payload = {"exp": exp_timestamp, "sub": CLIENT_ID}
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


def build_frame(**overrides: bytes) -> bytes:
    """Return SAMPLE_FRAME with bytes replaced at the given offsets.

    Keyword names are "at_<offset>", e.g. build_frame(at_46=b"\\x82").
    """
    data = bytearray(SAMPLE_FRAME)
    for name, value in overrides.items():
        offset = int(name.removeprefix("at_"))
        data[offset : offset + len(value)] = value
    return bytes(data)


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """Fixture providing an RSA key for signing assertions."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def rsa_private_key_file(tmp_path: Path, rsa_private_key: rsa.RSAPrivateKey) -> Path:
    """Fixture providing the RSA key written to a PEM file."""
    path = tmp_path / "jwtRS256.key"
    path.write_bytes(
        rsa_private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    return path


@pytest.fixture
def fixed_now() -> datetime:
    """Fixture providing the frozen current time used by token managers."""
    return datetime.now(UTC).replace(microsecond=0)


@pytest.fixture
def session() -> Iterator[httpx.Client]:
    """Fixture providing an HTTP client."""
    with httpx.Client() as client:
        yield client


@pytest.fixture
def token_manager(
    rsa_private_key: rsa.RSAPrivateKey,
    session: httpx.Client,
    fixed_now: datetime,
) -> TokenManager:
    """Fixture providing a token manager with a frozen clock."""
    return TokenManager(
        CLIENT_ID,
        rsa_private_key,
        session,
        clock=lambda: fixed_now,
    )


@pytest.fixture
def sample_token_response() -> dict:
    """Fixture providing a sample token endpoint response.

    Returns:
        A dictionary with a JWT access token valid for one hour.

    """
    return {
        "access_token": create_test_jwt(),
        "token_type": "Bearer",
        "expires_in": 3600,
        "scope": "messaging.publish",
    }
