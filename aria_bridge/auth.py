"""OAuth2 JWT-bearer token management for the messaging API.

This module signs short-lived client assertions with the device's RSA key,
exchanges them for bearer access tokens and keeps the current token cached
until it is about to expire.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Generator, Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import httpx
import jwt
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.serialization import load_pem_private_key

from .const import (
    ASSERTION_ALGORITHM,
    ASSERTION_LIFETIME,
    AUTH_URL,
    DEFAULT_SCOPES,
    JWT_BEARER_GRANT_TYPE,
    TOKEN_PATH,
    TOKEN_REFRESH_MARGIN,
)
from .exceptions import (
    AuthTransportError,
    OAuthRejectedError,
    SigningError,
)
from .models import JWT, TokenResponse

_LOGGER = logging.getLogger(__name__)

HTTP_OK = 200


def load_private_key(path: str | Path) -> RSAPrivateKey:
    """Load an RSA private key from a PEM file.

    Args:
        path: Path to the PEM encoded private key.

    Returns:
        The parsed RSA private key.

    Raises:
        SigningError: If the file cannot be read or holds no usable RSA key.

    """
    try:
        pem = Path(path).read_bytes()
    except OSError as err:
        error_msg = f"Failed to read RSA private key {path}: {err}"
        raise SigningError(error_msg) from err

    try:
        key = load_pem_private_key(pem, password=None)
    except (ValueError, TypeError) as err:
        error_msg = f"Failed to parse RSA private key {path}: {err}"
        raise SigningError(error_msg) from err

    if not isinstance(key, RSAPrivateKey):
        error_msg = f"Private key {path} is not an RSA key"
        raise SigningError(error_msg)
    return key


def create_assertion(
    client_id: str,
    audience: str,
    private_key: RSAPrivateKey,
    now: datetime,
    jwt_id: str,
) -> str:
    """Create a signed JWT-bearer client assertion.

    Args:
        client_id: Device client ID, used as issuer and subject.
        audience: Authorization server URL.
        private_key: RSA key the assertion is signed with.
        now: Issue time of the assertion.
        jwt_id: Unique ID of the assertion.

    Returns:
        The compact RS256 signed assertion.

    Raises:
        SigningError: If the assertion cannot be signed.

    """
    claims = {
        "iss": client_id,
        "sub": client_id,
        "aud": audience,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ASSERTION_LIFETIME)).timestamp()),
        "jti": jwt_id,
    }
    try:
        return jwt.encode(claims, private_key, algorithm=ASSERTION_ALGORITHM)
    except (jwt.PyJWTError, ValueError, TypeError) as err:
        error_msg = f"JWT signing failed: {err}"
        raise SigningError(error_msg) from err


def extract_jwt_expiry(token: str) -> datetime:
    """Extract expiration timestamp from a JWT's 'exp' claim.

    The signature is not verified; the token was issued by the
    authorization server and is only inspected for its lifetime.

    Args:
        token: JWT token string.

    Returns:
        Expiration datetime from the JWT token.

    Raises:
        ValueError: If token is malformed or has no numeric 'exp' claim.

    """
    try:
        payload = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
        )
    except jwt.PyJWTError as err:
        error_msg = f"Invalid JWT: {err}"
        raise ValueError(error_msg) from err

    exp_timestamp = payload.get("exp")
    if isinstance(exp_timestamp, bool) or not isinstance(exp_timestamp, int | float):
        error_msg = "JWT token missing numeric 'exp' claim"
        raise ValueError(error_msg)

    try:
        return datetime.fromtimestamp(exp_timestamp, tz=UTC)
    except (OverflowError, OSError) as err:
        error_msg = f"JWT 'exp' claim out of range: {exp_timestamp}"
        raise ValueError(error_msg) from err


def extract_token_response(data: Any) -> TokenResponse:
    """Extract the token endpoint's success body.

    Raises:
        AuthTransportError: If the body has no access token.

    """
    if not isinstance(data, dict) or not isinstance(data.get("access_token"), str):
        error_msg = "Token response does not contain an access_token"
        raise AuthTransportError(error_msg)

    return TokenResponse(
        access_token=data["access_token"],
        token_type=data.get("token_type", "Bearer"),
        expires_in=data.get("expires_in"),
        scope=data.get("scope", ""),
    )


def extract_oauth_error(response: httpx.Response) -> OAuthRejectedError | None:
    """Return the OAuth error carried by a failed response, if it has one."""
    try:
        data = response.json()
    except ValueError:
        return None

    if not isinstance(data, dict) or "error" not in data:
        return None
    return OAuthRejectedError(
        str(data["error"]), str(data.get("error_description", ""))
    )


class TokenManager:
    """Keep a bearer access token for the messaging API up to date.

    The manager owns the device's private key and the cached access token.
    Callers only get at the token through authorize_outgoing, which attaches
    it to an outgoing request after refreshing it when needed.
    """

    def __init__(
        self,
        client_id: str,
        private_key: RSAPrivateKey,
        session: httpx.Client,
        *,
        auth_url: str = AUTH_URL,
        scopes: Sequence[str] = DEFAULT_SCOPES,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the token manager.

        Args:
            client_id: Device client ID registered with the authorization server.
            private_key: RSA key used to sign client assertions.
            session: HTTP client used to reach the token endpoint.
            auth_url: Base URL of the authorization server.
            scopes: Scopes requested for the access token.
            clock: Callable returning the current time, for tests.

        """
        self._client_id = client_id
        self._private_key = private_key
        self._session = session
        self._auth_url = auth_url.rstrip("/")
        self._scopes = tuple(scopes)
        self._clock = clock or (lambda: datetime.now(UTC))
        self._token: JWT | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_pem_file(
        cls,
        path: str | Path,
        client_id: str,
        session: httpx.Client,
        **kwargs: Any,
    ) -> TokenManager:
        """Create a token manager with the private key stored at path."""
        return cls(client_id, load_private_key(path), session, **kwargs)

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def access_token(self) -> str | None:
        """Return the cached access token, None before the first refresh."""
        return self._token.token if self._token is not None else None

    @property
    def token_url(self) -> str:
        return f"{self._auth_url}{TOKEN_PATH}"

    def needs_refresh(self) -> bool:
        """Return True if the cached token is missing, unreadable or expiring."""
        if self._token is None or self._token.expire_at is None:
            return True

        remaining = int(self._token.expire_at.timestamp()) - int(
            self._clock().timestamp()
        )
        return remaining < TOKEN_REFRESH_MARGIN

    def refresh(self) -> None:
        """Fetch a new access token and replace the cached one.

        Raises:
            SigningError: If the client assertion cannot be signed.
            OAuthRejectedError: If the authorization server rejects the request.
            AuthTransportError: If the server cannot be reached or its
                response cannot be decoded.

        """
        assertion = create_assertion(
            self._client_id,
            self._auth_url,
            self._private_key,
            self._clock(),
            str(uuid.uuid4()),
        )
        form = {
            "grant_type": JWT_BEARER_GRANT_TYPE,
            "assertion": assertion,
            "client_id": self._client_id,
            "scope": " ".join(self._scopes),
        }

        _LOGGER.debug("Requesting access token from %s", self.token_url)
        try:
            response = self._session.post(self.token_url, data=form)
        except httpx.RequestError as err:
            error_msg = f"Connect token request error: {err}"
            raise AuthTransportError(error_msg) from err

        if response.status_code != HTTP_OK:
            oauth_error = extract_oauth_error(response)
            if oauth_error is not None:
                raise oauth_error
            error_msg = f"Token request failed: {response.status_code}"
            raise AuthTransportError(error_msg)

        try:
            data = response.json()
        except ValueError as err:
            error_msg = f"Token response decode error: {err}"
            raise AuthTransportError(error_msg) from err

        token_response = extract_token_response(data)
        try:
            expire_at = extract_jwt_expiry(token_response.access_token)
        except ValueError as err:
            _LOGGER.debug("Access token expiry cannot be parsed: %s", err)
            expire_at = None
        self._token = JWT(token=token_response.access_token, expire_at=expire_at)
        _LOGGER.info(
            "Obtained access token (scope: %s, expires in: %s s)",
            token_response.scope,
            token_response.expires_in,
        )

    def authorize_outgoing(self, request: httpx.Request) -> None:
        """Attach a valid bearer token to an outgoing request.

        Raises:
            AuthError: If a needed refresh fails.

        """
        with self._lock:
            if self.needs_refresh():
                self.refresh()
            token = self._token.token

        request.headers["Authorization"] = f"Bearer {token}"
        request.headers["Content-Type"] = "application/json"


class BearerAuth(httpx.Auth):
    """httpx auth flow backed by a TokenManager."""

    def __init__(self, token_manager: TokenManager) -> None:
        self._token_manager = token_manager

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        self._token_manager.authorize_outgoing(request)
        yield request
