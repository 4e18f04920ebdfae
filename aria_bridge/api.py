"""API client for the cloud messaging endpoint.

This module provides the HTTP session factory and the client that publishes
decoded sensor frames to a messaging channel.
"""

import logging
from typing import Any

import httpx

from .auth import BearerAuth, TokenManager
from .const import DEFAULT_HTTP_TIMEOUT, MESSAGING_PATH, MESSAGING_URL
from .exceptions import (
    PublishRejectedError,
    PublishTransportError,
    PublishUnreadableError,
)
from .models import FieldError, PublishErrorBody, SensorFrame

_LOGGER = logging.getLogger(__name__)

# HTTP status codes
HTTP_OK = 200


def create_session_client(timeout: float = DEFAULT_HTTP_TIMEOUT) -> httpx.Client:
    """Create the HTTP client shared by the token manager and the publisher.

    Args:
        timeout: Timeout in seconds applied to every request.

    Returns:
        Configured httpx Client.

    """
    return httpx.Client(timeout=timeout)


def extract_publish_error(data: Any) -> PublishErrorBody:
    """Extract the structured error body of a failed publish.

    Args:
        data: Decoded JSON body of the error response.

    Returns:
        PublishErrorBody with the error code and field errors.

    Raises:
        ValueError: If the body is not a structured error.

    """
    if not isinstance(data, dict) or "error_code" not in data:
        error_msg = "Response body is not a structured error"
        raise ValueError(error_msg)

    raw_errors = data.get("errors")
    if raw_errors is None:
        raw_errors = []
    elif not isinstance(raw_errors, list):
        error_msg = f"Error body 'errors' is not a list: {raw_errors!r}"
        raise ValueError(error_msg)

    errors = tuple(
        FieldError(
            field=str(err.get("field", "")),
            reason=str(err.get("reason", "")),
            message=str(err.get("message", "")),
        )
        for err in raw_errors
        if isinstance(err, dict)
    )
    return PublishErrorBody(error_code=str(data["error_code"]), errors=errors)


def validate_publish_response(response: httpx.Response) -> None:
    """Validate the response of a publish request.

    Raises:
        PublishRejectedError: If the API returned a structured error.
        PublishUnreadableError: If the error body cannot be decoded.

    """
    if response.status_code == HTTP_OK:
        return

    try:
        body = extract_publish_error(response.json())
    except ValueError as err:
        error_msg = (
            f"Publish failed with status {response.status_code}, "
            f"error result decode error: {err}"
        )
        raise PublishUnreadableError(error_msg) from err

    raise PublishRejectedError(body.error_code, body.errors)


class MessagingClient:
    """Publish messages to channels of the messaging API."""

    def __init__(
        self,
        session: httpx.Client,
        token_manager: TokenManager,
        messaging_url: str = MESSAGING_URL,
    ) -> None:
        self._session = session
        self._auth = BearerAuth(token_manager)
        self._messaging_url = messaging_url.rstrip("/")

    @property
    def publish_url(self) -> str:
        return f"{self._messaging_url}{MESSAGING_PATH}"

    def publish_message(self, channel_id: str, payload: bytes) -> None:
        """Publish raw payload bytes to a channel.

        Args:
            channel_id: Target channel identifier.
            payload: Message body, sent as-is.

        Raises:
            AuthError: If no valid access token can be obtained.
            PublishError: If the message cannot be delivered.

        """
        _LOGGER.debug("Publishing %d bytes to channel %s", len(payload), channel_id)
        try:
            response = self._session.post(
                self.publish_url,
                params={"channel_id": channel_id},
                content=payload,
                auth=self._auth,
            )
        except httpx.RequestError as err:
            error_msg = f"Publish request error: {err}"
            raise PublishTransportError(error_msg) from err

        validate_publish_response(response)
        _LOGGER.debug("Published message to channel %s", channel_id)

    def publish_frame(self, channel_id: str, frame: SensorFrame) -> None:
        """Publish a decoded sensor frame as JSON."""
        self.publish_message(channel_id, frame.to_json())

