"""Tests for the messaging API client."""

import json
from typing import Any
from unittest.mock import Mock

import httpx
import pytest
from conftest import CHANNEL_ID, SAMPLE_FRAME
from pytest_httpx import HTTPXMock

from aria_bridge import api
from aria_bridge.api import MessagingClient
from aria_bridge.auth import TokenManager
from aria_bridge.const import AUTH_URL, MESSAGING_URL
from aria_bridge.decoder import decode
from aria_bridge.exceptions import (
    AriaBridgeError,
    OAuthRejectedError,
    PublishError,
    PublishErrorKind,
    PublishRejectedError,
    PublishTransportError,
    PublishUnreadableError,
)
from aria_bridge.models import FieldError

TOKEN_URL = f"{AUTH_URL}/connect/token"
PUBLISH_URL = f"{MESSAGING_URL}/messaging?channel_id={CHANNEL_ID}"


@pytest.fixture
def client(session: httpx.Client, token_manager: TokenManager) -> MessagingClient:
    """Fixture providing a messaging client."""
    return MessagingClient(session, token_manager)


@pytest.fixture
def sample_error_response() -> dict[str, Any]:
    """Fixture providing a structured messaging API error body."""
    return {
        "error_code": "invalid_request",
        "errors": [
            {
                "field": "channel_id",
                "reason": "not_found",
                "message": "channel does not exist",
            },
        ],
    }


class TestPublishErrors:
    """Tests for the publish exception hierarchy."""

    def test_publish_rejected_error_message_lists_field_errors(self) -> None:
        """Test that the message carries the code and every field error."""
        error = PublishRejectedError(
            "invalid_request",
            (FieldError(field="channel_id", reason="bad", message="nope"),),
        )
        assert "error code: invalid_request" in str(error)
        assert "field: channel_id, reason: bad, message: nope" in str(error)
        assert error.kind is PublishErrorKind.REJECTED

    def test_publish_errors_are_bridge_errors(self) -> None:
        """Test that publish errors share the bridge base exception."""
        error = PublishUnreadableError("boom")
        assert isinstance(error, PublishError)
        assert isinstance(error, AriaBridgeError)


class TestExtractPublishError:
    """Tests for extract_publish_error function."""

    def test_extract_publish_error_returns_body(
        self, sample_error_response: dict[str, Any]
    ) -> None:
        """Test that a structured error body is extracted."""
        body = api.extract_publish_error(sample_error_response)
        assert body.error_code == "invalid_request"
        assert body.errors == (
            FieldError(
                field="channel_id",
                reason="not_found",
                message="channel does not exist",
            ),
        )

    def test_extract_publish_error_allows_missing_errors(self) -> None:
        """Test that the errors list is optional."""
        body = api.extract_publish_error({"error_code": "internal"})
        assert body.errors == ()

    @pytest.mark.parametrize("data", [{}, [], "error", {"errors": []}])
    def test_extract_publish_error_rejects_unstructured_bodies(self, data: Any) -> None:
        """Test that bodies without error_code are rejected."""
        with pytest.raises(ValueError, match="not a structured error"):
            api.extract_publish_error(data)

    @pytest.mark.parametrize("errors", [5, True, "channel_id", {"field": "x"}])
    def test_extract_publish_error_rejects_non_list_errors(self, errors: Any) -> None:
        """Test that an errors member that is not a list is rejected."""
        with pytest.raises(ValueError, match="not a list"):
            api.extract_publish_error({"error_code": "x", "errors": errors})


class TestValidatePublishResponse:
    """Tests for validate_publish_response function."""

    def test_validate_publish_response_accepts_200(self) -> None:
        """Test that a 200 response passes."""
        response = Mock(spec=httpx.Response)
        response.status_code = 200
        api.validate_publish_response(response)
        response.json.assert_not_called()

    def test_validate_publish_response_raises_unreadable_for_bad_json(self) -> None:
        """Test that an undecodable error body raises PublishUnreadableError."""
        response = Mock(spec=httpx.Response)
        response.status_code = 500
        response.json.side_effect = json.JSONDecodeError("Expecting value", "", 0)
        with pytest.raises(PublishUnreadableError, match="status 500"):
            api.validate_publish_response(response)

    @pytest.mark.parametrize("errors", [5, True])
    def test_validate_publish_response_raises_unreadable_for_malformed_errors(
        self, errors: Any
    ) -> None:
        """Test that a malformed errors member raises PublishUnreadableError."""
        response = httpx.Response(400, json={"error_code": "x", "errors": errors})
        with pytest.raises(PublishUnreadableError, match="error result decode error"):
            api.validate_publish_response(response)


class TestCreateSessionClient:
    """Tests for create_session_client function."""

    def test_create_session_client_sets_timeout(self) -> None:
        """Test that the client uses the given timeout."""
        with api.create_session_client(10.0) as session:
            assert session.timeout == httpx.Timeout(10.0)


class TestPublishMessage:
    """Tests for MessagingClient.publish_message."""

    def test_publish_message_posts_payload_with_bearer_token(
        self,
        httpx_mock: HTTPXMock,
        client: MessagingClient,
        sample_token_response: dict[str, Any],
    ) -> None:
        """Test the publish request sent to the messaging API."""
        httpx_mock.add_response(
            url=TOKEN_URL, method="POST", json=sample_token_response
        )
        httpx_mock.add_response(url=PUBLISH_URL, method="POST")

        client.publish_message(CHANNEL_ID, b'{"hello": "world"}')

        request = httpx_mock.get_request(url=PUBLISH_URL)
        assert request.headers["Authorization"] == (
            f"Bearer {sample_token_response['access_token']}"
        )
        assert request.headers["Content-Type"] == "application/json"
        assert request.content == b'{"hello": "world"}'

    def test_publish_message_reuses_token_between_messages(
        self,
        httpx_mock: HTTPXMock,
        client: MessagingClient,
        sample_token_response: dict[str, Any],
    ) -> None:
        """Test that one token serves several publishes."""
        httpx_mock.add_response(
            url=TOKEN_URL, method="POST", json=sample_token_response
        )
        httpx_mock.add_response(url=PUBLISH_URL, method="POST")
        httpx_mock.add_response(url=PUBLISH_URL, method="POST")

        client.publish_message(CHANNEL_ID, b"a")
        client.publish_message(CHANNEL_ID, b"b")

        assert len(httpx_mock.get_requests(url=TOKEN_URL)) == 1
        assert len(httpx_mock.get_requests(url=PUBLISH_URL)) == 2

    def test_publish_message_raises_rejected_error_for_structured_body(
        self,
        httpx_mock: HTTPXMock,
        client: MessagingClient,
        sample_token_response: dict[str, Any],
        sample_error_response: dict[str, Any],
    ) -> None:
        """Test that a structured error body raises PublishRejectedError."""
        httpx_mock.add_response(
            url=TOKEN_URL, method="POST", json=sample_token_response
        )
        httpx_mock.add_response(
            url=PUBLISH_URL,
            method="POST",
            status_code=400,
            json=sample_error_response,
        )
        with pytest.raises(PublishRejectedError, match="invalid_request") as info:
            client.publish_message(CHANNEL_ID, b"a")
        assert info.value.error_code == "invalid_request"
        assert info.value.errors[0].field == "channel_id"

    def test_publish_message_raises_unreadable_error_for_plain_body(
        self,
        httpx_mock: HTTPXMock,
        client: MessagingClient,
        sample_token_response: dict[str, Any],
    ) -> None:
        """Test that a non-JSON error body raises PublishUnreadableError."""
        httpx_mock.add_response(
            url=TOKEN_URL, method="POST", json=sample_token_response
        )
        httpx_mock.add_response(
            url=PUBLISH_URL,
            method="POST",
            status_code=503,
            text="Service Unavailable",
        )
        with pytest.raises(PublishUnreadableError) as info:
            client.publish_message(CHANNEL_ID, b"a")
        assert info.value.kind is PublishErrorKind.UNREADABLE

    def test_publish_message_raises_transport_error_on_connection_failure(
        self,
        httpx_mock: HTTPXMock,
        client: MessagingClient,
        sample_token_response: dict[str, Any],
    ) -> None:
        """Test that network errors raise PublishTransportError."""
        httpx_mock.add_response(
            url=TOKEN_URL, method="POST", json=sample_token_response
        )
        httpx_mock.add_exception(
            httpx.ConnectError("Connection refused"), url=PUBLISH_URL
        )
        with pytest.raises(PublishTransportError, match="Connection refused"):
            client.publish_message(CHANNEL_ID, b"a")

    def test_publish_message_propagates_auth_error_without_publishing(
        self,
        httpx_mock: HTTPXMock,
        client: MessagingClient,
    ) -> None:
        """Test that a failed token refresh stops the publish."""
        httpx_mock.add_response(
            url=TOKEN_URL,
            method="POST",
            status_code=400,
            json={"error": "invalid_scope", "error_description": "unknown scope"},
        )
        with pytest.raises(OAuthRejectedError, match="invalid_scope: unknown scope"):
            client.publish_message(CHANNEL_ID, b"a")
        assert httpx_mock.get_requests(url=PUBLISH_URL) == []


class TestPublishFrame:
    """Tests for MessagingClient.publish_frame."""

    def test_publish_frame_sends_frame_json(
        self,
        httpx_mock: HTTPXMock,
        client: MessagingClient,
        sample_token_response: dict[str, Any],
    ) -> None:
        """Test that a decoded frame is published as its JSON form."""
        httpx_mock.add_response(
            url=TOKEN_URL, method="POST", json=sample_token_response
        )
        httpx_mock.add_response(url=PUBLISH_URL, method="POST")
        frame = decode(SAMPLE_FRAME)

        client.publish_frame(CHANNEL_ID, frame)

        request = httpx_mock.get_request(url=PUBLISH_URL)
        assert json.loads(request.content) == frame.as_dict()
