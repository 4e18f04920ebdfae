"""Exceptions raised by the ARIA bridge."""

from enum import StrEnum

from .models import FieldError


class AriaBridgeError(Exception):
    """Base exception for ARIA bridge errors."""


class ConfigError(AriaBridgeError):
    """Exception raised for invalid bridge configuration."""


class MalformedFrameError(AriaBridgeError):
    """Exception raised when a serial line or frame buffer cannot be decoded."""


class AuthErrorKind(StrEnum):
    SIGNING_FAILURE = "signing_failure"
    TRANSPORT_OR_DECODE_FAILURE = "transport_or_decode_failure"
    OAUTH_REJECTED = "oauth_rejected"


class AuthError(AriaBridgeError):
    """Base exception for access token errors."""

    kind: AuthErrorKind


class SigningError(AuthError):
    """Exception raised when the private key is unusable or signing fails."""

    kind = AuthErrorKind.SIGNING_FAILURE


class AuthTransportError(AuthError):
    """Exception raised when the token endpoint cannot be reached or understood."""

    kind = AuthErrorKind.TRANSPORT_OR_DECODE_FAILURE


class OAuthRejectedError(AuthError):
    """Exception raised when the authorization server rejects the assertion."""

    kind = AuthErrorKind.OAUTH_REJECTED

    def __init__(self, error: str, description: str) -> None:
        super().__init__(f"{error}: {description}")
        self.error = error
        self.description = description


class PublishErrorKind(StrEnum):
    REJECTED = "rejected"
    UNREADABLE = "unreadable"
    TRANSPORT = "transport"


class PublishError(AriaBridgeError):
    """Base exception for message publish errors."""

    kind: PublishErrorKind


class PublishRejectedError(PublishError):
    """Exception raised when the messaging API returns a structured error."""

    kind = PublishErrorKind.REJECTED

    def __init__(self, error_code: str, errors: tuple[FieldError, ...] = ()) -> None:
        message = f"error code: {error_code}"
        for index, err in enumerate(errors):
            message += (
                f", error {index}: {{field: {err.field}, reason: {err.reason}, "
                f"message: {err.message}}}"
            )
        super().__init__(message)
        self.error_code = error_code
        self.errors = errors


class PublishUnreadableError(PublishError):
    """Exception raised for an error response whose body cannot be decoded."""

    kind = PublishErrorKind.UNREADABLE


class PublishTransportError(PublishError):
    """Exception raised when the messaging API cannot be reached."""

    kind = PublishErrorKind.TRANSPORT
