"""Closed error taxonomy shared by the client, image helpers and pipeline."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Every failure the capture pipeline can surface to the user."""

    INVALID_URL = "invalid_url"
    IMAGE_CONVERSION_FAILED = "image_conversion_failed"
    INVALID_RESPONSE = "invalid_response"
    SERVER_ERROR = "server_error"
    NO_DATA = "no_data"
    DECODING_FAILED = "decoding_failed"
    AUTHENTICATION_REQUIRED = "authentication_required"
    NO_NETWORK_CONNECTION = "no_network_connection"
    NETWORK_ERROR = "network_error"
    OPERATION_FAILED = "operation_failed"
    IMAGE_PROCESSING_ERROR = "image_processing_error"


_DESCRIPTIONS = {
    ErrorKind.INVALID_URL: "Invalid URL",
    ErrorKind.IMAGE_CONVERSION_FAILED: "Failed to convert image to data",
    ErrorKind.INVALID_RESPONSE: "Invalid response from server",
    ErrorKind.NO_DATA: "No data received from server",
    ErrorKind.DECODING_FAILED: "Failed to decode response",
    ErrorKind.AUTHENTICATION_REQUIRED: "Authentication required - please log in",
    ErrorKind.NO_NETWORK_CONNECTION: "No network connection - check your connection and try again",
    ErrorKind.IMAGE_PROCESSING_ERROR: "Failed to process image",
}


class ClosetError(RuntimeError):
    """Raised when a closet operation fails with one of the known error kinds."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        *,
        status_code: int | None = None,
    ) -> None:
        self.kind = kind
        self.status_code = status_code
        self.message = message
        super().__init__(self.description)

    @classmethod
    def server_error(cls, status_code: int, message: str | None = None) -> "ClosetError":
        return cls(ErrorKind.SERVER_ERROR, message, status_code=status_code)

    @classmethod
    def operation_failed(cls, message: str) -> "ClosetError":
        return cls(ErrorKind.OPERATION_FAILED, message)

    @property
    def description(self) -> str:
        """User-facing text for the error."""

        if self.kind is ErrorKind.SERVER_ERROR:
            return f"Server error with status code: {self.status_code}"
        if self.kind is ErrorKind.OPERATION_FAILED:
            return self.message or "Operation failed"
        if self.kind is ErrorKind.NETWORK_ERROR:
            detail = f": {self.message}" if self.message else ""
            return f"Network error{detail}"
        return _DESCRIPTIONS[self.kind]

    @property
    def requires_login(self) -> bool:
        """True when the user has to sign in again before retrying."""

        if self.kind is ErrorKind.AUTHENTICATION_REQUIRED:
            return True
        return self.kind is ErrorKind.SERVER_ERROR and self.status_code == 401

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClosetError):
            return NotImplemented
        return (self.kind, self.status_code, self.message) == (
            other.kind,
            other.status_code,
            other.message,
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.status_code, self.message))

    def __repr__(self) -> str:
        return f"ClosetError(kind={self.kind.value!r}, status_code={self.status_code!r}, message={self.message!r})"
