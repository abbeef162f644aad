"""
IPC Protocol definitions for UI <-> warpd daemon communication.

This module defines the wire format, message models, and error classes
for Unix domain socket communication between the control UI and the
warpd daemon.

Protocol Format:
- Transport: Unix domain socket (stream)
- Message format: one UTF-8 JSON object per line, terminated by "\\n"
- Request: {"id": 1, "method": "status", "params": null}
- Response: {"id": 1, "result": {...}, "error": null}
- Error: {"id": 1, "result": null, "error": {"code": -32601, "message": "..."}}
- Notification: {"method": "...", "params": {...}} (no id, no response)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

# =============================================================================
# Protocol Constants
# =============================================================================

# Default socket path the daemon listens on
DEFAULT_SOCKET_PATH = "/tmp/warpd.sock"

# Message terminator
FRAME_DELIMITER = b"\n"

# The daemon reads requests into a fixed 64 KiB buffer
MAX_REQUEST_SIZE = 65536

# Maximum accepted response line: 1 MB
MAX_MESSAGE_SIZE = 1024 * 1024

# Identifier and error code ranges
MAX_REQUEST_ID = 2**64 - 1
MIN_ERROR_CODE = -(2**31)
MAX_ERROR_CODE = 2**31 - 1

# Error codes emitted by the daemon
ERROR_INVALID_REQUEST = -32600
ERROR_METHOD_NOT_FOUND = -32601
ERROR_INVALID_PARAMS = -32602


# =============================================================================
# IPC Exceptions
# =============================================================================


class IPCError(Exception):
    """Base exception for IPC errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an IPC error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}


class IPCNotConnectedError(IPCError):
    """Raised when a request is attempted without an open connection."""

    pass


class IPCConnectionError(IPCError):
    """Raised when the connection to the daemon cannot be established."""

    pass


class IPCIOError(IPCError):
    """Raised when a read or write on an established connection fails."""

    pass


class IPCTimeoutError(IPCError):
    """Raised when an IPC operation exceeds the configured timeout."""

    pass


class IPCSerializationError(IPCError):
    """Raised when a request cannot be encoded for the wire."""

    pass


class IPCProtocolError(IPCError):
    """Raised when received bytes are not a valid response."""

    pass


class IPCRemoteError(IPCError):
    """
    Raised when the daemon reports a failure for the requested operation.

    Attributes:
        code: Daemon-defined error code (signed 32-bit).
        message: Error message from the daemon.
    """

    def __init__(
        self, code: int, message: str, details: dict[str, Any] | None = None
    ) -> None:
        """Initialize a remote error."""
        super().__init__(message, details={"code": code, **(details or {})})
        self.code = code

    def __repr__(self) -> str:
        """Return a detailed string representation."""
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# =============================================================================
# Request ID Generation
# =============================================================================


class RequestIDGenerator:
    """
    Generates request IDs as an incrementing unsigned 64-bit counter.

    IDs start at 1 and wrap back to 1 after MAX_REQUEST_ID. Uniqueness is
    only needed for log correlation since a client never has more than one
    request in flight.
    """

    def __init__(self, start: int = 1) -> None:
        """Initialize the request ID generator."""
        if not 0 <= start <= MAX_REQUEST_ID:
            raise ValueError(f"Request ID start out of range: {start}")
        self._next = start

    def generate(self) -> int:
        """
        Generate the next request ID.

        Returns:
            An unsigned 64-bit request ID.
        """
        request_id = self._next
        self._next = request_id + 1 if request_id < MAX_REQUEST_ID else 1
        return request_id


# =============================================================================
# Validation Helpers
# =============================================================================


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_request_id(value: Any, error_cls: type[IPCError]) -> int:
    if not _is_int(value) or not 0 <= value <= MAX_REQUEST_ID:
        raise error_cls(
            f"Invalid message id: {value!r}",
            details={"id": value},
        )
    return value


def _check_method(value: Any, error_cls: type[IPCError]) -> str:
    if not isinstance(value, str):
        raise error_cls(f"Invalid method name: {value!r}")
    return value


def _load_object(data: str | bytes) -> dict[str, Any]:
    """Parse one JSON message, which must be an object."""
    try:
        obj = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
        raise IPCProtocolError(f"Invalid JSON message: {e}") from e
    if not isinstance(obj, dict):
        raise IPCProtocolError(
            f"Message must be a JSON object, got {type(obj).__name__}"
        )
    return obj


def _dump_object(data: dict[str, Any]) -> str:
    """Serialize one message; the result never contains a raw line feed."""
    try:
        return json.dumps(
            data, ensure_ascii=False, allow_nan=False, separators=(",", ":")
        )
    except (TypeError, ValueError) as e:
        raise IPCSerializationError(f"Message is not JSON serializable: {e}") from e


def _frame(json_str: str) -> bytes:
    """UTF-8 encode a serialized message and append the delimiter."""
    try:
        return json_str.encode("utf-8") + FRAME_DELIMITER
    except UnicodeEncodeError as e:
        # Lone surrogates survive json.dumps with ensure_ascii=False
        raise IPCSerializationError(f"Message is not valid UTF-8: {e}") from e


# =============================================================================
# IPC Message Models
# =============================================================================


@dataclass
class IPCErrorInfo:
    """
    Error details in an IPC response.

    Attributes:
        code: Daemon-defined error code (signed 32-bit).
        message: Human-readable error message.
    """

    code: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        if not _is_int(self.code) or not MIN_ERROR_CODE <= self.code <= MAX_ERROR_CODE:
            raise IPCSerializationError(f"Error code out of range: {self.code!r}")
        return {"code": self.code, "message": self.message}

    @classmethod
    def from_dict(cls, data: Any) -> IPCErrorInfo:
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise IPCProtocolError(f"Invalid error object: {data!r}")
        code = data.get("code")
        message = data.get("message")
        if not _is_int(code) or not MIN_ERROR_CODE <= code <= MAX_ERROR_CODE:
            raise IPCProtocolError(f"Invalid error code: {code!r}")
        if not isinstance(message, str):
            raise IPCProtocolError(f"Invalid error message: {message!r}")
        return cls(code=code, message=message)


@dataclass
class IPCRequest:
    """
    IPC request message from the UI to the daemon.

    Attributes:
        id: Caller-assigned request identifier.
        method: Daemon operation (e.g., "status", "elements.list").
        params: Optional operation parameters.
    """

    id: int
    method: str
    params: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": _check_request_id(self.id, IPCSerializationError),
            "method": _check_method(self.method, IPCSerializationError),
            "params": self.params,
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return _dump_object(self.to_dict())

    def encode(self) -> bytes:
        """Serialize to a framed wire message."""
        return _frame(self.to_json())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IPCRequest:
        """Create from dictionary."""
        return cls(
            id=_check_request_id(data.get("id"), IPCProtocolError),
            method=_check_method(data.get("method"), IPCProtocolError),
            params=data.get("params"),
        )

    @classmethod
    def from_json(cls, json_str: str | bytes) -> IPCRequest:
        """Deserialize from JSON string."""
        return cls.from_dict(_load_object(json_str))


@dataclass
class IPCResponse:
    """
    IPC response message from the daemon to the UI.

    A response carrying neither result nor error is an empty success. When
    both are present the error takes precedence.

    Attributes:
        id: Request ID (should echo the request).
        result: Result payload on success.
        error: Error details on failure.
    """

    id: int
    result: Any = None
    error: IPCErrorInfo | None = None

    @classmethod
    def success(cls, request_id: int, result: Any = None) -> IPCResponse:
        """
        Create a success response.

        Args:
            request_id: The request ID to respond to.
            result: Result payload.

        Returns:
            A success IPCResponse.
        """
        return cls(id=request_id, result=result, error=None)

    @classmethod
    def create_error(cls, request_id: int, code: int, message: str) -> IPCResponse:
        """
        Create an error response.

        Args:
            request_id: The request ID to respond to.
            code: Error code.
            message: Error message.

        Returns:
            An error IPCResponse.
        """
        return cls(
            id=request_id,
            result=None,
            error=IPCErrorInfo(code=code, message=message),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": _check_request_id(self.id, IPCSerializationError),
            "result": self.result,
            "error": self.error.to_dict() if self.error else None,
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return _dump_object(self.to_dict())

    def encode(self) -> bytes:
        """Serialize to a framed wire message."""
        return _frame(self.to_json())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IPCResponse:
        """Create from dictionary."""
        error = None
        if data.get("error") is not None:
            error = IPCErrorInfo.from_dict(data["error"])

        return cls(
            id=_check_request_id(data.get("id"), IPCProtocolError),
            result=data.get("result"),
            error=error,
        )

    @classmethod
    def from_json(cls, json_str: str | bytes) -> IPCResponse:
        """Deserialize from JSON string."""
        return cls.from_dict(_load_object(json_str))

    @property
    def is_success(self) -> bool:
        """Check if response indicates success."""
        return self.error is None

    @property
    def is_error(self) -> bool:
        """Check if response indicates an error."""
        return self.error is not None

    def raise_for_error(self) -> Any:
        """
        Return the result, or raise if the daemon reported an error.

        Raises:
            IPCRemoteError: If the response carries an error object.
        """
        if self.error is not None:
            raise IPCRemoteError(
                self.error.code,
                self.error.message,
                details={"request_id": self.id},
            )
        return self.result


@dataclass
class IPCNotification:
    """
    Fire-and-forget message with no id and no response.

    Attributes:
        method: Event or operation name.
        params: Optional payload.
    """

    method: str
    params: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "method": _check_method(self.method, IPCSerializationError),
            "params": self.params,
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return _dump_object(self.to_dict())

    def encode(self) -> bytes:
        """Serialize to a framed wire message."""
        return _frame(self.to_json())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IPCNotification:
        """Create from dictionary."""
        return cls(
            method=_check_method(data.get("method"), IPCProtocolError),
            params=data.get("params"),
        )

    @classmethod
    def from_json(cls, json_str: str | bytes) -> IPCNotification:
        """Deserialize from JSON string."""
        return cls.from_dict(_load_object(json_str))
