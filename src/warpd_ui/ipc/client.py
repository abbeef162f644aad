"""
IPC Client for communication with the warpd daemon.

This module implements the IPCClient class that performs synchronous,
one-at-a-time request/response exchanges with the daemon over a Unix
domain socket.

Features:
- Explicit connect/close lifecycle with connection state tracking
- Newline-delimited JSON framing
- Optional timeout applied to connect, write and read
- Error classification (not connected, connection, I/O, timeout,
  serialization, protocol, remote)

The client performs no retries; the caller decides whether to reconnect
after a failure. A client must not be shared between threads without
external locking.
"""

from __future__ import annotations

import socket
from enum import Enum
from typing import TYPE_CHECKING, Any, BinaryIO

from warpd_ui.ipc.protocol import (
    DEFAULT_SOCKET_PATH,
    FRAME_DELIMITER,
    MAX_MESSAGE_SIZE,
    MAX_REQUEST_SIZE,
    IPCConnectionError,
    IPCIOError,
    IPCNotConnectedError,
    IPCProtocolError,
    IPCRequest,
    IPCResponse,
    IPCSerializationError,
    IPCTimeoutError,
    RequestIDGenerator,
)
from warpd_ui.logging import get_logger

if TYPE_CHECKING:
    from warpd_ui.config import IPCConfig

logger = get_logger(__name__)


class IPCConnectionState(Enum):
    """IPC connection states."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class IPCClient:
    """
    IPC client for communication with the warpd daemon.

    Attributes:
        socket_path: Path to the Unix domain socket (read-only).
        timeout: Timeout in seconds for socket operations, or None to block.
        state: Current connection state.

    Example:
        >>> with IPCClient("/tmp/warpd.sock") as client:
        ...     client.call("status")
        {'version': '0.9.0'}
    """

    def __init__(
        self,
        socket_path: str | None = None,
        timeout: float | None = None,
        max_message_size: int = MAX_MESSAGE_SIZE,
    ) -> None:
        """
        Initialize the IPC client in the disconnected state.

        Args:
            socket_path: Path to the Unix domain socket.
            timeout: Timeout in seconds for connect, write and read.
                None blocks indefinitely.
            max_message_size: Longest accepted response line in bytes.
        """
        self._socket_path = socket_path or DEFAULT_SOCKET_PATH
        self.timeout = timeout
        self.max_message_size = max_message_size
        self.state = IPCConnectionState.DISCONNECTED

        self._sock: socket.socket | None = None
        self._reader: BinaryIO | None = None

        self._id_generator = RequestIDGenerator()

    @classmethod
    def from_config(cls, config: IPCConfig) -> IPCClient:
        """
        Create an IPC client from configuration.

        Args:
            config: IPC configuration from AppConfig.

        Returns:
            Configured IPCClient instance.
        """
        return cls(
            socket_path=config.socket_path,
            timeout=config.request_timeout_seconds,
        )

    @property
    def socket_path(self) -> str:
        """Path of the endpoint this client is bound to."""
        return self._socket_path

    @property
    def is_connected(self) -> bool:
        """Whether a live connection is held."""
        return self.state == IPCConnectionState.CONNECTED

    def connect(self) -> None:
        """
        Connect to the daemon.

        Calling this while already connected does nothing.

        Raises:
            IPCConnectionError: If the socket is missing, refuses the
                connection, or cannot be accessed.
            IPCTimeoutError: If the connection attempt times out.
        """
        if self.is_connected:
            return

        details = {"socket_path": self._socket_path}

        try:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        except OSError as e:
            logger.error("IPC socket creation failed", extra={**details, "error": str(e)})
            raise IPCConnectionError(
                f"Cannot create socket: {e}", details=details
            ) from e

        try:
            sock.settimeout(self.timeout)
            sock.connect(self._socket_path)
        except FileNotFoundError as e:
            sock.close()
            logger.error("IPC socket not found", extra=details)
            raise IPCConnectionError(
                f"Daemon socket not found: {self._socket_path}", details=details
            ) from e
        except PermissionError as e:
            sock.close()
            logger.error("IPC socket permission denied", extra=details)
            raise IPCConnectionError(
                f"Permission denied for daemon socket: {self._socket_path}",
                details=details,
            ) from e
        except ConnectionRefusedError as e:
            sock.close()
            logger.error("IPC connection refused", extra=details)
            raise IPCConnectionError(
                f"Daemon is not listening on {self._socket_path}", details=details
            ) from e
        except TimeoutError as e:
            sock.close()
            logger.error("IPC connection timed out", extra=details)
            raise IPCTimeoutError(
                f"Connecting to {self._socket_path} timed out after {self.timeout}s",
                details=details,
            ) from e
        except OSError as e:
            sock.close()
            logger.error("IPC connection failed", extra={**details, "error": str(e)})
            raise IPCConnectionError(
                f"Cannot connect to daemon: {e}", details=details
            ) from e

        self._sock = sock
        self._reader = sock.makefile("rb")
        self.state = IPCConnectionState.CONNECTED
        logger.info("IPC connected to daemon", extra=details)

    def request(self, request: IPCRequest) -> IPCResponse:
        """
        Send one request and block until its response has been read.

        The response is returned as decoded, including responses that carry
        an error object; use IPCResponse.raise_for_error() or call() to turn
        those into exceptions. The response id is not required to match.

        Args:
            request: The request to send.

        Returns:
            The decoded response.

        Raises:
            IPCNotConnectedError: No connection is open; nothing is sent.
            IPCSerializationError: The request cannot be encoded.
            IPCIOError: Writing or reading failed.
            IPCTimeoutError: The configured timeout expired.
            IPCProtocolError: The reply is truncated or not a valid response.
        """
        if not self.is_connected:
            raise IPCNotConnectedError(
                "Not connected to daemon",
                details={"socket_path": self._socket_path, "method": request.method},
            )

        self._send(request)
        response = self._receive()

        if response.id != request.id:
            logger.warning(
                "IPC response id does not match request",
                extra={"request_id": request.id, "response_id": response.id},
            )

        return response

    def call(self, method: str, params: Any = None) -> Any:
        """
        Call a daemon method and return its result.

        Args:
            method: Method name (e.g., "status", "elements.click").
            params: Optional method parameters.

        Returns:
            The response result, which may be None.

        Raises:
            IPCRemoteError: The daemon reported an error.
            IPCError: Any failure raised by request().
        """
        request = IPCRequest(
            id=self._id_generator.generate(),
            method=method,
            params=params,
        )
        return self.request(request).raise_for_error()

    def _send(self, request: IPCRequest) -> None:
        """
        Write a framed request to the daemon.

        Raises:
            IPCSerializationError: If encoding fails or the request is too large.
            IPCIOError: If the write fails.
            IPCTimeoutError: If the write times out.
        """
        if self._sock is None:
            raise IPCNotConnectedError("Not connected to daemon")

        payload = request.encode()

        if len(payload) > MAX_REQUEST_SIZE:
            raise IPCSerializationError(
                f"Request too large: {len(payload)} bytes",
                details={"max_size": MAX_REQUEST_SIZE, "method": request.method},
            )

        try:
            self._sock.sendall(payload)
        except TimeoutError as e:
            self._mark_connection_dead()
            raise IPCTimeoutError(
                f"IPC write timed out after {self.timeout}s",
                details={"request_id": request.id, "method": request.method},
            ) from e
        except OSError as e:
            logger.warning("IPC connection lost", extra={"error": str(e)})
            self._mark_connection_dead()
            raise IPCIOError(
                f"Failed to send request: {e}",
                details={"request_id": request.id, "method": request.method},
            ) from e

        logger.debug(
            "IPC request sent",
            extra={
                "request_id": request.id,
                "method": request.method,
                "size": len(payload),
            },
        )

    def _receive(self) -> IPCResponse:
        """
        Read one line from the daemon and decode it as a response.

        Raises:
            IPCIOError: If the read fails.
            IPCTimeoutError: If the read times out.
            IPCProtocolError: If the stream ends before a line feed, the line
                is too long, or the line is not a valid response.
        """
        if self._reader is None:
            raise IPCNotConnectedError("Not connected to daemon")

        try:
            line = self._reader.readline(self.max_message_size + 1)
        except TimeoutError as e:
            self._mark_connection_dead()
            raise IPCTimeoutError(f"IPC read timed out after {self.timeout}s") from e
        except OSError as e:
            logger.warning("IPC connection lost", extra={"error": str(e)})
            self._mark_connection_dead()
            raise IPCIOError(f"Failed to read response: {e}") from e

        if not line.endswith(FRAME_DELIMITER):
            if len(line) > self.max_message_size:
                self._mark_connection_dead()
                raise IPCProtocolError(
                    f"Response too large: more than {self.max_message_size} bytes",
                    details={"max_size": self.max_message_size},
                )
            # End of stream before the terminator
            self._mark_connection_dead()
            raise IPCProtocolError(
                "Connection closed before a complete response was received",
                details={"received": len(line), "raw": line[:100].decode("utf-8", "replace")},
            )

        try:
            response = IPCResponse.from_json(line[:-1])
        except IPCProtocolError as e:
            e.details.setdefault("raw", line[:-1][:100].decode("utf-8", "replace"))
            raise

        logger.debug(
            "IPC response received",
            extra={
                "request_id": response.id,
                "is_error": response.is_error,
                "size": len(line),
            },
        )

        return response

    def _mark_connection_dead(self) -> None:
        """Mark connection as dead and release the socket."""
        self.state = IPCConnectionState.DISCONNECTED

        reader, sock = self._reader, self._sock
        self._reader = None
        self._sock = None

        try:
            if reader is not None:
                reader.close()
            if sock is not None:
                sock.close()
        except OSError as e:
            logger.warning(
                "Exception during IPC connection cleanup (ignored)",
                extra={"error": str(e)},
            )

    def close(self) -> None:
        """Close the connection; the client returns to the disconnected state."""
        if not self.is_connected:
            return

        self._mark_connection_dead()
        logger.info("IPC disconnected from daemon", extra={"socket_path": self._socket_path})

    def __enter__(self) -> IPCClient:
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        """Context manager exit."""
        self.close()
