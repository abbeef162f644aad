"""
IPC module for communication between the UI and the warpd daemon.

This module provides the IPC client and protocol for communicating with
the daemon over a Unix domain socket.
"""

from warpd_ui.ipc.client import IPCClient, IPCConnectionState
from warpd_ui.ipc.protocol import (
    IPCConnectionError,
    IPCError,
    IPCErrorInfo,
    IPCIOError,
    IPCNotConnectedError,
    IPCNotification,
    IPCProtocolError,
    IPCRemoteError,
    IPCRequest,
    IPCResponse,
    IPCSerializationError,
    IPCTimeoutError,
)

__all__ = [
    "IPCClient",
    "IPCConnectionError",
    "IPCConnectionState",
    "IPCError",
    "IPCErrorInfo",
    "IPCIOError",
    "IPCNotConnectedError",
    "IPCNotification",
    "IPCProtocolError",
    "IPCRemoteError",
    "IPCRequest",
    "IPCResponse",
    "IPCSerializationError",
    "IPCTimeoutError",
]
