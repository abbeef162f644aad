"""
Pytest configuration for the warpd UI tests.

Provides a fake warpd daemon that serves newline-delimited JSON on a
temporary Unix domain socket from a background thread.
"""

from __future__ import annotations

import contextlib
import os
import socket
import tempfile
import threading
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from warpd_ui.ipc.protocol import (
    ERROR_INVALID_PARAMS,
    ERROR_INVALID_REQUEST,
    ERROR_METHOD_NOT_FOUND,
    IPCProtocolError,
    IPCRequest,
    IPCResponse,
)

# A handler returns a response, raw bytes to write verbatim (the connection
# is closed afterwards when they lack a line feed), or None to hang up.
Handler = Callable[[IPCRequest], "IPCResponse | bytes | None"]


def sample_elements(count: int) -> list[dict[str, Any]]:
    """Build element payloads the way the daemon reports them."""
    return [
        {
            "id": i,
            "x": 10 * i,
            "y": 20,
            "w": 24,
            "h": 16,
            "hint": f"h{i}",
            "label": f"Button {i}",
            "role": "button",
            "desc": "",
        }
        for i in range(count)
    ]


class FakeDaemon:
    """
    Minimal stand-in for the warpd daemon.

    Attributes:
        socket_path: Path of the listening socket.
        version: Reported by "status" (None omits the field).
        elements: Returned by "elements.list".
        config: Backing store for the config.* methods.
        handlers: Per-method overrides of the default behaviour.
        requests: Every request received, in order.
        actions: (method, element id) pairs for click/focus.
    """

    def __init__(self, socket_path: str) -> None:
        self.socket_path = socket_path
        self.version: str | None = "0.9.0"
        self.elements: list[dict[str, Any]] = sample_elements(3)
        self.config: dict[str, str] = {"hint_chars": "asdfghjkl", "hint_size": "20"}
        self.handlers: dict[str, Handler] = {}
        self.requests: list[IPCRequest] = []
        self.actions: list[tuple[str, int]] = []
        self.connections = 0

        self._stop = threading.Event()
        self._server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._server.bind(socket_path)
        self._server.listen(4)
        self._server.settimeout(0.05)
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        self._thread.join(timeout=2.0)
        self._server.close()

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self._server.accept()
            except TimeoutError:
                continue
            except OSError:
                return
            self.connections += 1
            with conn:
                conn.settimeout(None)
                self._handle_connection(conn)

    def _handle_connection(self, conn: socket.socket) -> None:
        with conn.makefile("rb") as reader:
            for line in reader:
                reply = self._dispatch(line.rstrip(b"\n"))
                if reply is None:
                    return
                if isinstance(reply, IPCResponse):
                    conn.sendall(reply.encode())
                    continue
                conn.sendall(reply)
                if not reply.endswith(b"\n"):
                    with contextlib.suppress(OSError):
                        conn.shutdown(socket.SHUT_WR)
                    return

    def _dispatch(self, line: bytes) -> IPCResponse | bytes | None:
        try:
            request = IPCRequest.from_json(line)
        except IPCProtocolError:
            return IPCResponse.create_error(0, ERROR_INVALID_REQUEST, "Invalid Request")

        self.requests.append(request)
        handler = self.handlers.get(request.method) or getattr(
            self, "_" + request.method.replace(".", "_"), None
        )
        if handler is None:
            return IPCResponse.create_error(
                request.id, ERROR_METHOD_NOT_FOUND, "Method not found"
            )
        return handler(request)

    # Default method implementations, mirroring the real daemon

    def _status(self, request: IPCRequest) -> IPCResponse:
        result = {} if self.version is None else {"version": self.version}
        return IPCResponse.success(request.id, result)

    def _elements_list(self, request: IPCRequest) -> IPCResponse:
        return IPCResponse.success(request.id, {"elements": self.elements})

    def _element_id(self, request: IPCRequest) -> int | None:
        params = request.params if isinstance(request.params, dict) else {}
        element_id = params.get("id")
        if not isinstance(element_id, int) or not 0 <= element_id < len(self.elements):
            return None
        return element_id

    def _element_action(self, request: IPCRequest) -> IPCResponse:
        element_id = self._element_id(request)
        if element_id is None:
            return IPCResponse.create_error(
                request.id, ERROR_INVALID_PARAMS, "Invalid element id"
            )
        self.actions.append((request.method, element_id))
        return IPCResponse.success(request.id, {"ok": True})

    _elements_click = _element_action
    _elements_focus = _element_action

    def _elements_info(self, request: IPCRequest) -> IPCResponse:
        element_id = self._element_id(request)
        if element_id is None:
            return IPCResponse.create_error(
                request.id, ERROR_INVALID_PARAMS, "Invalid element id"
            )
        return IPCResponse.success(request.id, {"element": self.elements[element_id]})

    def _config_get_all(self, request: IPCRequest) -> IPCResponse:
        return IPCResponse.success(request.id, dict(self.config))

    def _config_get(self, request: IPCRequest) -> IPCResponse:
        key = (request.params or {}).get("key")
        if key is None:
            return IPCResponse.create_error(request.id, ERROR_INVALID_PARAMS, "Missing key")
        if key not in self.config:
            return IPCResponse.create_error(request.id, ERROR_INVALID_PARAMS, "Unknown key")
        return IPCResponse.success(request.id, {"value": self.config[key]})

    def _config_set(self, request: IPCRequest) -> IPCResponse:
        params = request.params or {}
        key, value = params.get("key"), params.get("value")
        if not isinstance(key, str) or not isinstance(value, str):
            return IPCResponse.create_error(
                request.id, ERROR_INVALID_PARAMS, "Missing key/value"
            )
        self.config[key] = value
        return IPCResponse.success(request.id, {"ok": True})

    def _config_get_schema(self, request: IPCRequest) -> IPCResponse:
        schema = {key: {"type": "string"} for key in self.config}
        return IPCResponse.success(request.id, schema)


@pytest.fixture
def socket_dir() -> Iterator[Path]:
    """Short temporary directory for Unix socket paths."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_daemon(socket_dir: Path) -> Iterator[FakeDaemon]:
    """A running fake daemon on a temporary socket."""
    daemon = FakeDaemon(str(socket_dir / "warpd.sock"))
    daemon.start()
    try:
        yield daemon
    finally:
        daemon.stop()


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the user's config file and WARPD_UI_* variables out of tests."""
    for key in list(os.environ):
        if key.startswith("WARPD_UI_"):
            monkeypatch.delenv(key)
    monkeypatch.setattr(
        "warpd_ui.config.DEFAULT_CONFIG_PATH", tmp_path / "absent" / "ui.yml"
    )
