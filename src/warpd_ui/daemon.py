"""
Typed access to the warpd daemon's methods.

Each call opens a fresh connection, performs a single exchange and closes
it again, so a restarted daemon is picked up on the next call without
any reconnection logic. Errors from the IPC layer propagate unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from warpd_ui.elements import MAX_ELEMENTS, ElementItem, parse_elements
from warpd_ui.ipc.client import IPCClient
from warpd_ui.ipc.protocol import (
    DEFAULT_SOCKET_PATH,
    IPCProtocolError,
    IPCRequest,
    RequestIDGenerator,
)
from warpd_ui.logging import get_logger

if TYPE_CHECKING:
    from warpd_ui.config import IPCConfig

logger = get_logger(__name__)


class DaemonAPI:
    """
    Wrappers for the daemon's status, element and config methods.

    Attributes:
        socket_path: Path to the daemon socket.
        timeout: IPC timeout in seconds, or None to block.

    Example:
        >>> api = DaemonAPI("/tmp/warpd.sock")
        >>> api.status()
        {'version': '0.9.0'}
        >>> api.click_element(7)
    """

    def __init__(
        self,
        socket_path: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.socket_path = socket_path or DEFAULT_SOCKET_PATH
        self.timeout = timeout
        self._id_generator = RequestIDGenerator()

    @classmethod
    def from_config(cls, config: IPCConfig) -> DaemonAPI:
        """Create a DaemonAPI from IPC configuration."""
        return cls(
            socket_path=config.socket_path,
            timeout=config.request_timeout_seconds,
        )

    def call(self, method: str, params: Any = None) -> Any:
        """
        Perform one request on a short-lived connection.

        Args:
            method: Daemon method name.
            params: Optional method parameters.

        Returns:
            The response result.

        Raises:
            IPCError: On connection, transport, protocol or remote failure.
        """
        request = IPCRequest(
            id=self._id_generator.generate(),
            method=method,
            params=params,
        )
        logger.debug(
            "Daemon call",
            extra={"request_id": request.id, "method": method},
        )
        with IPCClient(self.socket_path, timeout=self.timeout) as client:
            return client.request(request).raise_for_error()

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def status(self) -> dict[str, Any]:
        """Return the daemon status object (may contain "version")."""
        result = self.call("status")
        return result if isinstance(result, dict) else {}

    # -------------------------------------------------------------------------
    # Elements
    # -------------------------------------------------------------------------

    def list_elements(self, limit: int = MAX_ELEMENTS) -> list[ElementItem]:
        """Return up to ``limit`` interactable elements."""
        return parse_elements(self.call("elements.list"), limit=limit)

    def click_element(self, element_id: int) -> Any:
        """Click an element from the last elements.list."""
        return self.call("elements.click", {"id": element_id})

    def focus_element(self, element_id: int) -> Any:
        """Move the pointer onto an element without clicking."""
        return self.call("elements.focus", {"id": element_id})

    def element_info(self, element_id: int) -> ElementItem:
        """
        Return the details of one element.

        Raises:
            IPCProtocolError: If the result has no element object.
        """
        result = self.call("elements.info", {"id": element_id})
        element = result.get("element") if isinstance(result, dict) else None
        if not isinstance(element, dict):
            raise IPCProtocolError(
                "elements.info result has no element object",
                details={"id": element_id},
            )
        return ElementItem.from_dict(element)

    # -------------------------------------------------------------------------
    # Config
    # -------------------------------------------------------------------------

    def config_get_all(self) -> dict[str, Any]:
        """Return every daemon config key and its value."""
        result = self.call("config.get_all")
        return result if isinstance(result, dict) else {}

    def config_get(self, key: str) -> str | None:
        """Return the value of one daemon config key."""
        result = self.call("config.get", {"key": key})
        return result.get("value") if isinstance(result, dict) else None

    def config_set(self, key: str, value: str) -> None:
        """Set a daemon config key."""
        self.call("config.set", {"key": key, "value": value})

    def config_schema(self) -> Any:
        """Return the daemon's config schema."""
        return self.call("config.get_schema")
