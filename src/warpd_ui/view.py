"""
Headless view state for the warpd UI window.

The window shows a title, a one-line status and the element list. This
module holds that state and the actions behind the window's buttons; a
renderer only has to draw ``title``, ``status`` and ``lines()``.

IPC failures never escape from here: they are logged and turned into the
status line, which is how the window reports them to the user.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from warpd_ui.daemon import DaemonAPI
from warpd_ui.elements import MAX_ELEMENTS, ElementItem
from warpd_ui.ipc.protocol import IPCError
from warpd_ui.logging import get_logger

if TYPE_CHECKING:
    from warpd_ui.config import AppConfig

logger = get_logger(__name__)

STATUS_DISCONNECTED = "IPC: disconnected"
STATUS_CONNECTED = "IPC: connected"
STATUS_REFRESHED = "elements refreshed"
STATUS_REFRESH_FAILED = "elements refresh failed"


def status_text(result: Any) -> str:
    """
    Derive the status line from a ``status`` result.

    A missing version means the daemon answered but did not say which
    version it is.
    """
    version = result.get("version") if isinstance(result, dict) else None
    if isinstance(version, str):
        return f"daemon: {version}"
    return STATUS_CONNECTED


@dataclass
class UIState:
    """
    What the UI window displays.

    Attributes:
        api: Daemon access used by the actions.
        title: Window title.
        status: Status line.
        elements: Elements currently listed.
        max_elements: Cap applied to elements.list results.
    """

    api: DaemonAPI
    title: str = "warpd ui"
    status: str = STATUS_DISCONNECTED
    elements: list[ElementItem] = field(default_factory=list)
    max_elements: int = MAX_ELEMENTS

    @classmethod
    def from_config(cls, config: AppConfig) -> UIState:
        """Create the view state from application configuration."""
        return cls(
            api=DaemonAPI.from_config(config.ipc),
            title=config.ui.title,
            max_elements=config.ui.max_elements,
        )

    @property
    def socket_path(self) -> str:
        return self.api.socket_path

    def lines(self) -> list[str]:
        """Display lines for the element list."""
        return [item.display_line() for item in self.elements]

    def load(self) -> None:
        """Initial load: query the daemon status, then list elements."""
        try:
            self.status = status_text(self.api.status())
        except IPCError as e:
            logger.warning(
                "Daemon status unavailable",
                extra={"error": str(e), "socket_path": self.socket_path},
            )
            self.status = STATUS_DISCONNECTED

        try:
            self.elements = self.api.list_elements(limit=self.max_elements)
        except IPCError as e:
            logger.warning(
                "Initial element list failed",
                extra={"error": str(e), "socket_path": self.socket_path},
            )

    def refresh_elements(self) -> bool:
        """
        Re-fetch the element list.

        The previous list is kept when the daemon cannot be reached.

        Returns:
            True if the list was refreshed.
        """
        try:
            self.elements = self.api.list_elements(limit=self.max_elements)
        except IPCError as e:
            logger.warning("Element refresh failed", extra={"error": str(e)})
            self.status = STATUS_REFRESH_FAILED
            return False

        self.status = STATUS_REFRESHED
        return True

    def send_element_action(self, element_id: int, method: str = "elements.click") -> bool:
        """
        Send an element action such as ``elements.click`` or ``elements.focus``.

        Returns:
            True if the daemon accepted the action.
        """
        try:
            self.api.call(method, {"id": element_id})
        except IPCError as e:
            logger.warning(
                "Element action failed",
                extra={"method": method, "element_id": element_id, "error": str(e)},
            )
            self.status = f"{method} failed"
            return False

        self.status = f"sent {method}"
        return True

    def click(self, element_id: int) -> bool:
        return self.send_element_action(element_id, "elements.click")

    def focus(self, element_id: int) -> bool:
        return self.send_element_action(element_id, "elements.focus")
